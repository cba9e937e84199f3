# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User account service.

This module provides the UserService that handles:
- Linking a pending account to an external identity (invitation codes)
- Role assignment
- Blocking accounts

Example:
    >>> user_service = UserService(db_session)
    >>> await user_service.assign_role_to_person(person_id, UserRoles.ORGANISATION_ADMIN)
    >>> await user_service.block_user(user_id)
"""

import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from martialbase.domains.access.roles import UserRoles
from martialbase.domains.access.store import UserRecord, user_record
from martialbase.infrastructure.database.models import (
    OrganisationPerson,
    Role,
    SchoolStudent,
    User,
    UserRole,
)

logger = logging.getLogger(__name__)


class UserServiceError(Exception):
    """Base exception for user service errors."""

    pass


class UserNotFoundError(UserServiceError):
    """Raised when a user is not found."""

    pass


class InvitationAlreadyClaimedError(UserServiceError):
    """Raised when an invitation code has already been linked to a subject."""

    pass


def derive_roles(
    organisation_rows: Iterable[OrganisationPerson],
    school_rows: Iterable[SchoolStudent],
) -> set[str]:
    """Roles a newly registered account receives from its person's memberships.

    Every account holds User. Organisation rows add OrganisationMember,
    and OrganisationAdmin where the person is an admin. Active school rows
    add SchoolMember, plus SchoolInstructor and SchoolSecretary for the
    matching flags.

    Args:
        organisation_rows: The person's organisation memberships.
        school_rows: The person's school memberships.

    Returns:
        Role names.
    """
    roles = {UserRoles.USER}

    for row in organisation_rows:
        roles.add(UserRoles.ORGANISATION_MEMBER)
        if row.is_admin:
            roles.add(UserRoles.ORGANISATION_ADMIN)

    for row in school_rows:
        if row.inactive_date is not None:
            continue
        roles.add(UserRoles.SCHOOL_MEMBER)
        if row.is_instructor:
            roles.add(UserRoles.SCHOOL_INSTRUCTOR)
        if row.is_secretary:
            roles.add(UserRoles.SCHOOL_SECRETARY)

    return roles


class UserService:
    """Service for user accounts and their roles.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize the user service.

        Args:
            db: Async database session.
        """
        self._db = db

    async def claim_invitation(self, pending: UserRecord, subject: str) -> UserRecord:
        """Link a pending account to the external subject that presented its code.

        The subject is stored, the invitation code cleared and roles derived
        from the person's memberships. The registration is committed at
        once so a later failure in the same request does not undo it.

        Args:
            pending: Account holding the invitation code.
            subject: External subject to link.

        Returns:
            The registered account.

        Raises:
            UserNotFoundError: If the pending account no longer exists.
            InvitationAlreadyClaimedError: If the account already has a subject.
        """
        user = await self._get_user(pending.id)
        if user is None:
            raise UserNotFoundError(f"User {pending.id} not found")
        if user.external_subject is not None:
            raise InvitationAlreadyClaimedError(f"User {user.id} is already registered")

        user.external_subject = subject
        user.invitation_code = None

        organisation_rows = await self._db.execute(
            select(OrganisationPerson).where(OrganisationPerson.person_id == user.person_id)
        )
        school_rows = await self._db.execute(
            select(SchoolStudent).where(SchoolStudent.person_id == user.person_id)
        )
        for role_name in sorted(
            derive_roles(organisation_rows.scalars().all(), school_rows.scalars().all())
        ):
            await self._add_role(user, role_name)

        record = user_record(user)
        await self._db.commit()

        logger.info("User %s registered with roles %s", user.id, sorted(record.roles))
        return record

    async def assign_role(self, user_id: str, role_name: str) -> bool:
        """Give a user a role if they do not already hold it.

        Args:
            user_id: User account ID.
            role_name: Role to assign.

        Returns:
            True if the role was added.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        user = await self._get_user(user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return await self._add_role(user, role_name)

    async def assign_role_to_person(self, person_id: str, role_name: str) -> bool:
        """Give the account of a person a role.

        People without an account are skipped.

        Returns:
            True if the role was added.
        """
        result = await self._db.execute(select(User).where(User.person_id == person_id))
        user = result.scalar_one_or_none()
        if user is None:
            logger.debug("Person %s has no user account, role %s not assigned", person_id, role_name)
            return False
        return await self._add_role(user, role_name)

    async def block_user(self, user_id: str) -> None:
        """Block a user by removing their external identity and invitation code.

        The account and its roles are kept.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        user = await self._get_user(user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")

        user.external_subject = None
        user.invitation_code = None
        await self._db.flush()

        logger.info("User blocked: %s", user_id)

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    async def _get_user(self, user_id: str) -> User | None:
        result = await self._db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def _get_or_create_role(self, role_name: str) -> Role:
        result = await self._db.execute(select(Role).where(Role.name == role_name))
        role = result.scalar_one_or_none()
        if role is None:
            role = Role(name=role_name)
            self._db.add(role)
            await self._db.flush()
        return role

    async def _add_role(self, user: User, role_name: str) -> bool:
        if role_name in user.role_names:
            return False

        role = await self._get_or_create_role(role_name)
        user.user_roles.append(UserRole(role_id=role.id, role=role))
        await self._db.flush()

        logger.debug("Role %s assigned to user %s", role_name, user.id)
        return True
