# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Organisation service.

This module provides the OrganisationService that handles:
- Organisation CRUD operations
- Organisation membership (people and admins)
- The organisation hierarchy (parent links)

Access checks are done by the pipeline before any method here runs.
Methods flush but never commit; the pipeline commits the unit of work.

Example:
    >>> service = OrganisationService(db, store)
    >>> organisation = await service.create_organisation(request, person_id)
    >>> await service.remove_person(organisation.id, other_person_id)
"""

import logging

from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from martialbase.domains.access.errors import BadParameter, EntityRelationNotFound, OrphanSchoolEntityError
from martialbase.domains.access.identity import ResolvedIdentity
from martialbase.domains.access.orphan import OrphanGuard
from martialbase.domains.access.roles import UserRoles
from martialbase.domains.access.scope import ScopeEvaluator
from martialbase.domains.access.store import AccessStore
from martialbase.domains.user.service import UserService
from martialbase.infrastructure.database.models import Organisation, OrganisationPerson, School
from martialbase.models.organisation import (
    OrganisationCreateRequest,
    OrganisationPersonResponse,
    OrganisationResponse,
    OrganisationUpdateRequest,
)

logger = logging.getLogger(__name__)

CYCLIC_PARENT_MESSAGE = "An organisation cannot be a child of itself or of one of its descendants."


class OrganisationServiceError(Exception):
    """Base exception for organisation service errors."""

    pass


class OrganisationNotFoundError(OrganisationServiceError):
    """Raised when an organisation is not found."""

    pass


class OrganisationService:
    """Service for managing organisations and their members.

    Attributes:
        _db: Async database session.
        _store: Access store shared with the pipeline for the request.
        _guard: Orphan guard for membership removals.
        _users: User service for role assignment.
    """

    def __init__(self, db: AsyncSession, store: AccessStore) -> None:
        """Initialize the organisation service.

        Args:
            db: Async database session.
            store: Access store used by the orphan guard.
        """
        self._db = db
        self._store = store
        self._guard = OrphanGuard(store)
        self._users = UserService(db)

    async def get_organisation(self, organisation_id: str) -> OrganisationResponse:
        """Get an organisation by ID.

        Raises:
            OrganisationNotFoundError: If the organisation does not exist.
        """
        organisation = await self._get_organisation(organisation_id)
        return OrganisationResponse.model_validate(organisation)

    async def list_organisations(
        self,
        identity: ResolvedIdentity,
        evaluator: ScopeEvaluator,
        bypass: bool = False,
        parent_id: str | None = None,
    ) -> list[OrganisationResponse]:
        """List the organisations a caller can see, ordered by initials.

        Args:
            identity: Caller.
            evaluator: Scope evaluator deciding visibility.
            bypass: Return every organisation (superuser callers).
            parent_id: Only list children of this organisation.

        Returns:
            Visible organisations.
        """
        stmt = select(Organisation)
        if parent_id is not None:
            stmt = stmt.where(Organisation.parent_id == parent_id)
        stmt = stmt.order_by(Organisation.initials.asc())

        result = await self._db.execute(stmt)
        organisations = result.scalars().all()

        visible = set(
            await evaluator.filter_visible_organisations(
                identity, [organisation.id for organisation in organisations], bypass=bypass
            )
        )
        return [
            OrganisationResponse.model_validate(organisation)
            for organisation in organisations
            if organisation.id in visible
        ]

    async def create_organisation(
        self,
        request: OrganisationCreateRequest,
        person_id: str,
    ) -> OrganisationResponse:
        """Create an organisation with the caller as its first admin.

        The caller's account is given the OrganisationAdmin role.

        Args:
            request: Organisation creation request.
            person_id: Person ID of the caller.

        Returns:
            Created organisation.
        """
        organisation = Organisation(
            initials=request.initials,
            name=request.name,
            parent_id=request.parent_id,
            is_public=request.is_public,
        )
        self._db.add(organisation)
        await self._db.flush()

        self._db.add(
            OrganisationPerson(organisation_id=organisation.id, person_id=person_id, is_admin=True)
        )
        await self._users.assign_role_to_person(person_id, UserRoles.ORGANISATION_ADMIN)
        await self._db.flush()

        logger.info("Organisation created: %s (initials=%s)", organisation.id, organisation.initials)
        return OrganisationResponse.model_validate(organisation)

    async def update_organisation(
        self,
        organisation_id: str,
        request: OrganisationUpdateRequest,
    ) -> OrganisationResponse:
        """Update an organisation's details.

        Raises:
            OrganisationNotFoundError: If the organisation does not exist.
        """
        organisation = await self._get_organisation(organisation_id)
        organisation.initials = request.initials
        organisation.name = request.name
        organisation.is_public = request.is_public
        await self._db.flush()

        logger.info("Organisation updated: %s", organisation_id)
        return OrganisationResponse.model_validate(organisation)

    async def add_person(
        self,
        organisation_id: str,
        person_id: str,
        is_admin: bool = False,
    ) -> None:
        """Add a person to an organisation, or change their admin flag.

        An existing membership takes the given admin flag, so omitting it
        demotes an admin to a plain member.
        The person's account, if any, receives the matching organisation role.

        Args:
            organisation_id: Organisation ID.
            person_id: Person to add.
            is_admin: Admin flag to set.
        """
        membership = await self._get_membership(organisation_id, person_id)
        if membership is None:
            membership = OrganisationPerson(
                organisation_id=organisation_id,
                person_id=person_id,
                is_admin=is_admin,
            )
            self._db.add(membership)
            logger.info("Person %s added to organisation %s", person_id, organisation_id)
        elif membership.is_admin != is_admin:
            membership.is_admin = is_admin
            logger.info(
                "Person %s admin flag in organisation %s set to %s", person_id, organisation_id, is_admin
            )

        role = UserRoles.ORGANISATION_ADMIN if membership.is_admin else UserRoles.ORGANISATION_MEMBER
        await self._users.assign_role_to_person(person_id, role)
        await self._db.flush()
        self._store.forget_memberships()

    async def remove_person(
        self,
        organisation_id: str,
        person_id: str,
    ) -> EntityRelationNotFound | None:
        """Remove a person from an organisation.

        Returns:
            EntityRelationNotFound if the person is not a member, else None.

        Raises:
            OrphanPersonEntityError: If this is the person's only organisation.
        """
        membership = await self._get_membership(organisation_id, person_id)
        if membership is None:
            return EntityRelationNotFound("Person", person_id, "organisation", organisation_id)

        await self._guard.before_remove_membership(person_id, organisation_id)

        await self._db.delete(membership)
        await self._db.flush()
        self._store.forget_memberships()

        logger.info("Person %s removed from organisation %s", person_id, organisation_id)
        return None

    async def list_people(self, organisation_id: str) -> list[OrganisationPersonResponse]:
        """List the members of an organisation ordered by last name."""
        result = await self._db.execute(
            select(OrganisationPerson).where(OrganisationPerson.organisation_id == organisation_id)
        )
        memberships = sorted(
            result.unique().scalars().all(),
            key=lambda row: (row.person.last_name, row.person.first_name),
        )
        return [OrganisationPersonResponse.model_validate(row) for row in memberships]

    async def get_parent_id(self, organisation_id: str) -> str | None:
        """Get the current parent of an organisation, if any."""
        result = await self._db.execute(
            select(Organisation.parent_id).where(Organisation.id == organisation_id)
        )
        return result.scalar_one_or_none()

    async def change_parent(self, organisation_id: str, parent_id: str) -> BadParameter | None:
        """Set the parent of an organisation.

        The new parent may not be the organisation itself or one of its
        descendants, so the hierarchy stays a forest.

        Returns:
            BadParameter if the link would create a cycle, else None.

        Raises:
            OrganisationNotFoundError: If the organisation does not exist.
        """
        if await self._is_self_or_descendant(organisation_id, parent_id):
            logger.info("Refused making %s the parent of organisation %s: cycle", parent_id, organisation_id)
            return BadParameter(CYCLIC_PARENT_MESSAGE)

        organisation = await self._get_organisation(organisation_id)
        organisation.parent_id = parent_id
        await self._db.flush()

        logger.info("Organisation %s parent changed to %s", organisation_id, parent_id)
        return None

    async def remove_parent(self, organisation_id: str) -> None:
        """Detach an organisation from its parent.

        Raises:
            OrganisationNotFoundError: If the organisation does not exist.
        """
        organisation = await self._get_organisation(organisation_id)
        if organisation.parent_id is None:
            return

        organisation.parent_id = None
        await self._db.flush()

        logger.info("Organisation %s detached from its parent", organisation_id)

    async def delete_organisation(self, organisation_id: str) -> None:
        """Delete an organisation and its memberships.

        People are not deleted, only their membership of this organisation.

        Raises:
            OrphanSchoolEntityError: If the organisation still owns schools.
            OrphanPersonEntityError: If a member belongs to no other organisation.
        """
        has_schools = await self._db.execute(
            select(exists().where(School.organisation_id == organisation_id))
        )
        if has_schools.scalar():
            logger.info("Refused deleting organisation %s: it owns schools", organisation_id)
            raise OrphanSchoolEntityError()

        members = await self._db.execute(
            select(OrganisationPerson.person_id).where(
                OrganisationPerson.organisation_id == organisation_id
            )
        )
        await self._guard.before_remove_organisation(organisation_id, members.scalars().all())

        await self._db.execute(
            delete(OrganisationPerson).where(OrganisationPerson.organisation_id == organisation_id)
        )
        organisation = await self._get_organisation(organisation_id)
        await self._db.delete(organisation)
        await self._db.flush()
        self._store.forget_memberships()

        logger.info("Organisation deleted: %s", organisation_id)

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    async def _get_organisation(self, organisation_id: str) -> Organisation:
        result = await self._db.execute(select(Organisation).where(Organisation.id == organisation_id))
        organisation = result.scalar_one_or_none()
        if organisation is None:
            raise OrganisationNotFoundError(f"Organisation {organisation_id} not found")
        return organisation

    async def _is_self_or_descendant(self, organisation_id: str, candidate_id: str) -> bool:
        """Walk up from candidate_id and report whether organisation_id is on the chain."""
        target = organisation_id.lower()
        seen: set[str] = set()
        current: str | None = candidate_id
        while current and current.lower() not in seen:
            if current.lower() == target:
                return True
            seen.add(current.lower())
            current = await self.get_parent_id(current)
        return False

    async def _get_membership(self, organisation_id: str, person_id: str) -> OrganisationPerson | None:
        result = await self._db.execute(
            select(OrganisationPerson).where(
                OrganisationPerson.organisation_id == organisation_id,
                OrganisationPerson.person_id == person_id,
            )
        )
        return result.unique().scalar_one_or_none()
