# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Query contract between the access pipeline and the membership store.

The pipeline reads users, memberships and entity existence only through
AccessStore. SqlAccessStore is the SQLAlchemy implementation used by the
API; tests substitute an in-memory implementation.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from enum import Enum
from uuid import UUID

from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from martialbase.domains.access.cache import ScopedCache
from martialbase.infrastructure.database.models import (
    Art,
    ArtGrade,
    Document,
    DocumentType,
    Organisation,
    OrganisationPerson,
    Person,
    School,
    SchoolStudent,
    User,
)

logger = logging.getLogger(__name__)


class EntityKind(str, Enum):
    """Entities an operation can reference by id, valued by display name."""

    ART = "Art"
    ART_GRADE = "Art grade"
    DOCUMENT = "Document"
    DOCUMENT_TYPE = "Document type"
    ORGANISATION = "Organisation"
    PERSON = "Person"
    SCHOOL = "School"
    USER = "User"


_ENTITY_MODELS = {
    EntityKind.ART: Art,
    EntityKind.ART_GRADE: ArtGrade,
    EntityKind.DOCUMENT: Document,
    EntityKind.DOCUMENT_TYPE: DocumentType,
    EntityKind.ORGANISATION: Organisation,
    EntityKind.PERSON: Person,
    EntityKind.SCHOOL: School,
    EntityKind.USER: User,
}


@dataclass(frozen=True)
class UserRecord:
    """Read-only view of a user account."""

    id: str
    person_id: str
    external_subject: str | None
    roles: frozenset[str]
    invitation_code: str | None = None


@dataclass(frozen=True)
class OrganisationMembership:
    """Read-only view of an organisation membership row."""

    organisation_id: str
    person_id: str
    is_admin: bool


@dataclass(frozen=True)
class SchoolMembership:
    """Read-only view of a school membership row."""

    school_id: str
    person_id: str
    is_instructor: bool
    is_secretary: bool
    inactive_date: date | None = None


def is_valid_id(value: str | None) -> bool:
    """Check whether a string is a well-formed entity id."""
    if not value:
        return False
    try:
        UUID(str(value))
    except ValueError:
        return False
    return True


def user_record(user: User) -> UserRecord:
    """Build a UserRecord from an ORM user."""
    return UserRecord(
        id=str(user.id),
        person_id=str(user.person_id),
        external_subject=user.external_subject,
        roles=frozenset(user.role_names),
        invitation_code=user.invitation_code,
    )


class AccessStore(ABC):
    """Read contract consumed by the identity resolver, scope evaluator and orphan guard."""

    @abstractmethod
    async def find_user_by_external_subject(self, subject: str) -> UserRecord | None:
        """Find the account linked to an external subject."""

    @abstractmethod
    async def find_user_by_invitation_code(self, code: str) -> UserRecord | None:
        """Find the account holding a pending invitation code."""

    @abstractmethod
    async def get_organisation_membership(
        self, organisation_id: str, person_id: str
    ) -> OrganisationMembership | None:
        """Get a person's membership row in an organisation, if any."""

    @abstractmethod
    async def get_school_membership(self, school_id: str, person_id: str) -> SchoolMembership | None:
        """Get a person's membership row in a school, if any."""

    @abstractmethod
    async def count_organisation_memberships(self, person_id: str, lock: bool = False) -> int:
        """Count a person's organisation memberships.

        Args:
            person_id: Person whose memberships are counted.
            lock: Lock the counted rows until the unit of work ends.
        """

    @abstractmethod
    async def is_organisation_public(self, organisation_id: str) -> bool:
        """Check whether an organisation is visible to non-members."""

    @abstractmethod
    async def entity_exists(self, kind: EntityKind, entity_id: str) -> bool:
        """Check whether an entity of the given kind exists."""

    @abstractmethod
    async def list_organisation_memberships(self, person_id: str) -> list[OrganisationMembership]:
        """List every organisation membership of a person."""

    @abstractmethod
    async def list_school_memberships(self, person_id: str) -> list[SchoolMembership]:
        """List every school membership of a person."""

    def forget_memberships(self) -> None:
        """Drop memoized membership reads after the memberships change."""


class SqlAccessStore(AccessStore):
    """AccessStore backed by the request's SQLAlchemy session.

    User and membership reads are memoized for the life of the store,
    which is one request. Membership counts are never memoized because
    the orphan guard depends on their freshness.

    Attributes:
        _db: Async database session.
        _cache: Per-request lookup cache.
    """

    def __init__(self, db: AsyncSession, cache: ScopedCache | None = None) -> None:
        self._db = db
        self._cache = cache or ScopedCache()

    @property
    def cache(self) -> ScopedCache:
        return self._cache

    def forget_memberships(self) -> None:
        self._cache.invalidate("organisation_membership")
        self._cache.invalidate("school_membership")

    async def find_user_by_external_subject(self, subject: str) -> UserRecord | None:
        async def load() -> UserRecord | None:
            result = await self._db.execute(select(User).where(User.external_subject == subject))
            user = result.scalar_one_or_none()
            return user_record(user) if user else None

        return await self._cache.get_or_load(("user", subject), load)

    async def find_user_by_invitation_code(self, code: str) -> UserRecord | None:
        result = await self._db.execute(select(User).where(User.invitation_code == code))
        user = result.scalar_one_or_none()
        return user_record(user) if user else None

    async def get_organisation_membership(
        self, organisation_id: str, person_id: str
    ) -> OrganisationMembership | None:
        if not (is_valid_id(organisation_id) and is_valid_id(person_id)):
            return None

        async def load() -> OrganisationMembership | None:
            result = await self._db.execute(
                select(OrganisationPerson).where(
                    OrganisationPerson.organisation_id == organisation_id,
                    OrganisationPerson.person_id == person_id,
                )
            )
            row = result.scalar_one_or_none()
            if row is None:
                return None
            return OrganisationMembership(
                organisation_id=str(row.organisation_id),
                person_id=str(row.person_id),
                is_admin=row.is_admin,
            )

        return await self._cache.get_or_load(("organisation_membership", organisation_id, person_id), load)

    async def get_school_membership(self, school_id: str, person_id: str) -> SchoolMembership | None:
        if not (is_valid_id(school_id) and is_valid_id(person_id)):
            return None

        async def load() -> SchoolMembership | None:
            result = await self._db.execute(
                select(SchoolStudent).where(
                    SchoolStudent.school_id == school_id,
                    SchoolStudent.person_id == person_id,
                )
            )
            row = result.scalar_one_or_none()
            if row is None:
                return None
            return SchoolMembership(
                school_id=str(row.school_id),
                person_id=str(row.person_id),
                is_instructor=row.is_instructor,
                is_secretary=row.is_secretary,
                inactive_date=row.inactive_date,
            )

        return await self._cache.get_or_load(("school_membership", school_id, person_id), load)

    async def count_organisation_memberships(self, person_id: str, lock: bool = False) -> int:
        if lock:
            # Row locks cannot be combined with aggregates, so lock then count
            result = await self._db.execute(
                select(OrganisationPerson.organisation_id)
                .where(OrganisationPerson.person_id == person_id)
                .with_for_update()
            )
            return len(result.scalars().all())

        result = await self._db.execute(
            select(func.count())
            .select_from(OrganisationPerson)
            .where(OrganisationPerson.person_id == person_id)
        )
        return result.scalar() or 0

    async def is_organisation_public(self, organisation_id: str) -> bool:
        if not is_valid_id(organisation_id):
            return False
        result = await self._db.execute(
            select(Organisation.is_public).where(Organisation.id == organisation_id)
        )
        return bool(result.scalar_one_or_none())

    async def entity_exists(self, kind: EntityKind, entity_id: str) -> bool:
        if not is_valid_id(entity_id):
            return False
        model = _ENTITY_MODELS[kind]
        result = await self._db.execute(select(exists().where(model.id == entity_id)))
        return bool(result.scalar())

    async def list_organisation_memberships(self, person_id: str) -> list[OrganisationMembership]:
        result = await self._db.execute(
            select(OrganisationPerson).where(OrganisationPerson.person_id == person_id)
        )
        return [
            OrganisationMembership(
                organisation_id=str(row.organisation_id),
                person_id=str(row.person_id),
                is_admin=row.is_admin,
            )
            for row in result.scalars().all()
        ]

    async def list_school_memberships(self, person_id: str) -> list[SchoolMembership]:
        result = await self._db.execute(select(SchoolStudent).where(SchoolStudent.person_id == person_id))
        return [
            SchoolMembership(
                school_id=str(row.school_id),
                person_id=str(row.person_id),
                is_instructor=row.is_instructor,
                is_secretary=row.is_secretary,
                inactive_date=row.inactive_date,
            )
            for row in result.scalars().all()
        ]
