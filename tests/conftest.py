# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- An in-memory AccessStore for pipeline, scope and orphan guard tests
- A mock unit of work recording commits and rollbacks
- Sample ids and token claims
"""

from collections import defaultdict
from datetime import date
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from martialbase.domains.access import (
    AccessStore,
    EntityKind,
    IdentityResolver,
    OrganisationMembership,
    PipelineCoordinator,
    SchoolMembership,
    UserRecord,
    UserRoles,
)


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


# =============================================================================
# In-memory access store
# =============================================================================


class FakeAccessStore(AccessStore):
    """AccessStore over plain dictionaries.

    Every entity added through the helpers exists for entity_exists().
    Query counts are recorded so tests can assert on lookups.
    """

    def __init__(self) -> None:
        self.users: dict[str, UserRecord] = {}
        self.pending: dict[str, UserRecord] = {}
        self.organisation_memberships: dict[tuple[str, str], OrganisationMembership] = {}
        self.school_memberships: dict[tuple[str, str], SchoolMembership] = {}
        self.public_organisations: set[str] = set()
        self.entities: dict[EntityKind, set[str]] = defaultdict(set)
        self.calls: dict[str, int] = defaultdict(int)
        self.locked_counts: list[str] = []
        self.forgotten = 0

    # -------------------------------------------------------------------------
    # Builders
    # -------------------------------------------------------------------------

    def add_entity(self, kind: EntityKind, entity_id: str | None = None) -> str:
        entity_id = entity_id or str(uuid4())
        self.entities[kind].add(entity_id)
        return entity_id

    def add_user(
        self,
        roles: set[str] | None = None,
        subject: str | None = None,
        person_id: str | None = None,
    ) -> UserRecord:
        subject = subject or f"subject-{uuid4()}"
        person_id = person_id or self.add_entity(EntityKind.PERSON)
        self.entities[EntityKind.PERSON].add(person_id)
        record = UserRecord(
            id=self.add_entity(EntityKind.USER),
            person_id=person_id,
            external_subject=subject,
            roles=frozenset(roles if roles is not None else {UserRoles.USER}),
        )
        self.users[subject] = record
        return record

    def add_pending_user(self, code: str, roles: set[str] | None = None) -> UserRecord:
        record = UserRecord(
            id=self.add_entity(EntityKind.USER),
            person_id=self.add_entity(EntityKind.PERSON),
            external_subject=None,
            roles=frozenset(roles or set()),
            invitation_code=code,
        )
        self.pending[code] = record
        return record

    def add_organisation(self, is_public: bool = False) -> str:
        organisation_id = self.add_entity(EntityKind.ORGANISATION)
        if is_public:
            self.public_organisations.add(organisation_id)
        return organisation_id

    def add_organisation_member(self, organisation_id: str, person_id: str, is_admin: bool = False) -> None:
        self.organisation_memberships[(organisation_id, person_id)] = OrganisationMembership(
            organisation_id=organisation_id,
            person_id=person_id,
            is_admin=is_admin,
        )

    def add_school_member(
        self,
        school_id: str,
        person_id: str,
        is_secretary: bool = False,
        is_instructor: bool = False,
        inactive_date: date | None = None,
    ) -> None:
        self.entities[EntityKind.SCHOOL].add(school_id)
        self.school_memberships[(school_id, person_id)] = SchoolMembership(
            school_id=school_id,
            person_id=person_id,
            is_instructor=is_instructor,
            is_secretary=is_secretary,
            inactive_date=inactive_date,
        )

    # -------------------------------------------------------------------------
    # AccessStore contract
    # -------------------------------------------------------------------------

    async def find_user_by_external_subject(self, subject: str) -> UserRecord | None:
        self.calls["find_user_by_external_subject"] += 1
        return self.users.get(subject)

    async def find_user_by_invitation_code(self, code: str) -> UserRecord | None:
        self.calls["find_user_by_invitation_code"] += 1
        return self.pending.get(code)

    async def get_organisation_membership(
        self, organisation_id: str, person_id: str
    ) -> OrganisationMembership | None:
        self.calls["get_organisation_membership"] += 1
        return self.organisation_memberships.get((organisation_id, person_id))

    async def get_school_membership(self, school_id: str, person_id: str) -> SchoolMembership | None:
        self.calls["get_school_membership"] += 1
        return self.school_memberships.get((school_id, person_id))

    async def count_organisation_memberships(self, person_id: str, lock: bool = False) -> int:
        if lock:
            self.locked_counts.append(person_id)
        return sum(1 for (_, member) in self.organisation_memberships if member == person_id)

    async def is_organisation_public(self, organisation_id: str) -> bool:
        return organisation_id in self.public_organisations

    async def entity_exists(self, kind: EntityKind, entity_id: str) -> bool:
        self.calls[f"exists:{kind.name}"] += 1
        return entity_id in self.entities[kind]

    async def list_organisation_memberships(self, person_id: str) -> list[OrganisationMembership]:
        return [m for (_, member), m in self.organisation_memberships.items() if member == person_id]

    async def list_school_memberships(self, person_id: str) -> list[SchoolMembership]:
        return [m for (_, member), m in self.school_memberships.items() if member == person_id]

    def forget_memberships(self) -> None:
        self.forgotten += 1


# =============================================================================
# Pipeline fixtures
# =============================================================================


@pytest.fixture
def store() -> FakeAccessStore:
    """Provide an empty in-memory access store."""
    return FakeAccessStore()


@pytest.fixture
def unit_of_work() -> MagicMock:
    """Provide a unit of work whose commit and rollback are recorded."""
    uow = MagicMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def resolver(store: FakeAccessStore) -> IdentityResolver:
    """Provide an identity resolver reading the ``oid`` claim."""
    return IdentityResolver(store, subject_claim="oid")


@pytest.fixture
def coordinator(
    store: FakeAccessStore,
    unit_of_work: MagicMock,
    resolver: IdentityResolver,
) -> PipelineCoordinator:
    """Provide a pipeline coordinator over the in-memory store."""
    return PipelineCoordinator(store, unit_of_work, resolver)


@pytest.fixture
def claims_for():
    """Provide a builder of verified token claims for a user."""

    def build(user: UserRecord) -> dict[str, Any]:
        return {"oid": user.external_subject}

    return build


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def sample_person_id() -> str:
    """Provide a sample person ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440001"


@pytest.fixture
def sample_organisation_id() -> str:
    """Provide a sample organisation ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440000"
