# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the SQLAlchemy access store.

The session is mocked; these tests cover id screening and per-request
memoization rather than the SQL itself.
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from martialbase.domains.access import EntityKind, SqlAccessStore
from martialbase.domains.access.store import is_valid_id
from martialbase.infrastructure.database.models import OrganisationPerson


def _result(value=None) -> MagicMock:
    result = MagicMock()
    result.scalar.return_value = value
    result.scalar_one_or_none.return_value = value
    return result


@pytest.fixture
def db() -> MagicMock:
    session = MagicMock()
    session.execute = AsyncMock(return_value=_result())
    return session


class TestIsValidId:
    def test_accepts_uuid(self) -> None:
        assert is_valid_id(str(uuid4())) is True

    @pytest.mark.parametrize("value", [None, "", "42", "not-a-uuid"])
    def test_rejects_malformed(self, value) -> None:
        assert is_valid_id(value) is False


class TestEntityExists:
    @pytest.mark.asyncio
    async def test_malformed_id_skips_query(self, db: MagicMock) -> None:
        store = SqlAccessStore(db)

        assert await store.entity_exists(EntityKind.ORGANISATION, "nope") is False
        db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_queries_for_well_formed_id(self, db: MagicMock) -> None:
        db.execute.return_value = _result(True)
        store = SqlAccessStore(db)

        assert await store.entity_exists(EntityKind.SCHOOL, str(uuid4())) is True
        db.execute.assert_awaited_once()


class TestMembershipCache:
    @pytest.mark.asyncio
    async def test_membership_read_once_per_request(self, db: MagicMock) -> None:
        organisation_id, person_id = str(uuid4()), str(uuid4())
        db.execute.return_value = _result(
            OrganisationPerson(organisation_id=organisation_id, person_id=person_id, is_admin=True)
        )
        store = SqlAccessStore(db)

        first = await store.get_organisation_membership(organisation_id, person_id)
        second = await store.get_organisation_membership(organisation_id, person_id)

        assert first is second
        assert first.is_admin is True
        db.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_membership_is_cached(self, db: MagicMock) -> None:
        store = SqlAccessStore(db)
        organisation_id, person_id = str(uuid4()), str(uuid4())

        assert await store.get_organisation_membership(organisation_id, person_id) is None
        assert await store.get_organisation_membership(organisation_id, person_id) is None
        db.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_forget_memberships_forces_reload(self, db: MagicMock) -> None:
        store = SqlAccessStore(db)
        school_id, person_id = str(uuid4()), str(uuid4())

        await store.get_school_membership(school_id, person_id)
        store.forget_memberships()
        await store.get_school_membership(school_id, person_id)

        assert db.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_counts_are_never_cached(self, db: MagicMock) -> None:
        db.execute.return_value = _result(3)
        store = SqlAccessStore(db)
        person_id = str(uuid4())

        assert await store.count_organisation_memberships(person_id) == 3
        assert await store.count_organisation_memberships(person_id) == 3
        assert db.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_locked_count_counts_locked_rows(self, db: MagicMock) -> None:
        result = MagicMock()
        result.scalars.return_value.all.return_value = ["a", "b"]
        db.execute.return_value = result
        store = SqlAccessStore(db)

        assert await store.count_organisation_memberships(str(uuid4()), lock=True) == 2
