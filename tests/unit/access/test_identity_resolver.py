# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for IdentityResolver."""

from dataclasses import replace
from unittest.mock import AsyncMock

import pytest

from martialbase.domains.access import (
    IdentityResolver,
    NoSubject,
    NotRegistered,
    ResolvedIdentity,
    UserRoles,
)
from martialbase.domains.access.identity import extract_subject


class TestExtractSubject:
    """Tests for extract_subject()."""

    def test_missing_claims(self) -> None:
        assert extract_subject(None, "oid") is None
        assert extract_subject({}, "oid") is None

    def test_blank_subject_is_missing(self) -> None:
        assert extract_subject({"oid": "   "}, "oid") is None

    def test_subject_is_stripped(self) -> None:
        assert extract_subject({"oid": " abc "}, "oid") == "abc"


class TestResolve:
    """Tests for IdentityResolver.resolve()."""

    @pytest.mark.asyncio
    async def test_no_subject(self, resolver: IdentityResolver) -> None:
        assert isinstance(await resolver.resolve({"sub": "x"}), NoSubject)

    @pytest.mark.asyncio
    async def test_unknown_subject_is_not_registered(self, resolver: IdentityResolver) -> None:
        assert isinstance(await resolver.resolve({"oid": "nobody"}), NotRegistered)

    @pytest.mark.asyncio
    async def test_registered_user(self, store, resolver: IdentityResolver) -> None:
        user = store.add_user(roles={UserRoles.USER, UserRoles.ORGANISATION_ADMIN})

        result = await resolver.resolve({"oid": user.external_subject})

        assert result == ResolvedIdentity(
            user_id=user.id,
            person_id=user.person_id,
            roles=frozenset({UserRoles.USER, UserRoles.ORGANISATION_ADMIN}),
        )

    @pytest.mark.asyncio
    async def test_custom_subject_claim(self, store) -> None:
        user = store.add_user()
        resolver = IdentityResolver(store, subject_claim="sub")

        result = await resolver.resolve({"sub": user.external_subject})

        assert isinstance(result, ResolvedIdentity)


class TestInvitationRegistration:
    """Tests for registration through an invitation code."""

    @pytest.mark.asyncio
    async def test_pending_user_is_claimed(self, store) -> None:
        pending = store.add_pending_user("ABC1234")
        handler = AsyncMock(side_effect=lambda record, subject: replace(
            record,
            external_subject=subject,
            invitation_code=None,
            roles=frozenset({UserRoles.USER}),
        ))
        resolver = IdentityResolver(store, invitation_handler=handler)

        result = await resolver.resolve({"oid": "new-subject", "extension_InvitationCode": "ABC1234"})

        assert isinstance(result, ResolvedIdentity)
        assert result.user_id == pending.id
        assert result.roles == {UserRoles.USER}
        handler.assert_awaited_once_with(pending, "new-subject")

    @pytest.mark.asyncio
    async def test_unknown_code_is_not_registered(self, store) -> None:
        handler = AsyncMock()
        resolver = IdentityResolver(store, invitation_handler=handler)

        result = await resolver.resolve({"oid": "new-subject", "extension_InvitationCode": "NOPE"})

        assert isinstance(result, NotRegistered)
        handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_code_ignored_without_handler(self, store, resolver: IdentityResolver) -> None:
        store.add_pending_user("ABC1234")

        result = await resolver.resolve({"oid": "new-subject", "extension_InvitationCode": "ABC1234"})

        assert isinstance(result, NotRegistered)
        assert store.calls["find_user_by_invitation_code"] == 0

    @pytest.mark.asyncio
    async def test_known_subject_skips_invitation(self, store) -> None:
        user = store.add_user()
        handler = AsyncMock()
        resolver = IdentityResolver(store, invitation_handler=handler)

        result = await resolver.resolve({"oid": user.external_subject, "extension_InvitationCode": "X"})

        assert isinstance(result, ResolvedIdentity)
        handler.assert_not_awaited()
