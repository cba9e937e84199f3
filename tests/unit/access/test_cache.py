# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the per-request lookup cache."""

from unittest.mock import AsyncMock

import pytest

from martialbase.domains.access import ScopedCache


class TestScopedCache:
    """Tests for ScopedCache."""

    @pytest.mark.asyncio
    async def test_loads_once_per_key(self) -> None:
        cache = ScopedCache()
        loader = AsyncMock(return_value="value")

        first = await cache.get_or_load(("user", "s1"), loader)
        second = await cache.get_or_load(("user", "s1"), loader)

        assert first == second == "value"
        loader.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_caches_none(self) -> None:
        cache = ScopedCache()
        loader = AsyncMock(return_value=None)

        await cache.get_or_load(("user", "missing"), loader)
        await cache.get_or_load(("user", "missing"), loader)

        loader.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_invalidate_prefix_keeps_other_keys(self) -> None:
        cache = ScopedCache()
        await cache.get_or_load(("user", "s1"), AsyncMock(return_value=1))
        await cache.get_or_load(("organisation_membership", "o1", "p1"), AsyncMock(return_value=2))

        cache.invalidate("organisation_membership")

        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_invalidate_all(self) -> None:
        cache = ScopedCache()
        await cache.get_or_load(("user", "s1"), AsyncMock(return_value=1))

        cache.invalidate()

        assert len(cache) == 0
