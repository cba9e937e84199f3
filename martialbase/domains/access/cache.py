# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Per-request memoization of access lookups.

A ScopedCache lives exactly as long as the request-scoped store that owns
it, so nothing is shared between requests. Lookups that return None are
cached too, which keeps repeated scope checks on the same target to a
single query.
"""

import logging
from collections.abc import Awaitable, Callable, Hashable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


class ScopedCache:
    """Memoizes async loader results for the lifetime of one request.

    Example:
        >>> cache = ScopedCache()
        >>> user = await cache.get_or_load(("user", subject), lambda: load(subject))
    """

    def __init__(self) -> None:
        self._values: dict[Hashable, Any] = {}

    async def get_or_load(self, key: Hashable, loader: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value for key, loading it on first use.

        Args:
            key: Cache key, usually a tuple of lookup name and ids.
            loader: Zero-argument coroutine factory producing the value.

        Returns:
            The cached or freshly loaded value.
        """
        value = self._values.get(key, _MISSING)
        if value is _MISSING:
            value = await loader()
            self._values[key] = value
        else:
            logger.debug("Scoped cache hit: %s", key)
        return value

    def invalidate(self, prefix: str | None = None) -> None:
        """Drop cached values.

        Args:
            prefix: When given, only keys whose first element equals it
                are dropped; otherwise everything is cleared.
        """
        if prefix is None:
            self._values.clear()
            return
        for key in [k for k in self._values if isinstance(k, tuple) and k and k[0] == prefix]:
            del self._values[key]

    def __len__(self) -> int:
        return len(self._values)
