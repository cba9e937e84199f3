# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

Exports:
    AuthMiddleware: Bearer token verification middleware.
    RequestContextMiddleware: Binds request-scoped logging context.
"""

from martialbase.api.middleware.auth import AuthMiddleware, get_claims
from martialbase.api.middleware.context import RequestContextMiddleware

__all__ = [
    "AuthMiddleware",
    "RequestContextMiddleware",
    "get_claims",
]
