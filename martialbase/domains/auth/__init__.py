# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain package.

Verifies identity tokens issued by the external identity provider.
"""

from martialbase.domains.auth.jwt import (
    InvalidTokenError,
    JWTError,
    TokenExpiredError,
    TokenVerifier,
)

__all__ = [
    "TokenVerifier",
    "JWTError",
    "TokenExpiredError",
    "InvalidTokenError",
]
