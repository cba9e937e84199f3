# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User domain package.

This package provides user account functionality including:
- Invitation code registration
- Role assignment
- Blocking accounts
"""

from martialbase.domains.user.service import (
    InvitationAlreadyClaimedError,
    UserNotFoundError,
    UserService,
    UserServiceError,
    derive_roles,
)

__all__ = [
    "UserService",
    "UserServiceError",
    "UserNotFoundError",
    "InvitationAlreadyClaimedError",
    "derive_roles",
]
