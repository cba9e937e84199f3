# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Organisation domain package.

This package provides organisation management functionality including:
- Organisation CRUD operations
- Membership and admin assignment
- Parent links between organisations
"""

from martialbase.domains.organisation.service import (
    OrganisationNotFoundError,
    OrganisationService,
    OrganisationServiceError,
)

__all__ = [
    "OrganisationService",
    "OrganisationServiceError",
    "OrganisationNotFoundError",
]
