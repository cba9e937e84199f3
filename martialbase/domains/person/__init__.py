# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Person domain package."""

from martialbase.domains.person.service import (
    PersonNotFoundError,
    PersonService,
    PersonServiceError,
)

__all__ = [
    "PersonService",
    "PersonServiceError",
    "PersonNotFoundError",
]
