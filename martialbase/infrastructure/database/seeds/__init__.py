# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database seed package.

Seeds the fixed role names the access pipeline checks against.
"""

from martialbase.infrastructure.database.seeds.roles import seed_roles

__all__ = ["seed_roles"]
