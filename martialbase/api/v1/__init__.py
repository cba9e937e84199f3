# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    auth: Login management (block user access).
    organisations: Organisation CRUD, membership and parent links.
    art_grades: Art grade CRUD.
    schools: Student document endpoints.
    people: Person records and the caller's own person ID.
"""

from fastapi import APIRouter

from martialbase.api.v1 import art_grades, auth, organisations, people, schools

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(auth.router, prefix="/login", tags=["Login"])
router.include_router(organisations.router, prefix="/organisations", tags=["Organisations"])
router.include_router(art_grades.router, prefix="/artgrades", tags=["Art Grades"])
router.include_router(schools.router, prefix="/schools", tags=["Schools"])
router.include_router(people.router, prefix="/people", tags=["People"])

__all__ = ["router"]
