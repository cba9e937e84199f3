# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for MartialBase.

Domains:
    access: Request authorization and validation pipeline.
    auth: Bearer token verification.
    organisation: Organisations, their members and hierarchy.
    art_grade: Grades awarded by organisations for each art.
    person: Person records.
    school: School student documents.
    user: User accounts, registration and roles.
"""
