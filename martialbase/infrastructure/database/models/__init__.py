# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models for the MartialBase database."""

from martialbase.infrastructure.database.models.art import Art, ArtGrade
from martialbase.infrastructure.database.models.base import Base, TimestampMixin
from martialbase.infrastructure.database.models.document import Document, DocumentType, PersonDocument
from martialbase.infrastructure.database.models.organisation import Organisation, OrganisationPerson
from martialbase.infrastructure.database.models.person import Person
from martialbase.infrastructure.database.models.school import School, SchoolStudent
from martialbase.infrastructure.database.models.user import Role, User, UserRole

__all__ = [
    "Base",
    "TimestampMixin",
    # People and accounts
    "Person",
    "User",
    "Role",
    "UserRole",
    # Organisations and schools
    "Organisation",
    "OrganisationPerson",
    "School",
    "SchoolStudent",
    # Arts
    "Art",
    "ArtGrade",
    # Documents
    "DocumentType",
    "Document",
    "PersonDocument",
]
