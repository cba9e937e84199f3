# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Person service.

Reads person records and their organisation memberships. Who may read a
person is decided by the person scope in the access pipeline.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from martialbase.infrastructure.database.models import Organisation, OrganisationPerson, Person
from martialbase.models.organisation import OrganisationResponse
from martialbase.models.person import PersonResponse

logger = logging.getLogger(__name__)


class PersonServiceError(Exception):
    """Base exception for person service errors."""

    pass


class PersonNotFoundError(PersonServiceError):
    """Raised when a person is not found."""

    pass


class PersonService:
    """Service for person records.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get_person(self, person_id: str) -> PersonResponse:
        """Get a person by ID.

        Raises:
            PersonNotFoundError: If the person does not exist.
        """
        person = await self._db.get(Person, person_id)
        if person is None:
            raise PersonNotFoundError(f"Person {person_id} not found")
        return PersonResponse.model_validate(person)

    async def list_organisations(self, person_id: str) -> list[OrganisationResponse]:
        """List the organisations a person belongs to, ordered by initials."""
        result = await self._db.execute(
            select(Organisation)
            .join(OrganisationPerson, OrganisationPerson.organisation_id == Organisation.id)
            .where(OrganisationPerson.person_id == person_id)
            .order_by(Organisation.initials.asc())
        )
        return [OrganisationResponse.model_validate(row) for row in result.scalars().all()]
