# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Art grade service.

Each organisation defines its own grade ladder for an art. Reading grades
requires member access to the organisation, changing them requires admin
access; both are enforced by the pipeline.

Example:
    >>> service = ArtGradeService(db)
    >>> grades = await service.list_art_grades(art_id, organisation_id)
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from martialbase.infrastructure.database.models import ArtGrade
from martialbase.models.art_grade import ArtGradeCreateRequest, ArtGradeResponse, ArtGradeUpdateRequest

logger = logging.getLogger(__name__)


class ArtGradeServiceError(Exception):
    """Base exception for art grade service errors."""

    pass


class ArtGradeNotFoundError(ArtGradeServiceError):
    """Raised when an art grade is not found."""

    pass


class ArtGradeService:
    """Service for art grades.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def list_art_grades(self, art_id: str, organisation_id: str) -> list[ArtGradeResponse]:
        """List an organisation's grades for an art, lowest level first."""
        result = await self._db.execute(
            select(ArtGrade)
            .where(ArtGrade.art_id == art_id, ArtGrade.organisation_id == organisation_id)
            .order_by(ArtGrade.grade_level.asc())
        )
        return [ArtGradeResponse.model_validate(grade) for grade in result.scalars().all()]

    async def get_art_grade(self, art_grade_id: str) -> ArtGradeResponse:
        """Get an art grade by ID.

        Raises:
            ArtGradeNotFoundError: If the grade does not exist.
        """
        return ArtGradeResponse.model_validate(await self._get_art_grade(art_grade_id))

    async def get_organisation_id(self, art_grade_id: str) -> str | None:
        """Get the organisation that owns a grade, if the grade exists."""
        result = await self._db.execute(
            select(ArtGrade.organisation_id).where(ArtGrade.id == art_grade_id)
        )
        return result.scalar_one_or_none()

    async def create_art_grade(self, request: ArtGradeCreateRequest) -> ArtGradeResponse:
        """Create an art grade."""
        grade = ArtGrade(
            art_id=request.art_id,
            organisation_id=request.organisation_id,
            grade_level=request.grade_level,
            description=request.description,
        )
        self._db.add(grade)
        await self._db.flush()

        logger.info(
            "Art grade created: %s (art=%s, organisation=%s)",
            grade.id,
            grade.art_id,
            grade.organisation_id,
        )
        return ArtGradeResponse.model_validate(grade)

    async def update_art_grade(
        self,
        art_grade_id: str,
        request: ArtGradeUpdateRequest,
    ) -> ArtGradeResponse:
        """Update a grade's level and description.

        Raises:
            ArtGradeNotFoundError: If the grade does not exist.
        """
        grade = await self._get_art_grade(art_grade_id)
        grade.grade_level = request.grade_level
        grade.description = request.description
        await self._db.flush()

        logger.info("Art grade updated: %s", art_grade_id)
        return ArtGradeResponse.model_validate(grade)

    async def delete_art_grade(self, art_grade_id: str) -> None:
        """Delete an art grade.

        Raises:
            ArtGradeNotFoundError: If the grade does not exist.
        """
        grade = await self._get_art_grade(art_grade_id)
        await self._db.delete(grade)
        await self._db.flush()

        logger.info("Art grade deleted: %s", art_grade_id)

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    async def _get_art_grade(self, art_grade_id: str) -> ArtGrade:
        result = await self._db.execute(select(ArtGrade).where(ArtGrade.id == art_grade_id))
        grade = result.scalar_one_or_none()
        if grade is None:
            raise ArtGradeNotFoundError(f"Art grade {art_grade_id} not found")
        return grade
