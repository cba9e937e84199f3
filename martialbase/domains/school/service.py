# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School service for student documents.

This module provides the SchoolService that handles:
- Listing and reading documents filed for a school's students
- Filing new student documents

Only a school's secretaries may reach these operations; the pipeline
checks that before any method runs. A person who is not a student of the
school, or a document not filed for the person, is reported as a relation
failure rather than raised.

Example:
    >>> service = SchoolService(db)
    >>> documents = await service.list_student_documents(school_id, person_id)
"""

import logging

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from martialbase.domains.access.errors import EntityRelationNotFound
from martialbase.infrastructure.database.models import Document, DocumentType, PersonDocument, SchoolStudent
from martialbase.models.document import DocumentCreateRequest, DocumentResponse
from martialbase.utils.datetime import days_from_now, ensure_utc, is_expired, utc_now

logger = logging.getLogger(__name__)


class SchoolService:
    """Service for school student documents.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize the school service.

        Args:
            db: Async database session.
        """
        self._db = db

    async def has_student(self, school_id: str, person_id: str) -> bool:
        """Check whether a person has a membership row in a school."""
        result = await self._db.execute(
            select(
                exists().where(
                    SchoolStudent.school_id == school_id,
                    SchoolStudent.person_id == person_id,
                )
            )
        )
        return bool(result.scalar())

    async def list_student_documents(
        self,
        school_id: str,
        person_id: str,
        include_inactive: bool = False,
    ) -> list[DocumentResponse] | EntityRelationNotFound:
        """List the documents filed for a student.

        Args:
            school_id: School ID.
            person_id: Student's person ID.
            include_inactive: Include documents past their expiry date.

        Returns:
            Documents ordered by filing date, newest first, or
            EntityRelationNotFound if the person is not a student.
        """
        if not await self.has_student(school_id, person_id):
            return self._not_a_student(school_id, person_id)

        result = await self._db.execute(
            select(Document)
            .join(PersonDocument, PersonDocument.document_id == Document.id)
            .where(PersonDocument.person_id == person_id)
            .order_by(Document.filing_date.desc())
        )
        documents = result.scalars().all()
        if not include_inactive:
            documents = [document for document in documents if not is_expired(document.expiry_date)]

        return [DocumentResponse.model_validate(document) for document in documents]

    async def get_student_document(
        self,
        school_id: str,
        person_id: str,
        document_id: str,
    ) -> DocumentResponse | EntityRelationNotFound:
        """Get one document filed for a student.

        Returns:
            The document, or EntityRelationNotFound if the person is not a
            student or the document was not filed for them.
        """
        if not await self.has_student(school_id, person_id):
            return self._not_a_student(school_id, person_id)

        result = await self._db.execute(
            select(Document)
            .join(PersonDocument, PersonDocument.document_id == Document.id)
            .where(PersonDocument.person_id == person_id, Document.id == document_id)
        )
        document = result.scalar_one_or_none()
        if document is None:
            return EntityRelationNotFound("Document", document_id, "person", person_id)

        return DocumentResponse.model_validate(document)

    async def create_student_document(
        self,
        school_id: str,
        person_id: str,
        request: DocumentCreateRequest,
    ) -> DocumentResponse | EntityRelationNotFound:
        """File a document for a student.

        Without an expiry date in the request, the document type's default
        expiry period is counted from now.

        Returns:
            The filed document, or EntityRelationNotFound if the person is
            not a student.
        """
        if not await self.has_student(school_id, person_id):
            return self._not_a_student(school_id, person_id)

        document_type = await self._db.get(DocumentType, request.document_type_id)
        filing_date = utc_now()
        expiry_date = ensure_utc(request.expiry_date)
        if expiry_date is None and document_type is not None and document_type.default_expiry_days:
            expiry_date = days_from_now(document_type.default_expiry_days, filing_date)

        document = Document(
            document_type_id=request.document_type_id,
            filing_date=filing_date,
            document_date=request.document_date,
            reference=request.reference,
            url=request.url,
            expiry_date=expiry_date,
        )
        self._db.add(document)
        await self._db.flush()

        self._db.add(PersonDocument(person_id=person_id, document_id=document.id))
        await self._db.flush()

        logger.info("Document %s filed for student %s of school %s", document.id, person_id, school_id)
        return DocumentResponse.model_validate(document)

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    def _not_a_student(self, school_id: str, person_id: str) -> EntityRelationNotFound:
        logger.debug("Person %s is not a student of school %s", person_id, school_id)
        return EntityRelationNotFound("Person", person_id, "school", school_id)
