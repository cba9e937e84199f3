# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Document API models."""

from datetime import date, datetime

from pydantic import Field

from martialbase.models.common import ID_MAX_LENGTH, RequestModel, ResponseModel


class DocumentCreateRequest(RequestModel):
    """Request to file a document for a person.

    When no expiry date is given, the document type's default expiry
    period is applied.
    """

    document_type_id: str = Field(min_length=1, max_length=ID_MAX_LENGTH, title="Document type ID")
    reference: str | None = Field(default=None, max_length=20, title="Reference")
    url: str | None = Field(
        default=None,
        max_length=250,
        title="URL",
        json_schema_extra={"error_key": "URL"},
    )
    document_date: date | None = Field(default=None, title="Document date")
    expiry_date: datetime | None = Field(default=None, title="Expiry date")


class DocumentResponse(ResponseModel):
    """Document returned by the API."""

    id: str
    document_type_id: str
    filing_date: datetime
    document_date: date | None = None
    reference: str | None = None
    url: str | None = None
    expiry_date: datetime | None = None
