# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Art grade API models."""

from pydantic import Field

from martialbase.models.common import ID_MAX_LENGTH, RequestModel, ResponseModel


class ArtGradeCreateRequest(RequestModel):
    """Request to create a grade for an art within an organisation."""

    art_id: str = Field(min_length=1, max_length=ID_MAX_LENGTH, title="Art ID")
    organisation_id: str = Field(min_length=1, max_length=ID_MAX_LENGTH, title="Organisation ID")
    grade_level: int = Field(title="Grade level")
    description: str = Field(min_length=1, max_length=20, title="Description")


class ArtGradeUpdateRequest(RequestModel):
    """Request to update a grade's level and description."""

    grade_level: int = Field(title="Grade level")
    description: str = Field(min_length=1, max_length=20, title="Description")


class ArtGradeResponse(ResponseModel):
    """Art grade returned by the API."""

    id: str
    art_id: str
    organisation_id: str
    grade_level: int
    description: str
