# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic request and response models for the MartialBase API."""

from martialbase.models.art_grade import ArtGradeCreateRequest, ArtGradeResponse, ArtGradeUpdateRequest
from martialbase.models.common import RequestModel, ResponseModel
from martialbase.models.document import DocumentCreateRequest, DocumentResponse
from martialbase.models.organisation import (
    OrganisationCreateRequest,
    OrganisationPersonResponse,
    OrganisationResponse,
    OrganisationUpdateRequest,
)
from martialbase.models.person import PersonResponse

__all__ = [
    "RequestModel",
    "ResponseModel",
    "ArtGradeCreateRequest",
    "ArtGradeUpdateRequest",
    "ArtGradeResponse",
    "OrganisationCreateRequest",
    "OrganisationUpdateRequest",
    "OrganisationResponse",
    "OrganisationPersonResponse",
    "PersonResponse",
    "DocumentCreateRequest",
    "DocumentResponse",
]
