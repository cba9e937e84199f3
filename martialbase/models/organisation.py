# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Organisation API models."""

from typing import Any

from pydantic import Field, field_validator

from martialbase.models.common import ID_MAX_LENGTH, RequestModel, ResponseModel
from martialbase.models.person import PersonResponse


class OrganisationCreateRequest(RequestModel):
    """Request to create an organisation.

    The caller becomes the first admin of the new organisation. A parent,
    when given, must already exist and be administered by the caller.
    """

    initials: str = Field(min_length=1, max_length=8, title="Initials")
    name: str = Field(min_length=1, max_length=60, title="Name")
    parent_id: str | None = Field(default=None, max_length=ID_MAX_LENGTH, title="Parent ID")
    is_public: bool = False

    @field_validator("parent_id", mode="before")
    @classmethod
    def _blank_parent_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class OrganisationUpdateRequest(RequestModel):
    """Request to update an organisation's details."""

    initials: str = Field(min_length=1, max_length=8, title="Initials")
    name: str = Field(min_length=1, max_length=60, title="Name")
    is_public: bool = False


class OrganisationResponse(ResponseModel):
    """Organisation returned by the API."""

    id: str
    initials: str
    name: str
    parent_id: str | None = None
    is_public: bool = False


class OrganisationPersonResponse(ResponseModel):
    """Membership of a person in an organisation."""

    organisation_id: str
    person: PersonResponse
    is_admin: bool
