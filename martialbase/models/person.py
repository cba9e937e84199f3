# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Person API models."""

from datetime import date

from martialbase.models.common import ResponseModel


class PersonResponse(ResponseModel):
    """Person returned by the API."""

    id: str
    title: str | None = None
    first_name: str
    middle_name: str | None = None
    last_name: str
    date_of_birth: date | None = None
    email: str | None = None
    mobile_no: str | None = None
