# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Base classes for API request and response models.

JSON bodies use camelCase keys. Request field titles are the labels used
in validation messages, e.g. ``"Art ID required."``.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Longest accepted text form of an entity id
ID_MAX_LENGTH = 68


class RequestModel(BaseModel):
    """Base for request payloads."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ResponseModel(BaseModel):
    """Base for response bodies built from ORM objects."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
