# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structural validation of request payloads and query parameters.

Payloads are validated against pydantic request models. Every error is
collected into one field map keyed by the PascalCase field name, with
messages built from the field title:

    {"Description": ["Description cannot be longer than 20 characters."]}

Query parameters are checked in declaration order and the first bad one
is reported.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError
from pydantic.fields import FieldInfo

from martialbase.domains.access.errors import BadParameter, StructuralValidationFailure

EMPTY_BODY_MESSAGE = "A non-empty request body is required."
INVALID_DATE_MESSAGE = "Invalid date format. Ensure date is submitted as yyyy-mm-dd."

_REQUIRED_ERRORS = {"missing", "string_too_short", "too_short"}
_DATE_ERRORS = {"date_parsing", "date_from_datetime_parsing", "date_from_datetime_inexact", "date_type"}


def error_key(name: str, info: FieldInfo) -> str:
    """Key under which a field's errors are reported.

    Uses ``json_schema_extra["error_key"]`` when set, otherwise the field
    name converted to PascalCase.
    """
    extra = info.json_schema_extra
    if isinstance(extra, dict) and extra.get("error_key"):
        return str(extra["error_key"])
    return "".join(part.capitalize() for part in name.split("_"))


def _label(name: str, info: FieldInfo) -> str:
    if info.title:
        return info.title
    words = name.split("_")
    return " ".join([words[0].capitalize(), *words[1:]])


def _resolve_field(model: type[BaseModel], loc_item: Any) -> tuple[str, FieldInfo] | None:
    for name, info in model.model_fields.items():
        if loc_item in (name, info.alias, info.validation_alias):
            return name, info
    return None


def _message(error: Mapping[str, Any], label: str) -> str:
    error_type = error.get("type", "")
    ctx = error.get("ctx") or {}

    if error_type in _REQUIRED_ERRORS:
        return f"{label} required."
    if error_type == "string_type" and error.get("input") is None:
        return f"{label} required."
    if error_type in ("string_too_long", "too_long"):
        limit = ctx.get("max_length")
        return f"{label} cannot be longer than {limit} characters."
    if error_type in _DATE_ERRORS:
        return INVALID_DATE_MESSAGE
    return str(error.get("msg", "Invalid value."))


def validate_payload(
    model: type[BaseModel], payload: Any
) -> BaseModel | StructuralValidationFailure:
    """Validate a payload against a request model.

    Args:
        model: Pydantic request model class.
        payload: Decoded JSON body, or None when no body was sent.

    Returns:
        The validated model instance, or a StructuralValidationFailure
        holding every field error.
    """
    if payload is None:
        return StructuralValidationFailure({"": [EMPTY_BODY_MESSAGE]})

    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        errors: dict[str, list[str]] = {}
        for error in exc.errors():
            loc = error.get("loc") or ()
            if not loc:
                errors.setdefault("", []).append(EMPTY_BODY_MESSAGE)
                continue

            resolved = _resolve_field(model, loc[0])
            if resolved is None:
                key = ".".join(str(part) for part in loc)
                label = key
            else:
                name, info = resolved
                key = error_key(name, info)
                label = _label(name, info)
            errors.setdefault(key, []).append(_message(error, label))
        return StructuralValidationFailure(errors)


# =========================================================================
# Query parameters
# =========================================================================


@dataclass(frozen=True)
class QueryParameter:
    """Declared query parameter of an operation.

    Attributes:
        name: Wire name, e.g. ``isAdmin``.
        label: Human label used when the parameter is missing, e.g. ``person ID``.
        required: Missing values fail with "No {label} parameter specified."
        flag: Values are parsed as booleans; unparsable values fail with
            "Invalid value provided for {name} parameter."
        default: Value used when an optional parameter is absent.
    """

    name: str
    label: str | None = None
    required: bool = False
    flag: bool = False
    default: Any = None


def parse_flag(value: str) -> bool | None:
    """Parse a boolean query value.

    Accepts ``true`` and ``false`` in any case, ignoring surrounding
    whitespace.

    Returns:
        The parsed value, or None if the text is not a boolean.
    """
    text = value.strip().lower()
    if text == "true":
        return True
    if text == "false":
        return False
    return None


def parse_parameters(
    declared: Sequence[QueryParameter],
    raw: Mapping[str, str | None],
) -> dict[str, Any] | BadParameter:
    """Check and convert query parameters.

    Blank values count as missing.

    Args:
        declared: Parameters in the order they are checked.
        raw: Raw query values by wire name.

    Returns:
        Parsed values by wire name, or the BadParameter failure for the
        first parameter that is missing or malformed.
    """
    parsed: dict[str, Any] = {}
    for parameter in declared:
        value = raw.get(parameter.name)
        if value is None or not value.strip():
            if parameter.required:
                return BadParameter.missing(parameter.label or parameter.name)
            parsed[parameter.name] = parameter.default
            continue

        if parameter.flag:
            flag = parse_flag(value)
            if flag is None:
                return BadParameter.invalid(parameter.name)
            parsed[parameter.name] = flag
        else:
            parsed[parameter.name] = value
    return parsed
