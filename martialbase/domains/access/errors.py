# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Failure taxonomy for the request access pipeline.

Every check in the pipeline returns either a success value or one of the
Failure variants defined here. Variants carry only the data needed to
render them; render_failure() is the single place where a variant is
turned into an HTTP status code and response body.

Conflicts that must abort an open unit of work (orphaned people and
schools) are exceptions instead, so they unwind through the business
operation and the caller's transaction.

Example:
    >>> failure = EntityIdNotFound("Organisation", "d2c4...")
    >>> render_failure(failure)
    (404, "Organisation ID 'd2c4...' not found.")
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorResponseCode(IntEnum):
    """Error codes returned to API clients for forbidden or conflicting requests."""

    NONE = 0
    AZURE_USER_NOT_REGISTERED = 1
    EXPIRED_TOKEN = 2
    INSUFFICIENT_USER_ROLE = 3
    NO_ACCESS_TO_PERSON = 4
    NO_ORGANISATION_ACCESS = 5
    NO_SEARCH_PARAMETERS = 6
    NOT_ORGANISATION_ADMIN = 7
    NOT_SCHOOL_SECRETARY = 8
    NOT_SCHOOL_STUDENT = 9
    ORPHAN_PERSON_ENTITY = 10
    ORPHAN_SCHOOL_ENTITY = 11

    @property
    def token(self) -> str:
        """Wire token for the code, e.g. ``NoOrganisationAccess``."""
        return "".join(part.capitalize() for part in self.name.split("_"))


NO_SUBJECT_MESSAGE = "Auth token does not contain a valid user ID."
COMMIT_FAILED_MESSAGE = "Failed to save changes to database context."


# =========================================================================
# Result variants
# =========================================================================


@dataclass(frozen=True)
class Granted:
    """Successful outcome of a capability or scope check."""


GRANTED = Granted()


@dataclass(frozen=True)
class Failure:
    """Base class for every terminal pipeline outcome."""


@dataclass(frozen=True)
class StructuralValidationFailure(Failure):
    """Payload failed its declared shape.

    Attributes:
        errors: Field key mapped to every message raised for that field.
    """

    errors: dict[str, list[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class BadParameter(Failure):
    """A query parameter was missing or malformed."""

    message: str

    @classmethod
    def missing(cls, label: str) -> "BadParameter":
        """Build the failure for a required parameter that was not supplied.

        Args:
            label: Human label of the parameter, e.g. ``person ID``.
        """
        return cls(f"No {label} parameter specified.")

    @classmethod
    def invalid(cls, name: str) -> "BadParameter":
        """Build the failure for a parameter whose value could not be parsed.

        Args:
            name: Wire name of the parameter, e.g. ``isAdmin``.
        """
        return cls(f"Invalid value provided for {name} parameter.")


@dataclass(frozen=True)
class EntityIdNotFound(Failure):
    """A referenced entity id does not exist."""

    entity_name: str
    entity_id: str

    @property
    def message(self) -> str:
        return f"{self.entity_name} ID '{self.entity_id}' not found."


@dataclass(frozen=True)
class EntityRelationNotFound(Failure):
    """An entity exists but not under the parent named by the request."""

    child: str
    child_id: str
    parent: str
    parent_id: str

    @property
    def message(self) -> str:
        return f"{self.child} '{self.child_id}' not found in {self.parent} '{self.parent_id}'"


@dataclass(frozen=True)
class IdentityFailure(Failure):
    """The credential could not be resolved to a registered user."""


@dataclass(frozen=True)
class NoSubject(IdentityFailure):
    """The credential carries no subject claim."""


@dataclass(frozen=True)
class ErrorCodeFailure(Failure):
    """Forbidden outcome identified by an error code."""

    code: ErrorResponseCode


@dataclass(frozen=True)
class NotRegistered(IdentityFailure, ErrorCodeFailure):
    """The subject does not belong to an active user account."""

    code: ErrorResponseCode = ErrorResponseCode.AZURE_USER_NOT_REGISTERED


@dataclass(frozen=True)
class ScopeFailure(ErrorCodeFailure):
    """The caller lacks the relationship required with the target resource."""


@dataclass(frozen=True)
class CommitFailed(Failure):
    """The unit of work could not be saved."""


def insufficient_user_role() -> ErrorCodeFailure:
    """Failure returned when the caller holds none of the required roles."""
    return ErrorCodeFailure(ErrorResponseCode.INSUFFICIENT_USER_ROLE)


def render_failure(failure: Failure) -> tuple[int, Any]:
    """Map a failure variant to its HTTP status code and response body.

    Args:
        failure: Terminal outcome produced by any pipeline stage.

    Returns:
        Tuple of (status code, body). Bodies are plain strings except for
        structural validation, which renders the field error map.

    Raises:
        TypeError: If the failure type has no mapping.
    """
    if isinstance(failure, StructuralValidationFailure):
        return 500, {key: list(messages) for key, messages in failure.errors.items()}
    if isinstance(failure, BadParameter):
        return 400, failure.message
    if isinstance(failure, (EntityIdNotFound, EntityRelationNotFound)):
        return 404, failure.message
    if isinstance(failure, NoSubject):
        return 401, NO_SUBJECT_MESSAGE
    if isinstance(failure, ErrorCodeFailure):
        return 403, failure.code.token
    if isinstance(failure, CommitFailed):
        return 500, COMMIT_FAILED_MESSAGE
    raise TypeError(f"No response mapping for {type(failure).__name__}")


# =========================================================================
# Exceptions
# =========================================================================


class AccessError(Exception):
    """Base exception for access pipeline errors."""

    pass


class OrphanEntityError(AccessError):
    """Raised when a change would leave an entity without an organisation.

    Attributes:
        code: Error code rendered to the client.
        message: Human-readable description.
    """

    code: ErrorResponseCode = ErrorResponseCode.NONE

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class OrphanPersonEntityError(OrphanEntityError):
    """Raised when removing a membership would leave a person in no organisation."""

    code = ErrorResponseCode.ORPHAN_PERSON_ENTITY

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "Person belongs to just one organisation, please add the person to another "
            "organisation before removing them from this one or delete the person completely."
        )


class OrphanSchoolEntityError(OrphanEntityError):
    """Raised when deleting an organisation that still owns schools."""

    code = ErrorResponseCode.ORPHAN_SCHOOL_ENTITY

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "School belongs to organisation, please move the school to another "
            "organisation or delete the school completely."
        )
