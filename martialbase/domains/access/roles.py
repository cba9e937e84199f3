# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Role and capability registry.

Roles are stored by name on user accounts. An operation declares the set
of roles that may call it; a caller holding any one of them passes the
capability check. The superuser role passes every check and is never
subject to scope evaluation.
"""

from collections.abc import Iterable
from enum import Enum

from martialbase.domains.access.errors import ErrorCodeFailure, Granted, GRANTED, insufficient_user_role


class UserRoles:
    """Names of the roles a user account can hold."""

    SUPERUSER = "Thanos"
    USER = "User"
    SYSTEM_ADMIN = "SystemAdmin"
    SCHOOL_MEMBER = "SchoolMember"
    SCHOOL_INSTRUCTOR = "SchoolInstructor"
    SCHOOL_HEAD_INSTRUCTOR = "SchoolHeadInstructor"
    SCHOOL_SECRETARY = "SchoolSecretary"
    ORGANISATION_MEMBER = "OrganisationMember"
    ORGANISATION_ADMIN = "OrganisationAdmin"

    @classmethod
    def all(cls) -> tuple[str, ...]:
        """Every role name, superuser first."""
        return (
            cls.SUPERUSER,
            cls.USER,
            cls.SYSTEM_ADMIN,
            cls.SCHOOL_MEMBER,
            cls.SCHOOL_INSTRUCTOR,
            cls.SCHOOL_HEAD_INSTRUCTOR,
            cls.SCHOOL_SECRETARY,
            cls.ORGANISATION_MEMBER,
            cls.ORGANISATION_ADMIN,
        )


class ScopeKind(str, Enum):
    """Relationship an operation requires between caller and target resource."""

    ORGANISATION_MEMBER = "OrganisationMember"
    ORGANISATION_ADMIN = "OrganisationAdmin"
    SCHOOL_SECRETARY = "SchoolSecretary"
    SCHOOL_MEMBER = "SchoolMember"
    PERSON = "Person"


# Roles that unlock operations gated by each scope kind. Person scope is
# also open to the person themselves, so its roles are applied by the
# scope evaluator after the self check rather than by the capability check.
SCOPE_ROLES: dict[ScopeKind, frozenset[str]] = {
    ScopeKind.ORGANISATION_MEMBER: frozenset(
        {UserRoles.ORGANISATION_MEMBER, UserRoles.ORGANISATION_ADMIN}
    ),
    ScopeKind.ORGANISATION_ADMIN: frozenset({UserRoles.ORGANISATION_ADMIN}),
    ScopeKind.SCHOOL_SECRETARY: frozenset({UserRoles.SCHOOL_SECRETARY}),
    ScopeKind.SCHOOL_MEMBER: frozenset(
        {
            UserRoles.SCHOOL_MEMBER,
            UserRoles.SCHOOL_INSTRUCTOR,
            UserRoles.SCHOOL_HEAD_INSTRUCTOR,
            UserRoles.SCHOOL_SECRETARY,
        }
    ),
    ScopeKind.PERSON: frozenset({UserRoles.SCHOOL_SECRETARY, UserRoles.ORGANISATION_ADMIN}),
}


def roles_for_scope(kind: ScopeKind) -> frozenset[str]:
    """Get the roles that unlock operations gated by a scope kind.

    Args:
        kind: Scope kind declared by the operation.

    Returns:
        Role names, any one of which passes the capability check.
    """
    return SCOPE_ROLES[kind]


def is_superuser(roles: Iterable[str]) -> bool:
    """Check whether a role set contains the superuser role."""
    return UserRoles.SUPERUSER in set(roles)


def has_capability(roles: Iterable[str], required: Iterable[str]) -> bool:
    """Check whether held roles satisfy an operation's required roles.

    Args:
        roles: Roles held by the caller.
        required: Roles accepted by the operation. Empty means any
            registered user may call it.

    Returns:
        True if the caller is a superuser, required is empty, or the
        two sets intersect.
    """
    held = set(roles)
    wanted = set(required)
    if not wanted or UserRoles.SUPERUSER in held:
        return True
    return bool(held & wanted)


def check_capability(roles: Iterable[str], required: Iterable[str]) -> Granted | ErrorCodeFailure:
    """Capability check returning a result variant.

    Returns:
        GRANTED, or the InsufficientUserRole failure.
    """
    if has_capability(roles, required):
        return GRANTED
    return insufficient_user_role()
