# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request authorization and validation pipeline.

Components, leaves first:
- errors: failure taxonomy and the single status/body mapper
- identity: token claims to registered user
- roles: role names, capability check, superuser predicate
- scope: organisation, school and person scope evaluation
- orphan: guard keeping every person in at least one organisation
- pipeline: coordinator running the checks in order
"""

from martialbase.domains.access.cache import ScopedCache
from martialbase.domains.access.errors import (
    GRANTED,
    AccessError,
    BadParameter,
    CommitFailed,
    EntityIdNotFound,
    EntityRelationNotFound,
    ErrorCodeFailure,
    ErrorResponseCode,
    Failure,
    Granted,
    IdentityFailure,
    NoSubject,
    NotRegistered,
    OrphanEntityError,
    OrphanPersonEntityError,
    OrphanSchoolEntityError,
    ScopeFailure,
    StructuralValidationFailure,
    render_failure,
)
from martialbase.domains.access.identity import IdentityResolver, ResolvedIdentity
from martialbase.domains.access.orphan import Allowed, OrphanGuard, Rejected
from martialbase.domains.access.pipeline import (
    EntityReference,
    Operation,
    OperationContext,
    PipelineCoordinator,
    PipelineResponse,
    Success,
)
from martialbase.domains.access.roles import (
    ScopeKind,
    UserRoles,
    has_capability,
    is_superuser,
    roles_for_scope,
)
from martialbase.domains.access.scope import ScopeEvaluator, ScopeRequirement
from martialbase.domains.access.store import (
    AccessStore,
    EntityKind,
    OrganisationMembership,
    SchoolMembership,
    SqlAccessStore,
    UserRecord,
)
from martialbase.domains.access.validation import QueryParameter, validate_payload

__all__ = [
    # Errors
    "ErrorResponseCode",
    "Failure",
    "Granted",
    "GRANTED",
    "StructuralValidationFailure",
    "BadParameter",
    "EntityIdNotFound",
    "EntityRelationNotFound",
    "IdentityFailure",
    "NoSubject",
    "NotRegistered",
    "ErrorCodeFailure",
    "ScopeFailure",
    "CommitFailed",
    "render_failure",
    "AccessError",
    "OrphanEntityError",
    "OrphanPersonEntityError",
    "OrphanSchoolEntityError",
    # Identity
    "IdentityResolver",
    "ResolvedIdentity",
    # Roles
    "UserRoles",
    "ScopeKind",
    "has_capability",
    "is_superuser",
    "roles_for_scope",
    # Scope
    "ScopeEvaluator",
    "ScopeRequirement",
    # Orphan guard
    "OrphanGuard",
    "Allowed",
    "Rejected",
    # Store
    "AccessStore",
    "SqlAccessStore",
    "EntityKind",
    "UserRecord",
    "OrganisationMembership",
    "SchoolMembership",
    "ScopedCache",
    # Pipeline
    "PipelineCoordinator",
    "Operation",
    "OperationContext",
    "EntityReference",
    "PipelineResponse",
    "Success",
    "QueryParameter",
    "validate_payload",
]
