# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request access pipeline coordinator.

Every scoped or mutating operation runs through PipelineCoordinator.run(),
which applies the checks in a fixed order and stops at the first failure:

1. Query parameters (400) and payload structure (500, full field map).
   The credential must also carry a subject claim (401).
2. Referenced entities exist, in declared order (404 for the first
   missing one).
3. The subject belongs to a registered user (403 AzureUserNotRegistered).
4. The user holds one of the operation's roles (403 InsufficientUserRole).
5. Each declared scope requirement holds (403 with the scope's code).
6. The business operation runs; it may return its own failure.
7. Mutations are committed as one unit of work.

Superusers skip stages 4 and 5. Failures are mapped to status and body in
one place, _fail(). Orphan conflicts raised by the business operation
roll the unit of work back and propagate to the caller.

Example:
    >>> operation = Operation(
    ...     name="organisations.remove_person",
    ...     required_roles=roles_for_scope(ScopeKind.ORGANISATION_ADMIN),
    ...     references=(
    ...         EntityReference(EntityKind.ORGANISATION, organisation_id),
    ...         EntityReference(EntityKind.PERSON, person_id),
    ...     ),
    ...     scopes=(ScopeRequirement.organisation_admin(organisation_id),),
    ...     mutates=True,
    ... )
    >>> response = await coordinator.run(operation, claims, handler)
"""

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from martialbase.domains.access.errors import (
    CommitFailed,
    EntityIdNotFound,
    ErrorCodeFailure,
    ErrorResponseCode,
    Failure,
    Granted,
    NoSubject,
    render_failure,
)
from martialbase.domains.access.identity import IdentityResolver, ResolvedIdentity
from martialbase.domains.access.roles import check_capability, is_superuser
from martialbase.domains.access.scope import ScopeEvaluator, ScopeRequirement
from martialbase.domains.access.store import AccessStore, EntityKind
from martialbase.domains.access.validation import QueryParameter, parse_parameters, validate_payload
from martialbase.utils.logging import bind_context

logger = logging.getLogger(__name__)


class UnitOfWork(Protocol):
    """Transaction boundary the coordinator commits or rolls back."""

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


@dataclass
class OperationContext:
    """State available to lazy references, lazy scopes and the business operation.

    Attributes:
        payload: Validated request model, if the operation declares one.
        parameters: Parsed query parameters by wire name.
        identity: Resolved caller; set from stage 3 on.
        superuser: Whether the caller bypasses role and scope checks.
    """

    payload: BaseModel | None = None
    parameters: dict[str, Any] = field(default_factory=dict)
    identity: ResolvedIdentity | None = None
    superuser: bool = False

    @property
    def person_id(self) -> str:
        """Person id of the resolved caller."""
        if self.identity is None:
            raise RuntimeError("Caller identity is not resolved yet")
        return self.identity.person_id


IdSource = str | Callable[[OperationContext], str | None] | None
LazyScope = Callable[[OperationContext], Awaitable[ScopeRequirement | None]]


@dataclass(frozen=True)
class EntityReference:
    """Entity id an operation refers to.

    Attributes:
        kind: Entity kind, also used as the display name in 404 messages.
        source: The id itself, or a function reading it from the validated
            payload or parameters. A None id is not checked.
    """

    kind: EntityKind
    source: IdSource

    def resolve(self, context: OperationContext) -> str | None:
        if callable(self.source):
            return self.source(context)
        return self.source


@dataclass(frozen=True)
class Operation:
    """Declaration of the checks an operation needs.

    Attributes:
        name: Identifier used in logs.
        required_roles: Roles accepted by the capability check; empty
            admits any registered user.
        payload_model: Request model validated in stage 1.
        parameters: Query parameters checked in stage 1.
        references: Entity ids checked in stage 2, in order.
        scopes: Requirements evaluated in stage 5, in order. Callables are
            awaited after the existence checks, for targets that must be
            looked up first.
        mutates: Commit the unit of work after a successful operation.
    """

    name: str
    required_roles: frozenset[str] = frozenset()
    payload_model: type[BaseModel] | None = None
    parameters: tuple[QueryParameter, ...] = ()
    references: tuple[EntityReference, ...] = ()
    scopes: tuple[ScopeRequirement | LazyScope, ...] = ()
    mutates: bool = False


@dataclass(frozen=True)
class Success:
    """Result of a business operation that completed."""

    body: Any = None
    status_code: int = 200


@dataclass(frozen=True)
class PipelineResponse:
    """Outcome of running an operation through the pipeline.

    Attributes:
        status_code: HTTP status code.
        body: Response body; a string, a JSON-compatible structure or None.
        error_code: Error code for forbidden outcomes.
        committed: Whether a unit of work was committed.
    """

    status_code: int
    body: Any = None
    error_code: ErrorResponseCode | None = None
    committed: bool = False


BusinessOperation = Callable[[OperationContext], Awaitable[Success | Failure]]


class PipelineCoordinator:
    """Runs operations through the fixed sequence of access checks.

    Attributes:
        _store: Query contract for existence checks.
        _unit_of_work: Transaction committed after successful mutations.
        _resolver: Identity resolver.
        _evaluator: Scope evaluator.
    """

    def __init__(
        self,
        store: AccessStore,
        unit_of_work: UnitOfWork,
        resolver: IdentityResolver,
        evaluator: ScopeEvaluator | None = None,
    ) -> None:
        self._store = store
        self._unit_of_work = unit_of_work
        self._resolver = resolver
        self._evaluator = evaluator or ScopeEvaluator(store)

    @property
    def evaluator(self) -> ScopeEvaluator:
        return self._evaluator

    async def run(
        self,
        operation: Operation,
        claims: Mapping[str, Any] | None,
        handler: BusinessOperation,
        payload: Any = None,
        parameters: Mapping[str, str | None] | None = None,
    ) -> PipelineResponse:
        """Run an operation through every stage.

        Args:
            operation: Declared checks.
            claims: Verified token claims, or None without a credential.
            handler: Business operation run once every check passes.
            payload: Decoded request body.
            parameters: Raw query parameters.

        Returns:
            PipelineResponse with the status, body and commit outcome.

        Raises:
            OrphanEntityError: If the business operation refuses a change
                that would orphan a person or school. Nothing is committed.
        """
        context = OperationContext()

        # Stage 1: structure
        if operation.parameters:
            parsed = parse_parameters(operation.parameters, parameters or {})
            if isinstance(parsed, Failure):
                return self._fail(operation, parsed)
            context.parameters = parsed

        if operation.payload_model is not None:
            validated = validate_payload(operation.payload_model, payload)
            if isinstance(validated, Failure):
                return self._fail(operation, validated)
            context.payload = validated

        if self._resolver.subject_of(claims) is None:
            return self._fail(operation, NoSubject())

        # Stage 2: existence, first missing reference wins
        for reference in operation.references:
            entity_id = reference.resolve(context)
            if entity_id is None:
                continue
            if not await self._store.entity_exists(reference.kind, entity_id):
                return self._fail(operation, EntityIdNotFound(reference.kind.value, entity_id))

        # Stage 3: identity
        resolved = await self._resolver.resolve(claims)
        if isinstance(resolved, Failure):
            return self._fail(operation, resolved)
        context.identity = resolved
        context.superuser = is_superuser(resolved.roles)
        bind_context(user_id=resolved.user_id, person_id=resolved.person_id)

        if not context.superuser:
            # Stage 4: capability
            capability = check_capability(resolved.roles, operation.required_roles)
            if not isinstance(capability, Granted):
                return self._fail(operation, capability)

            # Stage 5: scope
            for declared in operation.scopes:
                requirement = await declared(context) if callable(declared) else declared
                if requirement is None:
                    continue
                scope = await self._evaluator.evaluate(resolved, requirement)
                if not isinstance(scope, Granted):
                    return self._fail(operation, scope)

        # Stage 6: business operation
        try:
            outcome = await handler(context)
        except Exception:
            await self._rollback()
            raise

        if isinstance(outcome, Failure):
            await self._rollback()
            return self._fail(operation, outcome)

        # Stage 7: commit
        if not operation.mutates:
            return PipelineResponse(status_code=outcome.status_code, body=outcome.body)

        if not await self._commit(operation):
            return self._fail(operation, CommitFailed())

        return PipelineResponse(status_code=outcome.status_code, body=outcome.body, committed=True)

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    def _fail(self, operation: Operation, failure: Failure) -> PipelineResponse:
        status_code, body = render_failure(failure)
        error_code = failure.code if isinstance(failure, ErrorCodeFailure) else None
        logger.debug("Operation %s stopped with %s: %s", operation.name, status_code, body)
        return PipelineResponse(status_code=status_code, body=body, error_code=error_code)

    async def _commit(self, operation: Operation) -> bool:
        try:
            await self._unit_of_work.commit()
        except SQLAlchemyError as e:
            logger.error("Commit failed for %s: %s", operation.name, str(e))
            await self._rollback()
            return False
        return True

    async def _rollback(self) -> None:
        try:
            await self._unit_of_work.rollback()
        except SQLAlchemyError as e:
            logger.warning("Rollback failed: %s", str(e))
