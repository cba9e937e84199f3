# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Organisation management API endpoints.

Provides endpoints for:
- Organisation CRUD operations
- Organisation membership
- Parent links between organisations

Every endpoint declares its checks as an Operation and runs through the
access pipeline.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from martialbase.api.dependencies import AccessStoreDep, Claims, Coordinator, DbSession, Payload
from martialbase.api.responses import to_response
from martialbase.domains.access import (
    EntityKind,
    EntityReference,
    Operation,
    OperationContext,
    QueryParameter,
    ScopeKind,
    ScopeRequirement,
    Success,
    UserRoles,
    roles_for_scope,
)
from martialbase.domains.access.store import AccessStore
from martialbase.domains.organisation import OrganisationService
from martialbase.models.organisation import (
    OrganisationCreateRequest,
    OrganisationPersonResponse,
    OrganisationResponse,
    OrganisationUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

MEMBER_ROLES = roles_for_scope(ScopeKind.ORGANISATION_MEMBER)
ADMIN_ROLES = roles_for_scope(ScopeKind.ORGANISATION_ADMIN)


def _get_service(db: AsyncSession, store: AccessStore) -> OrganisationService:
    """Create organisation service instance."""
    return OrganisationService(db, store)


def _current_parent_admin(service: OrganisationService, organisation_id: str):
    """Lazy scope requiring admin access to an organisation's current parent, if any."""

    async def requirement(context: OperationContext) -> ScopeRequirement | None:
        parent_id = await service.get_parent_id(organisation_id)
        return ScopeRequirement.organisation_admin(parent_id) if parent_id else None

    return requirement


async def _new_parent_admin(context: OperationContext) -> ScopeRequirement:
    """Lazy scope requiring admin access to the parent named by the parentId parameter."""
    return ScopeRequirement.organisation_admin(context.parameters["parentId"])


# =============================================================================
# Organisation CRUD
# =============================================================================


@router.get(
    "",
    response_model=list[OrganisationResponse],
    summary="List organisations",
    description="List the organisations the caller can see, ordered by initials.",
)
async def list_organisations(
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
    store: AccessStoreDep,
    parent_id: Annotated[str | None, Query(alias="parentId")] = None,
) -> Response:
    service = _get_service(db, store)
    operation = Operation(
        name="organisations.list",
        required_roles=MEMBER_ROLES,
        parameters=(QueryParameter("parentId", label="parent ID"),),
        references=(
            EntityReference(EntityKind.ORGANISATION, lambda context: context.parameters.get("parentId")),
        ),
    )

    async def handler(context: OperationContext) -> Success:
        organisations = await service.list_organisations(
            context.identity,
            coordinator.evaluator,
            bypass=context.superuser,
            parent_id=context.parameters.get("parentId"),
        )
        return Success(organisations)

    result = await coordinator.run(operation, claims, handler, parameters={"parentId": parent_id})
    return to_response(result)


@router.get(
    "/{organisation_id}",
    response_model=OrganisationResponse,
    summary="Get organisation",
    description="Get an organisation the caller is a member of, or a public one.",
)
async def get_organisation(
    organisation_id: str,
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
    store: AccessStoreDep,
) -> Response:
    service = _get_service(db, store)
    operation = Operation(
        name="organisations.get",
        required_roles=MEMBER_ROLES,
        references=(EntityReference(EntityKind.ORGANISATION, organisation_id),),
        scopes=(ScopeRequirement.organisation_member(organisation_id),),
    )

    async def handler(context: OperationContext) -> Success:
        return Success(await service.get_organisation(organisation_id))

    return to_response(await coordinator.run(operation, claims, handler))


@router.post(
    "",
    response_model=OrganisationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create organisation",
    description="Create an organisation. The caller becomes its first admin.",
)
async def create_organisation(
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
    store: AccessStoreDep,
    payload: Payload,
) -> Response:
    service = _get_service(db, store)

    async def parent_admin(context: OperationContext) -> ScopeRequirement | None:
        parent_id = context.payload.parent_id
        return ScopeRequirement.organisation_admin(parent_id) if parent_id else None

    operation = Operation(
        name="organisations.create",
        required_roles=frozenset({UserRoles.USER}),
        payload_model=OrganisationCreateRequest,
        references=(
            EntityReference(EntityKind.ORGANISATION, lambda context: context.payload.parent_id or None),
        ),
        scopes=(parent_admin,),
        mutates=True,
    )

    async def handler(context: OperationContext) -> Success:
        organisation = await service.create_organisation(context.payload, context.person_id)
        return Success(organisation, status.HTTP_201_CREATED)

    return to_response(await coordinator.run(operation, claims, handler, payload=payload))


@router.put(
    "/{organisation_id}",
    response_model=OrganisationResponse,
    summary="Update organisation",
    description="Update an organisation's details. Requires admin access.",
)
async def update_organisation(
    organisation_id: str,
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
    store: AccessStoreDep,
    payload: Payload,
) -> Response:
    service = _get_service(db, store)
    operation = Operation(
        name="organisations.update",
        required_roles=ADMIN_ROLES,
        payload_model=OrganisationUpdateRequest,
        references=(EntityReference(EntityKind.ORGANISATION, organisation_id),),
        scopes=(ScopeRequirement.organisation_admin(organisation_id),),
        mutates=True,
    )

    async def handler(context: OperationContext) -> Success:
        return Success(await service.update_organisation(organisation_id, context.payload))

    return to_response(await coordinator.run(operation, claims, handler, payload=payload))


@router.delete(
    "/{organisation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete organisation",
    description=(
        "Delete an organisation. Superuser only. Members are not deleted, "
        "but the organisation may not be the last one of any member, nor own schools."
    ),
)
async def delete_organisation(
    organisation_id: str,
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
    store: AccessStoreDep,
) -> Response:
    service = _get_service(db, store)
    operation = Operation(
        name="organisations.delete",
        required_roles=frozenset({UserRoles.SUPERUSER}),
        references=(EntityReference(EntityKind.ORGANISATION, organisation_id),),
        mutates=True,
    )

    async def handler(context: OperationContext) -> Success:
        await service.delete_organisation(organisation_id)
        return Success(status_code=status.HTTP_204_NO_CONTENT)

    return to_response(await coordinator.run(operation, claims, handler))


# =============================================================================
# Hierarchy
# =============================================================================


@router.put(
    "/{organisation_id}/parent",
    summary="Change organisation parent",
    description="Requires admin access to the organisation, its current parent and the new parent.",
)
async def change_parent(
    organisation_id: str,
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
    store: AccessStoreDep,
    parent_id: Annotated[str | None, Query(alias="parentId")] = None,
) -> Response:
    service = _get_service(db, store)
    operation = Operation(
        name="organisations.change_parent",
        required_roles=ADMIN_ROLES,
        parameters=(QueryParameter("parentId", label="parent ID", required=True),),
        references=(
            EntityReference(EntityKind.ORGANISATION, organisation_id),
            EntityReference(EntityKind.ORGANISATION, lambda context: context.parameters["parentId"]),
        ),
        scopes=(
            ScopeRequirement.organisation_admin(organisation_id),
            _current_parent_admin(service, organisation_id),
            _new_parent_admin,
        ),
        mutates=True,
    )

    async def handler(context: OperationContext):
        failure = await service.change_parent(organisation_id, context.parameters["parentId"])
        if failure is not None:
            return failure
        return Success()

    result = await coordinator.run(operation, claims, handler, parameters={"parentId": parent_id})
    return to_response(result)


@router.delete(
    "/{organisation_id}/parent",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove organisation parent",
    description="Requires admin access to the organisation and, if it has one, its parent.",
)
async def remove_parent(
    organisation_id: str,
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
    store: AccessStoreDep,
) -> Response:
    service = _get_service(db, store)
    operation = Operation(
        name="organisations.remove_parent",
        required_roles=ADMIN_ROLES,
        references=(EntityReference(EntityKind.ORGANISATION, organisation_id),),
        scopes=(
            ScopeRequirement.organisation_admin(organisation_id),
            _current_parent_admin(service, organisation_id),
        ),
        mutates=True,
    )

    async def handler(context: OperationContext) -> Success:
        await service.remove_parent(organisation_id)
        return Success(status_code=status.HTTP_204_NO_CONTENT)

    return to_response(await coordinator.run(operation, claims, handler))


# =============================================================================
# Membership
# =============================================================================


@router.get(
    "/{organisation_id}/people",
    response_model=list[OrganisationPersonResponse],
    summary="List organisation people",
    description="List the members of an organisation. Requires admin access.",
)
async def list_people(
    organisation_id: str,
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
    store: AccessStoreDep,
) -> Response:
    service = _get_service(db, store)
    operation = Operation(
        name="organisations.list_people",
        required_roles=ADMIN_ROLES,
        references=(EntityReference(EntityKind.ORGANISATION, organisation_id),),
        scopes=(ScopeRequirement.organisation_admin(organisation_id),),
    )

    async def handler(context: OperationContext) -> Success:
        return Success(await service.list_people(organisation_id))

    return to_response(await coordinator.run(operation, claims, handler))


@router.post(
    "/{organisation_id}/people",
    status_code=status.HTTP_201_CREATED,
    summary="Add person to organisation",
    description="Add an existing person to an organisation, or change their admin flag.",
)
async def add_person(
    organisation_id: str,
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
    store: AccessStoreDep,
    person_id: Annotated[str | None, Query(alias="personId")] = None,
    is_admin: Annotated[str | None, Query(alias="isAdmin")] = None,
) -> Response:
    service = _get_service(db, store)
    operation = Operation(
        name="organisations.add_person",
        required_roles=ADMIN_ROLES,
        parameters=(
            QueryParameter("personId", label="person ID", required=True),
            QueryParameter("isAdmin", flag=True, default=False),
        ),
        references=(
            EntityReference(EntityKind.ORGANISATION, organisation_id),
            EntityReference(EntityKind.PERSON, lambda context: context.parameters["personId"]),
        ),
        scopes=(ScopeRequirement.organisation_admin(organisation_id),),
        mutates=True,
    )

    async def handler(context: OperationContext) -> Success:
        await service.add_person(
            organisation_id,
            context.parameters["personId"],
            is_admin=context.parameters["isAdmin"],
        )
        return Success(status_code=status.HTTP_201_CREATED)

    result = await coordinator.run(
        operation,
        claims,
        handler,
        parameters={"personId": person_id, "isAdmin": is_admin},
    )
    return to_response(result)


@router.delete(
    "/{organisation_id}/people/{person_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove person from organisation",
    description="Remove a person from an organisation. The person must remain in another organisation.",
)
async def remove_person(
    organisation_id: str,
    person_id: str,
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
    store: AccessStoreDep,
) -> Response:
    service = _get_service(db, store)
    operation = Operation(
        name="organisations.remove_person",
        required_roles=ADMIN_ROLES,
        references=(
            EntityReference(EntityKind.ORGANISATION, organisation_id),
            EntityReference(EntityKind.PERSON, person_id),
        ),
        scopes=(ScopeRequirement.organisation_admin(organisation_id),),
        mutates=True,
    )

    async def handler(context: OperationContext):
        failure = await service.remove_person(organisation_id, person_id)
        if failure is not None:
            return failure
        return Success(status_code=status.HTTP_204_NO_CONTENT)

    return to_response(await coordinator.run(operation, claims, handler))
