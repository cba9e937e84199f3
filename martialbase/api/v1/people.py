# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Person API endpoints.

A person can always read their own record. Anyone else needs to be a
secretary of one of the person's schools or an admin of one of their
organisations.
"""

import logging

from fastapi import APIRouter, Response

from martialbase.api.dependencies import Claims, Coordinator, DbSession
from martialbase.api.responses import to_response
from martialbase.domains.access import (
    EntityKind,
    EntityReference,
    Operation,
    OperationContext,
    ScopeRequirement,
    Success,
)
from martialbase.domains.person import PersonService
from martialbase.models.organisation import OrganisationResponse
from martialbase.models.person import PersonResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/getmyid",
    response_model=str,
    summary="Get my person ID",
    description="Get the person ID of the caller. Registers the caller first if the token carries an invitation code.",
)
async def get_my_person_id(coordinator: Coordinator, claims: Claims) -> Response:
    operation = Operation(name="people.get_my_id")

    async def handler(context: OperationContext) -> Success:
        return Success(context.person_id)

    return to_response(await coordinator.run(operation, claims, handler))


@router.get(
    "/{person_id}",
    response_model=PersonResponse,
    summary="Get person",
)
async def get_person(
    person_id: str,
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
) -> Response:
    service = PersonService(db)
    operation = Operation(
        name="people.get",
        references=(EntityReference(EntityKind.PERSON, person_id),),
        scopes=(ScopeRequirement.person(person_id),),
    )

    async def handler(context: OperationContext) -> Success:
        return Success(await service.get_person(person_id))

    return to_response(await coordinator.run(operation, claims, handler))


@router.get(
    "/{person_id}/organisations",
    response_model=list[OrganisationResponse],
    summary="List person organisations",
)
async def list_person_organisations(
    person_id: str,
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
) -> Response:
    service = PersonService(db)
    operation = Operation(
        name="people.list_organisations",
        references=(EntityReference(EntityKind.PERSON, person_id),),
        scopes=(ScopeRequirement.person(person_id),),
    )

    async def handler(context: OperationContext) -> Success:
        return Success(await service.list_organisations(person_id))

    return to_response(await coordinator.run(operation, claims, handler))
