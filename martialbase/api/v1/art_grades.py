# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Art grade API endpoints.

Grades are read by organisation members and changed by organisation
admins. For endpoints addressed by grade ID, the owning organisation is
looked up after the grade is known to exist.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from martialbase.api.dependencies import Claims, Coordinator, DbSession, Payload
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
    roles_for_scope,
)
from martialbase.domains.art_grade import ArtGradeService
from martialbase.models.art_grade import ArtGradeCreateRequest, ArtGradeResponse, ArtGradeUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter()

MEMBER_ROLES = roles_for_scope(ScopeKind.ORGANISATION_MEMBER)
ADMIN_ROLES = roles_for_scope(ScopeKind.ORGANISATION_ADMIN)


def _get_service(db: AsyncSession) -> ArtGradeService:
    """Create art grade service instance."""
    return ArtGradeService(db)


def _owner_scope(service: ArtGradeService, art_grade_id: str, admin: bool):
    """Lazy scope on the organisation that owns a grade."""

    async def requirement(context: OperationContext) -> ScopeRequirement | None:
        organisation_id = await service.get_organisation_id(art_grade_id)
        if organisation_id is None:
            return None
        if admin:
            return ScopeRequirement.organisation_admin(organisation_id)
        return ScopeRequirement.organisation_member(organisation_id)

    return requirement


@router.get(
    "",
    response_model=list[ArtGradeResponse],
    summary="List art grades",
    description="List an organisation's grades for an art.",
)
async def list_art_grades(
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
    art_id: Annotated[str | None, Query(alias="artId")] = None,
    organisation_id: Annotated[str | None, Query(alias="organisationId")] = None,
) -> Response:
    service = _get_service(db)
    operation = Operation(
        name="art_grades.list",
        required_roles=MEMBER_ROLES,
        parameters=(
            QueryParameter("artId", label="art ID", required=True),
            QueryParameter("organisationId", label="organisation ID", required=True),
        ),
        references=(
            EntityReference(EntityKind.ART, lambda context: context.parameters["artId"]),
            EntityReference(EntityKind.ORGANISATION, lambda context: context.parameters["organisationId"]),
        ),
        scopes=(_organisation_member_from_parameters,),
    )

    async def handler(context: OperationContext) -> Success:
        grades = await service.list_art_grades(
            context.parameters["artId"], context.parameters["organisationId"]
        )
        return Success(grades)

    result = await coordinator.run(
        operation,
        claims,
        handler,
        parameters={"artId": art_id, "organisationId": organisation_id},
    )
    return to_response(result)


async def _organisation_member_from_parameters(context: OperationContext) -> ScopeRequirement:
    return ScopeRequirement.organisation_member(context.parameters["organisationId"])


@router.get(
    "/{art_grade_id}",
    response_model=ArtGradeResponse,
    summary="Get art grade",
)
async def get_art_grade(
    art_grade_id: str,
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
) -> Response:
    service = _get_service(db)
    operation = Operation(
        name="art_grades.get",
        required_roles=MEMBER_ROLES,
        references=(EntityReference(EntityKind.ART_GRADE, art_grade_id),),
        scopes=(_owner_scope(service, art_grade_id, admin=False),),
    )

    async def handler(context: OperationContext) -> Success:
        return Success(await service.get_art_grade(art_grade_id))

    return to_response(await coordinator.run(operation, claims, handler))


@router.post(
    "",
    response_model=ArtGradeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create art grade",
    description="Create a grade for an art. Requires admin access to the organisation.",
)
async def create_art_grade(
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
    payload: Payload,
) -> Response:
    service = _get_service(db)

    async def organisation_admin(context: OperationContext) -> ScopeRequirement:
        return ScopeRequirement.organisation_admin(context.payload.organisation_id)

    operation = Operation(
        name="art_grades.create",
        required_roles=ADMIN_ROLES,
        payload_model=ArtGradeCreateRequest,
        references=(
            EntityReference(EntityKind.ART, lambda context: context.payload.art_id),
            EntityReference(EntityKind.ORGANISATION, lambda context: context.payload.organisation_id),
        ),
        scopes=(organisation_admin,),
        mutates=True,
    )

    async def handler(context: OperationContext) -> Success:
        grade = await service.create_art_grade(context.payload)
        return Success(grade, status.HTTP_201_CREATED)

    return to_response(await coordinator.run(operation, claims, handler, payload=payload))


@router.put(
    "/{art_grade_id}",
    response_model=ArtGradeResponse,
    summary="Update art grade",
)
async def update_art_grade(
    art_grade_id: str,
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
    payload: Payload,
) -> Response:
    service = _get_service(db)
    operation = Operation(
        name="art_grades.update",
        required_roles=ADMIN_ROLES,
        payload_model=ArtGradeUpdateRequest,
        references=(EntityReference(EntityKind.ART_GRADE, art_grade_id),),
        scopes=(_owner_scope(service, art_grade_id, admin=True),),
        mutates=True,
    )

    async def handler(context: OperationContext) -> Success:
        return Success(await service.update_art_grade(art_grade_id, context.payload))

    return to_response(await coordinator.run(operation, claims, handler, payload=payload))


@router.delete(
    "/{art_grade_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete art grade",
)
async def delete_art_grade(
    art_grade_id: str,
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
) -> Response:
    service = _get_service(db)
    operation = Operation(
        name="art_grades.delete",
        required_roles=ADMIN_ROLES,
        references=(EntityReference(EntityKind.ART_GRADE, art_grade_id),),
        scopes=(_owner_scope(service, art_grade_id, admin=True),),
        mutates=True,
    )

    async def handler(context: OperationContext) -> Success:
        await service.delete_art_grade(art_grade_id)
        return Success(status_code=status.HTTP_204_NO_CONTENT)

    return to_response(await coordinator.run(operation, claims, handler))
