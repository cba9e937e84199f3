# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School student document API endpoints.

Only active secretaries of the school may list, read or file documents
for its students.
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
    Failure,
    Operation,
    OperationContext,
    QueryParameter,
    ScopeKind,
    ScopeRequirement,
    Success,
    roles_for_scope,
)
from martialbase.domains.school import SchoolService
from martialbase.models.document import DocumentCreateRequest, DocumentResponse

logger = logging.getLogger(__name__)

router = APIRouter()

SECRETARY_ROLES = roles_for_scope(ScopeKind.SCHOOL_SECRETARY)


def _get_service(db: AsyncSession) -> SchoolService:
    """Create school service instance."""
    return SchoolService(db)


def _as_result(outcome, status_code: int = status.HTTP_200_OK) -> Success | Failure:
    if isinstance(outcome, Failure):
        return outcome
    return Success(outcome, status_code)


@router.get(
    "/{school_id}/students/{person_id}/documents",
    response_model=list[DocumentResponse],
    summary="List student documents",
    description="List documents filed for a student. Expired documents need includeInactive=true.",
)
async def list_student_documents(
    school_id: str,
    person_id: str,
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
    include_inactive: Annotated[str | None, Query(alias="includeInactive")] = None,
) -> Response:
    service = _get_service(db)
    operation = Operation(
        name="schools.list_student_documents",
        required_roles=SECRETARY_ROLES,
        parameters=(QueryParameter("includeInactive", flag=True, default=False),),
        references=(
            EntityReference(EntityKind.SCHOOL, school_id),
            EntityReference(EntityKind.PERSON, person_id),
        ),
        scopes=(ScopeRequirement.school_secretary(school_id),),
    )

    async def handler(context: OperationContext) -> Success | Failure:
        documents = await service.list_student_documents(
            school_id, person_id, include_inactive=context.parameters["includeInactive"]
        )
        return _as_result(documents)

    result = await coordinator.run(
        operation, claims, handler, parameters={"includeInactive": include_inactive}
    )
    return to_response(result)


@router.get(
    "/{school_id}/students/{person_id}/documents/{document_id}",
    response_model=DocumentResponse,
    summary="Get student document",
)
async def get_student_document(
    school_id: str,
    person_id: str,
    document_id: str,
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
) -> Response:
    service = _get_service(db)
    operation = Operation(
        name="schools.get_student_document",
        required_roles=SECRETARY_ROLES,
        references=(
            EntityReference(EntityKind.SCHOOL, school_id),
            EntityReference(EntityKind.PERSON, person_id),
            EntityReference(EntityKind.DOCUMENT, document_id),
        ),
        scopes=(ScopeRequirement.school_secretary(school_id),),
    )

    async def handler(context: OperationContext) -> Success | Failure:
        return _as_result(await service.get_student_document(school_id, person_id, document_id))

    return to_response(await coordinator.run(operation, claims, handler))


@router.post(
    "/{school_id}/students/{person_id}/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="File student document",
)
async def create_student_document(
    school_id: str,
    person_id: str,
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
    payload: Payload,
) -> Response:
    service = _get_service(db)
    operation = Operation(
        name="schools.create_student_document",
        required_roles=SECRETARY_ROLES,
        payload_model=DocumentCreateRequest,
        references=(
            EntityReference(EntityKind.SCHOOL, school_id),
            EntityReference(EntityKind.DOCUMENT_TYPE, lambda context: context.payload.document_type_id),
            EntityReference(EntityKind.PERSON, person_id),
        ),
        scopes=(ScopeRequirement.school_secretary(school_id),),
        mutates=True,
    )

    async def handler(context: OperationContext) -> Success | Failure:
        document = await service.create_student_document(school_id, person_id, context.payload)
        return _as_result(document, status.HTTP_201_CREATED)

    return to_response(await coordinator.run(operation, claims, handler, payload=payload))
