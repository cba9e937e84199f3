# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Login management endpoints.

Provides the endpoint that blocks a user's access by unlinking their
external identity. The account itself is kept.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from martialbase.api.dependencies import Claims, Coordinator, DbSession
from martialbase.api.responses import to_response
from martialbase.domains.access import (
    EntityKind,
    EntityReference,
    Operation,
    OperationContext,
    QueryParameter,
    Success,
    UserRoles,
)
from martialbase.domains.user import UserService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Block user access",
    description="Unlink a user's external identity and invitation code. System admins only.",
)
async def block_user_access(
    coordinator: Coordinator,
    claims: Claims,
    db: DbSession,
    user_id: Annotated[str | None, Query(alias="userId")] = None,
) -> Response:
    service = UserService(db)
    operation = Operation(
        name="auth.block_user",
        required_roles=frozenset({UserRoles.SYSTEM_ADMIN}),
        parameters=(QueryParameter("userId", label="user ID", required=True),),
        references=(EntityReference(EntityKind.USER, lambda context: context.parameters["userId"]),),
        mutates=True,
    )

    async def handler(context: OperationContext) -> Success:
        await service.block_user(context.parameters["userId"])
        return Success(status_code=status.HTTP_204_NO_CONTENT)

    result = await coordinator.run(operation, claims, handler, parameters={"userId": user_id})
    return to_response(result)
