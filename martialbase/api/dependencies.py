# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get the request database session
- Get the request-scoped access store and pipeline coordinator
- Get the verified token claims and request payload

Every dependency is resolved once per request, so the session, store
and coordinator injected into one endpoint are shared.

Example:
    @router.get("/{organisation_id}")
    async def get_organisation(
        organisation_id: str,
        coordinator: Coordinator,
        claims: Claims,
    ) -> Response:
        ...
"""

import json
import logging
from typing import Annotated, Any, AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from martialbase.api.middleware.auth import get_claims
from martialbase.core.config import get_settings
from martialbase.domains.access import IdentityResolver, PipelineCoordinator, SqlAccessStore
from martialbase.domains.user import UserService
from martialbase.infrastructure.database import get_session

logger = logging.getLogger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for the request.

    Yields:
        AsyncSession, committed or rolled back by the access pipeline.
    """
    async with get_session() as session:
        yield session


DbSession = Annotated[AsyncSession, Depends(get_db)]


def get_access_store(db: DbSession) -> SqlAccessStore:
    """Get the access store for the request, with its own lookup cache."""
    return SqlAccessStore(db)


AccessStoreDep = Annotated[SqlAccessStore, Depends(get_access_store)]


def get_coordinator(db: DbSession, store: AccessStoreDep) -> PipelineCoordinator:
    """Get the pipeline coordinator for the request.

    The identity resolver registers callers presenting an invitation code
    through UserService.
    """
    settings = get_settings()
    resolver = IdentityResolver(
        store,
        subject_claim=settings.auth.subject_claim,
        invitation_claim=settings.auth.invitation_claim,
        invitation_handler=UserService(db).claim_invitation,
    )
    return PipelineCoordinator(store, db, resolver)


Coordinator = Annotated[PipelineCoordinator, Depends(get_coordinator)]
Claims = Annotated[dict[str, Any] | None, Depends(get_claims)]


async def get_payload(request: Request) -> Any:
    """Read the decoded JSON body of the request.

    Returns:
        The decoded body, or None if the body is empty or not valid JSON.
        The access pipeline reports a missing body as a validation error.
    """
    body = await request.body()
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        logger.debug("Request body is not valid JSON")
        return None


Payload = Annotated[Any, Depends(get_payload)]
