# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request-scoped logging context middleware.

Binds a request id, method and path to the structlog context for the
duration of a request, and echoes the id in the X-Request-ID header.
The access pipeline adds user_id and person_id once the caller is known.
"""

import logging
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from martialbase.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds and clears request-scoped logging context."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        clear_context()
        bind_context(request_id=request_id, method=request.method, path=request.url.path)

        try:
            response = await call_next(request)
            logger.debug("Request completed with %s", response.status_code)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            clear_context()
