# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Conversion of pipeline outcomes to HTTP responses."""

from fastapi import Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, PlainTextResponse

from martialbase.domains.access import PipelineResponse


def to_response(result: PipelineResponse) -> Response:
    """Render a pipeline outcome.

    Strings become plain text, None an empty body, anything else JSON with
    camelCase keys.
    """
    if result.body is None:
        return Response(status_code=result.status_code)
    if isinstance(result.body, str):
        return PlainTextResponse(result.body, status_code=result.status_code)
    return JSONResponse(jsonable_encoder(result.body, by_alias=True), status_code=result.status_code)
