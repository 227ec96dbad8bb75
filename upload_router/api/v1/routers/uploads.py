"""Upload negotiation router.

The body is read raw rather than bound to a model so that unparseable JSON
and missing fields produce the same ``{"error": ...}`` 400 responses as the
serverless handler, instead of FastAPI's 422 validation errors.
"""

from __future__ import annotations

from typing import Union

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from upload_router.api.v1.deps import get_negotiator
from upload_router.schemas.uploads import (
    ErrorResponse,
    MultipartCompleteResult,
    MultipartStartPlan,
    SingleUploadPlan,
)
from upload_router.services.upload_service import UploadNegotiator

router = APIRouter()


@router.post(
    "/uploads",
    response_model=Union[SingleUploadPlan, MultipartStartPlan, MultipartCompleteResult],
    responses={
        400: {"model": ErrorResponse, "description": "Malformed or invalid request"},
        500: {"model": ErrorResponse, "description": "Storage backend failure"},
    },
    summary="Negotiate an upload",
    description=(
        "Return a presigned PUT URL for small files, or open a multipart "
        "upload and return per-part URLs for large ones. Call again with "
        "uploadId, complete=true and parts to finish a multipart upload."
    ),
)
async def negotiate_upload(
    request: Request,
    negotiator: UploadNegotiator = Depends(get_negotiator),
) -> JSONResponse:
    raw_body = await request.body()
    outcome = await run_in_threadpool(negotiator.negotiate_raw, raw_body)
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)
