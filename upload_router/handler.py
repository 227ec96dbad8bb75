"""Serverless entry point.

``handler(event, context)`` accepts an API-gateway style event whose
``body`` is a JSON string and returns ``{statusCode, headers, body}``.
The negotiator (and its boto3 client) is created on first use and reused by
later invocations in the same process.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, Mapping

from upload_router.common.config import get_settings
from upload_router.common.logging import setup_logging
from upload_router.services.base import MalformedRequestError
from upload_router.services.upload_service import (
    INVALID_JSON_MESSAGE,
    NegotiationResponse,
    UploadNegotiator,
)
from upload_router.services.upload_service import get_negotiator as shared_negotiator

logger = logging.getLogger("app.handler")

RESPONSE_HEADERS = {"Content-Type": "application/json"}

_logging_ready = False


def get_negotiator() -> UploadNegotiator:
    """Shared negotiator, with logging configured on the first invocation."""
    global _logging_ready
    if not _logging_ready:
        setup_logging(get_settings().LOG_LEVEL)
        _logging_ready = True
    return shared_negotiator()


def format_response(outcome: NegotiationResponse) -> dict[str, Any]:
    return {
        "statusCode": outcome.status_code,
        "headers": dict(RESPONSE_HEADERS),
        "body": json.dumps(outcome.body, ensure_ascii=False, default=str),
    }


def _event_body(event: Mapping[str, Any] | None) -> Any:
    if not event:
        return None
    body = event.get("body")
    if body is None or not event.get("isBase64Encoded"):
        return body
    try:
        return base64.b64decode(body, validate=True)
    except (binascii.Error, TypeError, ValueError) as exc:
        raise MalformedRequestError(INVALID_JSON_MESSAGE) from exc


def handle_event(
    event: Mapping[str, Any] | None, negotiator: UploadNegotiator
) -> dict[str, Any]:
    try:
        body = _event_body(event)
    except MalformedRequestError as exc:
        return format_response(
            NegotiationResponse(status_code=400, body={"error": str(exc)})
        )
    return format_response(negotiator.negotiate_raw(body))


def handler(event: Mapping[str, Any] | None, context: Any = None) -> dict[str, Any]:
    request_id = getattr(context, "aws_request_id", None)
    response = handle_event(event, get_negotiator())
    logger.info(
        "invocation status=%s request_id=%s",
        response["statusCode"],
        request_id,
        extra={"extra": {"status": response["statusCode"], "request_id": request_id}},
    )
    return response
