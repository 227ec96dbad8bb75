"""Upload negotiation service.

Decides whether a client should upload an object in one PUT or as a
multipart upload, and hands out presigned URLs so the bytes go straight to
the bucket. A multipart upload is negotiated in two calls: the first (no
``uploadId``) opens the session and returns one URL per part, the second
(``uploadId`` + ``complete`` + ``parts``) stitches the parts together.
Sessions that are opened but never completed are left to the bucket's
lifecycle rules.
"""

from __future__ import annotations

import json
import logging
import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Literal, Mapping

from pydantic import ValidationError

from upload_router.common.config import Settings, get_settings
from upload_router.infra.observability.metrics import (
    PART_URLS_ISSUED,
    UPLOAD_NEGOTIATIONS,
)
from upload_router.infra.storage.client import (
    CompletedPart,
    StorageClient,
    StorageError,
)
from upload_router.infra.storage.s3_client import S3StorageClient
from upload_router.schemas.uploads import (
    MAX_PART_NUMBER,
    ErrorResponse,
    MultipartCompleteResult,
    MultipartStartPlan,
    PartUrl,
    SingleUploadPlan,
    UploadRequest,
)
from upload_router.services.base import MalformedRequestError, UploadValidationError

logger = logging.getLogger("app.uploads")

UploadType = Literal["single", "multipart"]

REQUIRED_FIELDS: tuple[str, ...] = ("fileName", "contentType", "fileSize")

INVALID_JSON_MESSAGE = "Invalid JSON body"
INVALID_MULTIPART_MESSAGE = (
    "Invalid multipart request: must provide uploadId, complete, and parts "
    "together when completing a multipart upload."
)


class StorageBackendNotConfiguredError(Exception):
    """Raised when the storage backend is not properly configured."""


@dataclass(frozen=True, slots=True)
class NegotiationResponse:
    """Status code and JSON-ready body produced for one request."""

    status_code: int
    body: dict[str, Any]


def build_storage_client(settings: Settings) -> StorageClient:
    """Build the S3 storage client described by settings."""
    if not settings.S3_BUCKET_NAME:
        raise StorageBackendNotConfiguredError("S3_BUCKET_NAME is required")
    return S3StorageClient(settings=settings)


@lru_cache(maxsize=1)
def get_negotiator() -> UploadNegotiator:
    """Process-wide negotiator; the storage client is reused across requests."""
    return UploadNegotiator(settings=get_settings())


def _format_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        problems.append(f"{location}: {error.get('msg')}" if location else error["msg"])
    return "Invalid field(s): " + "; ".join(problems)


class UploadNegotiator:
    """Routes one upload request to the matching storage operations.

    Holds no per-request state, so a single instance can serve every
    invocation in the process.
    """

    def __init__(
        self,
        *,
        storage_client: StorageClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._storage = storage_client or build_storage_client(self._settings)

    @property
    def limit(self) -> int:
        return int(self._settings.SINGLE_UPLOAD_LIMIT_BYTES)

    def classify(self, file_size: int | None) -> UploadType:
        """Pick the upload type for a declared size."""
        if not file_size:
            return "single"
        return "single" if file_size <= self.limit else "multipart"

    def total_parts(self, file_size: int) -> int:
        return math.ceil(file_size / self.limit)

    def object_key(self, file_name: str) -> str:
        return f"{self._settings.S3_KEY_PREFIX or ''}{file_name}"

    @property
    def bucket(self) -> str:
        return str(self._settings.S3_BUCKET_NAME or "")

    def negotiate_raw(
        self, body: str | bytes | Mapping[str, Any] | None
    ) -> NegotiationResponse:
        """Parse a raw JSON body and negotiate it.

        An already-decoded mapping is accepted as is; an absent or blank body
        is treated as an empty object.
        """
        try:
            payload = self._parse_body(body)
        except MalformedRequestError as exc:
            logger.warning("upload_rejected reason=malformed_body")
            UPLOAD_NEGOTIATIONS.labels("rejected", "400").inc()
            return self._error(400, str(exc))
        return self.negotiate(payload)

    def negotiate(self, payload: Mapping[str, Any]) -> NegotiationResponse:
        """Validate a decoded request and run the phase it selects.

        Validation failures become 400 responses before any storage call.
        Any storage failure becomes a 500 carrying the backend's message.
        """
        phase = "rejected"
        try:
            request = self._validate(payload)
            upload_type = self.classify(request.file_size)
            if upload_type == "single":
                phase = "single"
                result = self.plan_single(request)
            elif not request.upload_id:
                phase = "multipart_start"
                result = self.start_multipart(request)
            elif request.complete is True and request.parts:
                phase = "multipart_complete"
                result = self.complete_multipart(request)
            else:
                raise UploadValidationError(INVALID_MULTIPART_MESSAGE)
        except UploadValidationError as exc:
            logger.warning(
                "upload_rejected phase=%s reason=%s",
                phase,
                exc,
                extra={"extra": {"phase": phase, "reason": str(exc)}},
            )
            UPLOAD_NEGOTIATIONS.labels("rejected", "400").inc()
            return self._error(400, str(exc))
        except StorageError as exc:
            logger.exception(
                "upload_storage_error phase=%s error=%s",
                phase,
                exc,
                extra={"extra": {"phase": phase, "error": str(exc)}},
            )
            UPLOAD_NEGOTIATIONS.labels(phase, "500").inc()
            return self._error(500, str(exc))
        except Exception as exc:
            logger.exception("upload_unexpected_error phase=%s", phase)
            UPLOAD_NEGOTIATIONS.labels(phase, "500").inc()
            return self._error(500, str(exc) or exc.__class__.__name__)

        UPLOAD_NEGOTIATIONS.labels(phase, "200").inc()
        return NegotiationResponse(status_code=200, body=result.to_wire())

    def plan_single(self, request: UploadRequest) -> SingleUploadPlan:
        """Issue one presigned PUT URL for the whole object."""
        url = self._storage.presign_put_object(
            bucket=self.bucket,
            object_key=self.object_key(request.file_name),
            content_type=request.content_type,
            expires_in=int(self._settings.SINGLE_UPLOAD_URL_EXPIRES_SECONDS),
        )
        logger.info(
            "upload_single file_name=%s size=%s",
            request.file_name,
            request.file_size,
        )
        return SingleUploadPlan(
            file_name=request.file_name,
            content_type=request.content_type,
            url=url,
        )

    def start_multipart(self, request: UploadRequest) -> MultipartStartPlan:
        """Open a multipart session and presign a URL for every part."""
        total_parts = self.total_parts(request.file_size)
        if total_parts > MAX_PART_NUMBER:
            raise UploadValidationError(
                f"fileSize requires {total_parts} parts; at most {MAX_PART_NUMBER} are allowed"
            )

        object_key = self.object_key(request.file_name)
        upload = self._storage.init_multipart_upload(
            bucket=self.bucket,
            object_key=object_key,
            content_type=request.content_type,
        )
        urls = self._presign_parts(object_key, upload.upload_id, total_parts)
        PART_URLS_ISSUED.inc(len(urls))

        logger.info(
            "upload_multipart_started file_name=%s upload_id=%s total_parts=%s",
            request.file_name,
            upload.upload_id,
            total_parts,
        )
        return MultipartStartPlan(
            file_name=request.file_name,
            content_type=request.content_type,
            upload_id=upload.upload_id,
            total_parts=total_parts,
            urls=urls,
        )

    def complete_multipart(self, request: UploadRequest) -> MultipartCompleteResult:
        """Finish a multipart session with the parts exactly as received."""
        parts = [
            CompletedPart(
                part_number=part.part_number,
                etag=part.etag,
                checksums=part.checksums(),
            )
            for part in request.parts or []
        ]
        record = self._storage.complete_multipart_upload(
            bucket=self.bucket,
            object_key=self.object_key(request.file_name),
            upload_id=str(request.upload_id),
            parts=parts,
        )
        logger.info(
            "upload_multipart_completed file_name=%s upload_id=%s parts=%s",
            request.file_name,
            request.upload_id,
            len(parts),
        )
        return MultipartCompleteResult(
            file_name=request.file_name,
            result=dict(record or {}),
        )

    def _presign_parts(
        self, object_key: str, upload_id: str, total_parts: int
    ) -> list[PartUrl]:
        expires_in = int(self._settings.PART_URL_EXPIRES_SECONDS)

        def presign(part_number: int) -> PartUrl:
            url = self._storage.presign_upload_part(
                bucket=self.bucket,
                object_key=object_key,
                upload_id=upload_id,
                part_number=part_number,
                expires_in=expires_in,
            )
            return PartUrl(part_number=part_number, url=url)

        part_numbers = range(1, total_parts + 1)
        workers = min(int(self._settings.PART_URL_CONCURRENCY), total_parts)
        if workers <= 1:
            urls = [presign(part_number) for part_number in part_numbers]
        else:
            with ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="presign-part"
            ) as pool:
                futures = [pool.submit(presign, n) for n in part_numbers]
                urls = [future.result() for future in as_completed(futures)]
        return sorted(urls, key=lambda u: u.part_number)

    @staticmethod
    def _parse_body(body: str | bytes | Mapping[str, Any] | None) -> dict[str, Any]:
        if body is None:
            return {}
        if isinstance(body, Mapping):
            return dict(body)
        if isinstance(body, (bytes, bytearray)):
            try:
                body = body.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise MalformedRequestError(INVALID_JSON_MESSAGE) from exc
        if not isinstance(body, str):
            raise MalformedRequestError(INVALID_JSON_MESSAGE)
        if not body.strip():
            return {}
        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise MalformedRequestError(INVALID_JSON_MESSAGE) from exc
        if not isinstance(payload, dict):
            raise MalformedRequestError(INVALID_JSON_MESSAGE)
        return payload

    @staticmethod
    def _validate(payload: Mapping[str, Any]) -> UploadRequest:
        missing = [name for name in REQUIRED_FIELDS if payload.get(name) in (None, "")]
        if missing:
            names = ", ".join(f"'{name}'" for name in missing)
            raise UploadValidationError(f"Missing required field(s): {names}")
        try:
            return UploadRequest.model_validate(dict(payload))
        except ValidationError as exc:
            raise UploadValidationError(_format_validation_error(exc)) from exc

    @staticmethod
    def _error(status_code: int, message: str) -> NegotiationResponse:
        return NegotiationResponse(
            status_code=status_code, body=ErrorResponse(error=message).to_wire()
        )
