import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from upload_router.api.v1.routers.uploads import router as uploads_router
from upload_router.common.config import Settings, get_settings
from upload_router.common.logging import setup_logging
from upload_router.infra.observability.metrics import metrics_app
from upload_router.infra.observability.middleware import MetricsMiddleware
from upload_router.services.upload_service import StorageBackendNotConfiguredError

ERROR_CODE_BY_STATUS = {
    400: "bad_request",
    404: "not_found",
    405: "method_not_allowed",
    413: "payload_too_large",
    415: "unsupported_media_type",
    429: "too_many_requests",
    500: "internal_error",
    502: "bad_gateway",
    503: "service_unavailable",
}


def _normalize_detail(detail):
    if isinstance(detail, dict):
        maybe_code = detail.get("error_code")
        cleaned = {k: v for k, v in detail.items() if k != "error_code"}
        if len(cleaned) == 1 and "message" in cleaned:
            cleaned = cleaned["message"]
        if not cleaned:
            cleaned = None
        return cleaned, maybe_code if isinstance(maybe_code, str) else None
    return detail, None


def _resolve_error_code(status_code: int, override: str | None = None) -> str:
    if override:
        return override
    return ERROR_CODE_BY_STATUS.get(status_code, "unknown_error")


def _format_storage_context(settings: Settings) -> str:
    parts = [
        f"bucket={settings.S3_BUCKET_NAME or '<unset>'}",
        f"region={settings.AWS_REGION}",
        f"single_upload_limit_bytes={settings.SINGLE_UPLOAD_LIMIT_BYTES}",
        f"part_url_concurrency={settings.PART_URL_CONCURRENCY}",
    ]
    if settings.S3_ENDPOINT_URL:
        parts.append(f"endpoint={settings.S3_ENDPOINT_URL}")
    if settings.S3_KEY_PREFIX:
        parts.append(f"key_prefix={settings.S3_KEY_PREFIX}")
    return ", ".join(parts)


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    app = FastAPI(
        title="Upload Router",
        version="v1.0",
        description="Negotiates single or multipart presigned uploads to S3",
    )

    if settings.CORS_ENABLED:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS or ["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(uploads_router, prefix="/api/v1", tags=["uploads"])

    if settings.ENABLE_METRICS:
        app.add_middleware(MetricsMiddleware)
        app.mount("/metrics", metrics_app)

    @app.on_event("startup")
    def on_startup() -> None:
        startup_logger = logging.getLogger("app.startup")
        if not settings.S3_BUCKET_NAME:
            startup_logger.warning(
                "S3_BUCKET_NAME is not set; upload requests will fail until it is "
                "configured. [event=storage_unconfigured]"
            )
        startup_logger.info(
            "Upload router ready. [event=startup_complete] (%s)",
            _format_storage_context(settings),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger = logging.getLogger("http")
        normalized_detail, code_override = _normalize_detail(exc.detail)
        logger.log(
            logging.WARNING if exc.status_code < 500 else logging.ERROR,
            "http_exception status=%s detail=%s method=%s path=%s request_id=%s",
            exc.status_code,
            normalized_detail,
            request.method,
            request.url.path,
            request.headers.get("X-Request-Id"),
            extra={
                "extra": {
                    "status": exc.status_code,
                    "detail": normalized_detail,
                    "method": request.method,
                    "route": request.url.path,
                    "request_id": request.headers.get("X-Request-Id"),
                }
            },
        )
        return JSONResponse(
            status_code=exc.status_code,
            media_type="application/problem+json",
            content={
                "type": "about:blank",
                "title": "HTTP Error",
                "status": exc.status_code,
                "detail": normalized_detail,
                "error_code": _resolve_error_code(exc.status_code, code_override),
                "instance": str(request.url),
                "request_id": request.headers.get("X-Request-Id"),
            },
        )

    @app.exception_handler(StorageBackendNotConfiguredError)
    async def storage_not_configured_handler(
        request: Request, exc: StorageBackendNotConfiguredError
    ):
        logging.getLogger("http").error(
            "storage_not_configured detail=%s path=%s", exc, request.url.path
        )
        return JSONResponse(status_code=503, content={"error": str(exc)})

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("upload_router.main:app", host="0.0.0.0", port=8000, reload=True)
