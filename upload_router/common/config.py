from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")

# 5 MiB, also used as the multipart part size
DEFAULT_SINGLE_UPLOAD_LIMIT_BYTES = 5 * 1024 * 1024


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _as_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass
class Settings:
    AWS_REGION: str = "us-east-1"
    S3_BUCKET_NAME: str | None = None
    S3_KEY_PREFIX: str = ""
    S3_ENDPOINT_URL: str | None = None
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_ADDRESSING_STYLE: str = "virtual"
    SINGLE_UPLOAD_LIMIT_BYTES: int = DEFAULT_SINGLE_UPLOAD_LIMIT_BYTES
    SINGLE_UPLOAD_URL_EXPIRES_SECONDS: int = 900
    PART_URL_EXPIRES_SECONDS: int = 3600
    PART_URL_CONCURRENCY: int = 8
    ENABLE_METRICS: bool = True
    CORS_ENABLED: bool = False
    CORS_ORIGINS: list[str] = field(default_factory=list)
    LOG_LEVEL: str = "INFO"

    def __post_init__(self) -> None:
        if self.SINGLE_UPLOAD_LIMIT_BYTES <= 0:
            raise ValueError("SINGLE_UPLOAD_LIMIT_BYTES must be positive.")
        if self.SINGLE_UPLOAD_URL_EXPIRES_SECONDS <= 0:
            raise ValueError("SINGLE_UPLOAD_URL_EXPIRES_SECONDS must be positive.")
        if self.PART_URL_EXPIRES_SECONDS <= 0:
            raise ValueError("PART_URL_EXPIRES_SECONDS must be positive.")
        if self.PART_URL_CONCURRENCY < 1:
            raise ValueError("PART_URL_CONCURRENCY must be at least 1.")

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        region = (
            os.environ.get("AWS_REGION") or os.environ.get("S3_REGION") or cls.AWS_REGION
        )
        return cls(
            AWS_REGION=region,
            S3_BUCKET_NAME=_as_optional(os.environ.get("S3_BUCKET_NAME")),
            S3_KEY_PREFIX=os.environ.get("S3_KEY_PREFIX", cls.S3_KEY_PREFIX),
            S3_ENDPOINT_URL=_as_optional(os.environ.get("S3_ENDPOINT_URL")),
            S3_ACCESS_KEY_ID=_as_optional(os.environ.get("S3_ACCESS_KEY_ID")),
            S3_SECRET_ACCESS_KEY=_as_optional(os.environ.get("S3_SECRET_ACCESS_KEY")),
            S3_ADDRESSING_STYLE=os.environ.get(
                "S3_ADDRESSING_STYLE", cls.S3_ADDRESSING_STYLE
            ),
            SINGLE_UPLOAD_LIMIT_BYTES=int(
                os.environ.get(
                    "SINGLE_UPLOAD_LIMIT_BYTES", cls.SINGLE_UPLOAD_LIMIT_BYTES
                )
            ),
            SINGLE_UPLOAD_URL_EXPIRES_SECONDS=int(
                os.environ.get(
                    "SINGLE_UPLOAD_URL_EXPIRES_SECONDS",
                    cls.SINGLE_UPLOAD_URL_EXPIRES_SECONDS,
                )
            ),
            PART_URL_EXPIRES_SECONDS=int(
                os.environ.get("PART_URL_EXPIRES_SECONDS", cls.PART_URL_EXPIRES_SECONDS)
            ),
            PART_URL_CONCURRENCY=int(
                os.environ.get("PART_URL_CONCURRENCY", cls.PART_URL_CONCURRENCY)
            ),
            ENABLE_METRICS=_as_bool(
                os.environ.get("ENABLE_METRICS"), cls.ENABLE_METRICS
            ),
            CORS_ENABLED=_as_bool(os.environ.get("CORS_ENABLED"), cls.CORS_ENABLED),
            CORS_ORIGINS=_as_list(os.environ.get("CORS_ORIGINS")),
            LOG_LEVEL=os.environ.get("LOG_LEVEL", cls.LOG_LEVEL).upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
