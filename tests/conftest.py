from __future__ import annotations

import os

import pytest

os.environ.setdefault("S3_BUCKET_NAME", "test-bucket")
os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "test-key")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test-secret")

from upload_router.api.v1.deps import get_negotiator  # noqa: E402
from upload_router.common.config import Settings, get_settings  # noqa: E402
from upload_router.services.upload_service import UploadNegotiator  # noqa: E402
from tests.services.mock_storage import MockStorageClient  # noqa: E402


@pytest.fixture(autouse=True)
def reset_cached_settings():
    get_settings.cache_clear()  # type: ignore[attr-defined]
    get_negotiator.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]
    get_negotiator.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def settings() -> Settings:
    return Settings(S3_BUCKET_NAME="test-bucket", PART_URL_CONCURRENCY=4)


@pytest.fixture()
def mock_storage() -> MockStorageClient:
    return MockStorageClient()


@pytest.fixture()
def negotiator(settings, mock_storage) -> UploadNegotiator:
    return UploadNegotiator(storage_client=mock_storage, settings=settings)
