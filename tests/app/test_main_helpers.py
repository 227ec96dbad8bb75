from __future__ import annotations

from upload_router.common.config import Settings
from upload_router.main import (
    _format_storage_context,
    _normalize_detail,
    _resolve_error_code,
)


class TestNormalizeDetail:
    def test_unwraps_message_and_extracts_error_code(self) -> None:
        detail, code = _normalize_detail({"message": "x", "error_code": "custom"})
        assert detail == "x"
        assert code == "custom"

    def test_strips_error_code_and_handles_empty(self) -> None:
        detail, code = _normalize_detail({"error_code": "custom"})
        assert detail is None
        assert code == "custom"

    def test_ignores_non_string_error_code(self) -> None:
        detail, code = _normalize_detail({"message": "x", "error_code": 123})
        assert detail == "x"
        assert code is None

    def test_returns_string_detail_as_is(self) -> None:
        detail, code = _normalize_detail("simple error")
        assert detail == "simple error"
        assert code is None


class TestResolveErrorCode:
    def test_returns_override_when_provided(self) -> None:
        assert _resolve_error_code(404, override="override_code") == "override_code"

    def test_maps_known_status(self) -> None:
        assert _resolve_error_code(405) == "method_not_allowed"

    def test_unknown_status(self) -> None:
        assert _resolve_error_code(418) == "unknown_error"


def test_format_storage_context_lists_optional_parts() -> None:
    text = _format_storage_context(
        Settings(
            S3_BUCKET_NAME="uploads",
            S3_ENDPOINT_URL="http://minio:9000",
            S3_KEY_PREFIX="incoming/",
        )
    )

    assert "bucket=uploads" in text
    assert "endpoint=http://minio:9000" in text
    assert "key_prefix=incoming/" in text


def test_format_storage_context_without_bucket() -> None:
    assert "bucket=<unset>" in _format_storage_context(Settings())
