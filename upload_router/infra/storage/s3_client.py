"""S3-compatible storage client implementation.

Works with AWS S3, MinIO, and other S3-compatible object storage services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Sequence

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from upload_router.infra.storage.client import (
    CompletedPart,
    MultipartUpload,
    StorageError,
)

if TYPE_CHECKING:
    from upload_router.common.config import Settings


def _backend_message(exc: Exception) -> str:
    """Return the error text reported by the backend, without SDK framing."""
    if isinstance(exc, ClientError):
        error = exc.response.get("Error") or {}
        message = error.get("Message")
        if message:
            return str(message)
    return str(exc) or exc.__class__.__name__


class S3StorageClient:
    """S3-compatible object storage client backed by boto3.

    Credentials come from the boto3 default chain unless explicit keys are
    configured.
    """

    def __init__(self, *, settings: "Settings", client: Any | None = None) -> None:
        self._settings = settings
        self._client = client if client is not None else self._build_client(settings)

    @staticmethod
    def _build_client(settings: "Settings") -> Any:
        """Create a boto3 S3 client from settings."""
        addressing_style = (settings.S3_ADDRESSING_STYLE or "virtual").strip().lower()
        config = Config(
            signature_version="s3v4",
            s3={"addressing_style": addressing_style},
        )
        return boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            region_name=settings.AWS_REGION,
            aws_access_key_id=settings.S3_ACCESS_KEY_ID,
            aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
            config=config,
        )

    def presign_put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        content_type: str,
        expires_in: int,
    ) -> str:
        """Generate a presigned URL for a single PUT upload."""
        try:
            url = self._client.generate_presigned_url(
                "put_object",
                Params={
                    "Bucket": bucket,
                    "Key": object_key,
                    "ContentType": content_type,
                },
                ExpiresIn=int(expires_in),
            )
        except Exception as exc:
            raise StorageError(_backend_message(exc)) from exc

        if not url:
            raise StorageError("Generated presigned URL is empty")
        return str(url)

    def init_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        content_type: str | None = None,
    ) -> MultipartUpload:
        """Open a multipart upload session."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": object_key}
        if content_type:
            params["ContentType"] = content_type

        try:
            response = self._client.create_multipart_upload(**params)
        except Exception as exc:
            raise StorageError(_backend_message(exc)) from exc

        upload_id = response.get("UploadId")
        if not upload_id:
            raise StorageError("S3 response missing UploadId")

        return MultipartUpload(
            upload_id=str(upload_id),
            bucket=bucket,
            object_key=object_key,
        )

    def presign_upload_part(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        part_number: int,
        expires_in: int,
    ) -> str:
        """Generate a presigned URL for uploading a part."""
        try:
            url = self._client.generate_presigned_url(
                "upload_part",
                Params={
                    "Bucket": bucket,
                    "Key": object_key,
                    "UploadId": upload_id,
                    "PartNumber": int(part_number),
                },
                ExpiresIn=int(expires_in),
            )
        except Exception as exc:
            raise StorageError(_backend_message(exc)) from exc

        if not url:
            raise StorageError("Generated presigned URL is empty")
        return str(url)

    def complete_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> Mapping[str, Any]:
        """Complete a multipart upload, forwarding parts in the given order."""
        multipart_payload = {
            "Parts": [
                {
                    "ETag": part.etag,
                    "PartNumber": int(part.part_number),
                    **dict(part.checksums),
                }
                for part in parts
            ]
        }

        try:
            response = self._client.complete_multipart_upload(
                Bucket=bucket,
                Key=object_key,
                UploadId=upload_id,
                MultipartUpload=multipart_payload,
            )
        except Exception as exc:
            raise StorageError(_backend_message(exc)) from exc

        return {
            key: value
            for key, value in dict(response or {}).items()
            if key != "ResponseMetadata"
        }
