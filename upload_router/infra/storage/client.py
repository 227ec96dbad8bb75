"""Storage client protocol and data types.

The upload router never touches object bytes; it only asks the storage
backend for presigned write URLs and for the multipart session lifecycle
calls that bracket a direct client-to-bucket upload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, Sequence


class StorageError(RuntimeError):
    """Raised when object storage operations fail.

    The message is the backend's own error text and is surfaced to callers
    unchanged.
    """


@dataclass(frozen=True, slots=True)
class CompletedPart:
    """A part the client has uploaded, identified by number and ETag.

    ``checksums`` maps S3 checksum keys (``ChecksumCRC32`` etc.) to the values
    the client sent for the part.
    """

    part_number: int
    etag: str
    checksums: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class MultipartUpload:
    """Result of initiating a multipart upload."""

    upload_id: str
    bucket: str
    object_key: str


class StorageClient(Protocol):
    """Interface the upload negotiator needs from an object store."""

    def presign_put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        content_type: str,
        expires_in: int,
    ) -> str:
        """Generate a presigned URL for a single-shot PUT of the whole object.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) in the bucket.
            content_type: MIME type the client must send with the PUT.
            expires_in: URL expiration time in seconds.

        Returns:
            Presigned URL for PUT request.

        Raises:
            StorageError: If URL generation fails.
        """
        ...

    def init_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        content_type: str | None = None,
    ) -> MultipartUpload:
        """Open a multipart upload session.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def presign_upload_part(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        part_number: int,
        expires_in: int,
    ) -> str:
        """Generate a presigned URL for uploading one part.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) in the bucket.
            upload_id: Multipart upload ID from init_multipart_upload.
            part_number: Part number (1-based, max 10000).
            expires_in: URL expiration time in seconds.

        Raises:
            StorageError: If URL generation fails.
        """
        ...

    def complete_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> Mapping[str, Any]:
        """Stitch uploaded parts into the final object.

        Parts are forwarded in the order given; implementations must not
        reorder or deduplicate them.

        Returns:
            The backend's completion record.

        Raises:
            StorageError: If the operation fails.
        """
        ...
