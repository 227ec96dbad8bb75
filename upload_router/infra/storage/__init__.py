"""Object storage abstraction layer.

Protocol-based access to S3 and S3-compatible services (MinIO and friends)
limited to presigning and multipart session calls.
"""

from .client import (
    CompletedPart,
    MultipartUpload,
    StorageClient,
    StorageError,
)

__all__ = [
    "CompletedPart",
    "MultipartUpload",
    "StorageClient",
    "StorageError",
]
