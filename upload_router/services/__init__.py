from .base import MalformedRequestError, ServiceError, UploadValidationError
from .upload_service import (
    NegotiationResponse,
    StorageBackendNotConfiguredError,
    UploadNegotiator,
    build_storage_client,
    get_negotiator,
)

__all__ = [
    "ServiceError",
    "MalformedRequestError",
    "UploadValidationError",
    "NegotiationResponse",
    "StorageBackendNotConfiguredError",
    "UploadNegotiator",
    "build_storage_client",
    "get_negotiator",
]
