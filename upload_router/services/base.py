from __future__ import annotations


class ServiceError(Exception):
    """Base class for application service level exceptions."""


class MalformedRequestError(ServiceError):
    """Raised when a request body cannot be parsed as a JSON object."""


class UploadValidationError(ServiceError):
    """Raised when required fields are missing or combined incorrectly."""
