"""Pydantic schemas for the upload negotiation payloads.

Field names on the wire are camelCase; Python attributes are snake_case.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# S3 refuses part numbers above this
MAX_PART_NUMBER = 10000

# attribute name -> S3 CompletedPart key
PART_CHECKSUM_KEYS = {
    "checksum_crc32": "ChecksumCRC32",
    "checksum_crc32c": "ChecksumCRC32C",
    "checksum_crc64nvme": "ChecksumCRC64NVME",
    "checksum_sha1": "ChecksumSHA1",
    "checksum_sha256": "ChecksumSHA256",
}


class CompletedPartIn(BaseModel):
    """A part the client uploaded, as reported back for completion.

    Both the camelCase form and the S3 form (``PartNumber``/``ETag``) are
    accepted. Checksums the client computed while uploading the part are
    kept so they reach the completion call.
    """

    model_config = ConfigDict(populate_by_name=True)

    part_number: int = Field(
        ge=1,
        le=MAX_PART_NUMBER,
        validation_alias=AliasChoices("partNumber", "PartNumber", "part_number"),
        serialization_alias="partNumber",
    )
    etag: str = Field(
        min_length=1,
        validation_alias=AliasChoices("eTag", "ETag", "etag"),
        serialization_alias="eTag",
    )
    checksum_crc32: str | None = Field(
        default=None, validation_alias=AliasChoices("ChecksumCRC32", "checksumCRC32")
    )
    checksum_crc32c: str | None = Field(
        default=None, validation_alias=AliasChoices("ChecksumCRC32C", "checksumCRC32C")
    )
    checksum_crc64nvme: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ChecksumCRC64NVME", "checksumCRC64NVME"),
    )
    checksum_sha1: str | None = Field(
        default=None, validation_alias=AliasChoices("ChecksumSHA1", "checksumSHA1")
    )
    checksum_sha256: str | None = Field(
        default=None, validation_alias=AliasChoices("ChecksumSHA256", "checksumSHA256")
    )

    def checksums(self) -> dict[str, str]:
        return {
            s3_key: getattr(self, attr)
            for attr, s3_key in PART_CHECKSUM_KEYS.items()
            if getattr(self, attr)
        }


class UploadRequest(BaseModel):
    """Request body for every negotiation phase."""

    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(alias="fileName", min_length=1)
    content_type: str = Field(alias="contentType", min_length=1)
    file_size: int = Field(alias="fileSize", ge=0)
    upload_id: str | None = Field(default=None, alias="uploadId")
    complete: bool | None = None
    parts: list[CompletedPartIn] | None = None


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class SingleUploadPlan(_WireModel):
    upload_type: Literal["single"] = Field(default="single", alias="uploadType")
    file_name: str = Field(alias="fileName")
    content_type: str = Field(alias="contentType")
    url: str


class PartUrl(_WireModel):
    part_number: int = Field(alias="partNumber")
    url: str


class MultipartStartPlan(_WireModel):
    upload_type: Literal["multipart"] = Field(default="multipart", alias="uploadType")
    file_name: str = Field(alias="fileName")
    content_type: str = Field(alias="contentType")
    upload_id: str = Field(alias="uploadId")
    total_parts: int = Field(alias="totalParts")
    urls: list[PartUrl]


class MultipartCompleteResult(_WireModel):
    upload_type: Literal["multipart"] = Field(default="multipart", alias="uploadType")
    file_name: str = Field(alias="fileName")
    result: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(_WireModel):
    error: str
