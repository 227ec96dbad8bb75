"""Tests for S3 storage client."""

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from upload_router.common.config import Settings
from upload_router.infra.storage.client import CompletedPart, MultipartUpload, StorageError
from upload_router.infra.storage.s3_client import S3StorageClient


def _client_error(code: str, message: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class TestS3StorageClient:
    """Test S3StorageClient implementation."""

    @pytest.fixture
    def mock_s3(self):
        """Mock boto3 S3 client."""
        mock_client = MagicMock()
        with patch.object(S3StorageClient, "_build_client", return_value=mock_client):
            yield mock_client

    @pytest.fixture
    def settings(self):
        return Settings(
            S3_BUCKET_NAME="test-bucket",
            S3_ENDPOINT_URL="http://localhost:9000",
            AWS_REGION="us-east-1",
            S3_ACCESS_KEY_ID="test-key",
            S3_SECRET_ACCESS_KEY="test-secret",
            S3_ADDRESSING_STYLE="path",
        )

    @pytest.fixture
    def client(self, mock_s3, settings):
        """Create S3StorageClient with mocked boto3."""
        return S3StorageClient(settings=settings)

    def test_build_client_uses_settings(self, settings):
        with patch("upload_router.infra.storage.s3_client.boto3.client") as factory:
            S3StorageClient(settings=settings)

        args, kwargs = factory.call_args
        assert args == ("s3",)
        assert kwargs["endpoint_url"] == "http://localhost:9000"
        assert kwargs["region_name"] == "us-east-1"
        assert kwargs["aws_access_key_id"] == "test-key"
        assert kwargs["aws_secret_access_key"] == "test-secret"
        assert kwargs["config"].signature_version == "s3v4"
        assert kwargs["config"].s3 == {"addressing_style": "path"}

    def test_build_client_defers_to_default_credentials(self):
        with patch("upload_router.infra.storage.s3_client.boto3.client") as factory:
            S3StorageClient(settings=Settings(S3_BUCKET_NAME="b", AWS_REGION="eu-west-1"))

        kwargs = factory.call_args[1]
        assert kwargs["aws_access_key_id"] is None
        assert kwargs["aws_secret_access_key"] is None
        assert kwargs["endpoint_url"] is None
        assert kwargs["region_name"] == "eu-west-1"

    def test_presign_put_object(self, client, mock_s3):
        mock_s3.generate_presigned_url.return_value = "https://put-url"

        url = client.presign_put_object(
            bucket="test-bucket",
            object_key="a.bin",
            content_type="application/octet-stream",
            expires_in=900,
        )

        assert url == "https://put-url"
        mock_s3.generate_presigned_url.assert_called_once_with(
            "put_object",
            Params={
                "Bucket": "test-bucket",
                "Key": "a.bin",
                "ContentType": "application/octet-stream",
            },
            ExpiresIn=900,
        )

    def test_presign_put_object_exception(self, client, mock_s3):
        mock_s3.generate_presigned_url.side_effect = Exception("signing failed")

        with pytest.raises(StorageError, match="signing failed"):
            client.presign_put_object(
                bucket="test-bucket",
                object_key="a.bin",
                content_type="text/plain",
                expires_in=900,
            )

    def test_presign_put_object_empty_url(self, client, mock_s3):
        mock_s3.generate_presigned_url.return_value = ""

        with pytest.raises(StorageError, match="Generated presigned URL is empty"):
            client.presign_put_object(
                bucket="test-bucket",
                object_key="a.bin",
                content_type="text/plain",
                expires_in=900,
            )

    def test_init_multipart_upload(self, client, mock_s3):
        mock_s3.create_multipart_upload.return_value = {
            "UploadId": "test-upload-id",
            "Bucket": "test-bucket",
            "Key": "test/key",
        }

        result = client.init_multipart_upload(
            bucket="test-bucket",
            object_key="test/key",
            content_type="application/pdf",
        )

        assert isinstance(result, MultipartUpload)
        assert result.upload_id == "test-upload-id"
        assert result.bucket == "test-bucket"
        assert result.object_key == "test/key"
        mock_s3.create_multipart_upload.assert_called_once_with(
            Bucket="test-bucket",
            Key="test/key",
            ContentType="application/pdf",
        )

    def test_init_multipart_upload_missing_upload_id(self, client, mock_s3):
        mock_s3.create_multipart_upload.return_value = {}

        with pytest.raises(StorageError, match="S3 response missing UploadId"):
            client.init_multipart_upload(bucket="test-bucket", object_key="test/key")

    def test_init_multipart_upload_client_error_message(self, client, mock_s3):
        mock_s3.create_multipart_upload.side_effect = _client_error(
            "AccessDenied", "Access Denied", "CreateMultipartUpload"
        )

        with pytest.raises(StorageError) as excinfo:
            client.init_multipart_upload(bucket="test-bucket", object_key="test/key")

        assert str(excinfo.value) == "Access Denied"

    def test_presign_upload_part(self, client, mock_s3):
        mock_s3.generate_presigned_url.return_value = "https://presigned-url"

        url = client.presign_upload_part(
            bucket="test-bucket",
            object_key="test/key",
            upload_id="test-upload-id",
            part_number=2,
            expires_in=3600,
        )

        assert url == "https://presigned-url"
        mock_s3.generate_presigned_url.assert_called_once_with(
            "upload_part",
            Params={
                "Bucket": "test-bucket",
                "Key": "test/key",
                "UploadId": "test-upload-id",
                "PartNumber": 2,
            },
            ExpiresIn=3600,
        )

    def test_presign_upload_part_empty_url(self, client, mock_s3):
        mock_s3.generate_presigned_url.return_value = ""

        with pytest.raises(StorageError, match="Generated presigned URL is empty"):
            client.presign_upload_part(
                bucket="test-bucket",
                object_key="test/key",
                upload_id="test-upload-id",
                part_number=1,
                expires_in=3600,
            )

    def test_complete_multipart_upload_keeps_part_order(self, client, mock_s3):
        mock_s3.complete_multipart_upload.return_value = {
            "Location": "https://test-bucket.s3.amazonaws.com/test/key",
            "Bucket": "test-bucket",
            "Key": "test/key",
            "ETag": '"final-etag"',
            "ResponseMetadata": {"HTTPStatusCode": 200},
        }
        parts = [
            CompletedPart(part_number=2, etag="etag2"),
            CompletedPart(part_number=1, etag="etag1"),
        ]

        record = client.complete_multipart_upload(
            bucket="test-bucket",
            object_key="test/key",
            upload_id="test-upload-id",
            parts=parts,
        )

        call_args = mock_s3.complete_multipart_upload.call_args
        assert call_args[1]["Bucket"] == "test-bucket"
        assert call_args[1]["Key"] == "test/key"
        assert call_args[1]["UploadId"] == "test-upload-id"
        assert call_args[1]["MultipartUpload"]["Parts"] == [
            {"ETag": "etag2", "PartNumber": 2},
            {"ETag": "etag1", "PartNumber": 1},
        ]
        assert record == {
            "Location": "https://test-bucket.s3.amazonaws.com/test/key",
            "Bucket": "test-bucket",
            "Key": "test/key",
            "ETag": '"final-etag"',
        }

    def test_complete_multipart_upload_forwards_part_checksums(self, client, mock_s3):
        mock_s3.complete_multipart_upload.return_value = {"ETag": '"final"'}
        parts = [
            CompletedPart(
                part_number=1,
                etag="etag1",
                checksums={"ChecksumCRC32": "abc==", "ChecksumSHA256": "def="},
            ),
            CompletedPart(part_number=2, etag="etag2"),
        ]

        client.complete_multipart_upload(
            bucket="test-bucket",
            object_key="test/key",
            upload_id="test-upload-id",
            parts=parts,
        )

        sent = mock_s3.complete_multipart_upload.call_args[1]["MultipartUpload"]
        assert sent["Parts"] == [
            {
                "ETag": "etag1",
                "PartNumber": 1,
                "ChecksumCRC32": "abc==",
                "ChecksumSHA256": "def=",
            },
            {"ETag": "etag2", "PartNumber": 2},
        ]

    def test_complete_multipart_upload_client_error_message(self, client, mock_s3):
        mock_s3.complete_multipart_upload.side_effect = _client_error(
            "NoSuchUpload",
            "The specified upload does not exist.",
            "CompleteMultipartUpload",
        )

        with pytest.raises(StorageError) as excinfo:
            client.complete_multipart_upload(
                bucket="test-bucket",
                object_key="test/key",
                upload_id="missing",
                parts=[CompletedPart(part_number=1, etag="etag1")],
            )

        assert str(excinfo.value) == "The specified upload does not exist."
