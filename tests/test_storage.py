"""Tests for the S3 storage gateway against a mocked boto3 client."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, ReadTimeoutError

from labhub.config import Settings
from labhub.core.exceptions import (
    DependencyTimeoutError,
    StorageConfigurationError,
    StorageError,
)
from labhub.domain.storage import UploadedFile
from labhub.infrastructure.storage import S3StorageGateway, sanitize_filename

BUCKET = "labs-bucket"
REGION = "eu-west-1"


@pytest.fixture
def s3_client():
    client = MagicMock()
    client.generate_presigned_url.return_value = "https://signed.example/key"
    return client


@pytest.fixture
def gateway(s3_client):
    return S3StorageGateway(s3_client, BUCKET, REGION, max_upload_bytes=1024)


def client_error(operation: str) -> ClientError:
    return ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, operation)


class TestSanitizeFilename:
    def test_strips_unsafe_characters(self):
        assert sanitize_filename("my photo (1).png") == "myphoto1.png"

    def test_keeps_dots_and_dashes(self):
        assert sanitize_filename("lab-v2.final.jpg") == "lab-v2.final.jpg"

    def test_falls_back_when_nothing_left(self):
        assert sanitize_filename("???") == "file"


class TestUpload:
    def test_returns_bucket_url_with_prefixed_key(self, gateway, s3_client):
        url = gateway.upload(UploadedFile("shot 1.png", "image/png", b"data"), "before")

        kwargs = s3_client.put_object.call_args.kwargs
        assert kwargs["Bucket"] == BUCKET
        assert kwargs["ContentType"] == "image/png"
        assert kwargs["Body"] == b"data"
        key = kwargs["Key"]
        prefix, millis, name = key.split("-", 2)
        assert prefix == "before"
        assert millis.isdigit()
        assert name == "shot1.png"
        assert url == f"https://{BUCKET}.s3.amazonaws.com/{key}"

    def test_oversize_rejected_without_calling_s3(self, gateway, s3_client):
        with pytest.raises(StorageError) as exc_info:
            gateway.upload(UploadedFile("big.png", "image/png", b"x" * 2048), "before")

        assert exc_info.value.status_code == 413
        s3_client.put_object.assert_not_called()

    def test_client_error_becomes_storage_error(self, gateway, s3_client):
        s3_client.put_object.side_effect = client_error("PutObject")

        with pytest.raises(StorageError) as exc_info:
            gateway.upload(UploadedFile("a.png", "image/png", b"x"), "after")

        assert exc_info.value.status_code == 502

    def test_timeout_becomes_dependency_timeout(self, gateway, s3_client):
        s3_client.put_object.side_effect = ReadTimeoutError(endpoint_url="https://s3")

        with pytest.raises(DependencyTimeoutError) as exc_info:
            gateway.upload(UploadedFile("a.png", "image/png", b"x"), "after")

        assert exc_info.value.status_code == 504


class TestDelete:
    @pytest.mark.parametrize(
        "url",
        [
            f"https://{BUCKET}.s3.amazonaws.com/before-1-a.png",
            f"https://{BUCKET}.s3.{REGION}.amazonaws.com/before-1-a.png",
            "before-1-a.png",
        ],
    )
    def test_strips_known_prefixes(self, gateway, s3_client, url):
        gateway.delete(url)

        s3_client.delete_object.assert_called_once_with(Bucket=BUCKET, Key="before-1-a.png")

    @pytest.mark.parametrize("url", [None, ""])
    def test_empty_reference_is_noop(self, gateway, s3_client, url):
        gateway.delete(url)

        s3_client.delete_object.assert_not_called()

    def test_failure_raises_storage_error(self, gateway, s3_client):
        s3_client.delete_object.side_effect = client_error("DeleteObject")

        with pytest.raises(StorageError):
            gateway.delete("before-1-a.png")


class TestSignedReadUrl:
    def test_signs_get_object(self, gateway, s3_client):
        assert gateway.signed_read_url("before-1-a.png", 600) == "https://signed.example/key"

        s3_client.generate_presigned_url.assert_called_once_with(
            "get_object",
            Params={"Bucket": BUCKET, "Key": "before-1-a.png"},
            ExpiresIn=600,
        )

    def test_empty_key_returns_none(self, gateway, s3_client):
        assert gateway.signed_read_url(None) is None
        s3_client.generate_presigned_url.assert_not_called()


class TestFromSettings:
    def test_missing_settings_listed(self):
        settings = Settings(
            _env_file=None,
            AWS_REGION="eu-west-1",
            AWS_ACCESS_KEY_ID="",
            AWS_SECRET_ACCESS_KEY="",
            AWS_S3_BUCKET_NAME="bucket",
        )

        with pytest.raises(StorageConfigurationError) as exc_info:
            S3StorageGateway.from_settings(settings)

        assert exc_info.value.details["missing"] == ["AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY"]
        assert exc_info.value.status_code == 500
