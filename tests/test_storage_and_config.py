"""Tests for object keys, best-effort blob deletes and settings resolution."""
import asyncio
import io

import pytest
from botocore.exceptions import ClientError
from fastapi import UploadFile

from lms.api.uploads import read_upload
from lms.config import load_settings
from lms.errors import BadRequestError, StorageError
from lms.utils.object_keys import build_object_key, public_url
from lms.utils.storage import ObjectStorage, delete_quietly

from conftest import FakeStorage


class StubClient:
    def __init__(self, head_error=None):
        self.head_error = head_error
        self.deleted = []
        self.put = []

    def head_object(self, Bucket, Key):
        if self.head_error:
            raise ClientError({"Error": {"Code": self.head_error}}, "HeadObject")

    def delete_object(self, Bucket, Key):
        self.deleted.append(Key)

    def put_object(self, Bucket, Key, Body, ContentType):
        self.put.append(Key)


def storage_with(client, monkeypatch):
    monkeypatch.setenv("STORAGE_BUCKET", "lms")
    storage = ObjectStorage(load_settings())
    storage._client = client
    return storage


class TestObjectKeys:
    def test_key_layout(self):
        key = build_object_key("assignment-submissions/7", "My Report (final).pdf")
        folder, name = key.rsplit("/", 1)
        assert folder == "assignment-submissions/7"
        assert name.endswith("-My-Report-_final_.pdf")

    def test_public_base_url_wins(self):
        assert public_url("a/b.pdf", "https://cdn.test/", "https://s3.test", "bucket") == "https://cdn.test/a/b.pdf"

    def test_endpoint_and_bucket(self):
        assert public_url("/a/b.pdf", None, "https://s3.test/", "bucket") == "https://s3.test/bucket/a/b.pdf"

    def test_missing_url_config(self):
        with pytest.raises(StorageError):
            public_url("a/b.pdf")


class TestUpload:
    def test_url_resolved_before_anything_is_stored(self, monkeypatch):
        for name in ("STORAGE_PUBLIC_BASE_URL", "STORAGE_ENDPOINT"):
            monkeypatch.delenv(name, raising=False)
        client = StubClient()
        storage = storage_with(client, monkeypatch)

        with pytest.raises(StorageError):
            storage.upload(b"data", "courses/1/lectures", "intro.mp4", "video/mp4")
        assert client.put == []

    def test_upload_returns_public_url(self, monkeypatch):
        monkeypatch.setenv("STORAGE_PUBLIC_BASE_URL", "https://files.campus.test")
        client = StubClient()
        storage = storage_with(client, monkeypatch)

        stored = storage.upload(b"data", "econtent-files", "week1.pdf", "application/pdf")

        assert client.put == [stored.key]
        assert stored.url == f"https://files.campus.test/{stored.key}"


class TestReadUpload:
    def test_declared_size_over_limit_is_rejected_unread(self):
        file = UploadFile(file=io.BytesIO(b"0" * 64), filename="big.pdf", size=64)
        with pytest.raises(BadRequestError):
            asyncio.run(read_upload(file, max_bytes=32))
        assert file.file.tell() == 0

    def test_within_limit(self):
        file = UploadFile(file=io.BytesIO(b"%PDF"), filename="ok.pdf", size=4)
        upload = asyncio.run(read_upload(file, max_bytes=32))
        assert upload.data == b"%PDF"
        assert upload.content_type == "application/octet-stream"


class TestDelete:
    def test_missing_object_reports_false(self, monkeypatch):
        storage = storage_with(StubClient(head_error="404"), monkeypatch)
        assert storage.delete("gone.pdf") is False

    def test_existing_object_deleted(self, monkeypatch):
        client = StubClient()
        storage = storage_with(client, monkeypatch)
        assert storage.delete("here.pdf") is True
        assert client.deleted == ["here.pdf"]

    def test_other_errors_raise_storage_error(self, monkeypatch):
        storage = storage_with(StubClient(head_error="AccessDenied"), monkeypatch)
        with pytest.raises(StorageError):
            storage.delete("secret.pdf")

    def test_delete_quietly_never_raises(self):
        storage = FakeStorage()
        storage.fail_deletes = True
        delete_quietly(storage, "courses/1/lectures/x.mp4")
        delete_quietly(storage, None)


class TestSettings:
    def test_yaml_values_and_env_override(self, tmp_path, monkeypatch):
        config = tmp_path / "lms.yaml"
        config.write_text(
            "storage:\n  bucket: from-yaml\n  region: eu-west-1\n"
            "lectures:\n  review_days: 3\n"
        )
        monkeypatch.setenv("STORAGE_BUCKET", "from-env")

        settings = load_settings(str(config))

        assert settings.storage_bucket == "from-env"
        assert settings.storage_region == "eu-west-1"
        assert settings.lecture_review_days == 3

    def test_defaults(self, monkeypatch):
        for name in ("LECTURE_REVIEW_DAYS", "SUBMISSION_MAX_BYTES", "CORS_ORIGINS", "LMS_CONFIG_PATH"):
            monkeypatch.delenv(name, raising=False)
        settings = load_settings()
        assert settings.lecture_review_days == 7
        assert settings.submission_max_bytes == 10 * 1024 * 1024
        assert settings.cors_origins == ["*"]
        assert settings.jwt_algorithm == "HS256"

    def test_cors_origins_split(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "https://a.test, https://b.test")
        assert load_settings().cors_origins == ["https://a.test", "https://b.test"]
