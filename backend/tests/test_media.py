"""Tests for the Cloudinary media store and multipart image collection."""

import asyncio
import io
from unittest.mock import patch

import pytest
from starlette.datastructures import FormData, Headers, UploadFile

from app.core.app_exceptions import InvalidUpload, MediaUploadError
from app.core.config import settings
from app.services.media import CloudinaryMediaStore, collect_image_uploads


@pytest.fixture
def cloudinary_settings(monkeypatch):
    monkeypatch.setattr(settings, "CLOUDINARY_CLOUD_NAME", "demo")
    monkeypatch.setattr(settings, "CLOUDINARY_API_KEY", "key")
    monkeypatch.setattr(settings, "CLOUDINARY_API_SECRET", "secret")


def _upload(data: bytes, filename: str = "a.png", content_type: str = "image/png") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


class TestCloudinaryMediaStore:
    def test_unconfigured_store_refuses_uploads(self, monkeypatch):
        monkeypatch.setattr(settings, "CLOUDINARY_CLOUD_NAME", None)
        store = CloudinaryMediaStore()
        with pytest.raises(MediaUploadError):
            store.upload(b"img", "questions/title")

    def test_upload_returns_secure_url_under_root_folder(self, cloudinary_settings):
        store = CloudinaryMediaStore(root_folder="bank")
        with patch("app.services.media.cloudinary.uploader.upload") as upload:
            upload.return_value = {"secure_url": "https://res.cloudinary.com/x.png", "public_id": "x"}
            url = store.upload(b"img", "questions/options")

        assert url == "https://res.cloudinary.com/x.png"
        assert upload.call_args.kwargs["folder"] == "bank/questions/options"
        assert upload.call_args.kwargs["resource_type"] == "image"

    def test_sdk_error_becomes_upstream_failure(self, cloudinary_settings):
        store = CloudinaryMediaStore()
        with patch("app.services.media.cloudinary.uploader.upload", side_effect=RuntimeError("timeout")):
            with pytest.raises(MediaUploadError) as exc:
                store.upload(b"img", "questions/title")
        assert exc.value.status_code == 500
        assert exc.value.code == "UPSTREAM_FAILURE"


class TestCollectImageUploads:
    def test_collects_known_image_fields_only(self):
        form = FormData(
            [
                ("titleText", "Q"),
                ("titleImage", _upload(b"t")),
                ("optionImage3", _upload(b"o", "o.jpg", "image/jpeg")),
                ("avatar", _upload(b"x")),
            ]
        )

        uploads = asyncio.run(collect_image_uploads(form))

        assert set(uploads) == {"titleImage", "optionImage3"}
        assert uploads["optionImage3"].data == b"o"
        assert uploads["optionImage3"].content_type == "image/jpeg"

    def test_empty_file_part_is_ignored(self):
        form = FormData([("titleImage", _upload(b"", filename=""))])
        assert asyncio.run(collect_image_uploads(form)) == {}

    def test_rejects_non_images(self):
        form = FormData([("titleImage", _upload(b"%PDF", "a.pdf", "application/pdf"))])
        with pytest.raises(InvalidUpload):
            asyncio.run(collect_image_uploads(form))

    def test_rejects_oversized_images(self):
        form = FormData([("explanationImage", _upload(b"x" * 11))])
        with pytest.raises(InvalidUpload):
            asyncio.run(collect_image_uploads(form, max_bytes=10))
