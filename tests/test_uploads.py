import os

import pytest

from config import settings
from errors import AuthorizationDenied, UploadError
from file_utils import (
    IMAGES, VIDEOS, delete_object, ensure_owned_object, object_url, parse_object_url, save_object,
)


def test_objects_live_under_the_owner_prefix():
    key = save_object(IMAGES, "owner-1", "cat.JPG", b"jpegbytes", "image/jpeg")
    owner, filename = key.split("/")
    assert owner == "owner-1"
    assert filename.endswith(".jpg")
    assert parse_object_url(object_url(IMAGES, key)) == (IMAGES, key)
    with open(os.path.join(settings.upload_folder, "images", key), "rb") as f:
        assert f.read() == b"jpegbytes"


@pytest.mark.parametrize("bucket,filename,content_type", [
    (IMAGES, "clip.mp4", "video/mp4"),
    (VIDEOS, "photo.png", "image/png"),
    (IMAGES, "script.sh", "image/png"),
])
def test_mime_and_extension_are_checked(bucket, filename, content_type):
    with pytest.raises(UploadError):
        save_object(bucket, "owner-1", filename, b"bytes", content_type)


def test_size_ceiling(monkeypatch):
    monkeypatch.setattr(settings, "image_max_bytes", 10)
    with pytest.raises(UploadError):
        save_object(IMAGES, "owner-1", "big.png", b"x" * 11, "image/png")
    with pytest.raises(UploadError):
        save_object(IMAGES, "owner-1", "empty.png", b"", "image/png")


def test_only_owner_deletes():
    key = save_object(IMAGES, "owner-1", "cat.png", b"png", "image/png")
    with pytest.raises(AuthorizationDenied):
        delete_object(IMAGES, "owner-2", key)
    assert delete_object(IMAGES, "owner-1", key)
    assert not delete_object(IMAGES, "owner-1", key)


def test_keys_cannot_escape_the_bucket():
    with pytest.raises(UploadError):
        save_object(IMAGES, "../../etc", "cat.png", b"png", "image/png")


def test_referenced_objects_must_exist_and_be_owned():
    key = save_object(IMAGES, "owner-1", "cat.png", b"png", "image/png")
    url = object_url(IMAGES, key)
    ensure_owned_object("owner-1", url)
    ensure_owned_object("owner-2", "https://images.example.com/elsewhere.png")
    with pytest.raises(AuthorizationDenied):
        ensure_owned_object("owner-2", url)
    with pytest.raises(UploadError):
        ensure_owned_object("owner-1", object_url(IMAGES, "owner-1/missing.png"))


def test_upload_endpoint(client, register):
    user, headers = register("uploader")
    response = client.post("/uploads/images", files={"file": ("a.webp", b"webp", "image/webp")}, headers=headers)
    assert response.status_code == 201
    url = response.json()["url"]
    assert url.startswith(f"/cdn/images/{user}/")
    assert client.get(url).content == b"webp"

    wrong = client.post("/uploads/videos", files={"file": ("a.webp", b"webp", "image/webp")}, headers=headers)
    assert wrong.status_code == 400
    assert client.post("/uploads/images", files={"file": ("a.png", b"png", "image/png")}).status_code == 401

    _, other = register("other")
    path = url[len("/cdn/images/"):]
    assert client.delete(f"/uploads/images/{path}", headers=other).status_code == 403
    assert client.delete(f"/uploads/images/{path}", headers=headers).status_code == 204
    assert client.get(url).status_code == 404
