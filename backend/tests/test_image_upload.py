from __future__ import annotations

import httpx
import pytest


class FakeHttpClient:
    """Replaces httpx.Client inside the image host service."""

    def __init__(self, response: httpx.Response | Exception):
        self.response = response
        self.calls: list[dict] = []

    def __call__(self, *args, **kwargs):
        return self

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _response(status_code: int, payload: dict) -> httpx.Response:
    return httpx.Response(status_code, json=payload, request=httpx.Request("POST", "https://api.imgbb.com/1/upload"))


@pytest.fixture
def imgbb_key(monkeypatch):
    from opportunest.services import image_host

    monkeypatch.setattr(image_host.settings, "imgbb_api_key", "test-key")


def test_upload_returns_display_url(monkeypatch, imgbb_key):
    from opportunest.services import image_host

    fake = FakeHttpClient(_response(200, {"success": True, "data": {"display_url": "https://i.ibb.co/x/photo.png"}}))
    monkeypatch.setattr(image_host.httpx, "Client", fake)

    url = image_host.upload_image(b"\x89PNG...", filename="photo.png")

    assert url == "https://i.ibb.co/x/photo.png"
    (call,) = fake.calls
    assert call["params"] == {"key": "test-key"}
    assert call["data"]["name"] == "photo"
    assert call["data"]["image"]


def test_upload_rejected_by_host_raises(monkeypatch, imgbb_key):
    from opportunest.services import image_host

    fake = FakeHttpClient(_response(200, {"success": False, "error": {"message": "Invalid image"}}))
    monkeypatch.setattr(image_host.httpx, "Client", fake)

    with pytest.raises(image_host.ImageUploadError, match="Invalid image"):
        image_host.upload_image(b"data")


def test_upload_http_error_raises(monkeypatch, imgbb_key):
    from opportunest.services import image_host

    fake = FakeHttpClient(_response(502, {"success": False}))
    monkeypatch.setattr(image_host.httpx, "Client", fake)

    with pytest.raises(image_host.ImageUploadError):
        image_host.upload_image(b"data")


def test_upload_without_api_key_raises(monkeypatch):
    from opportunest.services import image_host

    monkeypatch.setattr(image_host.settings, "imgbb_api_key", None)
    with pytest.raises(image_host.ImageUploadError):
        image_host.upload_image(b"data")


def test_upload_route_returns_display_url(client, token_auth, monkeypatch):
    from opportunest.routers import uploads

    seen = {}

    def _fake_upload(content, *, filename=None):
        seen["content"] = content
        seen["filename"] = filename
        return "https://i.ibb.co/y/avatar.jpg"

    monkeypatch.setattr(uploads, "upload_image", _fake_upload)

    r = client.post(
        "/upload-image",
        files={"image": ("avatar.jpg", b"jpeg-bytes", "image/jpeg")},
        headers=token_auth("alice@example.com"),
    )
    assert r.status_code == 200
    assert r.json() == {"success": True, "data": {"display_url": "https://i.ibb.co/y/avatar.jpg"}}
    assert seen == {"content": b"jpeg-bytes", "filename": "avatar.jpg"}


def test_upload_route_without_file_is_400(client, token_auth):
    r = client.post("/upload-image", headers=token_auth("alice@example.com"))
    assert r.status_code == 400
    assert r.json()["message"] == "No image file provided."


def test_upload_route_host_failure_is_500(client, token_auth, monkeypatch):
    from opportunest.routers import uploads
    from opportunest.services.image_host import ImageUploadError

    def _fail(content, *, filename=None):
        raise ImageUploadError("boom")

    monkeypatch.setattr(uploads, "upload_image", _fail)

    r = client.post(
        "/upload-image",
        files={"image": ("avatar.jpg", b"jpeg-bytes", "image/jpeg")},
        headers=token_auth("alice@example.com"),
    )
    assert r.status_code == 500
    assert r.json()["message"] == "Image upload failed on the server."


def test_upload_route_requires_token(client):
    r = client.post("/upload-image", files={"image": ("a.png", b"x", "image/png")})
    assert r.status_code == 401
