from __future__ import annotations

import base64
from typing import Any

import httpx

from ..observability.logging import get_logger
from ..settings import settings

log = get_logger("image_host")


class ImageUploadError(RuntimeError):
    pass


def _display_url(payload: Any) -> str | None:
    if not isinstance(payload, dict) or not payload.get("success"):
        return None
    data = payload.get("data")
    if not isinstance(data, dict):
        return None
    url = str(data.get("display_url") or "").strip()
    return url or None


def upload_image(content: bytes, *, filename: str | None = None) -> str:
    """
    Forward an image to ImgBB and return its public display URL.

    Single attempt; any failure raises ImageUploadError.
    """
    if not content:
        raise ImageUploadError("empty image")
    if not settings.imgbb_api_key:
        raise ImageUploadError("IMGBB_API_KEY is not set")

    form = {"image": base64.b64encode(content).decode("ascii")}
    if filename:
        form["name"] = filename.rsplit(".", 1)[0][:100]

    try:
        with httpx.Client(timeout=float(settings.image_upload_timeout_seconds or 30.0)) as client:
            resp = client.post(
                settings.imgbb_upload_url,
                params={"key": settings.imgbb_api_key},
                data=form,
            )
            resp.raise_for_status()
            payload = resp.json()
    except (httpx.HTTPError, ValueError) as e:
        log.warning("image_upload_failed", error=str(e)[:200])
        raise ImageUploadError("image host request failed") from e

    url = _display_url(payload)
    if not url:
        err = payload.get("error") if isinstance(payload, dict) else None
        msg = err.get("message") if isinstance(err, dict) else None
        log.warning("image_upload_rejected", error=str(msg or "unknown")[:200])
        raise ImageUploadError(str(msg or "ImgBB upload failed"))
    return url
