from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from ..auth.dependencies import current_identity
from ..auth.firebase import VerifiedUser
from ..envelope import ok
from ..services.image_host import ImageUploadError, upload_image

router = APIRouter(tags=["uploads"])

# ImgBB rejects anything above 32 MB.
MAX_IMAGE_BYTES = 32 * 1024 * 1024


@router.post("/upload-image")
async def upload(
    image: UploadFile | None = File(default=None),
    _identity: VerifiedUser = Depends(current_identity),
):
    if image is None:
        raise HTTPException(status_code=400, detail="No image file provided.")

    content = await image.read()
    if not content:
        raise HTTPException(status_code=400, detail="No image file provided.")
    if len(content) > MAX_IMAGE_BYTES:
        raise HTTPException(status_code=400, detail="Image is too large.")

    try:
        url = await run_in_threadpool(upload_image, content, filename=image.filename)
    except ImageUploadError:
        raise HTTPException(status_code=500, detail="Image upload failed on the server.")

    return ok({"display_url": url})
