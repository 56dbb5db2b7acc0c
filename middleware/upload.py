from fastapi import UploadFile, status

from config import MAX_UPLOAD_SIZE
from utils.app_error import AppError

async def read_image_upload(file: UploadFile) -> bytes:
    """
    Validate an uploaded image and return its bytes.
    Only image/* content types up to MAX_UPLOAD_SIZE are accepted.
    """
    if file is None or not file.filename:
        raise AppError("Please upload an image file.", status.HTTP_400_BAD_REQUEST)

    if not (file.content_type or "").startswith("image/"):
        raise AppError("Only image files are allowed.", status.HTTP_400_BAD_REQUEST)

    data = await file.read(MAX_UPLOAD_SIZE + 1)
    if len(data) > MAX_UPLOAD_SIZE:
        raise AppError(
            f"File is too large. Maximum size is {MAX_UPLOAD_SIZE // (1024 * 1024)}MB.",
            status.HTTP_400_BAD_REQUEST
        )
    if not data:
        raise AppError("Uploaded file is empty.", status.HTTP_400_BAD_REQUEST)

    return data
