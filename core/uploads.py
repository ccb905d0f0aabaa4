# core/uploads.py
"""
Local disk storage for complaint photos. Files are served back under /uploads.
"""
import re
import time
from pathlib import Path

from fastapi import UploadFile

from config import settings
from core.errors import ValidationError

UPLOAD_DIR = Path(settings.UPLOAD_DIR)
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}
PUBLIC_PREFIX = "/uploads"

_CHUNK = 1024 * 1024


def build_filename(original: str, user_id: int | str) -> str:
    """<millis>-<user id>-<original name with whitespace replaced by dashes>"""
    safe = re.sub(r"\s+", "-", Path(original).name)
    return f"{int(time.time() * 1000)}-{user_id}-{safe}"


def validate_images(files: list[UploadFile]) -> None:
    if len(files) > settings.MAX_FILES_PER_COMPLAINT:
        raise ValidationError(
            f"Too many files. Maximum is {settings.MAX_FILES_PER_COMPLAINT} images."
        )
    for f in files:
        if Path(f.filename or "").suffix.lower() not in ALLOWED_IMAGE_EXTENSIONS:
            raise ValidationError("Only image files are allowed!")


async def save_images(files: list[UploadFile], user_id: int) -> list[str]:
    """
    Stream each upload to disk and return the public paths.

    Raises ValidationError (and removes anything already written) when a
    file is over MAX_FILE_SIZE.
    """
    validate_images(files)
    max_mb = settings.MAX_FILE_SIZE / (1024 * 1024)
    written: list[Path] = []
    try:
        for upload in files:
            target = UPLOAD_DIR / build_filename(upload.filename, user_id)
            size = 0
            with target.open("wb") as out:
                written.append(target)
                while chunk := await upload.read(_CHUNK):
                    size += len(chunk)
                    if size > settings.MAX_FILE_SIZE:
                        raise ValidationError(
                            f"File size too large. Maximum file size is {max_mb:g}MB."
                        )
                    out.write(chunk)
    except ValidationError:
        for path in written:
            path.unlink(missing_ok=True)
        raise
    return [f"{PUBLIC_PREFIX}/{path.name}" for path in written]
