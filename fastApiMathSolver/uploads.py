import base64
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from .errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/png"

MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
}


@dataclass(frozen=True)
class TempImageHandle:
    path: str
    original_filename: str


@dataclass(frozen=True)
class EncodedImage:
    mime_type: str
    data: str  # base64


def resolve_mime_type(filename: Optional[str]) -> str:
    """Map a filename to a mime type the model accepts.

    Unknown or missing extensions fall back to image/png.
    """
    ext = os.path.splitext(filename or "")[1].lower()
    return MIME_TYPES.get(ext, DEFAULT_MIME_TYPE)


def validate_upload(description: Optional[str], image: Optional[UploadFile]) -> str:
    """Check both form fields are present and return the description."""
    if not description:
        raise ValidationError("description required")
    if image is None or not image.filename:
        raise ValidationError("image required")
    return description


def _write_bytes(path: str, contents: bytes) -> None:
    with open(path, "wb") as buffer:
        buffer.write(contents)


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def _remove(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Failed to remove temp upload {path}: {e}")


@asynccontextmanager
async def staged_upload(image: UploadFile, upload_dir: str) -> AsyncIterator[TempImageHandle]:
    """Write the uploaded image to a unique temp file and remove it on exit.

    The file is removed on every way out of the block, including a failed
    write and task cancellation. Removal errors are logged, never raised.
    """
    os.makedirs(upload_dir, exist_ok=True)
    suffix = os.path.splitext(image.filename or "")[1]
    # Arbitrary client extensions can break mkstemp, only known ones are kept
    if suffix.lower() not in MIME_TYPES:
        suffix = ""
    fd, path = tempfile.mkstemp(prefix="upload_", suffix=suffix, dir=upload_dir)
    os.close(fd)

    try:
        contents = await image.read()
        await run_in_threadpool(_write_bytes, path, contents)
        yield TempImageHandle(path=path, original_filename=image.filename or "")
    finally:
        _remove(path)


async def encode_image(handle: TempImageHandle) -> EncodedImage:
    """Read the staged file and base64 encode it. The file is left in place."""
    contents = await run_in_threadpool(_read_bytes, handle.path)
    mime_type = resolve_mime_type(handle.original_filename or os.path.basename(handle.path))
    return EncodedImage(
        mime_type=mime_type,
        data=base64.b64encode(contents).decode("utf-8"),
    )
