"""
Image Utilities
Upload validation and conversion between uploaded bytes, OpenCV arrays and PNG data URLs
"""
import base64
import io
from pathlib import Path
from typing import Tuple

import cv2
import numpy as np
from fastapi import UploadFile
from PIL import Image, ImageOps, UnidentifiedImageError

from idscan.config import settings
from idscan.models.card import RawImage


ALLOWED_MIME_TYPES = {
    'image/jpeg': ['.jpg', '.jpeg'],
    'image/png': ['.png'],
    'image/webp': ['.webp'],
    'image/bmp': ['.bmp'],
}
ALLOWED_EXTENSIONS = {ext for exts in ALLOWED_MIME_TYPES.values() for ext in exts}

MAGIC_NUMBERS = {
    '.jpg': [b'\xff\xd8\xff'],
    '.jpeg': [b'\xff\xd8\xff'],
    '.png': [b'\x89PNG'],
    '.webp': [b'RIFF'],
    '.bmp': [b'BM'],
}


class ImageDecodeError(ValueError):
    """Uploaded bytes are not a decodable image"""


async def validate_upload(file: UploadFile) -> Tuple[bool, str]:
    """
    Validate an uploaded card photo
    Returns (is_valid, error_message)
    """
    file.file.seek(0, 2)
    file_size = file.file.tell()
    file.file.seek(0)

    max_size = settings.MAX_FILE_SIZE_MB * 1024 * 1024
    if file_size > max_size:
        return False, f"File size exceeds maximum allowed ({settings.MAX_FILE_SIZE_MB}MB)"

    if file_size == 0:
        return False, "Empty file uploaded"

    content_type = file.content_type
    if content_type not in ALLOWED_MIME_TYPES or content_type not in settings.ALLOWED_FILE_TYPES:
        return False, f"Invalid content type: {content_type}"

    # Camera captures are often posted as blobs without a filename extension
    ext = Path(file.filename or "").suffix.lower()
    if ext and ext not in ALLOWED_EXTENSIONS:
        return False, f"File type not allowed. Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
    if ext and ext not in ALLOWED_MIME_TYPES[content_type]:
        return False, "File extension does not match content type"

    magic_bytes = await read_magic_bytes(file)
    expected_ext = ext or ALLOWED_MIME_TYPES[content_type][0]
    if not verify_magic_bytes(magic_bytes, expected_ext):
        return False, "File content does not match declared type"

    return True, ""


async def read_magic_bytes(file: UploadFile, num_bytes: int = 8) -> bytes:
    """Read magic bytes from file"""
    content = await file.read(num_bytes)
    await file.seek(0)
    return content


def verify_magic_bytes(magic: bytes, extension: str) -> bool:
    """Verify file magic bytes match extension"""
    expected = MAGIC_NUMBERS.get(extension, [])
    return any(magic.startswith(m) for m in expected)


def decode_image(data: bytes) -> RawImage:
    """Decode image bytes to a BGR array, honouring EXIF orientation"""
    if not data:
        raise ImageDecodeError("Empty image data")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img = ImageOps.exif_transpose(img)
            rgb = img.convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        raise ImageDecodeError(f"Could not decode image: {e}") from e

    return cv2.cvtColor(np.asarray(rgb), cv2.COLOR_RGB2BGR)


def encode_png_data_url(image: RawImage) -> str:
    """PNG data URL for returning debug images to the operator UI"""
    ok, buffer = cv2.imencode(".png", image)
    if not ok:
        raise ImageDecodeError("Could not encode image as PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.tobytes()).decode("ascii")


def sanitize_filename(filename: str) -> str:
    """Sanitize filename before it reaches the logs"""
    sanitized = (filename or "").replace('/', '').replace('\\', '').replace('\x00', '')
    sanitized = Path(sanitized).name
    if len(sanitized) > 255:
        ext = Path(sanitized).suffix
        sanitized = sanitized[:255 - len(ext)] + ext
    return sanitized or "upload"
