"""
Validation and naming for uploaded pupo images.
"""

from __future__ import annotations

import io
import random
import string
import time
from typing import Optional

from PIL import Image, UnidentifiedImageError

from shared.constants import DEFAULT_IMAGE_EXTENSION, UPLOAD_KEY_PREFIX


class InvalidImageError(ValueError):
    pass


def validate_image(
    data: bytes, content_type: Optional[str], max_bytes: int
) -> None:
    """
    Raise InvalidImageError unless `data` is a decodable image within the
    size limit.
    """
    if not content_type or not content_type.startswith("image/"):
        raise InvalidImageError("File must be an image")
    if not data:
        raise InvalidImageError("Uploaded file is empty")
    if len(data) > max_bytes:
        raise InvalidImageError(
            f"File size must be less than {_describe_limit(max_bytes)}"
        )
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise InvalidImageError("File is not a valid image") from e


def _describe_limit(max_bytes: int) -> str:
    megabyte = 1024 * 1024
    if max_bytes >= megabyte and max_bytes % megabyte == 0:
        return f"{max_bytes // megabyte}MB"
    return f"{max_bytes} bytes"


def _random_suffix(length: int = 7) -> str:
    alphabet = string.ascii_lowercase + string.digits
    return "".join(random.choice(alphabet) for _ in range(length))


def build_object_key(filename: Optional[str]) -> str:
    """Return `pupi/<epoch ms>-<random>.<ext>` for an uploaded file."""
    parts = (filename or "").rsplit(".", 1)
    extension = parts[1].lower() if len(parts) > 1 and parts[1] else ""
    if not extension.isalnum():
        extension = DEFAULT_IMAGE_EXTENSION
    timestamp = int(time.time() * 1000)
    return f"{UPLOAD_KEY_PREFIX}/{timestamp}-{_random_suffix()}.{extension}"
