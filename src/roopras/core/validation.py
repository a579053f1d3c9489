"""Validation utilities for caller-supplied input images.

Every check here runs before any request is built, so a rejected input never
reaches the generation endpoint.
"""

import base64
import binascii
import io
import logging
import re

from PIL import Image, UnidentifiedImageError

from .errors import InvalidInputError, MissingInputError
from .models import InputImage

logger = logging.getLogger(__name__)

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^;,]*)*?);base64,(?P<data>.*)$", re.S)


def is_image_mime_type(mime_type: str | None) -> bool:
    """Return True if the MIME type declares an image (``image/*``)."""
    if not mime_type:
        return False
    major, _, minor = mime_type.strip().lower().partition("/")
    return major == "image" and bool(minor)


def validate_input_image(image: InputImage | None, max_bytes: int | None = None) -> InputImage:
    """Check that an input image can be sent for a style transform.

    This function ensures:
    1. An image is actually present
    2. The declared MIME type is an image type
    3. The payload is non-empty and within ``max_bytes``
    4. Pillow can identify and verify the bytes as an image

    Args:
        image: Caller-supplied image, possibly None
        max_bytes: Optional upper bound on the payload size

    Returns:
        The same image, for chaining

    Raises:
        MissingInputError: If no image was supplied
        InvalidInputError: If any other check fails
    """
    if image is None:
        raise MissingInputError("Style transform requires an input image.")

    if not is_image_mime_type(image.mime_type):
        raise InvalidInputError(f"Unsupported MIME type '{image.mime_type}': expected an image/* type.")

    if not image.data:
        raise InvalidInputError("Input image is empty.")

    if max_bytes is not None and len(image.data) > max_bytes:
        raise InvalidInputError(
            f"Input image is too large ({len(image.data)} bytes, limit {max_bytes} bytes)."
        )

    try:
        with Image.open(io.BytesIO(image.data)) as img:
            detected = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise InvalidInputError(f"Input image could not be decoded: {e}") from e

    declared = image.mime_type.split("/", 1)[1].lower()
    if detected and detected.lower() not in declared and declared not in ("jpg", "pjpeg"):
        logger.warning(f"Declared MIME type {image.mime_type} but data looks like {detected}")

    return image


def decode_data_url(data_url: str) -> InputImage:
    """Decode a base64 ``data:`` URL, as produced by a browser file picker.

    Args:
        data_url: String of the form ``data:image/png;base64,....``

    Returns:
        InputImage with the decoded bytes and the declared MIME type

    Raises:
        InvalidInputError: If the string is not a base64 data URL
    """
    if not data_url or not data_url.strip():
        raise MissingInputError("Style transform requires an input image.")

    match = _DATA_URL_RE.match(data_url.strip())
    if not match:
        raise InvalidInputError("Input is not a base64 data URL.")

    mime_type = match.group("mime") or ""
    data = decode_base64(match.group("data"))
    return InputImage(data=data, mime_type=mime_type)


def decode_base64(payload: str) -> bytes:
    """Decode a base64 string strictly, tolerating surrounding whitespace.

    Raises:
        InvalidInputError: If the payload is not valid base64
    """
    try:
        return base64.b64decode("".join(payload.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInputError(f"Input image is not valid base64: {e}") from e
