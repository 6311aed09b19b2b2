"""
Image Service Module

Reads images from the clipboard or from a file and re-encodes them as PNG,
the only format handed to the posting pipeline.
"""

import io
import os

from PIL import Image, ImageGrab, UnidentifiedImageError

from utils.exceptions import ImageError
from utils.logger import get_logger

logger = get_logger(__name__)


def encode_png(image: Image.Image) -> bytes:
    """
    Encode a Pillow image as PNG bytes.

    Args:
        image: The decoded image.

    Returns:
        bytes: PNG data.

    Raises:
        ImageError: If encoding fails.
    """
    if image.mode not in ("1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16"):
        image = image.convert("RGBA")
    buffer = io.BytesIO()
    try:
        image.save(buffer, format="PNG")
    except (OSError, ValueError) as e:
        raise ImageError(f"Failed to encode image as PNG: {e}") from e
    return buffer.getvalue()


def read_image_file(path: str) -> bytes:
    """
    Open an image file of any format Pillow can decode and return PNG bytes.

    Args:
        path: File path; ``~`` is expanded.

    Returns:
        bytes: PNG data.

    Raises:
        ImageError: If the path is not a readable image.
    """
    full_path = os.path.expanduser(path.strip())
    if not os.path.isfile(full_path):
        raise ImageError(f"File not found: {full_path}")

    try:
        with Image.open(full_path) as image:
            image.load()
            png_data = encode_png(image)
    except UnidentifiedImageError as e:
        raise ImageError(f"Not a supported image file: {full_path}") from e
    except OSError as e:
        raise ImageError(f"Failed to open image file {full_path}: {e}") from e

    logger.info(f"Loaded image {full_path} ({len(png_data)} bytes as PNG)")
    return png_data


def read_clipboard_image() -> bytes:
    """
    Return the image currently on the clipboard as PNG bytes.

    Raises:
        ImageError: If the clipboard cannot be read or holds no image.
    """
    try:
        content = ImageGrab.grabclipboard()
    except (OSError, NotImplementedError) as e:
        raise ImageError(
            f"Failed to access clipboard ({e}). Try Ctrl+U to upload from file instead"
        ) from e

    if isinstance(content, list):
        # Some platforms hand back a list of copied file paths.
        for candidate in content:
            if isinstance(candidate, str) and os.path.isfile(candidate):
                return read_image_file(candidate)
        content = None

    if not isinstance(content, Image.Image):
        raise ImageError("No image in clipboard. Try Ctrl+U to upload from file instead")

    png_data = encode_png(content)
    logger.info(f"Captured clipboard image ({len(png_data)} bytes as PNG)")
    return png_data


class ImageService:
    """ImageSource implementation backed by Pillow."""

    def from_clipboard(self) -> bytes:
        return read_clipboard_image()

    def from_file(self, path: str) -> bytes:
        return read_image_file(path)
