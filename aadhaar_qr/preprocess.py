"""Image normalization ahead of QR symbol detection."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Optional

from PIL import Image, ImageFilter, ImageOps

from .exceptions import PageUnreadableError
from .types import ImageSource, NormalizedImage

LOGGER = logging.getLogger("aadhaar_qr.preprocess")


def _open_image(source: ImageSource) -> Image.Image:
    if isinstance(source, Image.Image):
        return source
    if isinstance(source, (bytes, bytearray, memoryview)):
        source = io.BytesIO(bytes(source))
    elif isinstance(source, str):
        source = Path(source)

    try:
        image = Image.open(source)
        image.load()
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise PageUnreadableError(f"Unable to read image {_describe(source)}: {exc}") from exc
    return image


def _describe(source: object) -> str:
    if isinstance(source, Path):
        return str(source)
    return f"<{type(source).__name__}>"


def normalize_image(source: ImageSource) -> Optional[NormalizedImage]:
    """Greyscale, contrast-stretch, sharpen and expand *source* to RGBA bytes.

    Returns ``None`` when the raster cannot be decoded.
    """
    try:
        image = _open_image(source)
    except PageUnreadableError as exc:
        LOGGER.error("Error processing image: %s", exc.message)
        return None

    try:
        grey = ImageOps.grayscale(image)
        stretched = ImageOps.autocontrast(grey)
        sharpened = stretched.filter(ImageFilter.SHARPEN)
        rgba = sharpened.convert("RGBA")
    except (OSError, ValueError) as exc:
        LOGGER.error("Error processing image: %s", exc)
        return None

    return NormalizedImage(pixels=rgba.tobytes(), width=rgba.width, height=rgba.height)
