"""QR symbol detection on normalized pixel buffers."""

from __future__ import annotations

import logging
from typing import Optional, Union

from .exceptions import BackendUnavailableError

try:  # pragma: no cover - depends on the zbar shared library
    from pyzbar import pyzbar
    from pyzbar.pyzbar import ZBarSymbol
except ImportError as _import_error:  # pragma: no cover - depends on the zbar shared library
    pyzbar = None  # type: ignore[assignment]
    ZBarSymbol = None  # type: ignore[assignment]
    _PYZBAR_ERROR: Optional[ImportError] = _import_error
else:
    _PYZBAR_ERROR = None

LOGGER = logging.getLogger("aadhaar_qr.decoder")

Payload = Union[str, bytes]


def decoder_available() -> bool:
    return pyzbar is not None


def decode_qr(pixels: bytes, width: int, height: int) -> Optional[Payload]:
    """Return the payload of the first QR symbol in an RGBA buffer.

    The payload is returned as text when it is valid UTF-8 and as raw
    bytes otherwise. ``None`` means no symbol was found.
    """
    if pyzbar is None:
        raise BackendUnavailableError(f"pyzbar/zbar is not available: {_PYZBAR_ERROR}")

    if width <= 0 or height <= 0 or len(pixels) != width * height * 4:
        raise ValueError(
            f"Expected {width}x{height} RGBA buffer ({width * height * 4} bytes), "
            f"got {len(pixels)} bytes"
        )

    # zbar scans 8-bit luminance; the buffer is greyscale so any colour channel will do.
    luminance = bytes(pixels[0::4])
    symbols = pyzbar.decode((luminance, width, height), symbols=[ZBarSymbol.QRCODE])
    if not symbols:
        return None

    data = symbols[0].data
    LOGGER.info("QR Data found, length: %d", len(data))
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        LOGGER.warning("QR payload is not valid UTF-8; returning raw bytes")
        return data
