"""
Aadhaar QR Extractor - read identity details from Aadhaar e-document PDFs.

The library renders a password protected Aadhaar PDF with the first
available renderer strategy, decodes the QR symbol printed on it and parses
the payload into an :class:`IdentityRecord`.

Quick Start:
    >>> from aadhaar_qr import AadhaarQRExtractor
    >>> extractor = AadhaarQRExtractor()
    >>> details = extractor.extract('eaadhaar.pdf', 'ABCD1990')
    >>> details.to_dict(include_raw=False)

Renderer strategies, in priority order:
    - pymupdf: PyMuPDF
    - pdf2image: poppler via pdf2image
    - command: Ghostscript, falling back to ImageMagick
    - decrypt: pdftk/qpdf/pypdf decryption, then pdf2image

Exceptions:
    - AadhaarQRError: Base exception
    - NotFoundError: Input PDF does not exist
    - AllStrategiesFailedError: No strategy found a QR payload
    - ParseError: QR payload is not text

For CLI usage, use the 'aadhaar-qr' command after installation.
"""

# Core classes
from aadhaar_qr.extractor import AadhaarQRExtractor, extract_aadhaar_details
from aadhaar_qr.config import ExtractorConfig

# Data types
from aadhaar_qr.types import (
    ExtractionRequest,
    IdentityRecord,
    NormalizedImage,
    RasterPage,
    StrategyOutcome,
    StrategyStatus,
)

# Exceptions
from aadhaar_qr.exceptions import (
    AadhaarQRError,
    AllStrategiesFailedError,
    BackendUnavailableError,
    NotFoundError,
    PageUnreadableError,
    ParseError,
    RenderError,
)

# Pipeline stages
from aadhaar_qr.decoder import decode_qr
from aadhaar_qr.parser import decode_value, format_address, parse_payload
from aadhaar_qr.preprocess import normalize_image

__version__ = "1.0.0"
__license__ = "MIT"

__all__ = [
    # Main classes
    "AadhaarQRExtractor",
    "ExtractorConfig",
    "extract_aadhaar_details",
    # Data types
    "ExtractionRequest",
    "IdentityRecord",
    "NormalizedImage",
    "RasterPage",
    "StrategyOutcome",
    "StrategyStatus",
    # Exceptions
    "AadhaarQRError",
    "AllStrategiesFailedError",
    "BackendUnavailableError",
    "NotFoundError",
    "PageUnreadableError",
    "ParseError",
    "RenderError",
    # Pipeline stages
    "decode_qr",
    "decode_value",
    "format_address",
    "normalize_image",
    "parse_payload",
    # Version info
    "__version__",
]
