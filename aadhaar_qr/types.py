"""
Type definitions and dataclasses for the Aadhaar QR extractor.

This module defines data structures used throughout the library.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

PathLike = Union[str, Path]
ImageSource = Union[Path, bytes, io.BufferedIOBase, Any]


@dataclass(frozen=True)
class ExtractionRequest:
    """
    A single extraction request.

    Attributes:
        pdf_path: Path to the password protected PDF
        password: User password of the PDF, empty for unprotected copies
    """
    pdf_path: Path
    password: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "pdf_path", Path(self.pdf_path))

    def with_document(self, pdf_path: PathLike, password: str = "") -> "ExtractionRequest":
        return ExtractionRequest(pdf_path=Path(pdf_path), password=password)


@dataclass
class RasterPage:
    """
    One rendered page of a PDF document.

    Attributes:
        index: Zero-based page index
        source: Image file path, encoded image bytes or a Pillow image
        width: Width in pixels when known
        height: Height in pixels when known
        mode: Pixel format reported by the backend
    """
    index: int
    source: ImageSource
    width: Optional[int] = None
    height: Optional[int] = None
    mode: str = "RGB"

    @property
    def number(self) -> int:
        return self.index + 1


@dataclass(frozen=True)
class NormalizedImage:
    """Interleaved RGBA pixel buffer ready for symbol detection."""

    pixels: bytes
    width: int
    height: int

    @property
    def channels(self) -> int:
        return 4


class StrategyStatus(str, Enum):
    """Outcome of running one renderer strategy."""

    DECODED = "decoded"
    UNAVAILABLE = "unavailable"
    NO_QR = "no_qr"
    FAILED = "failed"


@dataclass
class StrategyOutcome:
    """
    Result of one renderer strategy run.

    Attributes:
        renderer: Name of the renderer strategy
        status: What happened
        payload: Decoded QR payload when ``status`` is ``DECODED``
        pages_examined: Number of pages passed through the decoder
        detail: Human readable reason for unavailable/failed runs
        elapsed: Wall clock seconds spent in the strategy
    """
    renderer: str
    status: StrategyStatus
    payload: Optional[Union[str, bytes]] = None
    pages_examined: int = 0
    detail: Optional[str] = None
    elapsed: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status is StrategyStatus.DECODED

    def __str__(self) -> str:
        text = f"{self.renderer}: {self.status.value} ({self.pages_examined} page(s))"
        if self.detail:
            text = f"{text} - {self.detail}"
        return text


# Attribute name -> serialized key, in output order.
RECORD_KEYS: Dict[str, str] = {
    "name": "name",
    "aadhaar_number": "aadhaarNumber",
    "date_of_birth": "dateOfBirth",
    "gender": "gender",
    "care_of": "careOf",
    "district": "district",
    "house": "house",
    "location": "location",
    "pincode": "pincode",
    "post_office": "postOffice",
    "state": "state",
    "street": "street",
    "vtc": "vtc",
    "email": "email",
    "mobile": "mobile",
}


@dataclass
class IdentityRecord:
    """
    Identity details decoded from an Aadhaar QR symbol.

    Every field except ``raw_data`` is ``None`` when the payload did not
    carry it.
    """
    raw_data: str
    name: Optional[str] = None
    aadhaar_number: Optional[str] = None
    date_of_birth: Optional[str] = None
    gender: Optional[str] = None
    care_of: Optional[str] = None
    district: Optional[str] = None
    house: Optional[str] = None
    location: Optional[str] = None
    pincode: Optional[str] = None
    post_office: Optional[str] = None
    state: Optional[str] = None
    street: Optional[str] = None
    vtc: Optional[str] = None
    email: Optional[str] = None
    mobile: Optional[str] = None

    def to_dict(self, include_raw: bool = True) -> Dict[str, str]:
        """Serialize using the external key names, omitting empty fields."""
        data: Dict[str, str] = {}
        if include_raw:
            data["rawData"] = self.raw_data
        for attribute, key in RECORD_KEYS.items():
            value = getattr(self, attribute)
            if value:
                data[key] = value
        return data

    @property
    def present_fields(self) -> list[str]:
        return [
            f.name
            for f in fields(self)
            if f.name in RECORD_KEYS and getattr(self, f.name)
        ]

    @property
    def formatted_address(self) -> str:
        from .parser import format_address

        return format_address(self)

    def __str__(self) -> str:
        return f"IdentityRecord(fields={self.present_fields})"
