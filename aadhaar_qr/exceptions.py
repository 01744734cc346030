"""
Custom exceptions for the Aadhaar QR extractor.

Only :class:`NotFoundError`, :class:`AllStrategiesFailedError` and
:class:`ParseError` ever reach callers of the extractor. The remaining
exceptions are raised inside renderer strategies and page scanning, where
they are downgraded to a strategy outcome or a skipped page.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .types import StrategyOutcome


class AadhaarQRError(Exception):
    """Base exception for all Aadhaar QR extractor errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def default_message(self) -> str:
        return "An unknown Aadhaar QR extraction error occurred."


class NotFoundError(AadhaarQRError):
    """Raised when the input PDF does not exist."""

    @property
    def default_message(self) -> str:
        return "PDF file not found."


class AllStrategiesFailedError(AadhaarQRError):
    """Raised when no renderer strategy produced a decodable QR payload."""

    def __init__(
        self,
        message: str = "",
        outcomes: Sequence["StrategyOutcome"] | None = None,
    ) -> None:
        super().__init__(message)
        self.outcomes = list(outcomes or [])

    @property
    def default_message(self) -> str:
        return (
            "All extraction methods failed. Please check if:\n"
            "1. PDF file is valid\n"
            "2. Password is correct\n"
            "3. PDF contains a QR code\n"
            "4. Required system tools are installed"
        )


class ParseError(AadhaarQRError):
    """Raised when a decoded QR payload cannot be interpreted as text."""

    @property
    def default_message(self) -> str:
        return "Failed to parse QR code data."


class BackendUnavailableError(AadhaarQRError):
    """Raised when a rendering or decoding backend cannot run on this host."""

    @property
    def default_message(self) -> str:
        return "Backend is not available."


class RenderError(AadhaarQRError):
    """Raised when a rendering backend ran but could not rasterize the PDF."""

    @property
    def default_message(self) -> str:
        return "PDF rendering failed."


class PageUnreadableError(AadhaarQRError):
    """Raised when a rendered page cannot be decoded as an image."""

    @property
    def default_message(self) -> str:
        return "Rendered page could not be read."
