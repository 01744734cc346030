"""Parsing of decoded Aadhaar QR payloads into :class:`IdentityRecord` objects."""

from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import Dict, Iterable, Union

from .exceptions import ParseError
from .types import IdentityRecord

LOGGER = logging.getLogger("aadhaar_qr.parser")

# Record attribute -> payload key.
SOURCE_KEYS: Dict[str, str] = {
    "name": "name",
    "aadhaar_number": "uid",
    "date_of_birth": "dob",
    "gender": "gender",
    "care_of": "co",
    "district": "dist",
    "house": "house",
    "location": "loc",
    "pincode": "pc",
    "post_office": "po",
    "state": "state",
    "street": "street",
    "vtc": "vtc",
    "email": "email",
    "mobile": "mobile",
}

# Free text fields that issuers may base64 encode.
ENCODED_FIELDS = frozenset(
    {
        "name",
        "care_of",
        "district",
        "house",
        "location",
        "post_office",
        "state",
        "street",
        "vtc",
    }
)

ADDRESS_FIELDS = (
    "house",
    "street",
    "location",
    "vtc",
    "post_office",
    "district",
    "state",
    "pincode",
)

_VISIBLE_TEXT = re.compile(r"[\x20-\x7E\u00A0-\uFFFF]*")


def _field_pattern(key: str) -> re.Pattern[str]:
    return re.compile(rf'(?<![\w-]){re.escape(key)}="([^"]*)"', re.IGNORECASE)


_PATTERNS = {attribute: _field_pattern(key) for attribute, key in SOURCE_KEYS.items()}


def decode_value(value: str) -> str:
    """Best-effort base64 decoding of a free text value.

    The decoded text is used only when every character is visible; any
    other outcome returns *value* unchanged. Short plain words can still be
    valid base64 of visible text and get misdecoded.
    """
    if not value:
        return ""

    padded = value + "=" * (-len(value) % 4)
    try:
        decoded = base64.b64decode(padded, validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        return value

    return decoded if _VISIBLE_TEXT.fullmatch(decoded) else value


def _as_text(payload: Union[str, bytes]) -> str:
    if isinstance(payload, str):
        return payload
    if isinstance(payload, (bytes, bytearray)):
        try:
            return bytes(payload).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(f"Failed to parse QR code data: {exc}") from exc
    raise ParseError(
        f"Failed to parse QR code data: unsupported payload type {type(payload).__name__}"
    )


def parse_payload(payload: Union[str, bytes]) -> IdentityRecord:
    """Parse an attribute-list payload such as ``name="..."&uid="..."``.

    Raises:
        ParseError: If the payload is not text.
    """
    text = _as_text(payload)
    LOGGER.debug("Parsing QR payload of length %d", len(text))

    values: Dict[str, str] = {}
    for attribute, pattern in _PATTERNS.items():
        match = pattern.search(text)
        value = match.group(1) if match else ""
        if attribute in ENCODED_FIELDS:
            value = decode_value(value)
        if value:
            values[attribute] = value

    record = IdentityRecord(raw_data=text, **values)
    LOGGER.info("Parsed identity record with fields: %s", ", ".join(record.present_fields) or "none")
    return record


def _parts(record: IdentityRecord, attributes: Iterable[str]) -> list[str]:
    parts = []
    for attribute in attributes:
        value = getattr(record, attribute, None)
        if value and value.strip():
            parts.append(value)
    return parts


def format_address(record: IdentityRecord) -> str:
    """Join the non-blank address parts of *record* with ``", "``."""
    return ", ".join(_parts(record, ADDRESS_FIELDS))
