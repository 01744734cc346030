"""Runtime configuration for the extraction pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional, Tuple

DEFAULT_RENDERERS: Tuple[str, ...] = ("pymupdf", "pdf2image", "command", "decrypt")

_RENDERERS_ENV = "AADHAAR_QR_RENDERERS"
_DPI_ENV = "AADHAAR_QR_DPI"
_WORKDIR_ENV = "AADHAAR_QR_WORKDIR"


@dataclass(frozen=True)
class ExtractorConfig:
    """Options controlling renderer order, rendering resolution and scratch space."""

    renderers: Tuple[str, ...] = DEFAULT_RENDERERS
    pymupdf_dpi: int = 300
    pdf2image_dpi: int = 200
    pdf2image_size: Tuple[int, int] = (1654, 2339)
    command_dpi: int = 300
    workdir_base: Optional[Path] = None

    def __post_init__(self) -> None:
        if not self.renderers:
            raise ValueError("At least one renderer must be configured")
        unknown = [name for name in self.renderers if name not in DEFAULT_RENDERERS]
        if unknown:
            raise ValueError(
                f"Unknown renderer(s): {', '.join(unknown)}. "
                f"Available: {', '.join(DEFAULT_RENDERERS)}"
            )
        for label, value in (
            ("pymupdf_dpi", self.pymupdf_dpi),
            ("pdf2image_dpi", self.pdf2image_dpi),
            ("command_dpi", self.command_dpi),
        ):
            if value <= 0:
                raise ValueError(f"{label} must be positive, got {value}")

    def with_renderers(self, names: Tuple[str, ...]) -> "ExtractorConfig":
        return replace(self, renderers=tuple(names))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ExtractorConfig":
        """Build a configuration from ``AADHAAR_QR_*`` environment variables.

        ``AADHAAR_QR_DPI`` overrides every rendering resolution at once.
        """
        env = os.environ if environ is None else environ
        options: dict = {}

        renderers = env.get(_RENDERERS_ENV)
        if renderers is not None and renderers.strip():
            options["renderers"] = tuple(
                name.strip().lower() for name in renderers.split(",") if name.strip()
            )

        dpi = env.get(_DPI_ENV)
        if dpi is not None and dpi.strip():
            try:
                value = int(dpi)
            except ValueError as exc:
                raise ValueError(f"{_DPI_ENV} must be an integer, got {dpi!r}") from exc
            options.update(pymupdf_dpi=value, pdf2image_dpi=value, command_dpi=value)

        workdir = env.get(_WORKDIR_ENV)
        if workdir is not None and workdir.strip():
            options["workdir_base"] = Path(workdir).expanduser()

        return cls(**options)
