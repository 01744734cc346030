"""PyMuPDF renderer: native password support and per-page DPI control."""

from __future__ import annotations

import importlib.util
import logging
from pathlib import Path
from typing import Iterator

from ..exceptions import BackendUnavailableError, RenderError
from ..types import ExtractionRequest, RasterPage
from .base import PageRenderer, register_renderer

LOGGER = logging.getLogger("aadhaar_qr.renderers.pymupdf")


@register_renderer("pymupdf")
class PyMuPDFRenderer(PageRenderer):
    """Render pages one at a time with PyMuPDF."""

    def __init__(self, dpi: int = 300, prefix: str = "page") -> None:
        self.dpi = dpi
        self.prefix = prefix

    def is_available(self) -> bool:
        return importlib.util.find_spec("fitz") is not None

    def render(self, request: ExtractionRequest, workdir: Path) -> Iterator[RasterPage]:
        try:
            import fitz
        except ImportError as exc:
            raise BackendUnavailableError("PyMuPDF is not installed") from exc

        try:
            doc = fitz.open(str(request.pdf_path))
        except Exception as exc:
            raise RenderError(f"PyMuPDF could not open {request.pdf_path}: {exc}") from exc

        try:
            if doc.needs_pass and not doc.authenticate(request.password):
                raise RenderError("PyMuPDF rejected the supplied password")

            LOGGER.info("Converted document has %d page(s)", doc.page_count)
            for index in range(doc.page_count):
                pix = doc[index].get_pixmap(dpi=self.dpi)
                image_path = workdir / f"{self.prefix}-{index + 1}.png"
                pix.save(str(image_path))
                LOGGER.debug("Rendered page %d to %s", index + 1, image_path)
                yield RasterPage(
                    index=index,
                    source=image_path,
                    width=pix.width,
                    height=pix.height,
                    mode="RGBA" if pix.alpha else "RGB",
                )
        finally:
            doc.close()
