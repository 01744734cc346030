"""pdf2image renderer backed by poppler's ``pdfinfo`` and ``pdftoppm``."""

from __future__ import annotations

import importlib.util
import logging
from pathlib import Path
from typing import Iterator, Optional, Tuple

from ..exceptions import BackendUnavailableError, RenderError
from ..types import ExtractionRequest, RasterPage
from .. import utils
from .base import PageRenderer, register_renderer

LOGGER = logging.getLogger("aadhaar_qr.renderers.pdf2image")


@register_renderer("pdf2image")
class Pdf2ImageRenderer(PageRenderer):
    """Render each page through pdf2image with density and size settings."""

    def __init__(
        self,
        dpi: int = 200,
        size: Optional[Tuple[int, int]] = (1654, 2339),
        prefix: str = "pdf2image",
    ) -> None:
        self.dpi = dpi
        self.size = size
        self.prefix = prefix

    def is_available(self) -> bool:
        return (
            importlib.util.find_spec("pdf2image") is not None
            and utils.which(["pdftoppm"]) is not None
        )

    def render(self, request: ExtractionRequest, workdir: Path) -> Iterator[RasterPage]:
        try:
            from pdf2image import convert_from_path, pdfinfo_from_path
            from pdf2image.exceptions import (
                PDFInfoNotInstalledError,
                PDFPageCountError,
                PDFSyntaxError,
            )
        except ImportError as exc:
            raise BackendUnavailableError("pdf2image is not installed") from exc

        userpw = request.password or None
        try:
            info = pdfinfo_from_path(str(request.pdf_path), userpw=userpw)
        except PDFInfoNotInstalledError as exc:
            raise BackendUnavailableError("poppler (pdfinfo) is not installed") from exc
        except (PDFPageCountError, PDFSyntaxError) as exc:
            raise RenderError(f"pdfinfo could not read {request.pdf_path}: {exc}") from exc

        page_count = int(info.get("Pages", 0))
        LOGGER.info("Converted document has %d page(s)", page_count)

        for number in range(1, page_count + 1):
            paths = convert_from_path(
                str(request.pdf_path),
                dpi=self.dpi,
                first_page=number,
                last_page=number,
                userpw=userpw,
                size=self.size,
                fmt="png",
                output_folder=str(workdir),
                output_file=f"{self.prefix}-{number}",
                paths_only=True,
            )
            if not paths:
                LOGGER.warning("pdf2image produced no image for page %d", number)
                continue
            width, height = self.size if self.size else (None, None)
            yield RasterPage(
                index=number - 1,
                source=Path(paths[0]),
                width=width,
                height=height,
            )
