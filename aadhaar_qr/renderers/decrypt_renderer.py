"""Decrypt to a password-free copy, then render it with another strategy."""

from __future__ import annotations

import importlib.util
import logging
import subprocess
from pathlib import Path
from typing import Iterator, Optional

from ..exceptions import BackendUnavailableError, RenderError
from ..types import ExtractionRequest, RasterPage
from .. import utils
from .base import PageRenderer, Tool, ToolType, detect_tool, register_renderer
from .pdf2image_renderer import Pdf2ImageRenderer

LOGGER = logging.getLogger("aadhaar_qr.renderers.decrypt")

DECRYPTED_FILENAME = "decrypted.pdf"


def build_pdftk_command(executable: str, source: Path, output: Path, password: str) -> list[str]:
    return [executable, str(source), "input_pw", password, "output", str(output)]


def build_qpdf_command(executable: str, source: Path, output: Path, password: str) -> list[str]:
    return [executable, f"--password={password}", "--decrypt", str(source), str(output)]


def decrypt_with_pypdf(source: Path, output: Path, password: str) -> Path:
    """Write a password-free copy of *source* using pypdf."""

    from pypdf import PdfReader, PdfWriter

    try:
        reader = PdfReader(str(source))
    except Exception as exc:  # pypdf exceptions vary
        raise RenderError(f"Unable to read PDF: {source}") from exc

    if reader.is_encrypted:
        try:
            unlocked = reader.decrypt(password)
        except Exception as exc:  # missing crypto providers surface here
            raise RenderError(f"pypdf could not decrypt {source}: {exc}") from exc
        if unlocked == 0:
            raise RenderError("Incorrect password supplied for decryption")

    writer = PdfWriter()
    for page in reader.pages:
        writer.add_page(page)
    with output.open("wb") as handle:
        writer.write(handle)
    return output


@register_renderer("decrypt")
class DecryptingRenderer(PageRenderer):
    """Strip the password with pdftk, qpdf or pypdf and delegate rendering."""

    def __init__(self, inner: Optional[PageRenderer] = None, use_pypdf: bool = True) -> None:
        self.inner = inner or Pdf2ImageRenderer()
        self.use_pypdf = use_pypdf

    def _pypdf_available(self) -> bool:
        return self.use_pypdf and importlib.util.find_spec("pypdf") is not None

    def is_available(self) -> bool:
        toolkit = detect_tool(ToolType.PDFTK) or detect_tool(ToolType.QPDF)
        return (toolkit is not None or self._pypdf_available()) and self.inner.is_available()

    def _run_toolkit(self, tool: Tool, request: ExtractionRequest, output: Path) -> None:
        if tool.type is ToolType.PDFTK:
            command = build_pdftk_command(tool.executable, request.pdf_path, output, request.password)
        elif tool.type is ToolType.QPDF:
            command = build_qpdf_command(tool.executable, request.pdf_path, output, request.password)
        else:
            raise ValueError(f"Unsupported decryption tool: {tool.type}")

        LOGGER.info("Decrypting PDF with %s", tool.type.value)
        utils.run_subprocess(command, redact_values=[request.password])

    def decrypt(self, request: ExtractionRequest, workdir: Path) -> Path:
        """Write the decrypted copy into *workdir* and return its path."""
        output = workdir / DECRYPTED_FILENAME
        errors = []
        for tool_type in (ToolType.PDFTK, ToolType.QPDF):
            tool = detect_tool(tool_type)
            if tool is None:
                LOGGER.debug("%s not available", tool_type.value)
                continue
            try:
                self._run_toolkit(tool, request, output)
                return output
            except (subprocess.CalledProcessError, OSError) as exc:
                LOGGER.info("%s failed to decrypt the PDF: %s", tool_type.value, exc)
                errors.append(f"{tool_type.value}: {exc}")

        if self._pypdf_available():
            LOGGER.info("Decrypting PDF with pypdf")
            return decrypt_with_pypdf(request.pdf_path, output, request.password)

        if errors:
            raise RenderError("; ".join(errors))
        raise BackendUnavailableError("No PDF decryption toolkit (pdftk, qpdf, pypdf) is available")

    def render(self, request: ExtractionRequest, workdir: Path) -> Iterator[RasterPage]:
        decrypted = self.decrypt(request, workdir)
        yield from self.inner.render(request.with_document(decrypted, ""), workdir)
