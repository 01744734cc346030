"""Command line rasterizers: Ghostscript with an ImageMagick fallback."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Iterator, Optional, Tuple

from ..exceptions import BackendUnavailableError, RenderError
from ..types import ExtractionRequest, RasterPage
from .. import utils
from .base import PageRenderer, Tool, ToolType, detect_tool, register_renderer

LOGGER = logging.getLogger("aadhaar_qr.renderers.command")


def build_ghostscript_command(
    executable: str,
    source: Path,
    output: Path,
    password: str,
    dpi: int,
    page: Optional[int] = None,
) -> list[str]:
    """Construct the Ghostscript command rendering *page* (or every page) to PNG."""

    command = [
        executable,
        "-dNOPAUSE",
        "-dBATCH",
        "-dSAFER",
        "-sDEVICE=png16m",
        f"-r{dpi}",
    ]
    if page is not None:
        command.extend([f"-dFirstPage={page}", f"-dLastPage={page}"])
    command.append(f"-sOutputFile={output}")
    if password:
        command.append(f"-sPDFPassword={password}")
    command.append(str(source))
    return command


def build_imagemagick_command(
    executable: str,
    source: Path,
    output: Path,
    password: str,
    dpi: int,
    page: Optional[int] = None,
) -> list[str]:
    """Construct the ImageMagick command rendering *page* (or every page) to PNG.

    ImageMagick frame indexes start at zero while *page* starts at one.
    """

    command = [executable, "-density", str(dpi)]
    if password:
        command.extend(["-authenticate", password])
    target = f"{source}[{page - 1}]" if page is not None else str(source)
    command.extend([target, str(output)])
    return command


def count_pages(source: Path, password: str) -> Optional[int]:
    """Return the page count read with pypdf, or ``None`` when pypdf cannot tell."""

    from pypdf import PdfReader

    try:
        reader = PdfReader(str(source))
        if reader.is_encrypted and not reader.decrypt(password):
            return None
        return len(reader.pages)
    except Exception as exc:  # pypdf exceptions vary
        LOGGER.debug("pypdf could not count pages of %s: %s", source, exc)
        return None


@register_renderer("command")
class CommandLineRenderer(PageRenderer):
    """Rasterize with Ghostscript, or ImageMagick when Ghostscript is missing or fails.

    Pages are rendered one command at a time so the search can stop after
    the first page carrying a QR symbol. When pypdf cannot read the page
    count, rendering stops at the first page the tool does not produce.
    """

    def __init__(self, dpi: int = 300) -> None:
        self.dpi = dpi

    def is_available(self) -> bool:
        return any(detect_tool(kind) for kind in (ToolType.GHOSTSCRIPT, ToolType.IMAGEMAGICK))

    def _render_page(
        self, tool: Tool, request: ExtractionRequest, workdir: Path, number: int
    ) -> Optional[Path]:
        if tool.type is ToolType.GHOSTSCRIPT:
            output = workdir / f"gs-page-{number}.png"
            build = build_ghostscript_command
        else:
            output = workdir / f"magick-page-{number}.png"
            build = build_imagemagick_command
        command = build(
            tool.executable, request.pdf_path, output, request.password, self.dpi, page=number
        )
        utils.run_subprocess(command, redact_values=[request.password])
        return output if output.is_file() else None

    def _first_page(
        self, request: ExtractionRequest, workdir: Path
    ) -> Tuple[Tool, Optional[Path]]:
        ghostscript = detect_tool(ToolType.GHOSTSCRIPT)
        imagemagick = detect_tool(ToolType.IMAGEMAGICK)
        if ghostscript is None and imagemagick is None:
            raise BackendUnavailableError("Neither Ghostscript nor ImageMagick is installed")

        failure: Exception | None = None
        if ghostscript is not None:
            try:
                return ghostscript, self._render_page(ghostscript, request, workdir, 1)
            except (subprocess.CalledProcessError, OSError) as exc:
                LOGGER.info("Ghostscript not available or failed: %s", _describe(exc))
                failure = exc
        else:
            LOGGER.info("Ghostscript not available")

        if imagemagick is None:
            raise RenderError(f"Ghostscript failed and ImageMagick is not installed: {_describe(failure)}")

        try:
            return imagemagick, self._render_page(imagemagick, request, workdir, 1)
        except (subprocess.CalledProcessError, OSError) as exc:
            LOGGER.info("ImageMagick also failed: %s", _describe(exc))
            raise RenderError(f"ImageMagick failed: {_describe(exc)}") from exc

    def render(self, request: ExtractionRequest, workdir: Path) -> Iterator[RasterPage]:
        page_count = count_pages(request.pdf_path, request.password)
        if page_count == 0:
            LOGGER.info("Document has no pages")
            return

        tool, path = self._first_page(request, workdir)
        number = 1
        while path is not None:
            LOGGER.debug("Processing %s", path.name)
            yield RasterPage(index=number - 1, source=path)

            number += 1
            if page_count is not None and number > page_count:
                break
            try:
                path = self._render_page(tool, request, workdir, number)
            except (subprocess.CalledProcessError, OSError) as exc:
                if page_count is not None:
                    raise RenderError(
                        f"{tool.type.value} failed on page {number}: {_describe(exc)}"
                    ) from exc
                LOGGER.debug("No page %d: %s", number, _describe(exc))
                path = None

        LOGGER.info("Converted %d page(s) with %s", number - 1, tool.type.value)


def _describe(exc: BaseException | None) -> str:
    if isinstance(exc, subprocess.CalledProcessError):
        stderr = (exc.stderr or "").strip()
        return f"exit code {exc.returncode}" + (f": {stderr}" if stderr else "")
    return str(exc)
