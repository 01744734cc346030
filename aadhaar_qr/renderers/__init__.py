"""Renderer strategies turning a password protected PDF into page images."""

from __future__ import annotations

from typing import List, Optional

from ..config import ExtractorConfig
from .base import (
    PageRenderer,
    RendererRegistry,
    Tool,
    ToolType,
    detect_tool,
    register_renderer,
    registry,
)
from .command_renderer import CommandLineRenderer
from .decrypt_renderer import DecryptingRenderer
from .pdf2image_renderer import Pdf2ImageRenderer
from .pymupdf_renderer import PyMuPDFRenderer


def create_renderer(name: str, config: Optional[ExtractorConfig] = None) -> PageRenderer:
    """Instantiate the renderer registered under *name* using *config* settings."""

    config = config or ExtractorConfig()
    if name == "pymupdf":
        return registry.create(name, dpi=config.pymupdf_dpi)
    if name == "pdf2image":
        return registry.create(name, dpi=config.pdf2image_dpi, size=config.pdf2image_size)
    if name == "command":
        return registry.create(name, dpi=config.command_dpi)
    if name == "decrypt":
        inner = Pdf2ImageRenderer(dpi=config.pdf2image_dpi, size=config.pdf2image_size)
        return registry.create(name, inner=inner)
    return registry.create(name)


def default_renderers(config: Optional[ExtractorConfig] = None) -> List[PageRenderer]:
    """Return the configured renderer strategies in priority order."""

    config = config or ExtractorConfig()
    return [create_renderer(name, config) for name in config.renderers]


__all__ = [
    "CommandLineRenderer",
    "DecryptingRenderer",
    "PageRenderer",
    "Pdf2ImageRenderer",
    "PyMuPDFRenderer",
    "RendererRegistry",
    "Tool",
    "ToolType",
    "create_renderer",
    "default_renderers",
    "detect_tool",
    "register_renderer",
    "registry",
]
