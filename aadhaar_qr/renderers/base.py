"""Renderer interface, external tool detection and the renderer registry."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, Sequence

from ..exceptions import BackendUnavailableError
from ..types import ExtractionRequest, RasterPage
from .. import utils


class PageRenderer(ABC):
    """Turns a password protected PDF into raster pages.

    ``render`` yields pages lazily in page order so callers can stop after
    the first useful page. It raises :class:`BackendUnavailableError` when
    the backend is missing and :class:`RenderError` when it ran but failed.
    """

    name: str = ""

    def is_available(self) -> bool:
        return True

    @abstractmethod
    def render(self, request: ExtractionRequest, workdir: Path) -> Iterator[RasterPage]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class ToolType(str, Enum):
    """External command line tools used by renderer strategies."""

    GHOSTSCRIPT = "ghostscript"
    IMAGEMAGICK = "imagemagick"
    PDFTK = "pdftk"
    QPDF = "qpdf"


@dataclass(frozen=True)
class Tool:
    """An external tool and its resolved executable."""

    type: ToolType
    executable: str


TOOL_EXECUTABLES: Dict[ToolType, Sequence[str]] = {
    ToolType.GHOSTSCRIPT: ("gs", "gswin64c", "gswin32c"),
    ToolType.IMAGEMAGICK: ("magick", "convert"),
    ToolType.PDFTK: ("pdftk",),
    ToolType.QPDF: ("qpdf",),
}


def detect_tool(tool_type: ToolType) -> Tool | None:
    """Return the tool when one of its executables is on ``PATH``."""

    executable = utils.which(TOOL_EXECUTABLES[tool_type])
    if executable:
        return Tool(tool_type, executable)
    return None


RendererFactory = Callable[..., PageRenderer]


class RendererRegistry:
    """Registry storing available renderer strategies."""

    def __init__(self) -> None:
        self._renderers: Dict[str, RendererFactory] = {}

    def register(self, name: str, factory: RendererFactory) -> None:
        if name in self._renderers:
            raise ValueError(f"Renderer '{name}' is already registered")
        self._renderers[name] = factory

    def create(self, name: str, **options: object) -> PageRenderer:
        try:
            factory = self._renderers[name]
        except KeyError as exc:
            raise KeyError(f"Renderer '{name}' is not registered") from exc
        return factory(**options)

    def names(self) -> Iterable[str]:
        return sorted(self._renderers.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._renderers


registry = RendererRegistry()


def register_renderer(name: str):
    def decorator(cls: type[PageRenderer]) -> type[PageRenderer]:
        cls.name = name
        registry.register(name, cls)
        return cls

    return decorator


__all__ = [
    "PageRenderer",
    "RendererRegistry",
    "Tool",
    "ToolType",
    "TOOL_EXECUTABLES",
    "detect_tool",
    "register_renderer",
    "registry",
]
