"""Request-scoped scratch directory for rendered page artifacts."""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from .types import PathLike

LOGGER = logging.getLogger("aadhaar_qr.workspace")


class ArtifactDirectory:
    """Owns the directory that renderers write page images into.

    A fresh directory is always created with :func:`tempfile.mkdtemp`,
    inside ``path`` when given, else inside ``base_dir`` or the system
    temporary directory. :meth:`cleanup` removes only that directory, so
    files already present in ``path`` are never touched.
    """

    def __init__(
        self,
        path: Optional[PathLike] = None,
        *,
        base_dir: Optional[PathLike] = None,
        prefix: str = "aadhaar-qr-",
    ) -> None:
        parent = path if path is not None else base_dir
        if parent is not None:
            Path(parent).mkdir(parents=True, exist_ok=True)
        self.parent = Path(parent) if parent is not None else None
        self.path = Path(tempfile.mkdtemp(prefix=prefix, dir=parent))
        self._closed = False
        LOGGER.debug("Using artifact directory %s", self.path)

    def __enter__(self) -> "ArtifactDirectory":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()

    def __fspath__(self) -> str:
        return str(self.path)

    def file(self, name: str) -> Path:
        return self.path / name

    def cleanup(self) -> None:
        """Remove every artifact; individual failures are logged, never raised."""
        if self._closed:
            return
        self._closed = True

        if not self.path.exists():
            return

        for entry in list(self.path.iterdir()):
            try:
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
            except OSError as exc:
                LOGGER.warning("Could not remove temp file %s: %s", entry, exc)

        try:
            self.path.rmdir()
        except OSError as exc:
            LOGGER.warning("Could not remove temp directory %s: %s", self.path, exc)
