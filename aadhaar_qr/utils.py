"""Utility helpers for :mod:`aadhaar_qr`."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, MutableMapping, Sequence

_LOGGER = logging.getLogger("aadhaar_qr")

REDACTED = "***"


def configure_logging(verbose: bool = False) -> None:
    """Configure package-wide logging."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def resolve_path(path: os.PathLike[str] | str) -> Path:
    """Resolve *path* into an absolute :class:`~pathlib.Path`."""

    resolved = Path(path).expanduser().resolve()
    _LOGGER.debug("Resolved path '%s' to '%s'", path, resolved)
    return resolved


def ensure_parent_dir(path: Path) -> None:
    """Create parent directory for *path* if it does not exist."""

    path.parent.mkdir(parents=True, exist_ok=True)


def which(executables: Sequence[str]) -> str | None:
    """Return the first executable from *executables* found on ``PATH``."""

    for candidate in executables:
        found = shutil.which(candidate)
        if found:
            _LOGGER.debug("Detected external tool: %s -> %s", candidate, found)
            return found
    return None


def redact(command: Sequence[str], secrets: Sequence[str]) -> list[str]:
    """Return *command* with every occurrence of a non-empty secret masked."""

    masked: list[str] = []
    for argument in command:
        for secret in secrets:
            if secret:
                argument = argument.replace(secret, REDACTED)
        masked.append(argument)
    return masked


def run_subprocess(
    command: Sequence[str],
    *,
    env: MutableMapping[str, str] | None = None,
    check: bool = True,
    redact_values: Sequence[str] = (),
) -> subprocess.CompletedProcess[str]:
    """Run *command* capturing output.

    Parameters
    ----------
    command:
        Command and arguments to execute. No shell is involved, so
        arguments such as passwords are passed verbatim.
    env:
        Optional environment overrides.
    check:
        Whether to raise :class:`subprocess.CalledProcessError` on non-zero exit.
    redact_values:
        Secrets that must not appear in log output.
    """

    _LOGGER.debug("Executing command: %s", " ".join(redact(command, redact_values)))
    completed = subprocess.run(
        list(command),
        env=env,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        check=check,
        text=True,
    )
    _LOGGER.debug(
        "Command finished with exit code %s\nstdout: %s\nstderr: %s",
        completed.returncode,
        completed.stdout,
        completed.stderr,
    )
    return completed


@contextmanager
def time_block(logger: logging.Logger, message: str) -> Iterator[dict[str, float]]:
    """Context manager that logs the execution time of a code block.

    The yielded dictionary receives an ``elapsed`` entry once the block
    finishes.
    """
    timing: dict[str, float] = {}
    start = time.perf_counter()
    logger.debug("Starting %s", message)
    try:
        yield timing
    finally:
        timing["elapsed"] = time.perf_counter() - start
        logger.info("%s completed in %.2fs", message, timing["elapsed"])
