"""Multi-strategy extraction of Aadhaar QR details from protected PDFs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence, Union

from .config import ExtractorConfig
from .decoder import Payload, decode_qr
from .exceptions import (
    AllStrategiesFailedError,
    BackendUnavailableError,
    NotFoundError,
    PageUnreadableError,
)
from .parser import parse_payload
from .preprocess import normalize_image
from .renderers import PageRenderer, default_renderers
from .types import (
    ExtractionRequest,
    IdentityRecord,
    ImageSource,
    NormalizedImage,
    PathLike,
    RasterPage,
    StrategyOutcome,
    StrategyStatus,
)
from .utils import resolve_path, time_block
from .workspace import ArtifactDirectory

LOGGER = logging.getLogger("aadhaar_qr.extractor")

Decoder = Callable[[bytes, int, int], Optional[Payload]]
Preprocessor = Callable[[ImageSource], Optional[NormalizedImage]]


class AadhaarQRExtractor:
    """Try renderer strategies in order until one yields a decodable QR payload.

    Strategies run one at a time. Within a strategy pages are examined in
    page order and the search stops at the first page carrying a payload.
    """

    def __init__(
        self,
        renderers: Optional[Sequence[PageRenderer]] = None,
        *,
        decoder: Optional[Decoder] = None,
        preprocessor: Optional[Preprocessor] = None,
        config: Optional[ExtractorConfig] = None,
    ) -> None:
        self.config = config or ExtractorConfig()
        self.renderers: List[PageRenderer] = (
            list(renderers) if renderers is not None else default_renderers(self.config)
        )
        self.decoder: Decoder = decoder or decode_qr
        self.preprocessor: Preprocessor = preprocessor or normalize_image
        self.last_outcomes: List[StrategyOutcome] = []

    def decode_page(self, page: RasterPage) -> Optional[Payload]:
        """Normalize *page* and return its QR payload, if any."""
        try:
            image = self.preprocessor(page.source)
            if image is None:
                raise PageUnreadableError(f"page {page.number} could not be normalized")
            return self.decoder(image.pixels, image.width, image.height)
        except PageUnreadableError as exc:
            LOGGER.info("Skipping unreadable page %d: %s", page.number, exc.message)
            return None
        except (OSError, ValueError) as exc:
            LOGGER.info("Skipping unreadable page %d: %s", page.number, exc)
            return None

    def run_strategy(
        self, renderer: PageRenderer, request: ExtractionRequest, workdir: Path
    ) -> StrategyOutcome:
        """Run one renderer; never raises."""
        outcome = StrategyOutcome(renderer=renderer.name, status=StrategyStatus.NO_QR)
        pages: Optional[Iterator[RasterPage]] = None

        with time_block(LOGGER, f"Strategy '{renderer.name}'") as timing:
            try:
                pages = iter(renderer.render(request, workdir))
                for page in pages:
                    LOGGER.info("Processing page %d...", page.number)
                    outcome.pages_examined += 1
                    payload = self.decode_page(page)
                    if payload:
                        outcome.status = StrategyStatus.DECODED
                        outcome.payload = payload
                        break
            except BackendUnavailableError as exc:
                outcome.status = StrategyStatus.UNAVAILABLE
                outcome.detail = exc.message
                LOGGER.info("%s unavailable: %s", renderer.name, exc.message)
            except Exception as exc:
                outcome.status = StrategyStatus.FAILED
                outcome.detail = str(exc) or type(exc).__name__
                LOGGER.info("%s failed: %s", renderer.name, outcome.detail)
            finally:
                close = getattr(pages, "close", None)
                if close is not None:
                    close()

        outcome.elapsed = timing.get("elapsed", 0.0)
        if outcome.status is StrategyStatus.NO_QR:
            LOGGER.info("%s found no QR code in %d page(s)", renderer.name, outcome.pages_examined)
        return outcome

    def extract(
        self,
        pdf_path: PathLike,
        password: str,
        *,
        workdir: Optional[PathLike] = None,
    ) -> IdentityRecord:
        """Extract identity details from the QR code of a protected PDF.

        Args:
            pdf_path: Aadhaar e-document PDF.
            password: PDF user password.
            workdir: Optional parent directory. Page images go into a
                new subdirectory of it that is removed before returning;
                existing files are left alone. The system temporary
                directory is used when omitted.

        Raises:
            NotFoundError: If ``pdf_path`` does not exist.
            AllStrategiesFailedError: If no strategy found a QR payload.
            ParseError: If the payload found is not text.
        """
        path = resolve_path(pdf_path)
        if not path.is_file():
            raise NotFoundError(f"PDF file not found: {pdf_path}")

        request = ExtractionRequest(pdf_path=path, password=password)
        self.last_outcomes = []
        LOGGER.info("Starting multi-method QR extraction for %s", path.name)

        artifacts = ArtifactDirectory(workdir, base_dir=self.config.workdir_base)
        try:
            for position, renderer in enumerate(self.renderers, start=1):
                LOGGER.info("Method %d: Using %s...", position, renderer.name)
                outcome = self.run_strategy(renderer, request, artifacts.path)
                self.last_outcomes.append(outcome)
                if outcome.succeeded:
                    LOGGER.info("Success with %s!", renderer.name)
                    return parse_payload(outcome.payload)

            raise AllStrategiesFailedError(outcomes=self.last_outcomes)
        finally:
            artifacts.cleanup()


def extract_aadhaar_details(
    pdf_path: PathLike,
    password: str,
    *,
    renderers: Optional[Union[Sequence[PageRenderer], Sequence[str]]] = None,
    config: Optional[ExtractorConfig] = None,
    workdir: Optional[PathLike] = None,
) -> IdentityRecord:
    """Convenience wrapper around :class:`AadhaarQRExtractor`.

    ``renderers`` may be renderer instances or registered renderer names.
    """
    config = config or ExtractorConfig()
    instances: Optional[Sequence[PageRenderer]] = None
    if renderers is not None:
        if all(isinstance(item, str) for item in renderers):
            config = config.with_renderers(tuple(renderers))  # type: ignore[arg-type]
        else:
            instances = renderers  # type: ignore[assignment]
    extractor = AadhaarQRExtractor(instances, config=config)
    return extractor.extract(pdf_path, password, workdir=workdir)
