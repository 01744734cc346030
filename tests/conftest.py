from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence, Union
import sys

import pytest
from pypdf import PdfReader, PdfWriter

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from aadhaar_qr.renderers.base import PageRenderer  # noqa: E402
from aadhaar_qr.types import ExtractionRequest, NormalizedImage, RasterPage  # noqa: E402

SAMPLE_PAYLOAD = 'name="UmFtZXNo"&uid="123456789012"&dob="01-01-1990"&gender="M"'

PagePayload = Optional[Union[str, bytes]]


class PayloadRenderer(PageRenderer):
    """Renderer double writing each page's payload to a file in the workdir."""

    def __init__(
        self,
        name: str,
        payloads: Sequence[PagePayload] = (),
        error: Optional[Exception] = None,
    ) -> None:
        self.name = name
        self.payloads = list(payloads)
        self.error = error
        self.requests: List[ExtractionRequest] = []
        self.rendered: List[int] = []

    def render(self, request: ExtractionRequest, workdir: Path) -> Iterator[RasterPage]:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        for index, payload in enumerate(self.payloads):
            if isinstance(payload, str):
                payload = payload.encode("utf-8")
            path = workdir / f"{self.name}-page-{index + 1}.bin"
            path.write_bytes(payload or b"")
            self.rendered.append(index)
            yield RasterPage(index=index, source=path)


def read_preprocessor(source: Path) -> NormalizedImage:
    data = Path(source).read_bytes()
    return NormalizedImage(pixels=data, width=len(data), height=1)


class RecordingDecoder:
    """Decoder double returning the page bytes as the QR payload."""

    def __init__(self) -> None:
        self.calls = 0

    def __call__(self, pixels: bytes, width: int, height: int):
        self.calls += 1
        if not pixels:
            return None
        try:
            return pixels.decode("utf-8")
        except UnicodeDecodeError:
            return pixels


@pytest.fixture()
def decoder() -> RecordingDecoder:
    return RecordingDecoder()


@pytest.fixture()
def preprocessor() -> Callable[[Path], NormalizedImage]:
    return read_preprocessor


@pytest.fixture()
def sample_payload() -> str:
    return SAMPLE_PAYLOAD


@pytest.fixture()
def renderer_factory() -> Callable[..., PayloadRenderer]:
    return PayloadRenderer


@pytest.fixture()
def workdir(tmp_path: Path) -> Path:
    path = tmp_path / "artifacts"
    path.mkdir()
    return path


@pytest.fixture()
def sample_pdf(tmp_path: Path) -> Path:
    pdf_path = tmp_path / "sample.pdf"
    writer = PdfWriter()
    for _ in range(3):
        writer.add_blank_page(width=200, height=200)
    writer.add_metadata({"/Producer": "aadhaar-qr-tests", "/Title": "Sample"})
    with pdf_path.open("wb") as stream:
        writer.write(stream)
    return pdf_path


@pytest.fixture()
def empty_pdf(tmp_path: Path) -> Path:
    pdf_path = tmp_path / "empty.pdf"
    writer = PdfWriter()
    with pdf_path.open("wb") as stream:
        writer.write(stream)
    return pdf_path


@pytest.fixture()
def protect() -> Callable[[Path, Path, str], Path]:
    def _protect(source: Path, destination: Path, password: str) -> Path:
        reader = PdfReader(str(source))
        writer = PdfWriter()
        for page in reader.pages:
            writer.add_page(page)
        writer.encrypt(user_password=password, owner_password=None)
        with destination.open("wb") as stream:
            writer.write(stream)
        return destination

    return _protect


@pytest.fixture()
def protected_pdf(sample_pdf: Path, tmp_path: Path, protect) -> Path:
    return protect(sample_pdf, tmp_path / "protected.pdf", "secret")
