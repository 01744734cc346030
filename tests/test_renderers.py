from __future__ import annotations

import subprocess
from pathlib import Path

import pytest
from pypdf import PdfReader

from aadhaar_qr.config import ExtractorConfig
from aadhaar_qr.exceptions import BackendUnavailableError, RenderError
from aadhaar_qr.renderers import (
    CommandLineRenderer,
    DecryptingRenderer,
    Pdf2ImageRenderer,
    PyMuPDFRenderer,
    create_renderer,
    default_renderers,
    registry,
)
from aadhaar_qr.renderers.base import RendererRegistry, ToolType, detect_tool
from aadhaar_qr.renderers.command_renderer import (
    build_ghostscript_command,
    build_imagemagick_command,
    count_pages,
)
from aadhaar_qr.renderers.decrypt_renderer import (
    DECRYPTED_FILENAME,
    build_pdftk_command,
    build_qpdf_command,
    decrypt_with_pypdf,
)
from aadhaar_qr.types import ExtractionRequest


def _fake_which(*available):
    def which(executables):
        for name in executables:
            if name in available:
                return f"/usr/bin/{name}"
        return None

    return which


def _fake_ghostscript(calls, last_page=None):
    """Run double for Ghostscript writing only the requested page."""

    def run(command, **kwargs):
        calls.append((command, kwargs))
        page = int(next(arg for arg in command if arg.startswith("-dFirstPage=")).split("=")[1])
        output = next(arg for arg in command if arg.startswith("-sOutputFile=")).split("=", 1)[1]
        if last_page is None or page <= last_page:
            Path(output).write_bytes(b"png")
        return subprocess.CompletedProcess(command, 0, "", "")

    return run


def test_build_ghostscript_command_for_one_page(tmp_path):
    command = build_ghostscript_command(
        "gs", tmp_path / "in.pdf", tmp_path / "gs-page-2.png", "ABCD1990", 300, page=2
    )

    assert command == [
        "gs",
        "-dNOPAUSE",
        "-dBATCH",
        "-dSAFER",
        "-sDEVICE=png16m",
        "-r300",
        "-dFirstPage=2",
        "-dLastPage=2",
        f"-sOutputFile={tmp_path / 'gs-page-2.png'}",
        "-sPDFPassword=ABCD1990",
        str(tmp_path / "in.pdf"),
    ]


def test_build_ghostscript_command_without_password(tmp_path):
    command = build_ghostscript_command("gs", tmp_path / "in.pdf", tmp_path / "out-%d.png", "", 150)

    assert "-r150" in command
    assert not any(arg.startswith("-sPDFPassword") for arg in command)
    assert not any(arg.startswith("-dFirstPage") for arg in command)


def test_build_imagemagick_command_selects_zero_based_frame(tmp_path):
    command = build_imagemagick_command(
        "magick", tmp_path / "in.pdf", tmp_path / "out.png", "pa ss\"word", 300, page=1
    )

    assert command == [
        "magick",
        "-density",
        "300",
        "-authenticate",
        "pa ss\"word",
        f"{tmp_path / 'in.pdf'}[0]",
        str(tmp_path / "out.png"),
    ]


def test_decryption_commands(tmp_path):
    source, output = tmp_path / "in.pdf", tmp_path / "out.pdf"

    assert build_pdftk_command("pdftk", source, output, "secret") == [
        "pdftk", str(source), "input_pw", "secret", "output", str(output),
    ]
    assert build_qpdf_command("qpdf", source, output, "secret") == [
        "qpdf", "--password=secret", "--decrypt", str(source), str(output),
    ]


def test_count_pages(sample_pdf, protected_pdf, tmp_path):
    broken = tmp_path / "broken.pdf"
    broken.write_bytes(b"not a pdf")

    assert count_pages(sample_pdf, "") == 3
    assert count_pages(protected_pdf, "secret") == 3
    assert count_pages(protected_pdf, "wrong") is None
    assert count_pages(broken, "") is None


def test_detect_tool_uses_path_lookup(monkeypatch):
    monkeypatch.setattr("aadhaar_qr.utils.which", _fake_which("convert"))

    tool = detect_tool(ToolType.IMAGEMAGICK)

    assert tool is not None
    assert tool.executable == "/usr/bin/convert"
    assert detect_tool(ToolType.GHOSTSCRIPT) is None


def test_command_renderer_renders_first_page_only_until_asked(monkeypatch, sample_pdf, workdir):
    calls = []
    monkeypatch.setattr("aadhaar_qr.utils.which", _fake_which("gs", "magick"))
    monkeypatch.setattr("aadhaar_qr.utils.run_subprocess", _fake_ghostscript(calls))

    pages = CommandLineRenderer(dpi=300).render(ExtractionRequest(sample_pdf, "secret"), workdir)
    first = next(pages)

    assert first.index == 0
    assert [p.name for p in workdir.iterdir()] == ["gs-page-1.png"]
    assert len(calls) == 1
    pages.close()
    assert len(calls) == 1


def test_command_renderer_uses_ghostscript_per_page(monkeypatch, sample_pdf, workdir):
    calls = []
    monkeypatch.setattr("aadhaar_qr.utils.which", _fake_which("gs", "magick"))
    monkeypatch.setattr("aadhaar_qr.utils.run_subprocess", _fake_ghostscript(calls))

    pages = list(CommandLineRenderer().render(ExtractionRequest(sample_pdf, "secret"), workdir))

    assert [page.index for page in pages] == [0, 1, 2]
    assert [page.source.name for page in pages] == ["gs-page-1.png", "gs-page-2.png", "gs-page-3.png"]
    assert len(calls) == 3
    command, kwargs = calls[0]
    assert command[0] == "/usr/bin/gs"
    assert "-sPDFPassword=secret" in command
    assert kwargs["redact_values"] == ["secret"]


def test_command_renderer_stops_when_page_count_unknown(monkeypatch, tmp_path, workdir):
    unreadable = tmp_path / "scanned.pdf"
    unreadable.write_bytes(b"not a pdf")
    calls = []
    monkeypatch.setattr("aadhaar_qr.utils.which", _fake_which("gs"))
    monkeypatch.setattr("aadhaar_qr.utils.run_subprocess", _fake_ghostscript(calls, last_page=2))

    pages = list(CommandLineRenderer().render(ExtractionRequest(unreadable, ""), workdir))

    assert [page.number for page in pages] == [1, 2]
    assert len(calls) == 3


def test_command_renderer_falls_back_to_imagemagick(monkeypatch, sample_pdf, workdir):
    executed = []

    def fake_run(command, **kwargs):
        executed.append(command[0])
        if command[0].endswith("gs"):
            raise subprocess.CalledProcessError(1, command, "", "Password did not work")
        Path(command[-1]).write_bytes(b"png")
        return subprocess.CompletedProcess(command, 0, "", "")

    monkeypatch.setattr("aadhaar_qr.utils.which", _fake_which("gs", "magick"))
    monkeypatch.setattr("aadhaar_qr.utils.run_subprocess", fake_run)

    request = ExtractionRequest(sample_pdf, "secret")
    pages = list(CommandLineRenderer().render(request, workdir))

    assert executed == ["/usr/bin/gs", "/usr/bin/magick", "/usr/bin/magick", "/usr/bin/magick"]
    assert [page.source.name for page in pages] == [
        "magick-page-1.png",
        "magick-page-2.png",
        "magick-page-3.png",
    ]


def test_command_renderer_without_tools_is_unavailable(monkeypatch, sample_pdf, workdir):
    monkeypatch.setattr("aadhaar_qr.utils.which", _fake_which())
    renderer = CommandLineRenderer()

    assert renderer.is_available() is False
    with pytest.raises(BackendUnavailableError):
        list(renderer.render(ExtractionRequest(sample_pdf, "secret"), workdir))


def test_command_renderer_ghostscript_failure_without_imagemagick(
    monkeypatch, sample_pdf, workdir
):
    def fake_run(command, **kwargs):
        raise subprocess.CalledProcessError(1, command, "", "Password did not work")

    monkeypatch.setattr("aadhaar_qr.utils.which", _fake_which("gs"))
    monkeypatch.setattr("aadhaar_qr.utils.run_subprocess", fake_run)

    with pytest.raises(RenderError) as excinfo:
        list(CommandLineRenderer().render(ExtractionRequest(sample_pdf, "secret"), workdir))

    assert "Password did not work" in str(excinfo.value)


def test_command_renderer_empty_document_runs_no_tool(monkeypatch, empty_pdf, workdir):
    calls = []
    monkeypatch.setattr("aadhaar_qr.utils.which", _fake_which("gs"))
    monkeypatch.setattr("aadhaar_qr.utils.run_subprocess", _fake_ghostscript(calls))

    assert list(CommandLineRenderer().render(ExtractionRequest(empty_pdf, ""), workdir)) == []
    assert calls == []


def test_decrypt_with_pypdf_writes_plain_copy(protected_pdf, tmp_path):
    output = decrypt_with_pypdf(protected_pdf, tmp_path / "plain.pdf", "secret")

    reader = PdfReader(str(output))
    assert not reader.is_encrypted
    assert len(reader.pages) == 3


def test_decrypt_with_pypdf_wrong_password(protected_pdf, tmp_path):
    with pytest.raises(RenderError):
        decrypt_with_pypdf(protected_pdf, tmp_path / "plain.pdf", "wrong")


def test_decrypting_renderer_delegates_password_free_copy(
    monkeypatch, renderer_factory, protected_pdf, sample_payload, workdir
):
    monkeypatch.setattr("aadhaar_qr.utils.which", _fake_which())
    inner = renderer_factory("inner", [sample_payload])
    renderer = DecryptingRenderer(inner=inner)

    pages = list(renderer.render(ExtractionRequest(protected_pdf, "secret"), workdir))

    assert len(pages) == 1
    delegated = inner.requests[0]
    assert delegated.pdf_path == workdir / DECRYPTED_FILENAME
    assert delegated.password == ""
    assert not PdfReader(str(delegated.pdf_path)).is_encrypted


def test_decrypting_renderer_prefers_pdftk(monkeypatch, renderer_factory, sample_pdf, workdir):
    commands = []

    def fake_run(command, **kwargs):
        commands.append(command)
        Path(command[-1]).write_bytes(b"%PDF-1.4")
        return subprocess.CompletedProcess(command, 0, "", "")

    monkeypatch.setattr("aadhaar_qr.utils.which", _fake_which("pdftk", "qpdf"))
    monkeypatch.setattr("aadhaar_qr.utils.run_subprocess", fake_run)
    inner = renderer_factory("inner", [None])

    list(DecryptingRenderer(inner=inner).render(ExtractionRequest(sample_pdf, "pw"), workdir))

    assert len(commands) == 1
    assert commands[0][0] == "/usr/bin/pdftk"
    assert commands[0][2:4] == ["input_pw", "pw"]
    assert inner.requests[0].pdf_path == workdir / DECRYPTED_FILENAME


def test_decrypting_renderer_falls_back_to_qpdf(monkeypatch, renderer_factory, sample_pdf, workdir):
    def fake_run(command, **kwargs):
        if command[0].endswith("pdftk"):
            raise subprocess.CalledProcessError(1, command)
        Path(command[-1]).write_bytes(b"%PDF-1.4")
        return subprocess.CompletedProcess(command, 0, "", "")

    monkeypatch.setattr("aadhaar_qr.utils.which", _fake_which("pdftk", "qpdf"))
    monkeypatch.setattr("aadhaar_qr.utils.run_subprocess", fake_run)
    inner = renderer_factory("inner", [None])

    renderer = DecryptingRenderer(inner=inner, use_pypdf=False)
    decrypted = renderer.decrypt(ExtractionRequest(sample_pdf, "pw"), workdir)

    assert decrypted == workdir / DECRYPTED_FILENAME
    assert decrypted.exists()


def test_decrypting_renderer_reports_toolkit_errors(monkeypatch, renderer_factory, sample_pdf, workdir):
    def fake_run(command, **kwargs):
        raise subprocess.CalledProcessError(1, command)

    monkeypatch.setattr("aadhaar_qr.utils.which", _fake_which("pdftk"))
    monkeypatch.setattr("aadhaar_qr.utils.run_subprocess", fake_run)
    renderer = DecryptingRenderer(inner=renderer_factory("inner"), use_pypdf=False)

    with pytest.raises(RenderError) as excinfo:
        renderer.decrypt(ExtractionRequest(sample_pdf, "pw"), workdir)

    assert "pdftk" in str(excinfo.value)


def test_decrypting_renderer_without_any_toolkit(monkeypatch, renderer_factory, sample_pdf, workdir):
    monkeypatch.setattr("aadhaar_qr.utils.which", _fake_which())
    renderer = DecryptingRenderer(inner=renderer_factory("inner"), use_pypdf=False)

    assert renderer.is_available() is False
    with pytest.raises(BackendUnavailableError):
        list(renderer.render(ExtractionRequest(sample_pdf, "pw"), workdir))


def test_pdf2image_renderer_renders_one_page_at_a_time(monkeypatch, sample_pdf, workdir):
    pdf2image = pytest.importorskip("pdf2image")
    calls = []

    def fake_info(path, userpw=None, **kwargs):
        assert userpw == "secret"
        return {"Pages": 3}

    def fake_convert(path, **kwargs):
        calls.append(kwargs)
        target = Path(kwargs["output_folder"]) / f"{kwargs['output_file']}-{kwargs['first_page']}.png"
        target.write_bytes(b"png")
        return [str(target)]

    monkeypatch.setattr(pdf2image, "pdfinfo_from_path", fake_info)
    monkeypatch.setattr(pdf2image, "convert_from_path", fake_convert)

    pages = Pdf2ImageRenderer(dpi=200).render(ExtractionRequest(sample_pdf, "secret"), workdir)
    first = next(pages)
    pages.close()

    assert first.index == 0
    assert first.source.exists()
    assert (first.width, first.height) == (1654, 2339)
    assert len(calls) == 1
    assert calls[0]["first_page"] == calls[0]["last_page"] == 1
    assert calls[0]["userpw"] == "secret"
    assert calls[0]["dpi"] == 200
    assert calls[0]["size"] == (1654, 2339)


def test_pdf2image_without_poppler_is_unavailable(monkeypatch, sample_pdf, workdir):
    pdf2image = pytest.importorskip("pdf2image")
    from pdf2image.exceptions import PDFInfoNotInstalledError

    def fake_info(path, **kwargs):
        raise PDFInfoNotInstalledError("Unable to get page count. Is poppler installed?")

    monkeypatch.setattr(pdf2image, "pdfinfo_from_path", fake_info)

    with pytest.raises(BackendUnavailableError):
        list(Pdf2ImageRenderer().render(ExtractionRequest(sample_pdf, ""), workdir))


def test_pdf2image_bad_password_is_render_error(monkeypatch, sample_pdf, workdir):
    pdf2image = pytest.importorskip("pdf2image")
    from pdf2image.exceptions import PDFPageCountError

    def fake_info(path, **kwargs):
        raise PDFPageCountError("Incorrect password")

    monkeypatch.setattr(pdf2image, "pdfinfo_from_path", fake_info)

    with pytest.raises(RenderError):
        list(Pdf2ImageRenderer().render(ExtractionRequest(sample_pdf, "bad"), workdir))


def test_pymupdf_renders_protected_pdf(protected_pdf, workdir):
    pytest.importorskip("fitz")

    pages = list(PyMuPDFRenderer(dpi=72).render(ExtractionRequest(protected_pdf, "secret"), workdir))

    assert [page.number for page in pages] == [1, 2, 3]
    assert all(page.source.exists() for page in pages)
    assert pages[0].width == 200


def test_pymupdf_rejects_wrong_password(protected_pdf, workdir):
    pytest.importorskip("fitz")

    with pytest.raises(RenderError):
        list(PyMuPDFRenderer(dpi=72).render(ExtractionRequest(protected_pdf, "wrong"), workdir))


def test_registry_contains_every_strategy():
    assert list(registry.names()) == ["command", "decrypt", "pdf2image", "pymupdf"]
    assert "pymupdf" in registry


def test_registry_rejects_duplicates_and_unknown_names():
    local = RendererRegistry()
    local.register("pymupdf", PyMuPDFRenderer)

    with pytest.raises(ValueError):
        local.register("pymupdf", PyMuPDFRenderer)
    with pytest.raises(KeyError):
        local.create("missing")


def test_create_renderer_applies_config():
    config = ExtractorConfig(pymupdf_dpi=150, pdf2image_dpi=100, command_dpi=120)

    assert create_renderer("pymupdf", config).dpi == 150
    assert create_renderer("pdf2image", config).dpi == 100
    assert create_renderer("command", config).dpi == 120
    decrypt = create_renderer("decrypt", config)
    assert isinstance(decrypt, DecryptingRenderer)
    assert isinstance(decrypt.inner, Pdf2ImageRenderer)
    assert decrypt.inner.dpi == 100


def test_default_renderers_follow_configured_order():
    config = ExtractorConfig(renderers=("command", "pymupdf"))

    assert [r.name for r in default_renderers(config)] == ["command", "pymupdf"]
    assert [r.name for r in default_renderers()] == ["pymupdf", "pdf2image", "command", "decrypt"]
