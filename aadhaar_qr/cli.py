"""
Command-line interface for the Aadhaar QR extractor.
"""

import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from aadhaar_qr import __version__
from aadhaar_qr.config import DEFAULT_RENDERERS, ExtractorConfig
from aadhaar_qr.exceptions import AadhaarQRError, AllStrategiesFailedError
from aadhaar_qr.extractor import AadhaarQRExtractor
from aadhaar_qr.renderers import default_renderers
from aadhaar_qr.utils import configure_logging, ensure_parent_dir

console = Console()

INSTALL_HINTS = (
    ("Python packages", "pip install PyMuPDF pdf2image Pillow pyzbar pypdf[crypto]"),
    ("zbar (QR decoding)", "apt-get install libzbar0 / brew install zbar"),
    ("poppler (pdf2image)", "apt-get install poppler-utils / brew install poppler"),
    ("Ghostscript / ImageMagick", "apt-get install ghostscript imagemagick"),
    ("pdftk / qpdf", "apt-get install pdftk qpdf"),
)

DETAIL_ROWS = (
    ("Name", "name"),
    ("Aadhaar Number", "aadhaar_number"),
    ("Date of Birth", "date_of_birth"),
    ("Gender", "gender"),
    ("Care Of", "care_of"),
    ("Mobile", "mobile"),
    ("Email", "email"),
)


def _print_install_help() -> None:
    console.print("\n[bold yellow]Installation help:[/bold yellow]")
    for label, hint in INSTALL_HINTS:
        console.print(f"  • {label}: [dim]{hint}[/dim]")


@click.group()
@click.version_option(version=__version__)
def cli():
    """
    Aadhaar QR Extractor - read identity details from Aadhaar e-document PDFs.
    """
    pass


@cli.command(name="extract")
@click.argument('input_pdf', type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--password', '-p',
    prompt=True,
    hide_input=True,
    help='PDF password',
    type=str
)
@click.option(
    '--renderer', '-r',
    'renderers',
    multiple=True,
    type=click.Choice(DEFAULT_RENDERERS),
    help='Renderer strategy to try (repeatable, keeps the given order)'
)
@click.option(
    '--output', '-o',
    help='Write the extracted details as JSON to this file',
    type=click.Path(dir_okay=False)
)
@click.option(
    '--workdir',
    help='Parent directory for the temporary page image folder',
    type=click.Path(file_okay=False)
)
@click.option('--json', 'as_json', is_flag=True, help='Print details as JSON')
@click.option('--show-raw', is_flag=True, help='Include the raw QR payload in the output')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def extract(input_pdf, password, renderers, output, workdir, as_json, show_raw, verbose):
    """
    Extract Aadhaar details from the QR code of a protected PDF.

    Examples:

        aadhaar-qr extract eaadhaar.pdf -p ABCD1990

        aadhaar-qr extract eaadhaar.pdf -p ABCD1990 --json -o details.json

        aadhaar-qr extract eaadhaar.pdf -p ABCD1990 -r pdf2image -r command
    """
    configure_logging(verbose)
    try:
        config = ExtractorConfig.from_env()
        if renderers:
            config = config.with_renderers(tuple(renderers))
        extractor = AadhaarQRExtractor(config=config)

        if not as_json:
            console.print("\n[bold cyan]Starting Aadhaar QR extraction...[/bold cyan]")
        details = extractor.extract(input_pdf, password, workdir=workdir)
        data = details.to_dict(include_raw=show_raw)

        if as_json:
            click.echo(json.dumps(data, indent=2, ensure_ascii=False))
        else:
            table = Table(title="Extracted Aadhaar Details", show_header=False)
            table.add_column("Field", style="cyan", no_wrap=True)
            table.add_column("Value", style="green")
            for label, attribute in DETAIL_ROWS:
                value = getattr(details, attribute)
                if value:
                    table.add_row(label, value)
            address = details.formatted_address
            if address:
                table.add_row("Address", address)
            if show_raw:
                table.add_row("Raw Data", details.raw_data)
            console.print()
            console.print(table)

        if output:
            destination = Path(output)
            ensure_parent_dir(destination)
            destination.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            if not as_json:
                console.print(f"\n[dim]Details saved to {destination}[/dim]")

    except AllStrategiesFailedError as e:
        console.print(f"\n[bold red]✗ Extraction failed:[/bold red] {e}")
        for outcome in e.outcomes:
            console.print(f"  • {outcome}")
        _print_install_help()
        sys.exit(1)
    except AadhaarQRError as e:
        console.print(f"\n[bold red]✗ Extraction failed:[/bold red] {e}")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)


@cli.command(name="backends")
def show_backends():
    """
    Show which renderer strategies can run on this machine.

    Example:

        aadhaar-qr backends
    """
    table = Table(title="Renderer Strategies")
    table.add_column("Order", style="dim", justify="right")
    table.add_column("Renderer", style="cyan", no_wrap=True)
    table.add_column("Available")

    for position, renderer in enumerate(default_renderers(ExtractorConfig()), start=1):
        available = renderer.is_available()
        table.add_row(
            str(position),
            renderer.name,
            "[green]yes[/green]" if available else "[red]no[/red]",
        )

    console.print()
    console.print(table)
    console.print()


if __name__ == '__main__':
    cli()
