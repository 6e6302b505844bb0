from __future__ import annotations

import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import CodecSettings, load_settings
from .errors import ParseError
from .io import collect_sources, read_document, write_document
from .printer import encode

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="vcard-codec: decode, check and canonically re-encode vCard 3.0 files.",
)
console = Console()


def _setup(config: Path | None, verbose: bool) -> CodecSettings:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )
    return load_settings(config)


def _expand(paths: list[Path]) -> list[Path]:
    files: list[Path] = []
    for p in paths:
        if p.is_dir():
            files.extend(collect_sources(p))
        elif p.is_file():
            files.append(p)
        else:
            console.print(f"[yellow]Skipping {escape(str(p))}: not found[/yellow]")
    return files


# ── `check` command ────────────────────────────────────────────────────────────

@app.command()
def check(
    paths: list[Path] = typer.Argument(..., help=".vcf files or folders containing them"),
    config: Path | None = typer.Option(None, "--config", "-c", help="TOML settings file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Decode every file and report what was found, or where decoding failed."""
    settings = _setup(config, verbose)
    files = _expand(paths)
    if not files:
        console.print("[bold red]No .vcf files found.[/bold red]")
        raise typer.Exit(code=2)

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("File")
    table.add_column("Cards", justify="right")
    table.add_column("Entries", justify="right")
    table.add_column("Status")

    failures = 0
    for f in files:
        try:
            document = read_document(f, settings)
        except (ParseError, UnicodeDecodeError) as exc:
            failures += 1
            table.add_row(f.name, "-", "-", f"[red]{escape(str(exc))}[/red]")
            continue
        entries = sum(len(card) for card in document)
        table.add_row(f.name, str(len(document)), str(entries), "[green]ok[/green]")

    console.print(table)
    if failures:
        console.print(f"[bold red]{failures} of {len(files)} file(s) failed to decode.[/bold red]")
        raise typer.Exit(code=1)


# ── `format` command ───────────────────────────────────────────────────────────

@app.command("format")
def format_(
    path: Path = typer.Argument(..., help=".vcf file to re-encode"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write here instead of stdout"),
    config: Path | None = typer.Option(None, "--config", "-c", help="TOML settings file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Decode a file and print it back in canonical form."""
    settings = _setup(config, verbose)
    try:
        document = read_document(path, settings)
    except (ParseError, UnicodeDecodeError) as exc:
        console.print(f"[bold red]{escape(path.name)}: {escape(str(exc))}[/bold red]")
        raise typer.Exit(code=1)

    if output is None:
        sys.stdout.write(encode(document, settings))
        return
    count = write_document(document, output, settings)
    console.print(f"[bold green]✓ Wrote {count} vCard(s) → {escape(str(output))}[/bold green]")


if __name__ == "__main__":
    app()
