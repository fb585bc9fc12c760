from __future__ import annotations

from pathlib import Path
from typing import Optional
import json
import logging

import typer

from . import config
from .engine.context import RenderOptions
from .engine.fonts import FontPair
from .engine.run import load_payload, payload_slug, render_to_dir, run_batch
from .fixtures import fixture_names, get_fixture_data

app = typer.Typer(help="Render document templates to PDF")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log render progress")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _font_pair(latin_font: Optional[Path], ideographic_font: Optional[Path]) -> FontPair:
    return FontPair(
        latin=latin_font.read_bytes() if latin_font else None,
        ideographic=ideographic_font.read_bytes() if ideographic_font else None,
    )


@app.command()
def render(
    payload: Path = typer.Argument(..., exists=True, dir_okay=False, help="Template or {template, data} JSON"),
    data: Optional[Path] = typer.Option(None, "--data", exists=True, dir_okay=False, help="Record JSON"),
    fixture: Optional[str] = typer.Option(None, "--fixture", help="Use a built-in data fixture"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    latin_font: Optional[Path] = typer.Option(None, "--latin-font", exists=True, help="Latin TTF"),
    ideographic_font: Optional[Path] = typer.Option(None, "--ideographic-font", exists=True, help="CJK TTF"),
    preview_mode: str = typer.Option("record", "--preview-mode", help="record or fieldCode"),
    debug: bool = typer.Option(False, "--debug", help="Include debug warnings"),
    previews: bool = typer.Option(False, "--previews", help="Write PNG previews of the first pages"),
) -> None:
    if out:
        config.set_out_dir(out)
    if preview_mode not in ("record", "fieldCode"):
        raise typer.BadParameter("preview mode must be record or fieldCode", param_hint="--preview-mode")

    template, record = load_payload(payload)
    if data:
        record = json.loads(data.read_text(encoding="utf-8"))
    if fixture:
        record = get_fixture_data(fixture)
        if record is None:
            raise typer.BadParameter(f"unknown fixture, choose from {', '.join(fixture_names())}", param_hint="--fixture")

    slug = payload_slug(template, payload.stem)
    options = RenderOptions(debug=debug, preview_mode=preview_mode, request_id=slug)
    result, artifacts = render_to_dir(
        slug, template, record, _font_pair(latin_font, ideographic_font), options, previews
    )
    typer.echo(f"Rendered {slug}: {result.page_count} pages, {len(result.warnings)} warnings")
    for warning in result.warnings:
        typer.echo(f"  {warning}")
    for _, path in artifacts:
        typer.echo(str(path))


@app.command()
def batch(
    directory: Path = typer.Argument(..., exists=True, file_okay=False, help="Directory of payload JSON files"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    latin_font: Optional[Path] = typer.Option(None, "--latin-font", exists=True, help="Latin TTF"),
    ideographic_font: Optional[Path] = typer.Option(None, "--ideographic-font", exists=True, help="CJK TTF"),
    previews: bool = typer.Option(False, "--previews", help="Write PNG previews of the first pages"),
) -> None:
    if out:
        config.set_out_dir(out)
    paths = sorted(directory.glob("*.json"))
    if not paths:
        typer.echo("No payloads to render")
        return
    results = run_batch(paths, _font_pair(latin_font, ideographic_font), previews=previews)
    typer.echo(f"READY: {len(results['READY'])}")
    typer.echo(f"FAILED: {len(results['FAILED'])}")
    for slug in results["FAILED"]:
        typer.echo(f"FAILED: {slug}")


if __name__ == "__main__":
    app()
