from __future__ import annotations

from pathlib import Path

import click
from flask import current_app

from opnameapp.exceptions import StockOpnameError
from opnameapp.services.catalog import import_catalog_text
from opnameapp.services.export import build_all_location_exports, build_location_export
from opnameapp.utils.csv_export import render_all_locations_export, render_location_export
from opnameapp.utils.tabular_import import decode_tabular_bytes


def register_cli(app):
    @app.cli.command("import-catalog")
    @click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
    def import_catalog(path: Path) -> None:
        """Upsert master products from a CSV, TSV or XLSX file."""
        try:
            text = decode_tabular_bytes(path.name, path.read_bytes())
            imported = import_catalog_text(text)
        except StockOpnameError as exc:
            raise click.ClickException(exc.message) from exc
        click.echo(f"Imported {imported} products from {path.name}.")

    @app.cli.command("export-counts")
    @click.option("--location-id", type=int, default=None, help="Export a single location.")
    @click.option(
        "--output",
        type=click.Path(dir_okay=False, writable=True, path_type=Path),
        default=None,
        help="Write to this file instead of stdout.",
    )
    def export_counts(location_id: int | None, output: Path | None) -> None:
        """Write the stock count CSV for one location or for all of them."""
        tz_name = current_app.config.get("DISPLAY_TIMEZONE")
        try:
            if location_id is None:
                content = render_all_locations_export(build_all_location_exports(), tz_name)
            else:
                content = render_location_export(build_location_export(location_id), tz_name)
        except StockOpnameError as exc:
            raise click.ClickException(exc.message) from exc

        if output is None:
            click.echo(content)
            return
        output.write_text(content + "\n", encoding="utf-8")
        click.echo(f"Wrote {output}.")
