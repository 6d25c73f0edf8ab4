#!/usr/bin/env python3
# Copyright (C) 2026 Alex Stoyanov
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License along with this program.
# If not, see <https://www.gnu.org/licenses/>.

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from rich.table import Table

from ...config import load_engine_config
from ...engine import TemplateEngine
from ...render.recording import RecordingSink
from ..api import console
from ..core.common import _ctx_value, _run_cli
from ..core.log import _warn, configure_logging

_RENDER_HELP = (
    "Render a JSON template with JSON data into a PDF.\n\n"
    "Examples:\n"
    "  templateflow render invoice.json --data invoice-data.json -o invoice.pdf\n"
    "  templateflow render labels.json --data rows.json --copies 2\n"
    "  templateflow render invoice.json --design-mode\n"
    "  templateflow render invoice.json --data invoice-data.json --dry-run\n"
)

_PREVIEW_TEXTS = 3


def register(app: typer.Typer) -> None:
    app.command(help=_RENDER_HELP)(render)


def render(
    ctx: typer.Context,
    template: Path = typer.Argument(..., help="Template JSON file."),
    data: Path | None = typer.Option(
        None,
        "--data",
        "-d",
        help="JSON object bound to the template fields.",
        rich_help_panel="Inputs",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Output PDF path (defaults to <template>.pdf).",
        rich_help_panel="Outputs",
    ),
    copies: int | None = typer.Option(
        None,
        "--copies",
        min=1,
        help="Render the whole document this many times.",
        rich_help_panel="Outputs",
    ),
    design_mode: bool = typer.Option(
        False,
        "--design-mode",
        help="Print field paths instead of values and skip details sections.",
        rich_help_panel="Behavior",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Lay out the pages without writing a PDF and print a summary.",
        rich_help_panel="Behavior",
    ),
    config: str | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Use this TOML config file.",
        rich_help_panel="Config",
    ),
) -> None:
    config_value = config or _ctx_value(ctx, "config")
    quiet_value = bool(_ctx_value(ctx, "quiet"))
    debug_value = bool(_ctx_value(ctx, "debug"))

    def _run() -> None:
        engine_config = load_engine_config(config_value)
        configure_logging(engine_config.logging.level, debug=debug_value, quiet=quiet_value)
        output_path = output or template.with_suffix(".pdf")
        engine = TemplateEngine.from_file(
            template,
            output_path,
            config=engine_config,
            design_mode=True if design_mode else None,
        )
        if data is not None:
            engine.set_data(_load_data(data))
        if copies is not None:
            engine.set_document_copies(copies)

        if dry_run:
            if output is not None:
                _warn("--output is ignored with --dry-run", quiet=quiet_value)
            sink = RecordingSink()
            engine.orchestrator(sink).run()
            sink.finalize()
            if not quiet_value:
                console.print(_pages_table(sink))
            return

        engine.render()
        if not quiet_value:
            console.print(str(output_path))

    _run_cli(_run, debug=debug_value)


def _load_data(path: Path) -> dict[str, Any]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"data file {path} is not valid JSON: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise ValueError(f"data file {path} must hold a JSON object")
    return payload


def _pages_table(sink: RecordingSink) -> Table:
    table = Table(title=f"{len(sink.pages)} page(s)", title_justify="left")
    table.add_column("Page", justify="right", style="accent")
    table.add_column("Ops", justify="right")
    table.add_column("First texts", style="muted")
    for page in sink.pages:
        texts = [text for text in page.texts() if text.strip()]
        table.add_row(
            str(page.number),
            str(len(page.operations)),
            ", ".join(texts[:_PREVIEW_TEXTS]),
        )
    return table
