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

import typer

from ...config import load_engine_config
from ...render.images import ImageCache
from ..api import console
from ..core.common import _ctx_value, _run_cli

_CACHE_HELP = (
    "Delete downloaded images from the on-disk cache.\n\n"
    "Examples:\n"
    "  templateflow clear-cache\n"
    "  templateflow clear-cache --config ./my_config.toml\n"
)


def register(app: typer.Typer) -> None:
    app.command(name="clear-cache", help=_CACHE_HELP)(clear_cache)


def clear_cache(
    ctx: typer.Context,
    config: str | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Use the cache directory from this config file.",
        rich_help_panel="Config",
    ),
) -> None:
    config_value = config or _ctx_value(ctx, "config")
    quiet_value = bool(_ctx_value(ctx, "quiet"))
    debug_value = bool(_ctx_value(ctx, "debug"))

    def _run() -> None:
        images = load_engine_config(config_value).images
        cache = ImageCache(images.cache_dir)
        removed = cache.clear()
        if not quiet_value:
            console.print(f"Removed {removed} cached image(s) from {cache.cache_dir}")

    _run_cli(_run, debug=debug_value)
