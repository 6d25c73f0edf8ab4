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

import os
import sys
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "templateflow"
PACKAGE_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_PATH = PACKAGE_ROOT / "config/default.toml"
CONFIG_FILENAME = "config.toml"
CONFIG_ENV = "TEMPLATEFLOW_CONFIG"
XDG_CONFIG_ENV = "XDG_CONFIG_HOME"


def user_config_path() -> Path:
    xdg_override = os.environ.get(XDG_CONFIG_ENV)
    if xdg_override:
        return Path(xdg_override) / APP_NAME / CONFIG_FILENAME
    if sys.platform == "darwin":
        return Path.home() / ".config" / APP_NAME / CONFIG_FILENAME
    return Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME


def resolve_config_path(path: str | Path | None = None) -> Path:
    """Pick the config file: explicit path, $TEMPLATEFLOW_CONFIG, user file, packaged default."""
    if path:
        return Path(path).expanduser()
    env_path = os.environ.get(CONFIG_ENV, "").strip()
    if env_path:
        return Path(env_path).expanduser()
    user_path = user_config_path()
    if user_path.is_file():
        return user_path
    return DEFAULT_CONFIG_PATH


__all__ = [
    "APP_NAME",
    "CONFIG_ENV",
    "DEFAULT_CONFIG_PATH",
    "resolve_config_path",
    "user_config_path",
]
