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

"""Declarative JSON templates bound to data and paginated into PDF pages."""

from .config import EngineConfig, load_engine_config
from .engine import TemplateEngine
from .errors import RenderError, TemplateError
from .render.fpdf_sink import FpdfSink
from .render.recording import RecordingSink
from .template import ComponentNode, NodeKind, load_template, parse_template

__all__ = [
    "ComponentNode",
    "EngineConfig",
    "FpdfSink",
    "NodeKind",
    "RecordingSink",
    "RenderError",
    "TemplateEngine",
    "TemplateError",
    "load_engine_config",
    "load_template",
    "parse_template",
]
