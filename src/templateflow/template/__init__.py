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

"""Template model, typed options and JSON parsing."""

from .model import ComponentNode, NodeKind
from .options import build_options, default_table
from .parser import TemplateSource, load_template, parse_template

__all__ = [
    "ComponentNode",
    "NodeKind",
    "TemplateSource",
    "build_options",
    "default_table",
    "load_template",
    "parse_template",
]
