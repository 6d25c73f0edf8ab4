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

"""Field path resolution and token substitution.

Paths are dot separated (``customer.address.city``); integer segments index
into lists (``lines.0.sku``). A path is looked up in an ordered chain of
scopes: the call-site row, the row of the enclosing details section, then the
global data. The first scope that contains the head segment answers, and a
miss anywhere below it yields ``""``.

Text goes through four passes, each only seeing what the previous one left:

1. ``{{page_number}}`` and the other system tokens,
2. ``[[name]]`` template variables (from ``data`` nodes) and layout variables,
3. ``{{path}}`` tokens the row scope can answer,
4. remaining ``{{path}}`` tokens against the global data (misses become ``""``).
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator, Mapping, Sequence
from typing import Any

from ..render.sink import RenderSink
from ..template.options import LAYOUT_TOKEN_RE
from ..utils import format_number, is_number, stringify
from .context import RenderContext

FIELD_TOKEN_RE = re.compile(r"\{\{\s*([\w\-.]+)\s*\}\}")
VALUE_PLACEHOLDER = "%d"


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def lookup(path: str, scope: object) -> Any:
    """Walk ``path`` inside one scope; returns MISSING on any unresolved segment."""
    value = scope
    for segment in path.split("."):
        if isinstance(value, Mapping):
            if segment not in value:
                return MISSING
            value = value[segment]
        elif isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            if not segment.lstrip("-").isdigit():
                return MISSING
            index = int(segment)
            if not -len(value) <= index < len(value):
                return MISSING
            value = value[index]
        else:
            return MISSING
    return value


class DataBinder:
    def __init__(
        self,
        context: RenderContext,
        sink: RenderSink,
        *,
        decimal_separator: str = ",",
        thousands_separator: str = ".",
    ) -> None:
        self.context = context
        self.sink = sink
        self.decimal_separator = decimal_separator
        self.thousands_separator = thousands_separator

    def find(self, path: str, row: object = None) -> Any:
        path = path.strip()
        if not path:
            return MISSING
        head = path.split(".", 1)[0]
        for scope in self._scopes(row):
            if head in scope:
                return lookup(path, scope)
        return MISSING

    def resolve(self, path: str, row: object = None) -> Any:
        if self.context.design_mode:
            return f"[{path.strip()}]"
        value = self.find(path, row)
        return "" if value is MISSING else value

    def variable(self, name: str) -> Any:
        """Look a bare name up among system values, then template variables."""
        producer = self._system_tokens(for_conditions=True).get(name)
        if producer is not None:
            return producer()
        return self.context.template_variables.get(name, MISSING)

    def substitute(self, text: str, row: object = None) -> str:
        if self.context.design_mode or not text:
            return text
        system = self._system_tokens()

        def _system(match: re.Match[str]) -> str:
            producer = system.get(match.group(1))
            return producer() if producer is not None else match.group(0)

        text = FIELD_TOKEN_RE.sub(_system, text)

        variables = {**self.context.layout_variables(), **self.context.template_variables}

        def _variable(match: re.Match[str]) -> str:
            name = match.group(1)
            return variables[name] if name in variables else match.group(0)

        text = LAYOUT_TOKEN_RE.sub(_variable, text)

        row_scopes = list(self._row_scopes(row))

        def _row_field(match: re.Match[str]) -> str:
            path = match.group(1)
            head = path.split(".", 1)[0]
            for scope in row_scopes:
                if head in scope:
                    value = lookup(path, scope)
                    return "" if value is MISSING else stringify(value)
            return match.group(0)

        if row_scopes:
            text = FIELD_TOKEN_RE.sub(_row_field, text)

        def _global_field(match: re.Match[str]) -> str:
            value = lookup(match.group(1), self.context.data)
            return "" if value is MISSING else stringify(value)

        return FIELD_TOKEN_RE.sub(_global_field, text)

    def format_value(self, value: object, decimals: int | None = None) -> str:
        if decimals is not None and is_number(value):
            return format_number(
                value,
                decimals,
                decimal_separator=self.decimal_separator,
                thousands_separator=self.thousands_separator,
            )
        return stringify(value)

    @staticmethod
    def compose(text: str, value: str) -> str:
        """Merge node text with its bound value: ``%d`` once, else appended."""
        if not text.strip():
            return text + value
        if VALUE_PLACEHOLDER in text:
            return text.replace(VALUE_PLACEHOLDER, value, 1)
        return text + value

    def _scopes(self, row: object) -> Iterator[Mapping[str, Any]]:
        yield from self._row_scopes(row)
        if isinstance(self.context.data, Mapping):
            yield self.context.data

    def _row_scopes(self, row: object) -> Iterator[Mapping[str, Any]]:
        if isinstance(row, Mapping):
            yield row
        active = self.context.row_scope
        if active is not None and active is not row:
            yield active

    def _system_tokens(self, *, for_conditions: bool = False) -> dict[str, Callable[[], str]]:
        ctx = self.context
        now = ctx.now
        tokens: dict[str, Callable[[], str]] = {
            "current_date": lambda: f"{now:%Y-%m}-{now.day}",
            "current_year": lambda: f"{now:%Y}",
            "current_month": lambda: f"{now:%m}",
            "current_day": lambda: str(now.day),
            "current_time": lambda: f"{now:%H:%M:%S}",
            "current_copy": lambda: str(ctx.current_copy),
            "document_copies": lambda: str(ctx.document_copies),
        }
        if for_conditions:
            tokens["page_number"] = lambda: str(ctx.page_count)
        else:
            tokens["page_number"] = self.sink.page_number_alias
            tokens["total_pages"] = self.sink.total_pages_alias
        return tokens


__all__ = ["DataBinder", "FIELD_TOKEN_RE", "MISSING", "lookup"]
