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

"""Typed per-kind node options.

Every option dataclass field carries the template key it is read from and a
coercion. Field defaults form the default table for that node kind.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields
from typing import Any

from ..render.colors import BLACK, WHITE, Rgb, parse_color
from ..utils import bool_value, is_number
from .model import NodeKind

logger = logging.getLogger(__name__)

LAYOUT_TOKEN_RE = re.compile(r"\[\[\s*([\w\-.]+)\s*\]\]")

_Coerce = Callable[[object, str], Any]


def _number(value: object, label: str) -> float:
    if isinstance(value, bool) or not is_number(value):
        raise ValueError(f"{label} must be a number")
    return float(str(value).strip()) if isinstance(value, str) else float(value)  # type: ignore[arg-type]


def _optional_number(value: object, label: str) -> float | None:
    if value is None:
        return None
    return _number(value, label)


def _integer(value: object, label: str) -> int:
    number = _number(value, label)
    if not number.is_integer():
        raise ValueError(f"{label} must be an integer")
    return int(number)


def _optional_integer(value: object, label: str) -> int | None:
    if value is None:
        return None
    return _integer(value, label)


def _text(value: object, label: str) -> str:
    if isinstance(value, (dict, list, tuple)):
        raise ValueError(f"{label} must be a string")
    return str(value)


def _optional_text(value: object, label: str) -> str | None:
    if value is None or value is False:
        return None
    text = _text(value, label).strip()
    return text or None


def _flag(value: object, label: str) -> bool:
    if isinstance(value, (dict, list, tuple)):
        raise ValueError(f"{label} must be a boolean")
    return bool_value(value)


def _color(value: object, label: str) -> Rgb | None:
    return parse_color(value, label=label)


def _border(value: object, label: str) -> int | str:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return 1 if value else 0
    if isinstance(value, str):
        text = value.strip().upper()
        if not text or text == "0":
            return 0
        if text == "1":
            return 1
        if all(ch in "LTRB" for ch in text):
            return text
    raise ValueError(f"{label} must be 0, 1 or a combination of L, T, R, B")


def _page_format(value: object, label: str) -> str | tuple[float, float]:
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("[") and text.endswith("]"):
            parts = [part.strip() for part in text[1:-1].split(",") if part.strip()]
            return _page_format(parts, label)
        if not text:
            raise ValueError(f"{label} must not be empty")
        return text
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return (_number(value[0], label), _number(value[1], label))
    raise ValueError(f"{label} must be a page size name or a [width, height] pair")


def option(key: str, coerce: _Coerce, default: Any = None) -> Any:
    return field(default=default, metadata={"key": key, "coerce": coerce})


@dataclass(frozen=True)
class Placement:
    x: float | None = option("x", _optional_number)
    y: float | None = option("y", _optional_number)
    dx: float = option("dx", _number, 0.0)
    dy: float = option("dy", _number, 0.0)
    details_x: float | None = option("detailsX", _optional_number)
    details_y: float | None = option("detailsY", _optional_number)
    details_base_y: float | None = option("detailsBaseY", _optional_number)
    stored_x: str | None = option("storedX", _optional_text)
    stored_y: str | None = option("storedY", _optional_text)
    group_header: bool = option("group-header", _flag, False)


@dataclass(frozen=True)
class PageOptions:
    orientation: str = option("orientation", _text, "P")
    unit: str = option("unit", _text, "mm")
    format: str | tuple[float, float] = option("format", _page_format, "A4")
    top_margin: float = option("topMargin", _number, 10.0)
    left_margin: float = option("leftMargin", _number, 10.0)
    right_margin: float = option("rightMargin", _number, 10.0)


@dataclass(frozen=True)
class TextOptions(Placement):
    color: Rgb | None = option("color", _color, BLACK)
    bg_color: Rgb | None = option("bg-color", _color)
    font_size: float = option("font-size", _number, 12.0)
    font_family: str | None = option("font-family", _optional_text)
    text_decoration: str = option("text-decoration", _text, "")
    rotation: float = option("rotation", _number, 0.0)
    round: int | None = option("round", _optional_integer)
    html_decoding: bool = option("html_decoding", _flag, True)


@dataclass(frozen=True)
class CellOptions(TextOptions):
    width: float = option("width", _number, 50.0)
    height: float = option("height", _number, 5.0)
    text_align: str = option("text-align", _text, "L")
    border: int | str = option("border", _border, 0)
    multiline: bool = option("multiline", _flag, False)
    multiline_break: int = option("multiline-break", _integer, 0)
    auto_width: bool = option("auto-width", _flag, False)


@dataclass(frozen=True)
class ImageOptions(Placement):
    width: float = option("width", _number, 0.0)
    height: float = option("height", _number, 0.0)
    link: str = option("link", _text, "")
    use_cache: bool = option("use-cache", _flag, True)


@dataclass(frozen=True)
class ShapeOptions(Placement):
    width: float = option("width", _number, 0.0)
    height: float = option("height", _number, 0.0)
    border_width: float = option("border-width", _number, 0.1)
    border_color: Rgb | None = option("border-color", _color, BLACK)
    fill_color: Rgb | None = option("fill-color", _color, WHITE)


@dataclass(frozen=True)
class LineOptions:
    x1: float = option("x1", _number, 0.0)
    y1: float = option("y1", _number, 0.0)
    x2: float = option("x2", _number, 0.0)
    y2: float = option("y2", _number, 0.0)
    width: float = option("width", _number, 0.1)
    color: Rgb | None = option("color", _color, BLACK)
    group_header: bool = option("group-header", _flag, False)


@dataclass(frozen=True)
class BarcodeOptions(Placement):
    type: str = option("type", _text, "EAN13")
    width: float = option("width", _number, 10.0)
    height: float = option("height", _number, 10.0)
    xres: float = option("xres", _number, 0.4)
    rotation: float = option("rotation", _number, 0.0)
    fgcolor: Rgb | None = option("fgcolor", _color, BLACK)
    bgcolor: Rgb | None = option("bgcolor", _color)
    text: bool = option("text", _flag, True)
    font: str = option("font", _text, "helvetica")
    fontsize: float = option("fontsize", _number, 8.0)


@dataclass(frozen=True)
class QrCodeOptions(Placement):
    width: float = option("width", _number, 10.0)
    height: float = option("height", _number, 10.0)
    border: bool = option("border", _flag, True)
    fgcolor: Rgb | None = option("fgcolor", _color, BLACK)
    bgcolor: Rgb | None = option("bgcolor", _color)
    error: str = option("error", _text, "H")


@dataclass(frozen=True)
class BreakOptions:
    height: float = option("height", _number, 4.0)
    group_header: bool = option("group-header", _flag, False)


@dataclass(frozen=True)
class FontOptions:
    font_family: str | None = option("font-family", _optional_text)
    font_decoration: str = option("font-decoration", _text, "")
    font_size: float = option("font-size", _number, 12.0)


@dataclass(frozen=True)
class DetailsOptions:
    height: float = option("height", _number, 100.0)
    row_height: float | None = option("row-height", _optional_number)
    row_condition: str | None = option("row-condition", _optional_text)
    parent_join_column: str | None = option("parent-join-column", _optional_text)
    table_join_column: str | None = option("table-join-column", _optional_text)
    margin: float = option("margin", _number, 4.0)
    x: float | None = option("x", _optional_number)
    y: float | None = option("y", _optional_number)
    overflow_margin: float = option("overflow-margin", _number, 6.0)
    group_by: str | None = option("group-by", _optional_text)
    line_break: bool = option("line-break", _flag, True)


@dataclass(frozen=True)
class StorePositionOptions:
    name: str = option("name", _text, "default")


@dataclass(frozen=True)
class NoOptions:
    pass


OPTION_TYPES: dict[NodeKind, type] = {
    NodeKind.PAGE: PageOptions,
    NodeKind.DATA: NoOptions,
    NodeKind.TEXT: TextOptions,
    NodeKind.CELL: CellOptions,
    NodeKind.IMAGE: ImageOptions,
    NodeKind.BOX: ShapeOptions,
    NodeKind.ELLIPSE: ShapeOptions,
    NodeKind.LINE: LineOptions,
    NodeKind.BARCODE: BarcodeOptions,
    NodeKind.QRCODE: QrCodeOptions,
    NodeKind.BREAK: BreakOptions,
    NodeKind.FONT: FontOptions,
    NodeKind.HEADER: NoOptions,
    NodeKind.FOOTER: NoOptions,
    NodeKind.GROUP: NoOptions,
    NodeKind.DETAILS: DetailsOptions,
    NodeKind.STORE_POSITION: StorePositionOptions,
}


def default_table(kind: NodeKind) -> dict[str, object]:
    """Return ``{template option key: default}`` for a node kind."""
    return {
        item.metadata["key"]: item.default
        for item in fields(OPTION_TYPES[kind])
        if "key" in item.metadata
    }


def has_layout_tokens(value: object) -> bool:
    return isinstance(value, str) and LAYOUT_TOKEN_RE.search(value) is not None


def substitute_layout_tokens(value: str, variables: Mapping[str, object]) -> str:
    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in variables:
            return str(variables[name])
        return match.group(0)

    return LAYOUT_TOKEN_RE.sub(_replace, value)


def build_options(
    kind: NodeKind,
    raw: Mapping[str, object],
    variables: Mapping[str, object] | None = None,
) -> Any:
    """Coerce a raw option mapping into the typed options of ``kind``.

    Values that still carry ``[[...]]`` tokens after substitution keep their
    defaults. At parse time no variables exist yet, so every token is left.
    """
    option_type = OPTION_TYPES[kind]
    values: dict[str, object] = {}
    for item in fields(option_type):
        key = item.metadata.get("key")
        if key is None or key not in raw:
            continue
        value = raw[key]
        if isinstance(value, str) and variables:
            value = substitute_layout_tokens(value, variables)
        if has_layout_tokens(value):
            if variables:
                logger.debug(
                    "%s.options.%s is unresolved (%r); using the default", kind.value, key, value
                )
            continue
        if value is None:
            continue
        values[item.name] = item.metadata["coerce"](value, f"{kind.value}.options.{key}")
    return option_type(**values)


__all__ = [
    "BarcodeOptions",
    "BreakOptions",
    "CellOptions",
    "DetailsOptions",
    "FontOptions",
    "ImageOptions",
    "LAYOUT_TOKEN_RE",
    "LineOptions",
    "NoOptions",
    "OPTION_TYPES",
    "PageOptions",
    "Placement",
    "QrCodeOptions",
    "ShapeOptions",
    "StorePositionOptions",
    "TextOptions",
    "build_options",
    "default_table",
    "has_layout_tokens",
    "substitute_layout_tokens",
]
