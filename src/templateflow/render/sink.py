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

"""The drawing surface contract consumed by the flow engine."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from .colors import BLACK, WHITE, Rgb

ImageSource = Path | bytes

_handle_ids = itertools.count(1)


@dataclass(frozen=True)
class PageSetup:
    orientation: str = "P"
    unit: str = "mm"
    format: str | tuple[float, float] = "A4"
    top_margin: float = 10.0
    left_margin: float = 10.0
    right_margin: float = 10.0


@dataclass(frozen=True)
class TextStyle:
    font_family: str = "times"
    font_style: str = ""
    font_size: float = 12.0
    color: Rgb | None = BLACK
    fill_color: Rgb | None = None
    rotation: float = 0.0


@dataclass(frozen=True)
class CellBox:
    width: float = 50.0
    height: float = 5.0
    border: int | str = 0
    align: str = "L"
    multiline: bool = False
    multiline_break: int = 0


@dataclass(frozen=True)
class ShapeStyle:
    line_width: float = 0.1
    border_color: Rgb | None = BLACK
    fill_color: Rgb | None = WHITE


@dataclass(frozen=True)
class BarcodeStyle:
    symbology: str = "EAN13"
    module_width: float = 0.4
    color: Rgb | None = BLACK
    background: Rgb | None = None
    show_text: bool = True
    font_family: str = "helvetica"
    font_size: float = 8.0
    rotation: float = 0.0


@dataclass(frozen=True)
class QrStyle:
    border: bool = True
    color: Rgb | None = BLACK
    background: Rgb | None = None
    error: str = "H"


@dataclass(frozen=True, eq=False)
class TransactionHandle:
    """Opaque checkpoint token; only the sink that issued it understands ``state``."""

    state: object = field(repr=False)
    handle_id: int = field(default_factory=lambda: next(_handle_ids))


class RenderSink(Protocol):
    def get_cursor(self) -> tuple[float, float]: ...

    def set_cursor(self, x: float, y: float) -> None: ...

    def set_font(self, family: str, style: str, size: float) -> None: ...

    def new_page(self, setup: PageSetup) -> None: ...

    def line_break(self, height: float) -> None: ...

    def draw_text(self, x: float, y: float, text: str, style: TextStyle) -> None: ...

    def draw_cell(self, text: str, box: CellBox, style: TextStyle) -> None: ...

    def draw_rect(self, x: float, y: float, w: float, h: float, style: ShapeStyle) -> None: ...

    def draw_ellipse(self, x: float, y: float, w: float, h: float, style: ShapeStyle) -> None: ...

    def draw_line(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        *,
        width: float,
        color: Rgb | None,
    ) -> None: ...

    def draw_image(
        self,
        source: ImageSource,
        x: float,
        y: float,
        w: float,
        h: float,
        *,
        link: str = "",
    ) -> None: ...

    def draw_1d_barcode(
        self,
        code: str,
        x: float,
        y: float,
        w: float,
        h: float,
        style: BarcodeStyle,
    ) -> None: ...

    def draw_2d_barcode(
        self,
        code: str,
        x: float,
        y: float,
        w: float,
        h: float,
        style: QrStyle,
    ) -> None: ...

    def checkpoint(self) -> TransactionHandle: ...

    def rollback(self, handle: TransactionHandle) -> None: ...

    def release(self, handle: TransactionHandle) -> None: ...

    def page_number_alias(self) -> str: ...

    def total_pages_alias(self) -> str: ...

    def finalize(self, destination: str | Path | None = None) -> bytes: ...


__all__ = [
    "BarcodeStyle",
    "CellBox",
    "ImageSource",
    "PageSetup",
    "QrStyle",
    "RenderSink",
    "ShapeStyle",
    "TextStyle",
    "TransactionHandle",
]
