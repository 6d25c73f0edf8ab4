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

"""In-memory sink that records draw operations instead of producing PDF bytes.

The cursor model follows fpdf: cells advance x by their width, multi-line
cells move y by ``height * lines`` and ``line_break`` returns to the left
margin. Nothing is measured, so text never wraps on its own.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path

from ..errors import RenderError
from .colors import Rgb
from .sink import (
    BarcodeStyle,
    CellBox,
    ImageSource,
    PageSetup,
    QrStyle,
    ShapeStyle,
    TextStyle,
    TransactionHandle,
)

TOTAL_PAGES_ALIAS = "{nb}"

_TEXT_OPS = frozenset({"text", "cell"})


@dataclass(frozen=True)
class DrawOp:
    op: str
    x: float
    y: float
    text: str = ""
    width: float = 0.0
    height: float = 0.0


@dataclass
class RecordedPage:
    number: int
    setup: PageSetup
    operations: list[DrawOp] = field(default_factory=list)

    def texts(self) -> list[str]:
        return [item.text for item in self.operations if item.op in _TEXT_OPS]

    def ops(self, kind: str) -> list[DrawOp]:
        return [item for item in self.operations if item.op == kind]


@dataclass(frozen=True)
class _Snapshot:
    page_count: int
    op_count: int
    x: float
    y: float
    font: tuple[str, str, float]


class RecordingSink:
    def __init__(self) -> None:
        self.pages: list[RecordedPage] = []
        self.font: tuple[str, str, float] = ("times", "", 12.0)
        self.rollbacks = 0
        self._x = 0.0
        self._y = 0.0
        self._left = 0.0
        self._open: set[int] = set()
        self._finalized = False

    @property
    def open_transactions(self) -> int:
        return len(self._open)

    def get_cursor(self) -> tuple[float, float]:
        return (self._x, self._y)

    def set_cursor(self, x: float, y: float) -> None:
        self._x = float(x)
        self._y = float(y)

    def set_font(self, family: str, style: str, size: float) -> None:
        self.font = (family, style, float(size))

    def new_page(self, setup: PageSetup) -> None:
        self.pages.append(RecordedPage(number=len(self.pages) + 1, setup=setup))
        self._left = float(setup.left_margin)
        self._x = self._left
        self._y = float(setup.top_margin)

    def line_break(self, height: float) -> None:
        self._x = self._left
        self._y += float(height)

    def draw_text(self, x: float, y: float, text: str, style: TextStyle) -> None:
        self._record(DrawOp("text", x, y, text))

    def draw_cell(self, text: str, box: CellBox, style: TextStyle) -> None:
        x, y = self._x, self._y
        self._record(DrawOp("cell", x, y, text, box.width, box.height))
        if not box.multiline:
            self._x = x + box.width
            return
        total_height = box.height * (text.count("\n") + 1)
        if box.multiline_break == 1:
            self._x = self._left
            self._y = y + total_height
        elif box.multiline_break == 2:
            self._y = y + total_height
        else:
            self._x = x + box.width

    def draw_rect(self, x: float, y: float, w: float, h: float, style: ShapeStyle) -> None:
        self._record(DrawOp("rect", x, y, width=w, height=h))

    def draw_ellipse(self, x: float, y: float, w: float, h: float, style: ShapeStyle) -> None:
        self._record(DrawOp("ellipse", x, y, width=w, height=h))

    def draw_line(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        *,
        width: float,
        color: Rgb | None,
    ) -> None:
        self._record(DrawOp("line", x1, y1, width=x2 - x1, height=y2 - y1))

    def draw_image(
        self,
        source: ImageSource,
        x: float,
        y: float,
        w: float,
        h: float,
        *,
        link: str = "",
    ) -> None:
        label = str(source) if isinstance(source, Path) else f"<{len(source)} bytes>"
        self._record(DrawOp("image", x, y, label, w, h))

    def draw_1d_barcode(
        self,
        code: str,
        x: float,
        y: float,
        w: float,
        h: float,
        style: BarcodeStyle,
    ) -> None:
        self._record(DrawOp("barcode", x, y, code, w, h))

    def draw_2d_barcode(
        self,
        code: str,
        x: float,
        y: float,
        w: float,
        h: float,
        style: QrStyle,
    ) -> None:
        self._record(DrawOp("qrcode", x, y, code, w, h))

    def checkpoint(self) -> TransactionHandle:
        ops = len(self.pages[-1].operations) if self.pages else 0
        handle = TransactionHandle(
            state=_Snapshot(len(self.pages), ops, self._x, self._y, self.font)
        )
        self._open.add(handle.handle_id)
        return handle

    def rollback(self, handle: TransactionHandle) -> None:
        if handle.handle_id not in self._open:
            raise RenderError("transaction handle is not open")
        snapshot = handle.state
        if not isinstance(snapshot, _Snapshot):
            raise RenderError("transaction handle was not issued by this sink")
        del self.pages[snapshot.page_count :]
        if self.pages:
            del self.pages[-1].operations[snapshot.op_count :]
        self._x, self._y, self.font = snapshot.x, snapshot.y, snapshot.font
        self._open.discard(handle.handle_id)
        self.rollbacks += 1

    def release(self, handle: TransactionHandle) -> None:
        self._open.discard(handle.handle_id)

    def page_number_alias(self) -> str:
        return str(len(self.pages))

    def total_pages_alias(self) -> str:
        return TOTAL_PAGES_ALIAS

    def finalize(self, destination: str | Path | None = None) -> bytes:
        if not self._finalized:
            total = str(len(self.pages))
            for page in self.pages:
                page.operations = [
                    DrawOp(
                        item.op,
                        item.x,
                        item.y,
                        item.text.replace(TOTAL_PAGES_ALIAS, total),
                        item.width,
                        item.height,
                    )
                    for item in page.operations
                ]
            self._finalized = True
        payload = json.dumps(
            [
                {"number": page.number, "operations": [asdict(item) for item in page.operations]}
                for page in self.pages
            ],
            indent=2,
        ).encode("utf-8")
        if destination is not None:
            Path(destination).write_bytes(payload)
        return payload

    def _record(self, operation: DrawOp) -> None:
        if not self.pages:
            raise RenderError(f"cannot draw {operation.op} before the first page node")
        self.pages[-1].operations.append(operation)


__all__ = ["DrawOp", "RecordedPage", "RecordingSink", "TOTAL_PAGES_ALIAS"]
