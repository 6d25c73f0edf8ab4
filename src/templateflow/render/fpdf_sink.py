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

"""PDF output on top of fpdf2.

Checkpoints snapshot the whole ``FPDF`` state the same way
``fpdf.recorder.FPDFRecorder`` does, so a rollback restores drawing, cursor
and graphics state in place without replacing the sink.
"""

from __future__ import annotations

import copy
import functools
import io
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TypeVar, cast

from fpdf import FPDF
from fpdf.enums import XPos, YPos
from fpdf.errors import FPDFException

from ..errors import RenderError
from ..qr.codec import qr_png
from .barcodes import MODULE_SYMBOLOGIES, bar_runs, encode
from .colors import BLACK, Rgb
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

logger = logging.getLogger(__name__)

_F = TypeVar("_F", bound=Callable[..., Any])

_CODE39_TYPES = frozenset({"C39", "C39+", "C39E", "C39E+", "CODE39"})
_I25_TYPES = frozenset({"I25", "I25+"})
_CELL_BREAKS = {
    0: (XPos.RIGHT, YPos.TOP),
    1: (XPos.LMARGIN, YPos.NEXT),
    2: (XPos.LEFT, YPos.NEXT),
}


def _guarded(func: _F) -> _F:
    """Re-raise fpdf and I/O failures of a drawing primitive as RenderError."""

    @functools.wraps(func)
    def wrapper(self: FpdfSink, *args: Any, **kwargs: Any) -> Any:
        try:
            return func(self, *args, **kwargs)
        except RenderError:
            raise
        except (FPDFException, OSError, ValueError, TypeError) as exc:
            raise RenderError(f"{func.__name__} failed: {exc}") from exc

    return cast(_F, wrapper)


class FpdfSink:
    def __init__(self, *, author: str | None = None) -> None:
        self._pdf: FPDF | None = None
        self._author = author
        self._open: set[int] = set()

    @property
    def pdf(self) -> FPDF:
        if self._pdf is None:
            raise RenderError("no page has been started; templates must begin with a page node")
        return self._pdf

    def get_cursor(self) -> tuple[float, float]:
        pdf = self.pdf
        return (float(pdf.get_x()), float(pdf.get_y()))

    def set_cursor(self, x: float, y: float) -> None:
        self.pdf.set_xy(x, y)

    @_guarded
    def set_font(self, family: str, style: str, size: float) -> None:
        self.pdf.set_font(family, style=style.upper(), size=size)

    @_guarded
    def new_page(self, setup: PageSetup) -> None:
        if self._pdf is None:
            pdf = FPDF(orientation=setup.orientation, unit=setup.unit, format=setup.format)
            pdf.set_auto_page_break(False)
            if self._author:
                pdf.set_author(self._author)
            self._pdf = pdf
        pdf = self._pdf
        pdf.set_margins(setup.left_margin, setup.top_margin, setup.right_margin)
        pdf.add_page(orientation=setup.orientation, format=setup.format)

    def line_break(self, height: float) -> None:
        self.pdf.ln(height)

    @_guarded
    def draw_text(self, x: float, y: float, text: str, style: TextStyle) -> None:
        pdf = self.pdf
        self._apply_text_style(style)
        with self._rotated(style.rotation, x, y):
            if style.fill_color is not None:
                width = pdf.get_string_width(text)
                pdf.set_fill_color(*style.fill_color)
                pdf.rect(x, y - style.font_size / pdf.k, width, style.font_size / pdf.k, style="F")
            pdf.text(x, y, text)

    @_guarded
    def draw_cell(self, text: str, box: CellBox, style: TextStyle) -> None:
        pdf = self.pdf
        self._apply_text_style(style)
        fill = style.fill_color is not None
        if fill:
            pdf.set_fill_color(*cast(Rgb, style.fill_color))
        new_x, new_y = _CELL_BREAKS.get(box.multiline_break, _CELL_BREAKS[0])
        if box.multiline:
            pdf.multi_cell(
                box.width,
                box.height,
                text,
                border=box.border,
                align=box.align,
                fill=fill,
                new_x=new_x,
                new_y=new_y,
            )
            return
        x, y = pdf.get_x(), pdf.get_y()
        with self._rotated(style.rotation, x, y):
            pdf.cell(
                box.width,
                box.height,
                text,
                border=box.border,
                align=box.align,
                fill=fill,
                new_x=XPos.RIGHT,
                new_y=YPos.TOP,
            )

    @_guarded
    def draw_rect(self, x: float, y: float, w: float, h: float, style: ShapeStyle) -> None:
        mode = self._apply_shape_style(style)
        if mode:
            self.pdf.rect(x, y, w, h, style=mode)

    @_guarded
    def draw_ellipse(self, x: float, y: float, w: float, h: float, style: ShapeStyle) -> None:
        mode = self._apply_shape_style(style)
        if mode:
            self.pdf.ellipse(x, y, w, h, style=mode)

    @_guarded
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
        pdf = self.pdf
        pdf.set_line_width(width)
        pdf.set_draw_color(*(color or BLACK))
        pdf.line(x1, y1, x2, y2)

    @_guarded
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
        name: Any = io.BytesIO(source) if isinstance(source, bytes) else str(source)
        self.pdf.image(name, x=x, y=y, w=w, h=h, link=link)

    @_guarded
    def draw_1d_barcode(
        self,
        code: str,
        x: float,
        y: float,
        w: float,
        h: float,
        style: BarcodeStyle,
    ) -> None:
        symbology = style.symbology.strip().upper()
        if symbology not in MODULE_SYMBOLOGIES | _CODE39_TYPES | _I25_TYPES:
            logger.warning("Unsupported barcode type %s; skipping %r", style.symbology, code)
            return
        pdf = self.pdf
        caption_height = style.font_size / pdf.k if style.show_text else 0.0
        bar_height = max(h - caption_height, h / 2)
        with self._rotated(style.rotation, x, y):
            if style.background is not None:
                pdf.set_fill_color(*style.background)
                pdf.rect(x, y, w, h, style="F")
            pdf.set_fill_color(*(style.color or BLACK))
            pdf.set_draw_color(*(style.color or BLACK))
            if symbology in MODULE_SYMBOLOGIES:
                encoded = encode(symbology, code)
                count = len(encoded.modules)
                module = w / count if w > 0 else style.module_width
                for start, length in bar_runs(encoded.modules):
                    pdf.rect(x + start * module, y, length * module, bar_height, style="F")
                caption, width = encoded.caption, module * count
            elif symbology in _CODE39_TYPES:
                caption = code.strip().upper()
                symbol = caption if caption.startswith("*") else f"*{caption}*"
                pdf.code39(symbol, x, y, style.module_width, bar_height)
                width = w
            else:
                caption = code.strip()
                pdf.interleaved2of5(caption, x, y, style.module_width, bar_height)
                width = w
            if style.show_text:
                self._barcode_caption(caption, x, y + h, width, style)

    @_guarded
    def draw_2d_barcode(
        self,
        code: str,
        x: float,
        y: float,
        w: float,
        h: float,
        style: QrStyle,
    ) -> None:
        png = qr_png(
            code,
            error=style.error,
            border=style.border,
            dark=style.color,
            light=style.background,
        )
        side = w or h
        self.pdf.image(io.BytesIO(png), x=x, y=y, w=side, h=h or side)

    def checkpoint(self) -> TransactionHandle:
        state = None if self._pdf is None else copy.deepcopy(self._pdf.__dict__)
        handle = TransactionHandle(state=state)
        self._open.add(handle.handle_id)
        return handle

    def rollback(self, handle: TransactionHandle) -> None:
        if handle.handle_id not in self._open:
            raise RenderError("transaction handle is not open")
        self._open.discard(handle.handle_id)
        if handle.state is None:
            self._pdf = None
            return
        self.pdf.__dict__ = cast(dict, handle.state)

    def release(self, handle: TransactionHandle) -> None:
        self._open.discard(handle.handle_id)

    def page_number_alias(self) -> str:
        return str(self.pdf.page_no())

    def total_pages_alias(self) -> str:
        return str(self.pdf.str_alias_nb_pages)

    def finalize(self, destination: str | Path | None = None) -> bytes:
        try:
            payload = bytes(self.pdf.output())
        except FPDFException as exc:
            raise RenderError(f"PDF output failed: {exc}") from exc
        if destination is not None:
            path = Path(destination)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(payload)
        return payload

    def _apply_text_style(self, style: TextStyle) -> None:
        pdf = self.pdf
        pdf.set_font(style.font_family, style=style.font_style.upper(), size=style.font_size)
        pdf.set_text_color(*(style.color or BLACK))

    def _apply_shape_style(self, style: ShapeStyle) -> str:
        pdf = self.pdf
        mode = ""
        if style.border_color is not None:
            pdf.set_line_width(style.line_width)
            pdf.set_draw_color(*style.border_color)
            mode += "D"
        if style.fill_color is not None:
            pdf.set_fill_color(*style.fill_color)
            mode += "F"
        return mode

    def _barcode_caption(
        self,
        caption: str,
        x: float,
        baseline: float,
        width: float,
        style: BarcodeStyle,
    ) -> None:
        pdf = self.pdf
        pdf.set_font(style.font_family, size=style.font_size)
        pdf.set_text_color(*(style.color or BLACK))
        text_width = pdf.get_string_width(caption)
        pdf.text(x + max(0.0, (width - text_width) / 2), baseline, caption)

    @contextmanager
    def _rotated(self, angle: float, x: float, y: float) -> Iterator[None]:
        if not angle:
            yield
            return
        with self.pdf.rotation(angle, x, y):
            yield


__all__ = ["FpdfSink"]
