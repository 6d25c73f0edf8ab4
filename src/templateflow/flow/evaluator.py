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

import html
import logging
from collections.abc import Callable, Sequence
from typing import Any

from ..errors import RenderError, TemplateError
from ..render.images import ImageCache
from ..render.sink import (
    BarcodeStyle,
    CellBox,
    PageSetup,
    QrStyle,
    RenderSink,
    ShapeStyle,
    TextStyle,
)
from ..template.model import ComponentNode, NodeKind, collect_nested_details_keys
from ..template.options import (
    BarcodeOptions,
    BreakOptions,
    CellOptions,
    DetailsOptions,
    FontOptions,
    ImageOptions,
    LineOptions,
    PageOptions,
    QrCodeOptions,
    ShapeOptions,
    StorePositionOptions,
    TextOptions,
    build_options,
    has_layout_tokens,
)
from ..utils import stringify
from .binding import DataBinder
from .context import FlowResult, RenderContext
from .cursor import LayoutCursor
from .details import DetailsFlowController
from .visibility import VisibilityEvaluator

logger = logging.getLogger(__name__)

# Average glyph width as a share of the font size, used by ``auto-width`` cells.
AUTO_WIDTH_FACTOR = 0.18

_Handler = Callable[[ComponentNode, Any, Any], FlowResult | None]


class ComponentEvaluator:
    """Renders component nodes onto a sink, one replay of the tree at a time."""

    def __init__(
        self,
        context: RenderContext,
        sink: RenderSink,
        *,
        binder: DataBinder | None = None,
        images: ImageCache | None = None,
    ) -> None:
        self.context = context
        self.sink = sink
        self.binder = binder or DataBinder(context, sink)
        self.visibility = VisibilityEvaluator(context, self.binder)
        self.cursor = LayoutCursor(context, sink)
        self.details = DetailsFlowController(context, sink, self.binder, self.visibility)
        self.images = images or ImageCache()
        self._options: dict[int, Any] = {}
        self._handlers: dict[NodeKind, _Handler] = {
            NodeKind.PAGE: self._page,
            NodeKind.DATA: self._data,
            NodeKind.TEXT: self._text,
            NodeKind.CELL: self._cell,
            NodeKind.IMAGE: self._image,
            NodeKind.BOX: self._box,
            NodeKind.ELLIPSE: self._ellipse,
            NodeKind.LINE: self._line,
            NodeKind.BARCODE: self._barcode,
            NodeKind.QRCODE: self._qrcode,
            NodeKind.BREAK: self._break,
            NodeKind.FONT: self._font,
            NodeKind.HEADER: self._container,
            NodeKind.FOOTER: self._container,
            NodeKind.GROUP: self._container,
            NodeKind.DETAILS: self._details,
            NodeKind.STORE_POSITION: self._store_position,
        }

    def render_nodes(
        self,
        nodes: Sequence[ComponentNode],
        row: Any = None,
        after_each: Callable[[], None] | None = None,
    ) -> FlowResult:
        """Render sibling nodes in order.

        Inside a details row (``after_each`` given) a nested overflow stops
        the remaining siblings; at other levels rendering carries on.
        """
        previous: bool | None = None
        outcome = FlowResult.COMPLETED
        for node in nodes:
            gate = self.visibility.gate(node, previous, row)
            previous = gate.show_if_result
            if not gate.visible:
                self._skip(node)
                continue
            result = self.render_node(node, row)
            if after_each is not None:
                after_each()
            if result is FlowResult.OVERFLOW:
                outcome = FlowResult.OVERFLOW
                if after_each is not None:
                    break
        return outcome

    def render_node(self, node: ComponentNode, row: Any = None) -> FlowResult:
        if node.kind is None:
            logger.debug("skipping component of unknown type %r", node.type_name)
            self._skip(node)
            return FlowResult.COMPLETED
        if node.is_group_header and not self.context.group_header_visible():
            return FlowResult.COMPLETED
        options = self.options_for(node)
        try:
            result = self._handlers[node.kind](node, options, row)
        except RenderError as exc:
            raise RenderError(f"{node.type_name}: {exc}") from exc
        return result or FlowResult.COMPLETED

    def _skip(self, node: ComponentNode) -> None:
        # Sections under a skipped node cannot hold back the last page.
        self.context.pending_keys.difference_update(collect_nested_details_keys((node,)))

    def options_for(self, node: ComponentNode) -> Any:
        """Typed options of ``node``; ``[[...]]`` values are substituted per call."""
        if node.kind is None:
            raise TemplateError(f"unknown component type {node.type_name!r}")
        cached = self._options.get(id(node))
        if cached is not None:
            return cached
        dynamic = any(has_layout_tokens(value) for value in node.options.values())
        variables = {**self.context.layout_variables(), **self.context.template_variables}
        try:
            options = build_options(node.kind, node.options, variables if dynamic else None)
        except ValueError as exc:
            raise TemplateError(f"{node.type_name} component: {exc}") from exc
        if not dynamic:
            self._options[id(node)] = options
        return options

    def node_value(self, node: ComponentNode, row: Any, decimals: int | None = None) -> str:
        if node.data_path is None:
            return ""
        return self.binder.format_value(self.binder.resolve(node.data_path, row), decimals)

    def _page(self, node: ComponentNode, options: PageOptions, row: Any) -> None:
        self.sink.new_page(
            PageSetup(
                orientation=options.orientation,
                unit=options.unit,
                format=options.format,
                top_margin=options.top_margin,
                left_margin=options.left_margin,
                right_margin=options.right_margin,
            )
        )
        self.context.start_page()
        font = self.context.font
        self.sink.set_font(font.family, font.style, font.size)
        logger.debug("page %d (copy %d)", self.context.page_count, self.context.current_copy)

    def _data(self, node: ComponentNode, options: Any, row: Any) -> None:
        self.context.template_variables = {
            str(name): stringify(value) for name, value in node.variables.items()
        }

    def _content(self, node: ComponentNode, options: TextOptions, row: Any) -> str:
        value = self.node_value(node, row, options.round)
        text = self.binder.substitute(node.text or "", row)
        content = self.binder.compose(text, value)
        return html.unescape(content) if options.html_decoding else content

    def _text_style(self, options: TextOptions) -> TextStyle:
        return TextStyle(
            font_family=options.font_family or self.context.font.family,
            font_style=options.text_decoration,
            font_size=options.font_size,
            color=options.color,
            fill_color=options.bg_color,
            rotation=options.rotation,
        )

    def _text(self, node: ComponentNode, options: TextOptions, row: Any) -> None:
        x, y = self.cursor.resolve(options)
        self.sink.draw_text(x, y, self._content(node, options, row), self._text_style(options))

    def _cell(self, node: ComponentNode, options: CellOptions, row: Any) -> None:
        x, y = self.cursor.resolve(options)
        content = self._content(node, options, row)
        width = options.width
        if options.auto_width:
            width = len(content) * options.font_size * AUTO_WIDTH_FACTOR
        self.sink.set_cursor(x, y)
        box = CellBox(
            width=width,
            height=options.height,
            border=options.border,
            align=options.text_align.upper(),
            multiline=options.multiline,
            multiline_break=options.multiline_break,
        )
        self.sink.draw_cell(content, box, self._text_style(options))

    def _image(self, node: ComponentNode, options: ImageOptions, row: Any) -> None:
        reference = self.binder.substitute(node.src or "", row)
        if not reference.strip():
            return
        source = self.images.fetch(reference, use_cache=options.use_cache)
        if source is None:
            return
        x, y = self.cursor.resolve(options)
        self.sink.draw_image(source, x, y, options.width, options.height, link=options.link)

    def _shape_style(self, options: ShapeOptions) -> ShapeStyle:
        return ShapeStyle(
            line_width=options.border_width,
            border_color=options.border_color,
            fill_color=options.fill_color,
        )

    def _box(self, node: ComponentNode, options: ShapeOptions, row: Any) -> None:
        x, y = self.cursor.resolve(options)
        self.sink.draw_rect(x, y, options.width, options.height, self._shape_style(options))

    def _ellipse(self, node: ComponentNode, options: ShapeOptions, row: Any) -> None:
        x, y = self.cursor.resolve(options)
        self.sink.draw_ellipse(x, y, options.width, options.height, self._shape_style(options))

    def _line(self, node: ComponentNode, options: LineOptions, row: Any) -> None:
        self.sink.draw_line(
            options.x1,
            options.y1,
            options.x2,
            options.y2,
            width=options.width,
            color=options.color,
        )

    def _symbol_content(self, node: ComponentNode, row: Any) -> str:
        content = self.binder.substitute(node.content or "", row)
        return content + self.node_value(node, row)

    def _barcode(self, node: ComponentNode, options: BarcodeOptions, row: Any) -> None:
        code = self._symbol_content(node, row)
        if not code:
            logger.debug("barcode without content skipped")
            return
        x, y = self.cursor.resolve(options)
        style = BarcodeStyle(
            symbology=options.type,
            module_width=options.xres,
            color=options.fgcolor,
            background=options.bgcolor,
            show_text=options.text,
            font_family=options.font,
            font_size=options.fontsize,
            rotation=options.rotation,
        )
        self.sink.draw_1d_barcode(code, x, y, options.width, options.height, style)

    def _qrcode(self, node: ComponentNode, options: QrCodeOptions, row: Any) -> None:
        code = self._symbol_content(node, row)
        if not code:
            logger.debug("qrcode without content skipped")
            return
        x, y = self.cursor.resolve(options)
        style = QrStyle(
            border=options.border,
            color=options.fgcolor,
            background=options.bgcolor,
            error=options.error,
        )
        self.sink.draw_2d_barcode(code, x, y, options.width, options.height, style)

    def _break(self, node: ComponentNode, options: BreakOptions, row: Any) -> None:
        self.sink.line_break(options.height)

    def _font(self, node: ComponentNode, options: FontOptions, row: Any) -> None:
        font = self.context.font
        if options.font_family:
            font.family = options.font_family
        font.style = options.font_decoration
        font.size = options.font_size
        self.sink.set_font(font.family, font.style, font.size)

    def _container(self, node: ComponentNode, options: Any, row: Any) -> FlowResult:
        return self.render_nodes(node.children, row)

    def _details(self, node: ComponentNode, options: DetailsOptions, row: Any) -> FlowResult:
        if self.context.design_mode:
            if node.data_path is not None:
                self.details.hold_position(node.data_path, options)
            return FlowResult.COMPLETED
        return self.details.render(node, options, self.render_nodes)

    def _store_position(self, node: ComponentNode, options: StorePositionOptions, row: Any) -> None:
        self.cursor.store(options.name)


__all__ = ["AUTO_WIDTH_FACTOR", "ComponentEvaluator"]
