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

from ..render.sink import RenderSink
from ..template.options import Placement
from .context import RenderContext


class LayoutCursor:
    """Turns placement options into absolute page coordinates.

    Precedence, lowest first: current cursor plus ``dx``/``dy``, the details
    row baseline (``detailsBaseY``, ``detailsX``, ``detailsY``), a stored
    position (``storedX``, ``storedY``), then explicit ``x``/``y``. An ``x`` or
    ``y`` of 0 means "not set".
    """

    def __init__(self, context: RenderContext, sink: RenderSink) -> None:
        self.context = context
        self.sink = sink

    def resolve(self, placement: Placement) -> tuple[float, float]:
        ctx = self.context
        x, y = self.sink.get_cursor()
        x += placement.dx
        y += placement.dy

        frame = ctx.current_frame
        if placement.details_base_y is not None:
            base = frame.base_y if frame is not None else ctx.details_y
            y = base + placement.details_base_y
        if placement.details_x is not None:
            x = (frame.details_x if frame is not None else ctx.details_x) + placement.details_x
        if placement.details_y is not None:
            y = (frame.details_y if frame is not None else ctx.details_y) + placement.details_y

        if placement.stored_x is not None and placement.stored_x in ctx.stored_positions:
            x = ctx.stored_positions[placement.stored_x][0]
        if placement.stored_y is not None and placement.stored_y in ctx.stored_positions:
            y = ctx.stored_positions[placement.stored_y][1]

        if placement.x:
            x = placement.x
        if placement.y:
            y = placement.y
        return (x, y)

    def store(self, name: str) -> tuple[float, float]:
        position = self.sink.get_cursor()
        self.context.stored_positions[name] = position
        return position


__all__ = ["LayoutCursor"]
