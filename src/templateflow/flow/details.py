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

"""Repeating data sections that flow across pages.

Each details node owns one queue, keyed by its data path. Rows are rendered
speculatively inside a sink checkpoint; a row that pushes the cursor past
``height - overflow-margin`` is rolled back and stays at the head of the
queue for the next page. Rows only leave the queue once they fit.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from ..render.sink import RenderSink
from ..template.model import ComponentNode
from ..template.options import DetailsOptions
from ..utils import stringify
from .binding import MISSING, DataBinder, lookup
from .context import DetailsState, FlowResult, GroupState, RenderContext, RowFrame
from .visibility import VisibilityEvaluator

logger = logging.getLogger(__name__)

ChildRenderer = Callable[[Sequence[ComponentNode], Any, Callable[[], None]], FlowResult]


@dataclass
class _NestedSnapshot:
    key: str
    state: DetailsState | None
    queue: deque[Any] | None
    rows: list[Any]
    group: tuple[bool, str, bool] | None


class DetailsFlowController:
    def __init__(
        self,
        context: RenderContext,
        sink: RenderSink,
        binder: DataBinder,
        visibility: VisibilityEvaluator,
    ) -> None:
        self.context = context
        self.sink = sink
        self.binder = binder
        self.visibility = visibility

    def render(
        self,
        node: ComponentNode,
        options: DetailsOptions,
        render_children: ChildRenderer,
    ) -> FlowResult:
        """Render as many rows of ``node`` as fit on the current page."""
        ctx = self.context
        sink = self.sink
        key = node.data_path
        if key is None:
            return FlowResult.COMPLETED
        queue = self.materialize(key, options)
        if queue is None:
            self.hold_position(key, options)
            return FlowResult.COMPLETED

        start_x, start_y = sink.get_cursor()
        if options.x:
            start_x = options.x
        if options.y:
            start_y = options.y
        sink.set_cursor(start_x, start_y)
        budget = options.height - options.overflow_margin
        ctx.max_y[key] = start_y
        committed = 0

        while queue:
            row = queue[0]
            if not self.accepts(row, options):
                queue.popleft()
                ctx.progress += 1
                continue

            group = ctx.groups.setdefault(key, GroupState())
            group_snapshot = group.snapshot()
            print_header = self._update_group(group, row, options)

            row_x, row_y = sink.get_cursor()
            details_y = max(ctx.max_y.get(key, row_y), row_y)
            ctx.details_x, ctx.details_y = row_x, details_y
            frame = RowFrame(
                key=key,
                row=row,
                grouped=options.group_by is not None,
                print_group_header=print_header,
                details_x=row_x,
                details_y=details_y,
                base_y=row_y,
            )
            nested = self._snapshot_nested(node)
            handle = ctx.transactions.get(key)
            if handle is None:
                handle = sink.checkpoint()
                ctx.transactions[key] = handle

            extent = [row_y]

            def _track() -> None:
                extent[0] = max(extent[0], sink.get_cursor()[1])

            ctx.frames.append(frame)
            try:
                result = render_children(node.children, row, _track)
            finally:
                ctx.frames.pop()
            ctx.max_y[key] = max(ctx.max_y[key], extent[0])

            if result is FlowResult.OVERFLOW:
                # A nested section ran out of room; keep what was drawn and
                # resume this row on the next page.
                sink.release(ctx.transactions.pop(key))
                logger.debug("details %s: nested section continues on next page", key)
                return FlowResult.OVERFLOW

            if options.line_break:
                sink.line_break(options.margin)
            after_y = sink.get_cursor()[1]
            if options.row_height is not None:
                next_y = extent[0] + options.row_height
            else:
                next_y = max(extent[0], after_y)
            sink.set_cursor(start_x, next_y)

            if next_y - start_y > budget:
                if committed:
                    sink.rollback(ctx.transactions.pop(key))
                    group.restore(group_snapshot)
                    self._restore_nested(nested)
                    logger.debug(
                        "details %s: row overflows page %d, %d row(s) left",
                        key,
                        ctx.page_count,
                        len(queue),
                    )
                    return FlowResult.OVERFLOW
                logger.warning(
                    "details %s: row is taller than the section (%.2f > %.2f); placing it anyway",
                    key,
                    next_y - start_y,
                    budget,
                )

            queue.popleft()
            committed += 1
            ctx.progress += 1
            sink.release(ctx.transactions.pop(key))
            for nested_key in node.nested_details_keys:
                ctx.reset_key(nested_key)

        ctx.queues.pop(key, None)
        ctx.states[key] = DetailsState.DRAINED
        return FlowResult.COMPLETED

    def hold_position(self, key: str, options: DetailsOptions) -> None:
        """Publish ``max_y_<key>`` for a section that places no rows on this page."""
        self.context.max_y[key] = options.y or self.sink.get_cursor()[1]

    def materialize(self, key: str, options: DetailsOptions) -> deque[Any] | None:
        """Return the live queue for ``key``, creating it on first encounter."""
        ctx = self.context
        state = ctx.state_of(key)
        if state is DetailsState.ACTIVE:
            return ctx.queues[key]
        if state is DetailsState.DRAINED:
            return None
        ctx.pending_keys.discard(key)
        rows = source_rows(self.binder.find(key))
        if options.group_by is not None:
            group_by = options.group_by
            rows.sort(key=lambda row: _field_text(row, group_by))
        if not rows:
            ctx.states[key] = DetailsState.DRAINED
            return None
        queue: deque[Any] = deque(rows)
        ctx.queues[key] = queue
        ctx.states[key] = DetailsState.ACTIVE
        logger.debug("details %s: %d row(s) queued", key, len(queue))
        return queue

    def accepts(self, row: Any, options: DetailsOptions) -> bool:
        """Apply the row filter, or else the parent/child join, to one row."""
        if options.row_condition is not None:
            return self.visibility.condition(options.row_condition, row)
        if options.parent_join_column is not None and options.table_join_column is not None:
            parent = self.binder.find(options.parent_join_column)
            return _text(parent) == _field_text(row, options.table_join_column)
        return True

    def _update_group(self, group: GroupState, row: Any, options: DetailsOptions) -> bool:
        if options.group_by is None:
            group.print_header = False
            return False
        value = _field_text(row, options.group_by)
        if not group.has_value or group.last_value != value:
            group.has_value = True
            group.last_value = value
            group.print_header = True
        else:
            group.print_header = False
        return group.print_header

    def _snapshot_nested(self, node: ComponentNode) -> list[_NestedSnapshot]:
        ctx = self.context
        snapshots = []
        for key in node.nested_details_keys:
            queue = ctx.queues.get(key)
            group = ctx.groups.get(key)
            snapshots.append(
                _NestedSnapshot(
                    key=key,
                    state=ctx.states.get(key),
                    queue=queue,
                    rows=list(queue) if queue is not None else [],
                    group=group.snapshot() if group is not None else None,
                )
            )
        return snapshots

    def _restore_nested(self, snapshots: list[_NestedSnapshot]) -> None:
        ctx = self.context
        for item in snapshots:
            ctx.reset_key(item.key)
            if item.state is not None:
                ctx.states[item.key] = item.state
            if item.queue is not None:
                item.queue.clear()
                item.queue.extend(item.rows)
                ctx.queues[item.key] = item.queue
            if item.group is not None:
                group = GroupState()
                group.restore(item.group)
                ctx.groups[item.key] = group


def source_rows(value: Any) -> list[Any]:
    if value is MISSING or value is None or isinstance(value, (str, bytes)):
        return []
    if isinstance(value, Mapping):
        return list(value.values())
    if isinstance(value, Sequence):
        return list(value)
    return []


def _text(value: Any) -> str:
    return "" if value is MISSING else stringify(value).strip()


def _field_text(row: Any, path: str) -> str:
    return _text(lookup(path, row))


__all__ = ["ChildRenderer", "DetailsFlowController", "source_rows"]
