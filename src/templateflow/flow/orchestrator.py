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

"""The page loop: document copies times replays until every section drains.

Each replay of the template tree produces exactly one physical page. The loop
is exposed one step at a time through :meth:`PageOrchestrator.advance_page`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from enum import Enum

from ..errors import RenderError
from ..template.model import ComponentNode, NodeKind
from .context import RenderContext
from .details import source_rows
from .evaluator import ComponentEvaluator

logger = logging.getLogger(__name__)


class PageStep(str, Enum):
    MORE_PAGES_NEEDED = "more_pages_needed"
    DONE = "done"


class PageOrchestrator:
    def __init__(
        self,
        template: Sequence[ComponentNode],
        context: RenderContext,
        evaluator: ComponentEvaluator,
    ) -> None:
        self.template = tuple(template)
        self.context = context
        self.evaluator = evaluator
        self._copy = 0
        self._replays = 0
        self.total_replays = 0

    @property
    def done(self) -> bool:
        return self._copy > self.context.document_copies or (
            self._copy == self.context.document_copies
            and self._replays > 0
            and not self.context.has_active_queues()
        )

    def advance_page(self) -> PageStep:
        """Replay the template once; report whether another replay is needed."""
        ctx = self.context
        if self.done:
            return PageStep.DONE
        if self._copy == 0 or (self._replays > 0 and not ctx.has_active_queues()):
            self._start_copy(self._copy + 1)

        progress = ctx.progress
        self.evaluator.render_nodes(self.template)
        self._replays += 1
        self.total_replays += 1
        ctx.pending_keys.clear()

        if ctx.has_active_queues():
            if ctx.progress == progress:
                keys = ", ".join(ctx.active_keys())
                raise RenderError(
                    f"pagination is stuck: details {keys} placed no rows on page {ctx.page_count}"
                )
            return PageStep.MORE_PAGES_NEEDED
        if self._copy < ctx.document_copies:
            return PageStep.MORE_PAGES_NEEDED
        return PageStep.DONE

    def run(self) -> int:
        """Drive every copy to completion; returns the number of pages produced."""
        while self.advance_page() is PageStep.MORE_PAGES_NEEDED:
            pass
        return self.total_replays

    def _start_copy(self, number: int) -> None:
        ctx = self.context
        ctx.start_copy(number)
        self._copy = number
        self._replays = 0
        if not ctx.design_mode:
            ctx.pending_keys.update(self._keys_with_rows())
        logger.debug("starting copy %d of %d", number, ctx.document_copies)

    def _keys_with_rows(self) -> Iterator[str]:
        binder = self.evaluator.binder
        for node in _top_level_details(self.template):
            key = node.data_path
            if key is not None and source_rows(binder.find(key)):
                yield key


def _top_level_details(nodes: Sequence[ComponentNode]) -> Iterator[ComponentNode]:
    for node in nodes:
        if node.kind is NodeKind.DETAILS:
            yield node
        else:
            yield from _top_level_details(node.children)


__all__ = ["PageOrchestrator", "PageStep"]
