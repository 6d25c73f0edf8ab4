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

"""Public entry point: template + data in, rendered document bytes out."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

from .config.loader import EngineConfig
from .flow.binding import DataBinder
from .flow.context import FontState, RenderContext
from .flow.evaluator import ComponentEvaluator
from .flow.orchestrator import PageOrchestrator
from .render.fpdf_sink import FpdfSink
from .render.images import ImageCache
from .render.sink import RenderSink
from .template.model import ComponentNode
from .template.parser import TemplateSource, load_template, parse_template

logger = logging.getLogger(__name__)

SinkFactory = Callable[[], RenderSink]


class TemplateEngine:
    """Binds a parsed template to data and renders it through a sink.

    Every :meth:`render` call builds a fresh :class:`RenderContext` and a fresh
    sink, so one engine can render repeatedly without state leaking between
    calls.
    """

    def __init__(
        self,
        template: TemplateSource | Sequence[ComponentNode],
        output: str | Path | None = None,
        *,
        config: EngineConfig | None = None,
        sink_factory: SinkFactory | None = None,
        design_mode: bool | None = None,
        images: ImageCache | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.output = Path(output) if output is not None else None
        self.design_mode = self.config.render.design_mode if design_mode is None else design_mode
        self._template = _as_nodes(template)
        self._data: Mapping[str, Any] = {}
        self._copies = self.config.render.document_copies
        self._sink_factory: SinkFactory = sink_factory or FpdfSink
        image_cfg = self.config.images
        self.images = images or ImageCache(
            image_cfg.cache_dir,
            timeout=image_cfg.fetch_timeout,
            retries=image_cfg.fetch_retries,
            persist=image_cfg.use_cache,
        )
        self.sink: RenderSink | None = None

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        output: str | Path | None = None,
        **kwargs: Any,
    ) -> TemplateEngine:
        return cls(load_template(path), output, **kwargs)

    def set_data(self, data: Mapping[str, Any]) -> TemplateEngine:
        if not isinstance(data, Mapping):
            raise TypeError("render data must be a mapping")
        self._data = data
        return self

    def set_document_copies(self, copies: int = 1) -> TemplateEngine:
        if isinstance(copies, bool) or not isinstance(copies, int) or copies < 1:
            raise ValueError("document copies must be a positive integer")
        self._copies = copies
        return self

    def get_template(self) -> tuple[ComponentNode, ...]:
        return self._template

    def orchestrator(self, sink: RenderSink | None = None) -> PageOrchestrator:
        """Build a ready-to-step page loop over a fresh context and sink."""
        self.sink = sink if sink is not None else self._sink_factory()
        fonts = self.config.fonts
        numbers = self.config.numbers
        context = RenderContext(
            data=self._data,
            document_copies=self._copies,
            design_mode=self.design_mode,
            font=FontState(family=fonts.family, size=fonts.size),
        )
        binder = DataBinder(
            context,
            self.sink,
            decimal_separator=numbers.decimal_separator,
            thousands_separator=numbers.thousands_separator,
        )
        evaluator = ComponentEvaluator(context, self.sink, binder=binder, images=self.images)
        return PageOrchestrator(self._template, context, evaluator)

    def render(self) -> bytes:
        orchestrator = self.orchestrator()
        replays = orchestrator.run()
        logger.debug("rendered %d page(s) across %d copy(ies)", replays, self._copies)
        return orchestrator.evaluator.sink.finalize(self.output)


def _as_nodes(template: TemplateSource | Sequence[ComponentNode]) -> tuple[ComponentNode, ...]:
    if (
        isinstance(template, Sequence)
        and not isinstance(template, (str, bytes))
        and template
        and all(isinstance(item, ComponentNode) for item in template)
    ):
        return tuple(template)  # type: ignore[arg-type]
    return parse_template(template)  # type: ignore[arg-type]


__all__ = ["SinkFactory", "TemplateEngine"]
