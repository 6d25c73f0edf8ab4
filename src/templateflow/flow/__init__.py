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

"""Template flow: binding, visibility, layout, details pagination and the page loop."""

from .binding import DataBinder
from .context import DetailsState, FlowResult, RenderContext
from .cursor import LayoutCursor
from .details import DetailsFlowController
from .evaluator import ComponentEvaluator
from .orchestrator import PageOrchestrator, PageStep
from .visibility import VisibilityEvaluator

__all__ = [
    "ComponentEvaluator",
    "DataBinder",
    "DetailsFlowController",
    "DetailsState",
    "FlowResult",
    "LayoutCursor",
    "PageOrchestrator",
    "PageStep",
    "RenderContext",
    "VisibilityEvaluator",
]
