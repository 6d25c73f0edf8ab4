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

"""Mutable state of one render call.

A :class:`RenderContext` is built fresh by every ``TemplateEngine.render()``
and owned by the page orchestrator for its whole lifetime.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from ..render.sink import TransactionHandle


class DetailsState(str, Enum):
    UNSTARTED = "unstarted"
    ACTIVE = "active"
    DRAINED = "drained"


class FlowResult(str, Enum):
    COMPLETED = "completed"
    OVERFLOW = "overflow"


@dataclass
class GroupState:
    has_value: bool = False
    last_value: str = ""
    print_header: bool = False

    def snapshot(self) -> tuple[bool, str, bool]:
        return (self.has_value, self.last_value, self.print_header)

    def restore(self, snapshot: tuple[bool, str, bool]) -> None:
        self.has_value, self.last_value, self.print_header = snapshot


@dataclass
class RowFrame:
    """The details row currently rendering its children."""

    key: str
    row: Any
    grouped: bool
    print_group_header: bool
    details_x: float
    details_y: float
    base_y: float

    @property
    def scope(self) -> Mapping[str, Any] | None:
        return self.row if isinstance(self.row, Mapping) else None


@dataclass
class FontState:
    family: str = "times"
    style: str = ""
    size: float = 8.0


@dataclass
class RenderContext:
    data: Mapping[str, Any]
    document_copies: int = 1
    design_mode: bool = False
    font: FontState = field(default_factory=FontState)
    now: datetime = field(default_factory=datetime.now)
    current_copy: int = 0
    page_count: int = 0
    queues: dict[str, deque[Any]] = field(default_factory=dict)
    states: dict[str, DetailsState] = field(default_factory=dict)
    groups: dict[str, GroupState] = field(default_factory=dict)
    transactions: dict[str, TransactionHandle] = field(default_factory=dict)
    pending_keys: set[str] = field(default_factory=set)
    frames: list[RowFrame] = field(default_factory=list)
    stored_positions: dict[str, tuple[float, float]] = field(default_factory=dict)
    template_variables: dict[str, str] = field(default_factory=dict)
    max_y: dict[str, float] = field(default_factory=dict)
    details_x: float = 0.0
    details_y: float = 0.0
    progress: int = 0

    def start_copy(self, number: int) -> None:
        """Reset per-copy state; template variables and stored positions survive."""
        self.current_copy = number
        self.page_count = 0
        self.queues.clear()
        self.states.clear()
        self.groups.clear()
        self.transactions.clear()
        self.pending_keys.clear()
        self.frames.clear()
        self.max_y.clear()
        self.details_x = self.details_y = 0.0

    def start_page(self) -> None:
        self.page_count += 1
        self.max_y.clear()
        self.details_x = self.details_y = 0.0

    def state_of(self, key: str) -> DetailsState:
        return self.states.get(key, DetailsState.UNSTARTED)

    def active_keys(self) -> list[str]:
        return [key for key, state in self.states.items() if state is DetailsState.ACTIVE]

    def has_active_queues(self) -> bool:
        return any(state is DetailsState.ACTIVE for state in self.states.values())

    def is_last_page(self) -> bool:
        """True once no details section has rows left to place.

        Sections that have data but were not reached yet on the first replay of
        a copy count as pending.
        """
        return not self.pending_keys and not self.has_active_queues()

    def reset_key(self, key: str) -> None:
        self.queues.pop(key, None)
        self.states.pop(key, None)
        self.groups.pop(key, None)
        self.max_y.pop(key, None)

    @property
    def current_frame(self) -> RowFrame | None:
        return self.frames[-1] if self.frames else None

    @property
    def row_scope(self) -> Mapping[str, Any] | None:
        frame = self.current_frame
        return frame.scope if frame is not None else None

    def group_header_visible(self) -> bool:
        for frame in reversed(self.frames):
            if frame.grouped:
                return frame.print_group_header
        return True

    def layout_variables(self) -> dict[str, str]:
        variables = {f"max_y_{key}": _number(value) for key, value in self.max_y.items()}
        variables["details_x"] = _number(self.details_x)
        variables["details_y"] = _number(self.details_y)
        return variables


def _number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


__all__ = [
    "DetailsState",
    "FlowResult",
    "FontState",
    "GroupState",
    "RenderContext",
    "RowFrame",
]
