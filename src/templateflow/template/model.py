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

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from ..utils import bool_value


class NodeKind(str, Enum):
    PAGE = "page"
    DATA = "data"
    TEXT = "text"
    CELL = "cell"
    IMAGE = "image"
    BOX = "box"
    ELLIPSE = "ellipse"
    LINE = "line"
    BARCODE = "barcode"
    QRCODE = "qrcode"
    BREAK = "break"
    FONT = "font"
    HEADER = "header"
    FOOTER = "footer"
    GROUP = "group"
    DETAILS = "details"
    STORE_POSITION = "store-position"

    @classmethod
    def lookup(cls, type_name: str) -> NodeKind | None:
        try:
            return cls(type_name)
        except ValueError:
            return None


_EMPTY_OPTIONS: Mapping[str, object] = MappingProxyType({})


@dataclass(frozen=True)
class ComponentNode:
    """One parsed template element.

    ``kind`` is None for a ``type`` this engine does not know; such nodes are
    kept so the template round-trips, and skipped when rendering.
    """

    type_name: str
    kind: NodeKind | None
    options: Mapping[str, object] = field(default_factory=lambda: MappingProxyType({}))
    children: tuple[ComponentNode, ...] = ()
    data: object = None
    text: str | None = None
    src: str | None = None
    content: str | None = None
    show_if: str | None = None
    is_else: bool = False
    first_page: bool = False
    not_first_page: bool = False
    last_page: bool = False
    not_last_page: bool = False
    nested_details_keys: tuple[str, ...] = field(default=(), compare=False)

    @property
    def data_path(self) -> str | None:
        if isinstance(self.data, str) and self.data.strip():
            return self.data.strip()
        return None

    @property
    def variables(self) -> Mapping[str, object]:
        if isinstance(self.data, Mapping):
            return self.data
        return _EMPTY_OPTIONS

    @property
    def is_group_header(self) -> bool:
        return bool_value(self.options.get("group-header"))

    def walk(self) -> Iterator[ComponentNode]:
        yield self
        for child in self.children:
            yield from child.walk()


def collect_nested_details_keys(children: tuple[ComponentNode, ...]) -> tuple[str, ...]:
    keys: list[str] = []
    for child in children:
        for node in child.walk():
            if node.kind is NodeKind.DETAILS and node.data_path and node.data_path not in keys:
                keys.append(node.data_path)
    return tuple(keys)


__all__ = [
    "ComponentNode",
    "NodeKind",
    "collect_nested_details_keys",
]
