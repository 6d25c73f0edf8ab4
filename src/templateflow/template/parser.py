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

import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from types import MappingProxyType
from typing import Any

from ..errors import TemplateError
from ..utils import bool_value
from .model import ComponentNode, NodeKind, collect_nested_details_keys
from .options import build_options

logger = logging.getLogger(__name__)

TemplateSource = str | bytes | Sequence[Mapping[str, Any]]

_STRING_FIELDS = ("text", "src", "content")
_PAGE_FLAGS = ("first_page", "not_first_page", "last_page", "not_last_page")


def load_template(path: str | Path) -> tuple[ComponentNode, ...]:
    """Read and parse a JSON template file."""
    template_path = Path(path)
    try:
        raw = template_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise TemplateError(f"template {template_path} is not valid UTF-8") from exc
    return parse_template(raw)


def parse_template(source: TemplateSource) -> tuple[ComponentNode, ...]:
    """Parse a template (JSON text or decoded list) into component nodes."""
    document = _decode(source)
    if not isinstance(document, list):
        raise TemplateError("template must be a JSON array of components")
    return tuple(_parse_node(item, path=f"[{idx}]") for idx, item in enumerate(document))


def _decode(source: TemplateSource) -> object:
    if isinstance(source, (bytes, bytearray)):
        try:
            source = bytes(source).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TemplateError("template is not valid UTF-8") from exc
    if isinstance(source, str):
        try:
            return json.loads(source)
        except json.JSONDecodeError as exc:
            raise TemplateError(
                f"template is not valid JSON (line {exc.lineno}, column {exc.colno}): {exc.msg}"
            ) from exc
    if isinstance(source, Sequence):
        return list(source)
    raise TemplateError("template must be JSON text or a list of components")


def _parse_node(item: object, *, path: str) -> ComponentNode:
    if not isinstance(item, Mapping):
        raise TemplateError(f"component {path} must be an object")

    type_value = item.get("type", NodeKind.TEXT.value)
    if not isinstance(type_value, str) or not type_value.strip():
        raise TemplateError(f"component {path}.type must be a non-empty string")
    type_name = type_value.strip()
    kind = NodeKind.lookup(type_name)
    if kind is None:
        logger.debug("component %s has unsupported type %r; it will be skipped", path, type_name)

    options = item.get("options", {})
    if options is None:
        options = {}
    if not isinstance(options, Mapping):
        raise TemplateError(f"component {path}.options must be an object")
    if kind is not None:
        try:
            build_options(kind, options)
        except ValueError as exc:
            raise TemplateError(f"component {path}: {exc}") from exc

    children_raw = item.get("children", [])
    if children_raw is None:
        children_raw = []
    if not isinstance(children_raw, list):
        raise TemplateError(f"component {path}.children must be an array")
    children = tuple(
        _parse_node(child, path=f"{path}.children[{idx}]") for idx, child in enumerate(children_raw)
    )

    data = item.get("data")
    if kind is NodeKind.DATA:
        if data is not None and not isinstance(data, Mapping):
            raise TemplateError(f"component {path}.data must be an object of variables")
        data = MappingProxyType(dict(data or {}))
    elif data is not None and not isinstance(data, (str, int, float)):
        raise TemplateError(f"component {path}.data must be a field path")
    elif data is not None:
        data = str(data)
    if kind is NodeKind.DETAILS and not (isinstance(data, str) and data.strip()):
        raise TemplateError(f"component {path} of type details requires a data path")

    strings: dict[str, str | None] = {}
    for name in _STRING_FIELDS:
        value = item.get(name)
        if value is not None and not isinstance(value, (str, int, float)):
            raise TemplateError(f"component {path}.{name} must be a string")
        strings[name] = None if value is None else str(value)

    show_if = options.get("show-if", item.get("show-if"))
    if show_if is not None and not isinstance(show_if, str):
        raise TemplateError(f"component {path}.show-if must be a string condition")

    return ComponentNode(
        type_name=type_name,
        kind=kind,
        options=MappingProxyType(dict(options)),
        children=children,
        data=data,
        text=strings["text"],
        src=strings["src"],
        content=strings["content"],
        show_if=show_if,
        is_else=item.get("else") is not None and item.get("else") is not False,
        nested_details_keys=collect_nested_details_keys(children),
        **{flag: bool_value(item.get(flag)) for flag in _PAGE_FLAGS},
    )


__all__ = ["TemplateSource", "load_template", "parse_template"]
