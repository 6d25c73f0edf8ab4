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

"""``show-if`` / ``else`` / page gate evaluation.

Conditions have the form ``<field> <op> <value>`` with ``op`` one of
``>= <= == < >``; the first operator found splits the expression. A bare
field is true when it resolves to a non-empty value.

``else`` looks only at the sibling directly before it: it renders when that
sibling's ``show-if`` evaluated false. There is no if/elif chaining.
"""

from __future__ import annotations

import operator
import re
from collections.abc import Callable, Mapping, Sized
from dataclasses import dataclass

from ..template.model import ComponentNode
from ..utils import is_number, stringify
from .binding import MISSING, DataBinder
from .context import RenderContext

CONDITION_RE = re.compile(r"^\s*(.+?)\s*(>=|<=|==|<|>)\s*(.+?)\s*$")

_OPERATORS: dict[str, Callable[[object, object], bool]] = {
    ">=": operator.ge,
    "<=": operator.le,
    "==": operator.eq,
    "<": operator.lt,
    ">": operator.gt,
}


@dataclass(frozen=True)
class Gate:
    visible: bool
    show_if_result: bool | None


class VisibilityEvaluator:
    def __init__(self, context: RenderContext, binder: DataBinder) -> None:
        self.context = context
        self.binder = binder

    def gate(self, node: ComponentNode, previous: bool | None, row: object = None) -> Gate:
        """Decide whether ``node`` renders given the previous sibling's ``show-if`` result."""
        if node.is_else and previous is not False:
            return Gate(False, None)
        result: bool | None = None
        if node.show_if is not None:
            result = self.condition(node.show_if, row)
            if not result:
                return Gate(False, False)
        return Gate(self.page_gates(node), result)

    def page_gates(self, node: ComponentNode) -> bool:
        ctx = self.context
        if node.first_page and ctx.page_count > 1:
            return False
        if node.not_first_page and ctx.page_count == 1:
            return False
        if node.last_page and not ctx.is_last_page():
            return False
        if node.not_last_page and ctx.is_last_page():
            return False
        return True

    def condition(self, expression: str, row: object = None) -> bool:
        match = CONDITION_RE.match(expression)
        if match is None:
            if self.context.design_mode:
                return True
            return _has_data(self._operand(expression.strip(), row))
        field, op, raw_value = match.groups()
        left = self._operand(field, row)
        value: object = raw_value.replace("'", "").replace('"', "").strip()
        if not is_number(value) and "." in str(value):
            value = self.binder.resolve(str(value), row)
        return compare(left, op, value)

    def _operand(self, field: str, row: object) -> object:
        if self.context.design_mode:
            return self.binder.resolve(field, row)
        value = self.binder.find(field, row)
        if value is MISSING:
            value = self.binder.variable(field)
        return "" if value is MISSING else value


def compare(left: object, op: str, right: object) -> bool:
    """Numeric comparison when both sides are numbers, trimmed strings otherwise."""
    func = _OPERATORS[op]
    if is_number(left) and is_number(right):
        return func(float(str(left).strip()), float(str(right).strip()))
    return func(stringify(left).strip(), stringify(right).strip())


def _has_data(value: object) -> bool:
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return bool(value)
    if isinstance(value, (Mapping, Sized)):
        return len(value) > 0
    return True


__all__ = ["CONDITION_RE", "Gate", "VisibilityEvaluator", "compare"]
