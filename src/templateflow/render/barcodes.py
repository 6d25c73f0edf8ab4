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

"""Bar/space module strings for the symbologies python-barcode encodes.

Code39 and I25 are drawn by fpdf itself and never pass through here.
"""

from __future__ import annotations

from dataclasses import dataclass

import barcode
from barcode.errors import BarcodeError

# Template symbology -> (python-barcode name, digits before the check digit).
_SYMBOLOGIES: dict[str, tuple[str, int]] = {
    "EAN13": ("ean13", 12),
    "EAN8": ("ean8", 7),
    "UPCA": ("upca", 11),
    "C128": ("code128", 0),
    "C128A": ("code128", 0),
    "C128B": ("code128", 0),
    "C128C": ("code128", 0),
}

MODULE_SYMBOLOGIES = frozenset(_SYMBOLOGIES)


@dataclass(frozen=True)
class EncodedBarcode:
    modules: str
    caption: str


def encode(symbology: str, code: str) -> EncodedBarcode:
    """Encode ``code``; fixed-length numeric codes are left-padded and get their check digit."""
    key = symbology.strip().upper()
    if key not in _SYMBOLOGIES:
        raise ValueError(f"unsupported barcode type: {symbology!r}")
    name, digits = _SYMBOLOGIES[key]
    content = code.strip()
    if digits:
        if not content.isdigit():
            raise ValueError(f"{key} content must be numeric: {code!r}")
        if len(content) > digits + 1:
            raise ValueError(f"{key} content is too long: {code!r}")
        content = content.rjust(digits, "0")
    elif not content.isascii():
        raise ValueError(f"{key} content must be ASCII: {code!r}")
    payload = content[:digits] if digits else content
    try:
        symbol = barcode.get_barcode_class(name)(payload, writer=None)
        modules = "".join(symbol.build())
    except BarcodeError as exc:
        raise ValueError(f"invalid {key} content {code!r}: {exc}") from exc
    caption = symbol.get_fullcode()
    if digits and len(content) == digits + 1 and caption[-1] != content[-1]:
        raise ValueError(f"{key} check digit mismatch: {code!r}")
    # Guard bars ("G") only differ in height.
    return EncodedBarcode(modules=modules.replace("G", "1"), caption=caption)


def bar_runs(modules: str) -> list[tuple[int, int]]:
    """Collapse a module string into ``(start, length)`` runs of bars."""
    runs: list[tuple[int, int]] = []
    start = None
    for idx, bit in enumerate(modules + "0"):
        if bit == "1" and start is None:
            start = idx
        elif bit != "1" and start is not None:
            runs.append((start, idx - start))
            start = None
    return runs


__all__ = ["MODULE_SYMBOLOGIES", "EncodedBarcode", "bar_runs", "encode"]
