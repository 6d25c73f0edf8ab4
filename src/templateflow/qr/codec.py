#!/usr/bin/env python3
from __future__ import annotations

import io
from typing import Any

import segno

_ERROR_LEVELS = frozenset({"L", "M", "Q", "H"})
_QUIET_ZONE_MODULES = 4


def make_qr(data: str, *, error: str = "H", boost_error: bool = False) -> Any:
    level = error.strip().upper() or "H"
    if level not in _ERROR_LEVELS:
        raise ValueError(f"unsupported QR error level: {error}")
    return segno.make(data, error=level, micro=False, boost_error=boost_error)


def qr_png(
    data: str,
    *,
    error: str = "H",
    scale: int = 10,
    border: bool = True,
    dark: tuple[int, int, int] | None = (0, 0, 0),
    light: tuple[int, int, int] | None = None,
) -> bytes:
    """Render ``data`` as a PNG QR symbol.

    ``light=None`` keeps the background transparent.
    """
    qr = make_qr(data, error=error)
    buf = io.BytesIO()
    qr.save(
        buf,
        kind="png",
        scale=scale,
        border=_QUIET_ZONE_MODULES if border else 0,
        dark=dark if dark is not None else (0, 0, 0),
        light=light,
    )
    return buf.getvalue()


__all__ = ["make_qr", "qr_png"]
