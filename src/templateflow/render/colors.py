#!/usr/bin/env python3
from __future__ import annotations

from PIL import ImageColor

Rgb = tuple[int, int, int]

BLACK: Rgb = (0, 0, 0)
WHITE: Rgb = (255, 255, 255)


def parse_color(value: object, *, label: str = "color") -> Rgb | None:
    """Parse ``#rrggbb`` / CSS colour names / ``[r, g, b]`` lists.

    ``None`` and ``false`` mean "no colour".
    """
    if value is None or value is False:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text or text.lower() in ("none", "transparent"):
            return None
        if not text.startswith("#") and all(ch in "0123456789abcdefABCDEF" for ch in text):
            if len(text) in (3, 6):
                text = f"#{text}"
        try:
            rgb = ImageColor.getrgb(text)
        except ValueError as exc:
            raise ValueError(f"{label} is not a valid colour: {value!r}") from exc
        return (int(rgb[0]), int(rgb[1]), int(rgb[2]))
    if isinstance(value, (list, tuple)) and len(value) in (3, 4):
        try:
            channels = tuple(max(0, min(255, int(part))) for part in value[:3])
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{label} channels must be integers") from exc
        return (channels[0], channels[1], channels[2])
    raise ValueError(f"{label} must be a hex string or an [r, g, b] list")
