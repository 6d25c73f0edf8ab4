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

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .paths import resolve_config_path

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class RenderSettings:
    document_copies: int = 1
    design_mode: bool = False


@dataclass(frozen=True)
class FontSettings:
    family: str = "times"
    size: float = 8.0


@dataclass(frozen=True)
class NumberSettings:
    decimal_separator: str = ","
    thousands_separator: str = "."


@dataclass(frozen=True)
class ImageSettings:
    use_cache: bool = True
    cache_dir: Path | None = None
    fetch_timeout: float = 30.0
    fetch_retries: int = 3


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "WARNING"


@dataclass(frozen=True)
class EngineConfig:
    source: Path | None = None
    render: RenderSettings = field(default_factory=RenderSettings)
    fonts: FontSettings = field(default_factory=FontSettings)
    numbers: NumberSettings = field(default_factory=NumberSettings)
    images: ImageSettings = field(default_factory=ImageSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


def load_engine_config(path: str | Path | None = None) -> EngineConfig:
    config_path = resolve_config_path(path)
    data = _load_toml(config_path)
    return parse_engine_config(data, source=config_path)


def parse_engine_config(data: dict[str, object], *, source: Path | None = None) -> EngineConfig:
    return EngineConfig(
        source=source,
        render=_parse_render(_get_dict(data, "render")),
        fonts=_parse_fonts(_get_dict(data, "fonts")),
        numbers=_parse_numbers(_get_dict(data, "numbers")),
        images=_parse_images(_get_dict(data, "images")),
        logging=_parse_logging(_get_dict(data, "logging")),
    )


def _parse_render(cfg: dict[str, object]) -> RenderSettings:
    copies = _parse_int_strict(cfg.get("document_copies", 1), field="render.document_copies")
    if copies < 1:
        raise ValueError("render.document_copies must be a positive integer")
    return RenderSettings(
        document_copies=copies,
        design_mode=_parse_bool(cfg.get("design_mode"), field="render.design_mode", default=False),
    )


def _parse_fonts(cfg: dict[str, object]) -> FontSettings:
    family = _parse_optional_str(cfg.get("family"), field="fonts.family") or "times"
    size = _parse_positive_float(cfg.get("size", 8), field="fonts.size")
    return FontSettings(family=family, size=size)


def _parse_numbers(cfg: dict[str, object]) -> NumberSettings:
    decimal = _parse_separator(cfg.get("decimal_separator", ","), field="numbers.decimal_separator")
    thousands = _parse_separator(
        cfg.get("thousands_separator", "."),
        field="numbers.thousands_separator",
    )
    if decimal and decimal == thousands:
        raise ValueError("numbers.decimal_separator and numbers.thousands_separator must differ")
    return NumberSettings(decimal_separator=decimal, thousands_separator=thousands)


def _parse_images(cfg: dict[str, object]) -> ImageSettings:
    cache_dir = _parse_optional_str(cfg.get("cache_dir"), field="images.cache_dir")
    retries = _parse_int_strict(cfg.get("fetch_retries", 3), field="images.fetch_retries")
    if retries < 1:
        raise ValueError("images.fetch_retries must be a positive integer")
    return ImageSettings(
        use_cache=_parse_bool(cfg.get("use_cache"), field="images.use_cache", default=True),
        cache_dir=Path(cache_dir).expanduser() if cache_dir else None,
        fetch_timeout=_parse_positive_float(
            cfg.get("fetch_timeout", 30),
            field="images.fetch_timeout",
        ),
        fetch_retries=retries,
    )


def _parse_logging(cfg: dict[str, object]) -> LoggingSettings:
    level = _parse_optional_str(cfg.get("level"), field="logging.level") or "WARNING"
    level = level.upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"logging.level must be one of {', '.join(_LOG_LEVELS)}")
    return LoggingSettings(level=level)


def _load_toml(path: Path) -> dict[str, object]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _get_dict(data: dict[str, object], key: str) -> dict[str, object]:
    value = data.get(key)
    if isinstance(value, dict):
        return value
    return {}


def _parse_optional_str(value: object, *, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a string")
    normalized = value.strip()
    return normalized or None


def _parse_separator(value: object, *, field: str) -> str:
    if not isinstance(value, str) or len(value) > 1:
        raise ValueError(f"{field} must be a single character or empty")
    return value


def _parse_bool(value: object, *, field: str, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        raise ValueError(f"{field} must be a boolean")
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    raise ValueError(f"{field} must be a boolean")


def _parse_int_strict(value: object, *, field: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{field} must be an integer")
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise ValueError(f"{field} must be an integer") from exc
    raise ValueError(f"{field} must be an integer")


def _parse_positive_float(value: object, *, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"{field} must be a positive number")
    try:
        number = float(value)
    except ValueError as exc:
        raise ValueError(f"{field} must be a positive number") from exc
    if number <= 0:
        raise ValueError(f"{field} must be a positive number")
    return number


__all__ = [
    "EngineConfig",
    "FontSettings",
    "ImageSettings",
    "LoggingSettings",
    "NumberSettings",
    "RenderSettings",
    "load_engine_config",
    "parse_engine_config",
]
