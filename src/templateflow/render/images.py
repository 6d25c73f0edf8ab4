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

"""Remote image fetching with an in-process memo and an on-disk cache.

Cache files are named by the SHA-1 of the image reference. The directory
grows without bound until :meth:`ImageCache.clear` is called.
"""

from __future__ import annotations

import hashlib
import io
import logging
import ssl
import time
import urllib.error
import urllib.request
from pathlib import Path
from urllib.parse import urlparse

import certifi
from PIL import Image
from platformdirs import user_cache_dir

from .sink import ImageSource

logger = logging.getLogger(__name__)

APP_NAME = "templateflow"
_REMOTE_SCHEMES = frozenset({"http", "https"})


def default_cache_dir() -> Path:
    return Path(user_cache_dir(APP_NAME, appauthor=False)) / "images"


def reference_key(reference: str) -> str:
    return hashlib.sha1(reference.encode("utf-8")).hexdigest()


class ImageCache:
    # Shared by every instance: a reference is fetched once per process.
    _memo: dict[str, bytes | None] = {}

    def __init__(
        self,
        cache_dir: Path | None = None,
        *,
        timeout: float = 30.0,
        retries: int = 3,
        backoff: float = 1.5,
        persist: bool = True,
    ) -> None:
        self.cache_dir = cache_dir or default_cache_dir()
        self.persist = persist
        self.timeout = timeout
        self.retries = max(1, retries)
        self.backoff = backoff

    def fetch(self, reference: str, *, use_cache: bool = True) -> ImageSource | None:
        """Return something the sink can draw, or None when the image is unavailable."""
        reference = reference.strip()
        if not reference:
            return None
        use_cache = use_cache and self.persist
        if urlparse(reference).scheme.lower() not in _REMOTE_SCHEMES:
            path = Path(reference).expanduser()
            if path.is_file():
                return path
            logger.warning("Image %s does not exist; skipping", reference)
            return None

        key = reference_key(reference)
        if key in self._memo:
            return self._memo[key]
        cached = self.cache_dir / key
        if use_cache and cached.is_file():
            return cached

        try:
            payload = self._download(reference)
            _verify_image(payload)
        except RuntimeError as exc:
            logger.warning("%s; the image is left out", exc)
            self._memo[key] = None
            return None
        self._memo[key] = payload
        if use_cache:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            cached.write_bytes(payload)
        return payload

    def clear(self) -> int:
        """Delete cached files and forget fetched references.

        Returns the number of files removed.
        """
        type(self)._memo.clear()
        if not self.cache_dir.is_dir():
            return 0
        removed = 0
        for entry in self.cache_dir.iterdir():
            if entry.is_file():
                entry.unlink()
                removed += 1
        return removed

    def _download(self, url: str) -> bytes:
        request = urllib.request.Request(url, headers={"User-Agent": APP_NAME})
        context = ssl.create_default_context(cafile=certifi.where())
        for attempt in range(1, self.retries + 1):
            try:
                with urllib.request.urlopen(request, timeout=self.timeout, context=context) as resp:
                    return resp.read()
            except (OSError, ValueError) as exc:
                if attempt < self.retries:
                    time.sleep(self.backoff * attempt)
                    continue
                detail = str(exc)
                if isinstance(exc, urllib.error.HTTPError):
                    detail = f"HTTP {exc.code} {exc.reason}"
                elif isinstance(exc, urllib.error.URLError):
                    detail = str(exc.reason)
                raise RuntimeError(f"failed to fetch image {url}: {detail}") from exc
        raise RuntimeError(f"failed to fetch image {url}")


def _verify_image(payload: bytes) -> None:
    try:
        with Image.open(io.BytesIO(payload)) as image:
            image.verify()
    except (OSError, SyntaxError, ValueError) as exc:
        raise RuntimeError(f"fetched data is not a readable image: {exc}") from exc


__all__ = ["APP_NAME", "ImageCache", "default_cache_dir", "reference_key"]
