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

import tempfile
import unittest
import urllib.error
from pathlib import Path
from unittest import mock

from templateflow.render.images import ImageCache, reference_key
from tests.test_support import png_bytes

URL = "https://example.com/logo.png"


def _response(payload: bytes) -> mock.MagicMock:
    response = mock.MagicMock()
    response.__enter__.return_value.read.return_value = payload
    return response


class TestImageCache(unittest.TestCase):
    def setUp(self) -> None:
        ImageCache._memo.clear()
        self._tmp = tempfile.TemporaryDirectory()
        self.cache_dir = Path(self._tmp.name) / "images"
        self.cache = ImageCache(self.cache_dir, retries=2, backoff=0)

    def tearDown(self) -> None:
        ImageCache._memo.clear()
        self._tmp.cleanup()

    @mock.patch("templateflow.render.images.urllib.request.urlopen")
    def test_download_is_memoized_and_cached(self, urlopen: mock.MagicMock) -> None:
        payload = png_bytes()
        urlopen.return_value = _response(payload)
        self.assertEqual(self.cache.fetch(URL), payload)
        self.assertEqual(self.cache.fetch(URL), payload)
        urlopen.assert_called_once()
        self.assertEqual((self.cache_dir / reference_key(URL)).read_bytes(), payload)

    @mock.patch("templateflow.render.images.urllib.request.urlopen")
    def test_disk_cache_is_used_across_processes(self, urlopen: mock.MagicMock) -> None:
        self.cache_dir.mkdir(parents=True)
        cached = self.cache_dir / reference_key(URL)
        cached.write_bytes(png_bytes())
        self.assertEqual(self.cache.fetch(URL), cached)
        urlopen.assert_not_called()

    @mock.patch("templateflow.render.images.urllib.request.urlopen")
    def test_use_cache_false_skips_disk(self, urlopen: mock.MagicMock) -> None:
        urlopen.return_value = _response(png_bytes())
        self.cache.fetch(URL, use_cache=False)
        self.assertFalse(self.cache_dir.exists())

    @mock.patch("templateflow.render.images.urllib.request.urlopen")
    def test_failure_retries_then_gives_up(self, urlopen: mock.MagicMock) -> None:
        urlopen.side_effect = urllib.error.URLError("unreachable")
        with self.assertLogs("templateflow.render.images", level="WARNING") as logs:
            self.assertIsNone(self.cache.fetch(URL))
        self.assertEqual(urlopen.call_count, 2)
        self.assertIn("unreachable", logs.output[0])
        self.assertIsNone(self.cache.fetch(URL))
        self.assertEqual(urlopen.call_count, 2)

    @mock.patch("templateflow.render.images.urllib.request.urlopen")
    def test_non_image_payload_is_rejected(self, urlopen: mock.MagicMock) -> None:
        urlopen.return_value = _response(b"<html>not found</html>")
        with self.assertLogs("templateflow.render.images", level="WARNING"):
            self.assertIsNone(self.cache.fetch(URL))

    def test_local_paths(self) -> None:
        path = Path(self._tmp.name) / "local.png"
        path.write_bytes(png_bytes())
        self.assertEqual(self.cache.fetch(str(path)), path)
        with self.assertLogs("templateflow.render.images", level="WARNING"):
            self.assertIsNone(self.cache.fetch(str(path.with_name("absent.png"))))
        self.assertIsNone(self.cache.fetch("   "))

    @mock.patch("templateflow.render.images.urllib.request.urlopen")
    def test_clear_removes_files_and_memo(self, urlopen: mock.MagicMock) -> None:
        urlopen.return_value = _response(png_bytes())
        self.cache.fetch(URL)
        self.assertEqual(self.cache.clear(), 1)
        self.assertEqual(list(self.cache_dir.iterdir()), [])
        self.cache.fetch(URL)
        self.assertEqual(urlopen.call_count, 2)

    def test_clear_without_directory(self) -> None:
        self.assertEqual(self.cache.clear(), 0)


if __name__ == "__main__":
    unittest.main()
