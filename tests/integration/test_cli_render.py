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

import json
import tempfile
import unittest
from pathlib import Path

from typer.testing import CliRunner

from templateflow.cli import app
from templateflow.config import CONFIG_ENV, DEFAULT_CONFIG_PATH
from tests.test_support import cell, details, rows, temp_env, text

TEMPLATE = [
    {"type": "page"},
    text("Orders for {{customer}}"),
    details("items", [cell("name")], {"height": 20, "overflow-margin": 2, "row-height": 5}),
]


class TestCliRender(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.template = self.root / "orders.json"
        self.template.write_text(json.dumps(TEMPLATE), encoding="utf-8")
        self.data = self.root / "data.json"
        self.data.write_text(
            json.dumps({"customer": "ACME", "items": rows(5)}),
            encoding="utf-8",
        )
        self.runner = CliRunner()
        self._env = temp_env({CONFIG_ENV: str(DEFAULT_CONFIG_PATH)})
        self._env.__enter__()

    def tearDown(self) -> None:
        self._env.__exit__(None, None, None)
        self._tmp.cleanup()

    def test_render_writes_pdf(self) -> None:
        output = self.root / "out.pdf"
        result = self.runner.invoke(
            app,
            ["render", str(self.template), "--data", str(self.data), "--output", str(output)],
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertTrue(output.read_bytes().startswith(b"%PDF"))

    def test_default_output_sits_next_to_template(self) -> None:
        result = self.runner.invoke(app, ["--quiet", "render", str(self.template)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertTrue(self.template.with_suffix(".pdf").exists())
        self.assertEqual(result.output.strip(), "")

    def test_dry_run_prints_page_summary(self) -> None:
        result = self.runner.invoke(
            app,
            ["render", str(self.template), "-d", str(self.data), "--copies", "2", "--dry-run"],
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("4 page(s)", result.output)
        self.assertIn("Orders for ACME", result.output)
        self.assertFalse(self.template.with_suffix(".pdf").exists())

    def test_design_mode_dry_run(self) -> None:
        result = self.runner.invoke(
            app,
            ["render", str(self.template), "-d", str(self.data), "--design-mode", "--dry-run"],
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("1 page(s)", result.output)

    def test_invalid_template_exits_2(self) -> None:
        self.template.write_text("{not json", encoding="utf-8")
        result = self.runner.invoke(app, ["render", str(self.template)])
        self.assertEqual(result.exit_code, 2)
        self.assertIn("Error", result.output)

    def test_data_must_be_an_object(self) -> None:
        self.data.write_text("[1, 2]", encoding="utf-8")
        result = self.runner.invoke(app, ["render", str(self.template), "-d", str(self.data)])
        self.assertEqual(result.exit_code, 2)
        self.assertIn("JSON object", result.output)

    def test_missing_template_exits_2(self) -> None:
        result = self.runner.invoke(app, ["render", str(self.root / "absent.json")])
        self.assertEqual(result.exit_code, 2)

    def test_copies_must_be_positive(self) -> None:
        result = self.runner.invoke(app, ["render", str(self.template), "--copies", "0"])
        self.assertNotEqual(result.exit_code, 0)


class TestCliClearCache(unittest.TestCase):
    def test_clear_cache_uses_configured_directory(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            cache_dir = Path(tmpdir) / "images"
            cache_dir.mkdir()
            (cache_dir / "a").write_bytes(b"x")
            (cache_dir / "b").write_bytes(b"y")
            config = Path(tmpdir) / "config.toml"
            config.write_text(
                f'[images]\ncache_dir = "{cache_dir.as_posix()}"\n',
                encoding="utf-8",
            )
            result = CliRunner().invoke(app, ["clear-cache", "--config", str(config)])
            self.assertEqual(result.exit_code, 0, result.output)
            self.assertIn("Removed 2 cached image(s)", result.output)
            self.assertEqual(list(cache_dir.iterdir()), [])


if __name__ == "__main__":
    unittest.main()
