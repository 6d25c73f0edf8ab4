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
import unittest

from templateflow.errors import RenderError
from templateflow.render.recording import RecordingSink
from templateflow.render.sink import CellBox, PageSetup, TextStyle


class TestRecordingSink(unittest.TestCase):
    def setUp(self) -> None:
        self.sink = RecordingSink()

    def test_drawing_before_a_page_fails(self) -> None:
        with self.assertRaises(RenderError):
            self.sink.draw_text(0, 0, "early", TextStyle())

    def test_cell_cursor_model(self) -> None:
        sink = self.sink
        sink.new_page(PageSetup(top_margin=5, left_margin=8))
        self.assertEqual(sink.get_cursor(), (8.0, 5.0))
        sink.draw_cell("a", CellBox(width=20, height=4), TextStyle())
        self.assertEqual(sink.get_cursor(), (28.0, 5.0))
        sink.draw_cell(
            "b\nc",
            CellBox(width=10, height=4, multiline=True, multiline_break=1),
            TextStyle(),
        )
        self.assertEqual(sink.get_cursor(), (8.0, 13.0))
        sink.set_cursor(30, 13)
        sink.draw_cell(
            "d",
            CellBox(width=10, height=4, multiline=True, multiline_break=2),
            TextStyle(),
        )
        self.assertEqual(sink.get_cursor(), (30.0, 17.0))
        sink.line_break(3)
        self.assertEqual(sink.get_cursor(), (8.0, 20.0))

    def test_rollback_discards_pages_and_operations(self) -> None:
        sink = self.sink
        sink.new_page(PageSetup())
        sink.draw_text(1, 1, "kept", TextStyle())
        handle = sink.checkpoint()
        self.assertEqual(sink.open_transactions, 1)
        sink.draw_text(2, 2, "dropped", TextStyle())
        sink.new_page(PageSetup())
        sink.set_font("helvetica", "B", 20)
        sink.rollback(handle)
        self.assertEqual(len(sink.pages), 1)
        self.assertEqual(sink.pages[0].texts(), ["kept"])
        self.assertEqual(sink.font, ("times", "", 12.0))
        self.assertEqual(sink.open_transactions, 0)
        self.assertEqual(sink.rollbacks, 1)
        with self.assertRaises(RenderError):
            sink.rollback(handle)

    def test_release_keeps_operations(self) -> None:
        sink = self.sink
        sink.new_page(PageSetup())
        handle = sink.checkpoint()
        sink.draw_text(2, 2, "kept", TextStyle())
        sink.release(handle)
        self.assertEqual(sink.pages[0].texts(), ["kept"])
        self.assertEqual(sink.open_transactions, 0)

    def test_finalize_replaces_total_pages_alias(self) -> None:
        sink = self.sink
        for _ in range(2):
            sink.new_page(PageSetup())
            label = f"{sink.page_number_alias()}/{sink.total_pages_alias()}"
            sink.draw_text(0, 0, label, TextStyle())
        payload = json.loads(sink.finalize())
        self.assertEqual(sink.pages[0].texts(), ["1/2"])
        self.assertEqual(sink.pages[1].texts(), ["2/2"])
        self.assertEqual([page["number"] for page in payload], [1, 2])


if __name__ == "__main__":
    unittest.main()
