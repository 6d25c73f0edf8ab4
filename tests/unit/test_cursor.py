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

import unittest

from templateflow.flow.context import RenderContext, RowFrame
from templateflow.flow.cursor import LayoutCursor
from templateflow.render.recording import RecordingSink
from templateflow.render.sink import PageSetup
from templateflow.template.model import NodeKind
from templateflow.template.options import build_options


def _placement(**raw: object):
    return build_options(NodeKind.TEXT, raw)


class TestLayoutCursor(unittest.TestCase):
    def setUp(self) -> None:
        self.ctx = RenderContext(data={})
        self.sink = RecordingSink()
        self.sink.new_page(PageSetup(top_margin=10, left_margin=10))
        self.cursor = LayoutCursor(self.ctx, self.sink)

    def test_defaults_to_current_cursor_plus_offsets(self) -> None:
        self.assertEqual(self.cursor.resolve(_placement()), (10.0, 10.0))
        self.assertEqual(self.cursor.resolve(_placement(dx=5, dy=-2)), (15.0, 8.0))

    def test_zero_coordinates_mean_unset(self) -> None:
        self.assertEqual(self.cursor.resolve(_placement(x=0, y=30)), (10.0, 30.0))
        self.assertEqual(self.cursor.resolve(_placement(x=25, y=0)), (25.0, 10.0))

    def test_stored_positions(self) -> None:
        self.sink.set_cursor(40, 50)
        self.assertEqual(self.cursor.store("totals"), (40.0, 50.0))
        self.sink.set_cursor(10, 10)
        self.assertEqual(
            self.cursor.resolve(_placement(storedX="totals", storedY="totals")),
            (40.0, 50.0),
        )
        self.assertEqual(
            self.cursor.resolve(_placement(storedY="totals", x=12)),
            (12.0, 50.0),
        )
        self.assertEqual(self.cursor.resolve(_placement(storedX="unknown")), (10.0, 10.0))

    def test_details_offsets_use_the_current_row(self) -> None:
        self.ctx.frames.append(
            RowFrame(
                key="items",
                row={},
                grouped=False,
                print_group_header=False,
                details_x=20.0,
                details_y=60.0,
                base_y=55.0,
            )
        )
        self.assertEqual(self.cursor.resolve(_placement(detailsX=1, detailsY=2)), (21.0, 62.0))
        self.assertEqual(self.cursor.resolve(_placement(detailsBaseY=3)), (10.0, 58.0))

    def test_details_offsets_outside_rows_use_last_row(self) -> None:
        self.ctx.details_x, self.ctx.details_y = 30.0, 70.0
        self.assertEqual(self.cursor.resolve(_placement(detailsX=0, detailsY=5)), (30.0, 75.0))


if __name__ == "__main__":
    unittest.main()
