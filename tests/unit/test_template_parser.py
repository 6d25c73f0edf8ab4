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

from templateflow.errors import TemplateError
from templateflow.render.colors import parse_color
from templateflow.template.model import ComponentNode, NodeKind
from templateflow.template.options import (
    CellOptions,
    DetailsOptions,
    build_options,
    default_table,
)
from templateflow.template.parser import load_template, parse_template


class TestParseTemplate(unittest.TestCase):
    def test_nodes_get_their_own_empty_options(self) -> None:
        first = ComponentNode("page", NodeKind.PAGE)
        second = ComponentNode("text", NodeKind.TEXT)
        self.assertEqual(dict(first.options), {})
        self.assertIsNot(first.options, second.options)
        with self.assertRaises(TypeError):
            first.options["x"] = 1  # type: ignore[index]

    def test_parses_tree_and_fields(self) -> None:
        nodes = parse_template(
            json.dumps(
                [
                    {"type": "page", "options": {"format": "A5"}},
                    {
                        "type": "details",
                        "data": "items",
                        "options": {"row-height": 5},
                        "children": [
                            {"type": "cell", "data": "name", "options": {"width": 40}},
                            {"type": "details", "data": "items.parts", "children": []},
                        ],
                    },
                ]
            )
        )
        page, items = nodes
        self.assertIs(page.kind, NodeKind.PAGE)
        self.assertIs(items.kind, NodeKind.DETAILS)
        self.assertEqual(items.data_path, "items")
        self.assertEqual(items.children[0].data_path, "name")
        self.assertEqual(items.nested_details_keys, ("items.parts",))

    def test_accepts_bytes(self) -> None:
        (node,) = parse_template(b'[{"type": "text", "text": "hi"}]')
        self.assertEqual(node.text, "hi")

    def test_default_type_is_text(self) -> None:
        (node,) = parse_template([{"text": "plain"}])
        self.assertIs(node.kind, NodeKind.TEXT)

    def test_unknown_types_are_kept(self) -> None:
        (node,) = parse_template([{"type": "chart", "options": {"anything": [1, 2]}}])
        self.assertIsNone(node.kind)
        self.assertEqual(node.type_name, "chart")

    def test_data_node_variables(self) -> None:
        (node,) = parse_template([{"type": "data", "data": {"title": "Invoice"}}])
        self.assertEqual(dict(node.variables), {"title": "Invoice"})
        self.assertIsNone(node.data_path)

    def test_rejects_malformed_templates(self) -> None:
        cases = [
            "not json",
            '{"type": "text"}',
            "[1]",
            '[{"type": ""}]',
            '[{"type": "text", "options": []}]',
            '[{"type": "text", "children": {}}]',
            '[{"type": "details", "children": []}]',
            '[{"type": "cell", "options": {"width": "wide"}}]',
            '[{"type": "box", "options": {"fill-color": "not-a-colour"}}]',
            '[{"type": "text", "show-if": 3}]',
        ]
        for raw in cases:
            with self.subTest(raw=raw):
                with self.assertRaises(TemplateError):
                    parse_template(raw)

    def test_layout_tokens_are_deferred(self) -> None:
        (node,) = parse_template([{"type": "cell", "options": {"y": "[[max_y_items]]"}}])
        options = build_options(NodeKind.CELL, node.options, {"max_y_items": "42"})
        self.assertEqual(options.y, 42.0)
        self.assertIsNone(build_options(NodeKind.CELL, node.options).y)

    def test_unresolved_layout_token_keeps_default(self) -> None:
        (node,) = parse_template([{"type": "cell", "options": {"y": "[[max_y_items]]"}}])
        options = build_options(NodeKind.CELL, node.options, {"max_y_other": "42"})
        self.assertIsNone(options.y)

    def test_load_template_from_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "invoice.json"
            path.write_text('[{"type": "page"}]', encoding="utf-8")
            (node,) = load_template(path)
        self.assertIs(node.kind, NodeKind.PAGE)


class TestOptions(unittest.TestCase):
    def test_defaults(self) -> None:
        options = build_options(NodeKind.DETAILS, {})
        self.assertIsInstance(options, DetailsOptions)
        self.assertEqual(options.height, 100.0)
        self.assertEqual(options.overflow_margin, 6.0)
        self.assertEqual(options.margin, 4.0)
        self.assertIsNone(options.row_height)
        self.assertTrue(options.line_break)
        self.assertEqual(default_table(NodeKind.DETAILS)["overflow-margin"], 6.0)

    def test_coercion(self) -> None:
        options = build_options(
            NodeKind.CELL,
            {
                "width": "30",
                "border": "lr",
                "multiline": "yes",
                "multiline-break": 1,
                "color": "#ff0000",
                "round": 2,
            },
        )
        self.assertIsInstance(options, CellOptions)
        self.assertEqual(options.width, 30.0)
        self.assertEqual(options.border, "LR")
        self.assertTrue(options.multiline)
        self.assertEqual(options.multiline_break, 1)
        self.assertEqual(options.color, (255, 0, 0))
        self.assertEqual(options.round, 2)

    def test_page_format_pairs(self) -> None:
        options = build_options(NodeKind.PAGE, {"format": "[100, 150]"})
        self.assertEqual(options.format, (100.0, 150.0))

    def test_parse_color(self) -> None:
        self.assertEqual(parse_color("00ff00"), (0, 255, 0))
        self.assertEqual(parse_color([300, -4, 7]), (255, 0, 7))
        self.assertIsNone(parse_color("transparent"))
        self.assertIsNone(parse_color(None))
        with self.assertRaises(ValueError):
            parse_color(12)


if __name__ == "__main__":
    unittest.main()
