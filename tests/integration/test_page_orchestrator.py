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
from unittest import mock

from templateflow.engine import TemplateEngine
from templateflow.errors import RenderError, TemplateError
from templateflow.flow.orchestrator import PageStep
from templateflow.render.images import ImageCache
from templateflow.render.recording import RecordingSink
from tests.test_support import cell, details, page_texts, render_recorded, rows, text

PAGE = {"type": "page"}
SMALL = {"height": 20, "overflow-margin": 2, "row-height": 5}


def _engine(template: list[dict[str, object]], data: dict[str, object]) -> TemplateEngine:
    engine = TemplateEngine(template, images=mock.create_autospec(ImageCache, instance=True))
    return engine.set_data(data)


class TestPageOrchestrator(unittest.TestCase):
    def test_advance_page_steps_one_replay_at_a_time(self) -> None:
        engine = _engine([PAGE, details("items", [cell("name")], SMALL)], {"items": rows(5)})
        sink = RecordingSink()
        orchestrator = engine.orchestrator(sink)
        self.assertFalse(orchestrator.done)
        self.assertIs(orchestrator.advance_page(), PageStep.MORE_PAGES_NEEDED)
        self.assertEqual(len(sink.pages), 1)
        self.assertIs(orchestrator.advance_page(), PageStep.DONE)
        self.assertEqual(len(sink.pages), 2)
        self.assertTrue(orchestrator.done)
        self.assertIs(orchestrator.advance_page(), PageStep.DONE)
        self.assertEqual(len(sink.pages), 2)
        self.assertEqual(orchestrator.total_replays, 2)

    def test_get_template_returns_parsed_tree(self) -> None:
        engine = _engine([PAGE, details("items", [cell("name")])], {})
        nodes = engine.get_template()
        self.assertEqual([node.type_name for node in nodes], ["page", "details"])
        self.assertEqual(nodes[1].children[0].type_name, "cell")

    def test_static_template_is_one_page(self) -> None:
        sink = render_recorded([PAGE, text("hello")])
        self.assertEqual(page_texts(sink), [["hello"]])

    def test_document_copies_restart_the_data(self) -> None:
        template = [
            PAGE,
            text("{{current_copy}}/{{document_copies}}"),
            details("items", [cell("name")], SMALL),
        ]
        sink = render_recorded(template, {"items": rows(5)}, copies=2)
        self.assertEqual(
            page_texts(sink),
            [
                ["1/2", "r1", "r2", "r3"],
                ["1/2", "r4", "r5"],
                ["2/2", "r1", "r2", "r3"],
                ["2/2", "r4", "r5"],
            ],
        )

    def test_copies_of_a_static_template(self) -> None:
        sink = render_recorded([PAGE, text("{{current_copy}}")], copies=3)
        self.assertEqual(page_texts(sink), [["1"], ["2"], ["3"]])

    def test_page_phase_gates(self) -> None:
        template = [
            PAGE,
            text("first", first_page=True),
            text("next", not_first_page=True),
            details("items", [cell("name")], SMALL),
            text("last", last_page=True),
        ]
        sink = render_recorded(template, {"items": rows(7)})
        self.assertEqual(
            page_texts(sink),
            [
                ["first", "r1", "r2", "r3"],
                ["next", "r4", "r5", "r6"],
                ["next", "r7", "last"],
            ],
        )

    def test_last_page_before_details_waits_for_rows(self) -> None:
        template = [PAGE, text("last", last_page=True), details("items", [cell("name")])]
        sink = render_recorded(template, {"items": rows(2)})
        self.assertEqual(page_texts(sink), [["r1", "r2"]])

    def test_hidden_details_does_not_hold_back_last_page(self) -> None:
        hidden = details("items", [cell("name")])
        hidden["show-if"] = "show_items"
        group = {"type": "group", "show-if": "show_items", "children": [details("items", [])]}
        later = details("items", [cell("name")])
        later["not_first_page"] = True
        for section in (hidden, group, later):
            with self.subTest(section=section):
                template = [PAGE, section, text("END", last_page=True)]
                sink = render_recorded(template, {"items": rows(1), "show_items": ""})
                self.assertEqual(page_texts(sink), [["END"]])

    def test_stuck_pagination_raises(self) -> None:
        section = details("items", [cell("name")], SMALL)
        section["show-if"] = "page_number == 1"
        engine = _engine([PAGE, section], {"items": rows(5)})
        with self.assertRaises(RenderError) as ctx:
            engine.orchestrator(RecordingSink()).run()
        self.assertIn("pagination is stuck", str(ctx.exception))
        self.assertIn("items", str(ctx.exception))


class TestTemplateFeatures(unittest.TestCase):
    def test_design_mode_prints_paths_and_skips_details(self) -> None:
        template = [PAGE, cell("customer.name"), details("items", [cell("name")])]
        sink = render_recorded(
            template,
            {"customer": {"name": "Ada"}, "items": rows(3)},
            design_mode=True,
        )
        self.assertEqual(page_texts(sink), [["[customer.name]"]])

    def test_data_node_variables(self) -> None:
        template = [
            {"type": "data", "data": {"title": "Invoice"}},
            PAGE,
            text("[[title]] {{number}}"),
        ]
        sink = render_recorded(template, {"number": "42"})
        self.assertEqual(page_texts(sink), [["Invoice 42"]])

    def test_else_branch(self) -> None:
        template = [
            PAGE,
            {"type": "text", "text": "paid", "options": {"show-if": "paid"}},
            {"type": "text", "text": "due", "else": True},
        ]
        self.assertEqual(page_texts(render_recorded(template, {"paid": ""})), [["due"]])
        self.assertEqual(page_texts(render_recorded(template, {"paid": "yes"})), [["paid"]])

    def test_cell_value_rounding_and_placeholder(self) -> None:
        template = [
            PAGE,
            {"type": "cell", "data": "total", "text": "Total: %d EUR", "options": {"round": 2}},
        ]
        sink = render_recorded(template, {"total": 1234.5})
        self.assertEqual(page_texts(sink), [["Total: 1.234,50 EUR"]])

    def test_html_entities_are_decoded(self) -> None:
        template = [
            PAGE,
            text("Fish &amp; Chips"),
            {"type": "text", "text": "&lt;raw&gt;", "options": {"html_decoding": False}},
        ]
        self.assertEqual(
            page_texts(render_recorded(template)),
            [["Fish & Chips", "&lt;raw&gt;"]],
        )

    def test_layout_variables_after_details(self) -> None:
        template = [
            PAGE,
            details("items", [cell("name")], {"row-height": 5}),
            {"type": "text", "text": "sum", "options": {"x": 15, "y": "[[max_y_items]]"}},
        ]
        sink = render_recorded(template, {"items": rows(3)})
        (op,) = sink.pages[0].ops("text")
        self.assertEqual((op.x, op.y), (15.0, 20.0))

    def test_layout_variable_of_section_without_rows(self) -> None:
        template = [
            PAGE,
            {"type": "break", "options": {"height": 7}},
            details("items", [cell("name")]),
            {"type": "text", "text": "sum", "options": {"x": 15, "y": "[[max_y_items]]"}},
        ]
        for data, design_mode in (({"items": []}, None), ({}, None), ({"items": rows(3)}, True)):
            with self.subTest(data=data, design_mode=design_mode):
                sink = render_recorded(template, data, design_mode=design_mode)
                (op,) = sink.pages[0].ops("text")
                self.assertEqual((op.x, op.y), (15.0, 17.0))

    def test_layout_variable_of_drained_section(self) -> None:
        template = [
            PAGE,
            details("items", [cell("name")], SMALL),
            {"type": "text", "text": "sum", "options": {"x": 15, "y": "[[max_y_items]]"}},
            details("more", [cell("name")], SMALL),
        ]
        sink = render_recorded(template, {"items": rows(1), "more": rows(5, "m")})
        self.assertEqual(len(sink.pages), 2)
        (op,) = sink.pages[1].ops("text")
        self.assertEqual((op.x, op.y), (15.0, 10.0))

    def test_unknown_layout_variable_keeps_default(self) -> None:
        template = [PAGE, {"type": "text", "text": "x", "options": {"y": "[[max_y_nothing]]"}}]
        sink = render_recorded(template)
        (op,) = sink.pages[0].ops("text")
        self.assertEqual((op.x, op.y), (10.0, 10.0))

    def test_store_position(self) -> None:
        template = [
            PAGE,
            cell(None, width=30),
            {"type": "store-position", "options": {"name": "after"}},
            {"type": "break", "options": {"height": 12}},
            {"type": "text", "text": "here", "options": {"storedX": "after"}},
        ]
        sink = render_recorded(template)
        (op,) = sink.pages[0].ops("text")
        self.assertEqual((op.x, op.y), (40.0, 22.0))

    def test_unknown_nodes_are_skipped(self) -> None:
        template = [PAGE, {"type": "chart"}, text("after")]
        self.assertEqual(page_texts(render_recorded(template)), [["after"]])

    def test_options_of_unknown_node_is_a_template_error(self) -> None:
        engine = _engine([PAGE, {"type": "chart"}], {})
        orchestrator = engine.orchestrator(RecordingSink())
        with self.assertRaises(TemplateError):
            orchestrator.evaluator.options_for(engine.get_template()[1])

    def test_drawing_without_page_fails(self) -> None:
        with self.assertRaises(RenderError) as ctx:
            render_recorded([text("orphan")])
        self.assertIn("text", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
