"""
Tests for the line diff engine.
"""

import unittest

from pagevault.diff import diff_lines, render_content
from pagevault.types import DiffMode, DiffRowType


class TestAlignedDiff(unittest.TestCase):
    """Index-aligned comparison (the default)."""

    def test_identical_text_is_all_same(self):
        text = "one\ntwo\nthree"
        result = diff_lines(text, text)

        self.assertEqual(result.summary.added, 0)
        self.assertEqual(result.summary.removed, 0)
        self.assertEqual(result.summary.unchanged, 3)
        self.assertTrue(all(row.type == DiffRowType.SAME for row in result.rows))

    def test_changed_line_emits_remove_then_add(self):
        result = diff_lines("a\nb\nc", "a\nB\nc")

        self.assertEqual(
            [(row.type, row.line) for row in result.rows],
            [
                (DiffRowType.SAME, "a"),
                (DiffRowType.REMOVE, "b"),
                (DiffRowType.ADD, "B"),
                (DiffRowType.SAME, "c"),
            ],
        )

    def test_longer_right_side_adds_trailing_lines(self):
        result = diff_lines("a", "a\nb\nc")

        self.assertEqual(result.summary.added, 2)
        self.assertEqual(result.summary.removed, 0)
        self.assertEqual(result.summary.unchanged, 1)

    def test_swapping_sides_swaps_added_and_removed(self):
        x = "alpha\nbeta\ngamma\ndelta"
        y = "alpha\nBETA\ngamma"

        forward = diff_lines(x, y).summary
        backward = diff_lines(y, x).summary

        self.assertEqual(forward.added, backward.removed)
        self.assertEqual(forward.removed, backward.added)
        self.assertEqual(forward.unchanged, backward.unchanged)

    def test_inserted_line_shifts_everything_after_it(self):
        result = diff_lines("a\nb\nc", "x\na\nb\nc")

        self.assertEqual(result.summary.unchanged, 0)
        self.assertEqual(result.summary.removed, 3)
        self.assertEqual(result.summary.added, 4)

    def test_none_is_treated_as_empty(self):
        result = diff_lines(None, None)

        self.assertEqual(result.summary.added, 0)
        self.assertEqual(result.summary.removed, 0)


class TestSequenceDiff(unittest.TestCase):
    """difflib-based comparison."""

    def test_inserted_line_is_detected(self):
        result = diff_lines("a\nb\nc", "x\na\nb\nc", mode=DiffMode.SEQUENCE)

        self.assertEqual(result.summary.added, 1)
        self.assertEqual(result.summary.removed, 0)
        self.assertEqual(result.summary.unchanged, 3)
        self.assertEqual(result.rows[0].type, DiffRowType.ADD)
        self.assertEqual(result.rows[0].line, "x")

    def test_mode_accepts_string(self):
        result = diff_lines("a\nb", "b", mode="sequence")

        self.assertEqual(result.summary.removed, 1)
        self.assertEqual(result.summary.unchanged, 1)


class TestRenderContent(unittest.TestCase):

    def test_renders_two_space_indented_json(self):
        rendered = render_content({"title": "Lunch"})
        self.assertEqual(rendered, '{\n  "title": "Lunch"\n}')

    def test_none_renders_as_empty_object(self):
        self.assertEqual(render_content(None), "{}")


if __name__ == "__main__":
    unittest.main()
