"""Test cases for the paragraph model and its editing helpers."""

import unittest

from scrivener_rtf.model.elements import (
    PLAIN_STYLE,
    Paragraph,
    RtfColor,
    RunStyle,
    StyledRun,
    coalesce_runs,
)

BOLD = RunStyle(bold=True)


class ParagraphTest(unittest.TestCase):
    """Test run bookkeeping and character-level edits."""

    def setUp(self):
        self.paragraph = Paragraph([StyledRun("Hello", BOLD), StyledRun(" World", PLAIN_STYLE)])

    def test_plain_text_and_length(self):
        self.assertEqual(self.paragraph.plain_text, "Hello World")
        self.assertEqual(self.paragraph.length, 11)
        self.assertFalse(self.paragraph.is_empty)
        self.assertTrue(Paragraph().is_empty)

    def test_char_styles_round_trip(self):
        styles = self.paragraph.char_styles()
        self.assertEqual(styles[:5], [BOLD] * 5)
        rebuilt = Paragraph.from_char_styles(self.paragraph.plain_text, styles)
        self.assertEqual(rebuilt, self.paragraph)

    def test_from_char_styles_length_mismatch(self):
        with self.assertRaises(ValueError):
            Paragraph.from_char_styles("abc", [PLAIN_STYLE])

    def test_insert_inherits_preceding_style(self):
        self.paragraph.insert_text(5, "!!")
        self.assertEqual(self.paragraph.runs[0], StyledRun("Hello!!", BOLD))
        self.paragraph.insert_text(0, ">")
        self.assertEqual(self.paragraph.runs[0], StyledRun(">Hello!!", BOLD))

    def test_insert_with_explicit_style(self):
        self.paragraph.insert_text(11, "?", RunStyle(italic=True))
        self.assertEqual(self.paragraph.runs[-1], StyledRun("?", RunStyle(italic=True)))

    def test_insert_rejects_line_breaks(self):
        with self.assertRaises(ValueError):
            self.paragraph.insert_text(0, "a\nb")

    def test_insert_out_of_range(self):
        with self.assertRaises(IndexError):
            self.paragraph.insert_text(12, "x")

    def test_delete_range_across_runs(self):
        self.paragraph.delete_range(3, 7)
        self.assertEqual(self.paragraph.runs, [StyledRun("Hel", BOLD), StyledRun("orld", PLAIN_STYLE)])

    def test_apply_style_merges_runs(self):
        self.paragraph.apply_style(5, 11, bold=True)
        self.assertEqual(self.paragraph.runs, [StyledRun("Hello World", BOLD)])

    def test_apply_style_color(self):
        red = RtfColor(255, 0, 0)
        self.paragraph.apply_style(0, 1, text_color=red)
        self.assertEqual(self.paragraph.runs[0].style, RunStyle(bold=True, text_color=red))

    def test_split_at(self):
        tail = self.paragraph.split_at(5)
        self.assertEqual(self.paragraph.plain_text, "Hello")
        self.assertEqual(tail.runs, [StyledRun(" World", PLAIN_STYLE)])

    def test_style_at_empty_paragraph(self):
        self.assertEqual(Paragraph().style_at(0), PLAIN_STYLE)

    def test_copy_is_independent(self):
        copy = self.paragraph.copy()
        copy.insert_text(0, "x")
        self.assertEqual(self.paragraph.plain_text, "Hello World")


class RunStyleTest(unittest.TestCase):
    """Test style values and run normalisation."""

    def test_has_formatting(self):
        self.assertFalse(RunStyle().has_formatting)
        self.assertTrue(RunStyle(font_size=12.0).has_formatting)

    def test_active_attributes(self):
        style = RunStyle(bold=True, font_family="Georgia")
        self.assertEqual(style.active_attributes(), {"bold": True, "font_family": "Georgia"})

    def test_coalesce_runs(self):
        runs = [StyledRun("a", BOLD), StyledRun("", PLAIN_STYLE), StyledRun("b", BOLD), StyledRun("c")]
        self.assertEqual(coalesce_runs(runs), [StyledRun("ab", BOLD), StyledRun("c")])

    def test_color_hex(self):
        self.assertEqual(RtfColor(255, 128, 0).to_hex(), "#ff8000")
        self.assertEqual(RtfColor.from_hex("#0a0B0c"), RtfColor(10, 11, 12))
        with self.assertRaises(ValueError):
            RtfColor.from_hex("#fff")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
