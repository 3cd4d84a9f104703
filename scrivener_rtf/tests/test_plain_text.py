"""Test cases for plain-text projection and in-place plain-text edits."""

import unittest

from scrivener_rtf.errors import PlainTextEditError
from scrivener_rtf.parser.plain_text import (
    plain_text_to_rtf,
    rtf_to_plain_text,
    update_rtf_plain_text_preserving_formatting,
)
from scrivener_rtf.parser.rtf_parser import parse_rtf

FORMATTED = r"{\rtf1\ansi{\fonttbl{\f0 Calibri;}}\pard \b Hello\b0  World\par}"


class PlainTextConversionTest(unittest.TestCase):
    """Test conversions between RTF and plain text."""

    def test_rtf_to_plain_text(self):
        self.assertEqual(rtf_to_plain_text(r"{\rtf1 Hello\par World}"), "Hello\nWorld")

    def test_rtf_to_plain_text_skips_destinations(self):
        rtf = r"{\rtf1{\fonttbl{\f0 Arial;}}{\*\generator X;}caf\u233?\tab x\par}"
        self.assertEqual(rtf_to_plain_text(rtf), "café\tx\n")

    def test_backslash_newline_is_a_line_break(self):
        self.assertEqual(rtf_to_plain_text("{\\rtf1 a\\\nb}"), "a\nb")

    def test_non_rtf_input_is_normalised(self):
        self.assertEqual(rtf_to_plain_text("a\r\nb\rc"), "a\nb\nc")

    def test_plain_text_to_rtf(self):
        self.assertEqual(
            plain_text_to_rtf("a\nb{"),
            "{\\rtf1\\ansi\\deff0{\\fonttbl{\\f0 Calibri;}}\\viewkind4\\uc1\\pard\\f0\\fs24 a\\par\nb\\{}",
        )

    def test_plain_text_round_trip(self):
        text = "café\tx\n— \U0001F600 {braces} \\"
        self.assertEqual(rtf_to_plain_text(plain_text_to_rtf(text)), text)
        document = parse_rtf(plain_text_to_rtf(text))
        self.assertEqual(document.plain_text, text)
        self.assertEqual(document.paragraphs[0].runs[0].style.font_family, "Calibri")
        self.assertEqual(document.paragraphs[0].runs[0].style.font_size, 12.0)


class PlainTextEditTest(unittest.TestCase):
    """Test splicing plain-text edits into existing RTF."""

    def test_unchanged_text_returns_source(self):
        self.assertIs(update_rtf_plain_text_preserving_formatting(FORMATTED, "Hello World\n"), FORMATTED)

    def test_insertion_keeps_surrounding_formatting(self):
        updated = update_rtf_plain_text_preserving_formatting(FORMATTED, "Hello brave World\n")
        self.assertIn("\\b Hello\\b0  brave World", updated)
        self.assertIn("{\\fonttbl{\\f0 Calibri;}}", updated)
        runs = parse_rtf(updated).paragraphs[0].runs
        self.assertEqual([run.text for run in runs], ["Hello", " brave World"])
        self.assertTrue(runs[0].style.bold)

    def test_replacement_inside_formatted_run(self):
        updated = update_rtf_plain_text_preserving_formatting(FORMATTED, "Help World\n")
        runs = parse_rtf(updated).paragraphs[0].runs
        self.assertEqual(runs[0].text, "Help")
        self.assertTrue(runs[0].style.bold)

    def test_deletion_removes_unicode_fallback(self):
        rtf = r"{\rtf1 caf\u233?s}"
        updated = update_rtf_plain_text_preserving_formatting(rtf, "cafs")
        self.assertEqual(updated, r"{\rtf1 cafs}")

    def test_new_paragraph(self):
        updated = update_rtf_plain_text_preserving_formatting(FORMATTED, "Hello World\nMore\n")
        self.assertEqual(rtf_to_plain_text(updated), "Hello World\nMore\n")

    def test_crlf_in_requested_text(self):
        updated = update_rtf_plain_text_preserving_formatting(r"{\rtf1 a\par b}", "a\r\nbc")
        self.assertEqual(rtf_to_plain_text(updated), "a\nbc")

    def test_non_rtf_source_becomes_new_document(self):
        self.assertEqual(update_rtf_plain_text_preserving_formatting("old", "new"), plain_text_to_rtf("new"))

    def test_unsafe_edit_raises(self):
        with self.assertRaises(PlainTextEditError):
            update_rtf_plain_text_preserving_formatting(r"{\rtf1 \b,5}", "5")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
