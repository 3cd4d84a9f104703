"""Test cases for converting RTF into styled paragraphs."""

import unittest

from scrivener_rtf.errors import MalformedRtfError
from scrivener_rtf.model.elements import BLACK, Paragraph, RtfColor, RunStyle, StyledRun
from scrivener_rtf.parser.rtf_parser import RtfParser, parse_rtf
from scrivener_rtf.renderer.rtf_writer import serialize_rtf


def texts(document):
    return [paragraph.plain_text for paragraph in document.paragraphs]


class RtfParserTest(unittest.TestCase):
    """Test body parsing, formatting state, and recovery."""

    def test_bold_toggle_scenario(self):
        """Bold on, bold off with an extra space keeps the space in the text."""
        document = parse_rtf(r"{\rtf1 \b Hello\b0  World}")
        self.assertEqual(
            document.paragraphs,
            [Paragraph([StyledRun("Hello", RunStyle(bold=True)), StyledRun(" World", RunStyle())])],
        )

    def test_empty_input_yields_one_empty_paragraph(self):
        document = parse_rtf("")
        self.assertEqual(len(document.paragraphs), 1)
        self.assertEqual(document.paragraphs[0].runs, [])

    def test_empty_rtf_document(self):
        document = parse_rtf(r"{\rtf1\ansi}")
        self.assertEqual(document.paragraphs, [Paragraph()])

    def test_paragraph_breaks(self):
        document = parse_rtf(r"{\rtf1 One\par Two\par}")
        self.assertEqual(texts(document), ["One", "Two"])

    def test_empty_paragraphs_are_kept(self):
        document = parse_rtf(r"{\rtf1 A\par\par B}")
        self.assertEqual(texts(document), ["A", "", "B"])

    def test_line_is_a_paragraph_break(self):
        document = parse_rtf(r"{\rtf1 A\line B}")
        self.assertEqual(texts(document), ["A", "B"])

    def test_backslash_newline_breaks_paragraph(self):
        document = parse_rtf("{\\rtf1 One\\\nTwo\\\r\nThree}")
        self.assertEqual(texts(document), ["One", "Two", "Three"])

    def test_group_scoped_formatting(self):
        document = parse_rtf(r"{\rtf1 {\b bold}plain}")
        runs = document.paragraphs[0].runs
        self.assertEqual([run.text for run in runs], ["bold", "plain"])
        self.assertTrue(runs[0].style.bold)
        self.assertFalse(runs[1].style.bold)

    def test_plain_resets_formatting(self):
        document = parse_rtf(r"{\rtf1 \b\i BI\plain  P}")
        runs = document.paragraphs[0].runs
        self.assertEqual(runs[0].style, RunStyle(bold=True, italic=True))
        self.assertEqual(runs[1], StyledRun(" P", RunStyle()))

    def test_character_attributes(self):
        document = parse_rtf(
            r"{\rtf1 \ul U\ulnone \strike S\strike0 \super 2\nosupersub \sub x\nosupersub \fs36 Big}"
        )
        styles = {run.text: run.style for run in document.paragraphs[0].runs}
        self.assertTrue(styles["U"].underline)
        self.assertTrue(styles["S"].strikethrough)
        self.assertTrue(styles["2"].superscript)
        self.assertTrue(styles["x"].subscript)
        self.assertEqual(styles["Big"].font_size, 18.0)

    def test_non_positive_font_sizes_mean_no_size(self):
        document = parse_rtf(r"{\rtf1 \fs-4 A\fs0 B\fs1 C}")
        self.assertEqual(
            document.paragraphs[0].runs,
            [StyledRun("AB", RunStyle()), StyledRun("C", RunStyle(font_size=0.5))],
        )
        self.assertIn("\\fs1 C", serialize_rtf(document.paragraphs, document.metadata))

    def test_colors_resolve_through_table(self):
        document = parse_rtf(
            r"{\rtf1{\colortbl;\red255\green0\blue0;\red255\green255\blue0;}"
            r"\cf1\highlight2 Red\cf0\highlight0  Auto}"
        )
        runs = document.paragraphs[0].runs
        self.assertEqual(runs[0].style.text_color, RtfColor(255, 0, 0))
        self.assertEqual(runs[0].style.background_color, RtfColor(255, 255, 0))
        self.assertIsNone(runs[1].style.text_color)
        self.assertIsNone(runs[1].style.background_color)
        self.assertEqual(runs[1].text, " Auto")

    def test_unresolved_references_fall_back(self):
        document = parse_rtf(r"{\rtf1\deff0{\fonttbl{\f0 Arial;}}\f7\cf9 X}")
        style = document.paragraphs[0].runs[0].style
        self.assertEqual(style.font_family, "Arial")
        self.assertEqual(style.text_color, BLACK)

    def test_font_reference(self):
        document = parse_rtf(r"{\rtf1{\fonttbl{\f0 Arial;}{\f1 Georgia;}}\f1 G}")
        self.assertEqual(document.paragraphs[0].runs[0].style.font_family, "Georgia")
        self.assertEqual(document.metadata.get_font_by_index(1).name, "Georgia")

    def test_unicode_escape_skips_fallback(self):
        document = parse_rtf(r"{\rtf1\uc1 caf\u233?}")
        self.assertEqual(texts(document), ["café"])

    def test_uc0_has_no_fallback(self):
        document = parse_rtf(r"{\rtf1\uc0 \u8212 x}")
        self.assertEqual(texts(document), ["—x"])

    def test_surrogate_pair_is_joined(self):
        document = parse_rtf(r"{\rtf1 \u-10179?\u-8704?}")
        self.assertEqual(texts(document), ["\U0001F600"])

    def test_hex_escapes_use_windows_1252(self):
        document = parse_rtf(r"{\rtf1 \'93quoted\'94 caf\'e9}")
        self.assertEqual(texts(document), ["“quoted” café"])

    def test_literal_and_symbol_escapes(self):
        document = parse_rtf(r"{\rtf1 a\\b\{c\}\~d\_e\emdash\tab f}")
        self.assertEqual(texts(document), ["a\\b{c} d-e—\tf"])

    def test_ignored_destinations(self):
        document = parse_rtf(r"{\rtf1{\info{\title Secret}}{\stylesheet{\s0 Normal;}}Visible}")
        self.assertEqual(texts(document), ["Visible"])

    def test_ignorable_destination_marker(self):
        document = parse_rtf(r"{\rtf1{\*\generator Foo 1.0;}Text}")
        self.assertEqual(texts(document), ["Text"])

    def test_raw_line_breaks_are_formatting_whitespace(self):
        document = parse_rtf("{\\rtf1 Line\r\nJoined\tTab}")
        self.assertEqual(texts(document), ["LineJoinedTab"])

    def test_space_after_group_start_is_dropped(self):
        document = parse_rtf(r"{\rtf1 A{ B}}")
        self.assertEqual(texts(document), ["AB"])

    def test_bytes_input_falls_back_to_windows_1252(self):
        document = parse_rtf(b"{\\rtf1 caf\xe9}")
        self.assertEqual(texts(document), ["café"])

    def test_plain_text_input(self):
        document = parse_rtf("first\r\nsecond\n")
        self.assertEqual(texts(document), ["first", "second"])

    def test_lenient_mode_recovers_and_warns(self):
        with self.assertLogs("scrivener_rtf.parser.rtf_parser", level="WARNING") as captured:
            document = parse_rtf(r"{\rtf1 Hello")
        self.assertEqual(texts(document), ["Hello"])
        self.assertEqual(len(captured.records), 1)

    def test_strict_mode_rejects_malformed_input(self):
        for source in (r"{\rtf1 Hello", r"{\rtf1 x}}", "no header", "{\\rtf1 x\\"):
            with self.subTest(source=source):
                with self.assertRaises(MalformedRtfError):
                    RtfParser(source, strict=True).parse()

    def test_strict_mode_accepts_well_formed_input(self):
        document = RtfParser(r"{\rtf1 fine\par}", strict=True).parse()
        self.assertEqual(texts(document), ["fine"])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
