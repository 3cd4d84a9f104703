"""Test cases for unit conversion and character-set helpers."""

import unittest

from scrivener_rtf.utils.encoding import decode_cp1252_byte, decode_rtf_bytes, signed_utf16, to_utf16_units
from scrivener_rtf.utils.units import half_points_to_points, points_to_half_points


class UnitsTest(unittest.TestCase):
    """Test RTF measurement conversions."""

    def test_half_points(self):
        self.assertEqual(half_points_to_points(24), 12.0)
        self.assertEqual(half_points_to_points(19), 9.5)
        self.assertEqual(points_to_half_points(12.0), 24)
        self.assertEqual(points_to_half_points(10.3), 21)


class EncodingTest(unittest.TestCase):
    """Test Windows-1252 and UTF-16 helpers."""

    def test_cp1252_high_range(self):
        self.assertEqual(decode_cp1252_byte(0x80), "€")
        self.assertEqual(decode_cp1252_byte(0x93), "“")
        self.assertEqual(decode_cp1252_byte(0xE9), "é")
        self.assertEqual(decode_cp1252_byte(0x41), "A")

    def test_decode_rtf_bytes(self):
        self.assertEqual(decode_rtf_bytes("text"), "text")
        self.assertEqual(decode_rtf_bytes("café".encode("utf-8")), "café")
        self.assertEqual(decode_rtf_bytes(b"\x93hi\x94"), "“hi”")

    def test_utf16_units(self):
        self.assertEqual(to_utf16_units("A"), [0x41])
        self.assertEqual(to_utf16_units("\U0001F600"), [0xD83D, 0xDE00])
        self.assertEqual(signed_utf16(0xD83D), -10179)
        self.assertEqual(signed_utf16(0x7FFF), 0x7FFF)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
