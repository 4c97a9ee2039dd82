import unittest

from webusb_analyzer.cursor import ByteCursor, OutOfBounds


class TestByteCursor(unittest.TestCase):
    def setUp(self):
        self.cursor = ByteCursor(bytes([0x05, 0x0F, 0x3D, 0x00, 0x02, 0x00, 0x00, 0x03, 0x06]))

    def test_little_endian_reads(self):
        self.assertEqual(self.cursor.read_u8(1), 0x0F)
        self.assertEqual(self.cursor.read_u16le(2), 61)
        self.assertEqual(self.cursor.read_u32le(5), 0x06030000)

    def test_read_at_exact_end(self):
        self.assertEqual(self.cursor.read_u8(8), 0x06)
        self.assertEqual(self.cursor.read_u16le(7), 0x0603)

    def test_read_past_end_raises(self):
        with self.assertRaises(OutOfBounds) as ctx:
            self.cursor.read_u32le(6)
        self.assertEqual(ctx.exception.offset, 6)
        self.assertEqual(ctx.exception.width, 4)
        self.assertEqual(ctx.exception.length, 9)

    def test_negative_offset_raises(self):
        with self.assertRaises(OutOfBounds):
            self.cursor.read_u8(-1)

    def test_out_of_bounds_is_index_error(self):
        with self.assertRaises(IndexError):
            ByteCursor(b"").read_u8(0)

    def test_remaining_and_fits(self):
        self.assertEqual(self.cursor.remaining(4), 5)
        self.assertTrue(self.cursor.fits(5, 4))
        self.assertFalse(self.cursor.fits(6, 4))

    def test_read_bytes(self):
        self.assertEqual(self.cursor.read_bytes(0, 2), b"\x05\x0f")
        with self.assertRaises(OutOfBounds):
            self.cursor.read_bytes(8, 2)

    def test_bytearray_input_is_snapshotted(self):
        buf = bytearray(b"\x01\x02")
        cursor = ByteCursor(buf)
        buf[0] = 0xFF
        self.assertEqual(cursor.read_u8(0), 0x01)
        self.assertEqual(len(cursor), 2)


if __name__ == "__main__":
    unittest.main()
