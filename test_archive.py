from __future__ import annotations

import io
import unittest
from unittest import mock

from tara import Archive, Entry, dumps, loads
from tara.archive import header_size, read_archive, write_archive
from tara.constants import MAX_NAME_BYTES
from tara.entry import HeaderRecord
from tara.errors import FieldOverflowError, NameDecodeError, TaraError, TruncatedArchiveError


# Two entries: ("hello", 01..05) then ("world", empty)
HELLO_WORLD = bytes(
    [
        0, 0, 0, 2,
        0, 5, 104, 101, 108, 108, 111, 0, 0, 0, 5,
        0, 5, 119, 111, 114, 108, 100, 0, 0, 0, 0,
        1, 2, 3, 4, 5,
    ]
)


class _BrokenWriter(io.RawIOBase):
    def writable(self):
        return True

    def write(self, b):
        raise OSError("disk full")


class _TrickleReader(io.RawIOBase):
    """Returns at most one byte per read, like a slow pipe."""

    def __init__(self, data: bytes):
        self._buf = io.BytesIO(data)

    def readable(self):
        return True

    def read(self, n=-1):
        return self._buf.read(1 if n != 0 else 0)


class _ShortWriter(io.RawIOBase):
    """Accepts at most three bytes per write, like a congested pipe."""

    def __init__(self):
        self.buf = bytearray()

    def writable(self):
        return True

    def write(self, b):
        chunk = bytes(b[:3])
        self.buf += chunk
        return len(chunk)


class _StalledWriter(io.RawIOBase):
    def writable(self):
        return True

    def write(self, b):
        return 0


class EntryTests(unittest.TestCase):
    def test_equality_uses_name_and_data(self):
        self.assertEqual(Entry("a", b"x"), Entry("a", b"x"))
        self.assertNotEqual(Entry("a", b"x"), Entry("b", b"x"))
        self.assertNotEqual(Entry("a", b"x"), Entry("a", b"y"))

    def test_repr_hides_payload(self):
        e = Entry("hello", b"secret-bytes")
        self.assertEqual(repr(e), "Entry(name='hello', data=<12 bytes>)")
        self.assertNotIn("secret", repr(e))

    def test_no_validation_on_construct(self):
        e = Entry("", b"")
        self.assertEqual(e.name, "")
        self.assertEqual(e.size, 0)

    def test_header_record_fields(self):
        rec = HeaderRecord("n", 7)
        self.assertEqual((rec.name, rec.length), ("n", 7))


class ArchiveContainerTests(unittest.TestCase):
    def test_new_archive_is_empty(self):
        a = Archive()
        self.assertEqual(len(a), 0)
        self.assertEqual(a.entries, [])

    def test_add_entry_appends_in_order(self):
        a = Archive()
        a.add_entry("b", b"2")
        a.add_entry("a", bytearray(b"1"))
        self.assertEqual(a.names(), ["b", "a"])
        self.assertIsInstance(a.entries[1].data, bytes)

    def test_get_entry_first_match(self):
        a = Archive()
        a.add_entry("dup", b"first")
        a.add_entry("other", b"")
        a.add_entry("dup", b"second")
        self.assertEqual(a.get_entry("dup").data, b"first")
        self.assertEqual(len(a), 3)

    def test_get_entry_absent_is_none(self):
        a = Archive()
        a.add_entry("present", b"")
        self.assertIsNone(a.get_entry("missing"))
        self.assertIsNone(Archive().get_entry(""))

    def test_add_entry_rejects_non_bytes(self):
        a = Archive()
        with self.assertRaises(TypeError):
            a.add_entry("x", 5)
        self.assertEqual(len(a), 0)

    def test_add_entry_accepts_buffers(self):
        a = Archive()
        e = a.add_entry("mv", memoryview(b"abc"))
        self.assertEqual(e.data, b"abc")
        self.assertIsInstance(e.data, bytes)


class DecodeTests(unittest.TestCase):
    def test_literal_scenario(self):
        a = Archive.read(io.BytesIO(HELLO_WORLD))
        self.assertEqual(a.entries, [Entry("hello", bytes([1, 2, 3, 4, 5])), Entry("world", b"")])

    def test_empty_archive(self):
        a = loads(b"\x00\x00\x00\x00")
        self.assertEqual(len(a), 0)

    def test_order_preserved_with_zero_length_payloads(self):
        a = Archive()
        for name, data in [("z", b""), ("a", b"x" * 300), ("m", b""), ("b", b"yy")]:
            a.add_entry(name, data)
        b = loads(dumps(a))
        self.assertEqual(b.names(), ["z", "a", "m", "b"])
        self.assertEqual([e.size for e in b], [0, 300, 0, 2])

    def test_stops_after_last_payload(self):
        f = io.BytesIO(HELLO_WORLD + b"trailing")
        read_archive(f)
        self.assertEqual(f.read(), b"trailing")

    def test_short_reads_are_completed(self):
        a = read_archive(_TrickleReader(HELLO_WORLD))
        self.assertEqual(a.get_entry("hello").data, b"\x01\x02\x03\x04\x05")

    def test_truncated_payload(self):
        with self.assertRaises(TruncatedArchiveError) as cm:
            loads(HELLO_WORLD[:-1])
        self.assertEqual(cm.exception.expected, 5)
        self.assertEqual(cm.exception.got, 4)

    def test_truncated_header(self):
        for cut in (0, 2, 4, 6, 9, 14):
            with self.subTest(cut=cut):
                with self.assertRaises(TruncatedArchiveError):
                    loads(HELLO_WORLD[:cut])

    def test_truncation_is_an_eof_error(self):
        with self.assertRaises(EOFError):
            loads(b"\x00\x00")

    def test_invalid_utf8_name(self):
        data = b"\x00\x00\x00\x01" + b"\x00\x02\xff\xfe" + b"\x00\x00\x00\x00"
        with self.assertRaises(NameDecodeError) as cm:
            loads(data)
        self.assertEqual(cm.exception.index, 0)
        self.assertEqual(cm.exception.raw, b"\xff\xfe")
        self.assertIsInstance(cm.exception, TaraError)

    def test_non_ascii_name(self):
        a = Archive()
        a.add_entry("données/été.txt", b"ok")
        raw = dumps(a)
        self.assertEqual(raw[4:6], len("données/été.txt".encode("utf-8")).to_bytes(2, "big"))
        self.assertEqual(loads(raw).get_entry("données/été.txt").data, b"ok")


class EncodeTests(unittest.TestCase):
    def test_literal_scenario(self):
        a = Archive()
        a.add_entry("hello", bytes([1, 2, 3, 4, 5]))
        a.add_entry("world", b"")
        buf = io.BytesIO()
        a.write(buf)
        self.assertEqual(buf.getvalue(), HELLO_WORLD)

    def test_empty_archive(self):
        self.assertEqual(dumps(Archive()), b"\x00\x00\x00\x00")

    def test_roundtrip(self):
        a = Archive()
        a.add_entry("", b"")
        a.add_entry("bin", bytes(range(256)) * 4)
        a.add_entry("bin", b"again")
        a.add_entry("n" * MAX_NAME_BYTES, b"edge")
        self.assertEqual(loads(dumps(a)), a)

    def test_total_length(self):
        a = Archive()
        a.add_entry("one", b"abc")
        a.add_entry("two", b"")
        raw = dumps(a)
        self.assertEqual(header_size(a), 4 + (2 + 3 + 4) * 2)
        self.assertEqual(len(raw), header_size(a) + 3)

    def test_name_too_long_writes_nothing(self):
        a = Archive()
        a.add_entry("ok", b"1")
        a.add_entry("é" * (MAX_NAME_BYTES // 2 + 1), b"2")
        buf = io.BytesIO()
        with self.assertRaises(FieldOverflowError) as cm:
            write_archive(a, buf)
        self.assertEqual(cm.exception.limit, MAX_NAME_BYTES)
        self.assertEqual(buf.getvalue(), b"")

    def test_short_writes_are_completed(self):
        a = Archive()
        a.add_entry("hello", bytes([1, 2, 3, 4, 5]))
        a.add_entry("world", b"")
        w = _ShortWriter()
        a.write(w)
        self.assertEqual(bytes(w.buf), HELLO_WORLD)

    def test_stalled_writer_raises(self):
        a = Archive()
        a.add_entry("x", b"y")
        with self.assertRaises(OSError):
            a.write(_StalledWriter())

    def test_entry_count_overflow_writes_nothing(self):
        a = Archive()
        a.add_entry("a", b"")
        a.add_entry("b", b"")
        buf = io.BytesIO()
        with mock.patch("tara.archive.MAX_ENTRY_COUNT", 1):
            with self.assertRaises(FieldOverflowError) as cm:
                write_archive(a, buf)
        self.assertEqual(cm.exception.field, "entry count")
        self.assertEqual((cm.exception.value, cm.exception.limit), (2, 1))
        self.assertEqual(buf.getvalue(), b"")

    def test_data_length_overflow_writes_nothing(self):
        a = Archive()
        a.add_entry("small", b"1234")
        a.add_entry("big", b"12345")
        buf = io.BytesIO()
        with mock.patch("tara.archive.MAX_DATA_LEN", 4):
            with self.assertRaises(FieldOverflowError) as cm:
                write_archive(a, buf)
        self.assertEqual(cm.exception.field, "entry 1 data length")
        self.assertEqual(cm.exception.value, 5)
        self.assertEqual(buf.getvalue(), b"")

    def test_transport_error_propagates(self):
        a = Archive()
        a.add_entry("x", b"y")
        with self.assertRaises(OSError):
            a.write(_BrokenWriter())


if __name__ == "__main__":
    unittest.main()
