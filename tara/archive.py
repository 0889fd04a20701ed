from __future__ import annotations

"""
Encoder/decoder for TARA archives.

Layout (all integers big-endian, no padding)
- entry_count: u32
- header records, entry_count times:
    name_length: u16 || name: utf8[name_length] || data_length: u32
- payload block: each entry's data back-to-back, in header order

There is no magic, version, or checksum. The whole header precedes the first
payload byte, so decode must collect every header record before it can read
any data.
"""

import io
from dataclasses import dataclass, field
from typing import BinaryIO, Iterator, List, Optional

from .constants import (
    COUNT_STRUCT,
    DATA_LEN_STRUCT,
    MAX_DATA_LEN,
    MAX_ENTRY_COUNT,
    MAX_NAME_BYTES,
    NAME_ENCODING,
    NAME_LEN_STRUCT,
)
from .entry import Entry, HeaderRecord
from .errors import FieldOverflowError, NameDecodeError, TruncatedArchiveError


def read_exact(f: BinaryIO, n: int, what: str = "data") -> bytes:
    buf = bytearray()
    while len(buf) < n:
        b = f.read(n - len(buf))
        if not b:
            raise TruncatedArchiveError(what, n, len(buf))
        buf += b
    return bytes(buf)


def write_all(f: BinaryIO, b: bytes) -> None:
    view = memoryview(b)
    while view:
        n = f.write(view)
        if not n:
            raise OSError(f"Stream accepted no bytes with {len(view)} left to write")
        view = view[n:]


@dataclass
class Archive:
    entries: List[Entry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.entries)

    def names(self) -> List[str]:
        return [e.name for e in self.entries]

    def get_entry(self, name: str) -> Optional[Entry]:
        """Return the first entry called ``name``, or None."""
        for e in self.entries:
            if e.name == name:
                return e
        return None

    def add_entry(self, name: str, data: bytes) -> Entry:
        """Append a new entry; duplicates are kept in insertion order."""
        e = Entry(name, bytes(memoryview(data)))
        self.entries.append(e)
        return e

    @classmethod
    def read(cls, f: BinaryIO) -> "Archive":
        return read_archive(f)

    def write(self, f: BinaryIO) -> None:
        write_archive(self, f)


def read_archive(f: BinaryIO) -> Archive:
    """Decode an archive from a readable binary stream.

    Raises:
        TruncatedArchiveError: the stream ended before a field or payload was complete.
        NameDecodeError: a header name is not valid UTF-8.
    """
    (count,) = COUNT_STRUCT.unpack(read_exact(f, COUNT_STRUCT.size, "entry count"))

    header: List[HeaderRecord] = []
    for i in range(count):
        (name_len,) = NAME_LEN_STRUCT.unpack(read_exact(f, NAME_LEN_STRUCT.size, f"entry {i} name length"))
        raw = read_exact(f, name_len, f"entry {i} name")
        try:
            name = raw.decode(NAME_ENCODING)
        except UnicodeDecodeError as exc:
            raise NameDecodeError(i, raw, exc.reason) from exc
        (data_len,) = DATA_LEN_STRUCT.unpack(read_exact(f, DATA_LEN_STRUCT.size, f"entry {i} data length"))
        header.append(HeaderRecord(name, data_len))

    archive = Archive()
    for i, rec in enumerate(header):
        data = read_exact(f, rec.length, f"entry {i} payload ({rec.name!r})")
        archive.entries.append(Entry(rec.name, data))
    return archive


def _pack_header(archive: Archive) -> bytes:
    count = len(archive.entries)
    if count > MAX_ENTRY_COUNT:
        raise FieldOverflowError("entry count", count, MAX_ENTRY_COUNT)
    out = bytearray(COUNT_STRUCT.pack(count))
    for i, e in enumerate(archive.entries):
        name = e.name.encode(NAME_ENCODING)
        if len(name) > MAX_NAME_BYTES:
            raise FieldOverflowError(f"entry {i} name length", len(name), MAX_NAME_BYTES)
        if len(e.data) > MAX_DATA_LEN:
            raise FieldOverflowError(f"entry {i} data length", len(e.data), MAX_DATA_LEN)
        out += NAME_LEN_STRUCT.pack(len(name))
        out += name
        out += DATA_LEN_STRUCT.pack(len(e.data))
    return bytes(out)


def write_archive(archive: Archive, f: BinaryIO) -> None:
    """Encode ``archive`` to a writable binary stream.

    The header is validated and packed before anything is written, so a
    FieldOverflowError leaves ``f`` untouched. Transport errors propagate.
    """
    write_all(f, _pack_header(archive))
    for e in archive.entries:
        write_all(f, e.data)


def header_size(archive: Archive) -> int:
    return COUNT_STRUCT.size + sum(
        NAME_LEN_STRUCT.size + len(e.name.encode(NAME_ENCODING)) + DATA_LEN_STRUCT.size for e in archive.entries
    )


def loads(data: bytes) -> Archive:
    return read_archive(io.BytesIO(data))


def dumps(archive: Archive) -> bytes:
    buf = io.BytesIO()
    write_archive(archive, buf)
    return buf.getvalue()
