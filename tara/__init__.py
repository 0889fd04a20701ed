"""
TARA — a flat archive of named byte payloads.

An archive is a u32 entry count, a contiguous header of (name, length)
records, and then every payload back-to-back in header order. All integers
are big-endian. There is no compression, checksum, or version field.

Programmatic API:

- ``Archive`` with ``add_entry``/``get_entry`` and ``read``/``write`` on
  binary streams
- ``loads``/``dumps`` for in-memory buffers
- ``tara.cli`` for pack/unpack/list/info/cat from the shell
"""

from .archive import Archive, dumps, loads, read_archive, write_archive
from .entry import Entry
from .errors import FieldOverflowError, NameDecodeError, TaraError, TruncatedArchiveError

__version__ = "0.1"

__all__ = [
    "Archive",
    "Entry",
    "read_archive",
    "write_archive",
    "loads",
    "dumps",
    "TaraError",
    "TruncatedArchiveError",
    "NameDecodeError",
    "FieldOverflowError",
]
