from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Entry:
    """One named payload stored in an archive.

    Names are uninterpreted text; nothing here checks emptiness or uniqueness.
    """

    name: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"Entry(name={self.name!r}, data=<{len(self.data)} bytes>)"


@dataclass(frozen=True)
class HeaderRecord:
    # Decode-time only: pairs a name with the length of its upcoming payload
    name: str
    length: int
