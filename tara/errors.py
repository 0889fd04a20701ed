class TaraError(Exception):
    """Base class for TARA-specific errors."""


# Decode
class TruncatedArchiveError(TaraError, EOFError):
    def __init__(self, what: str, expected: int, got: int):
        super().__init__(f"Unexpected EOF reading {what}: expected {expected} bytes, got {got}")
        self.what = what
        self.expected = expected
        self.got = got


class NameDecodeError(TaraError, ValueError):
    def __init__(self, index: int, raw: bytes, reason: str):
        super().__init__(f"Entry {index}: name is not valid UTF-8 ({reason})")
        self.index = index
        self.raw = raw


# Encode
class FieldOverflowError(TaraError, ValueError):
    def __init__(self, field: str, value: int, limit: int):
        super().__init__(f"{field} {value} exceeds field limit {limit}")
        self.field = field
        self.value = value
        self.limit = limit
