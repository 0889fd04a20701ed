from __future__ import annotations

import os


def name_from_path(p: str) -> str:
    """Map a relative filesystem path to a canonical forward-slash entry name.

    Rules:
    - Convert OS separators and backslashes to slashes
    - Strip leading/trailing slashes
    - Remove empty and '.' segments
    """
    p = p.replace(os.sep, "/").replace("\\", "/").strip("/")
    return "/".join(q for q in p.split("/") if q not in ("", "."))


def _has_drive(name: str) -> bool:
    # "C:\x" or "C:/x" anywhere; bare "C:x" only where drives exist
    if len(name) < 2 or name[1] != ":" or not name[0].isalpha():
        return False
    return os.name == "nt" or name[2:3] in ("/", "\\")


def path_from_name(name: str) -> str:
    """Map an entry name to a relative filesystem path for extraction.

    Names are opaque to the format, so anything that would escape the output
    directory is rejected here rather than at decode time.
    """
    if name.startswith(("/", "\\")) or _has_drive(name):
        raise ValueError(f"Refusing absolute entry name: {name!r}")
    parts = [q for q in name.replace("\\", "/").split("/") if q not in ("", ".")]
    if not parts:
        raise ValueError(f"Entry name does not map to a file path: {name!r}")
    if ".." in parts:
        raise ValueError(f"Entry name may not contain '..': {name!r}")
    if "\x00" in name:
        raise ValueError(f"Entry name contains NUL: {name!r}")
    return os.path.join(*parts)
