from __future__ import annotations

import os
import sys
import time
import argparse

from pathlib import Path
from typing import List, Optional

from tara.archive import Archive, header_size, read_archive
from tara.errors import TaraError, TruncatedArchiveError, NameDecodeError
from tara.pathutil import name_from_path, path_from_name


def _load(archive: str) -> Archive:
    with open(archive, "rb") as fh:
        return read_archive(fh)


def _entry_name(full: str, start: str) -> str:
    name = name_from_path(os.path.relpath(full, start=start))
    if name == ".." or name.startswith("../"):
        raise ValueError(f"Input {full} is outside the base directory {start}")
    return name


def _collect_files(inputs: List[Path], base: Optional[Path]) -> List[tuple[str, str]]:
    """Expand files/directories into (entry name, filesystem path) pairs.

    Without ``base`` a directory contributes names prefixed by its own name and
    a file is stored under its basename. Symlinks are not followed.
    """
    files: List[tuple[str, str]] = []
    for p in inputs:
        start = str(base) if base is not None else str(p.parent)
        if p.is_symlink():
            print(f"Warning: skipping symlink {p}", file=sys.stderr)
        elif p.is_dir():
            for root, dirnames, filenames in os.walk(str(p)):
                dirnames[:] = sorted(d for d in dirnames if not os.path.islink(os.path.join(root, d)))
                for f in sorted(filenames):
                    full = os.path.join(root, f)
                    if os.path.islink(full):
                        print(f"Warning: skipping symlink {full}", file=sys.stderr)
                        continue
                    files.append((_entry_name(full, start), full))
        elif p.exists():
            files.append((_entry_name(str(p), start), str(p)))
        else:
            raise FileNotFoundError(f"No such file or directory: '{p}'")
    return files


def cmd_pack(output: str, inputs: list[str], *, base: Optional[str] = None, quiet: bool = False) -> bool:
    """Pack files and directories into a new archive.

    Args:
        output: Path to the archive file to write.
        inputs: List of file or directory paths to store.
        base: Directory entry names are computed relative to. Defaults to each
            input's parent directory.
        quiet: Only print the summary line.
    """
    files = _collect_files([Path(x) for x in inputs], Path(base) if base else None)

    t0 = time.time()
    archive = Archive()
    for name, full in files:
        with open(full, "rb") as fh:
            e = archive.add_entry(name, fh.read())
        if not quiet:
            print(f"    adding: {e.size:>10} {name}")

    with open(output, "wb") as fh:
        archive.write(fh)

    dt = max(0.000001, time.time() - t0)
    mib = sum(e.size for e in archive) / (1024.0 * 1024.0)
    print(f"Done: {len(archive)} entries; {mib:.2f} MiB in {dt:.1f}s")
    return True


def cmd_list(archive: str) -> bool:
    """List archive entries as ``size<TAB>name`` in archive order.

    Args:
        archive: Path to a .tara file.
    """
    for e in _load(archive):
        print(f"{e.size}\t{e.name}")
    return True


def cmd_info(archive: str) -> bool:
    """Show archive information.

    Args:
        archive: Path to a .tara file.
    """
    a = _load(archive)
    payload = sum(e.size for e in a)
    print(f"Archive: {archive}")
    print(f"  Entries: {len(a)}")
    print(f"    Unique names: {len(set(a.names()))}")
    print(f"  Header bytes: {header_size(a)}")
    print(f"  Payload bytes: {payload}")
    return True


def cmd_cat(archive: str, name: str) -> bool:
    """Write the first entry called ``name`` to stdout. Returns False if absent."""
    e = _load(archive).get_entry(name)
    if e is None:
        print(f"Error: no entry named {name!r}", file=sys.stderr)
        return False
    out = sys.stdout.buffer
    out.write(e.data)
    out.flush()
    return True


def _next_nonconflicting_path(path: str) -> str:
    if not os.path.lexists(path):
        return path
    base_dir = os.path.dirname(path)
    root, ext = os.path.splitext(os.path.basename(path))
    i = 1
    while True:
        candidate = os.path.join(base_dir, f"{root} ({i}){ext}")
        if not os.path.lexists(candidate):
            return candidate
        i += 1


def cmd_unpack(archive: str, *, outdir: str = ".", names: Optional[list[str]] = None, exists: str = "rename", quiet: bool = False) -> bool:
    """Unpack entries from an archive into a directory.

    Args:
        archive: Path to a .tara file.
        outdir: Destination directory.
        names: Only extract entries with these names (or under these prefixes).
        exists: Policy when a destination already exists (also applies to
            duplicate names): "overwrite", "skip", "rename" or "fail".
        quiet: Only print the summary line.
    """
    entries = list(_load(archive))
    if names:
        wanted = [name_from_path(n) for n in names]
        entries = [e for e in entries if any(e.name == w or e.name.startswith(w + "/") for w in wanted)]

    t0 = time.time()
    written = 0
    written_bytes = 0
    skipped = 0
    renamed = 0
    for e in entries:
        try:
            rel = path_from_name(e.name)
        except ValueError as exc:
            print(f"Warning: skipping entry: {exc}", file=sys.stderr)
            skipped += 1
            continue
        dst = os.path.join(outdir or ".", rel)
        os.makedirs(os.path.dirname(dst) or ".", exist_ok=True)
        actual_dst = dst
        if os.path.lexists(actual_dst):
            if exists == "overwrite":
                if os.path.isdir(actual_dst) and not os.path.islink(actual_dst):
                    raise RuntimeError(f"Cannot overwrite directory with file: {actual_dst}")
            elif exists == "skip":
                print(f"    skipping: {e.name} (exists)")
                skipped += 1
                continue
            elif exists == "rename":
                actual_dst = _next_nonconflicting_path(actual_dst)
            else:
                raise RuntimeError(f"Destination exists: {actual_dst}")
        if not quiet:
            print(f" unpacking: {written + 1:>4}/{len(entries):<4} {e.name}")
        with open(actual_dst, "wb") as fh:
            fh.write(e.data)
        if actual_dst != dst:
            print(f"       note: renamed to {actual_dst}")
            renamed += 1
        written += 1
        written_bytes += e.size

    dt = max(0.000001, time.time() - t0)
    mib = written_bytes / (1024.0 * 1024.0)
    print(
        f"Done: extracted {written}/{len(entries)} entries ({mib:.2f} MiB) in {dt:.1f}s; "
        f"skipped={skipped} renamed={renamed}"
    )
    return True


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="tara",
        description="TARA archive tool",
        epilog="Entries are flat names; no compression or checksums are applied.",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_pack = sub.add_parser("pack", help="Pack files into an archive")
    ap_pack.add_argument("output", help="Output .tara path")
    ap_pack.add_argument("inputs", nargs="+", help="Input files/directories")
    ap_pack.add_argument("--base", help="Directory entry names are relative to (default: each input's parent)")
    ap_pack.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    ap_unpack = sub.add_parser("unpack", help="Unpack entries to files")
    ap_unpack.add_argument("archive", help="Archive path")
    ap_unpack.add_argument("names", nargs="*", help="Specific entry names (or name prefixes) to extract")
    ap_unpack.add_argument("--outdir", default=".", help="Output directory")
    ap_unpack.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")
    ap_unpack.add_argument(
        "--exists",
        choices=["overwrite", "skip", "rename", "fail"],
        default="rename",
        help=(
            "What to do if a destination file exists (including repeated names): overwrite, "
            "skip, rename (append ' (n)' before extension), or fail. Default: rename"
        ),
    )

    ap_list = sub.add_parser("list", help="List archive contents")
    ap_list.add_argument("archive", help="Archive path")

    ap_info = sub.add_parser("info", help="Show archive information")
    ap_info.add_argument("archive", help="Archive path")

    ap_cat = sub.add_parser("cat", help="Write one entry's bytes to stdout")
    ap_cat.add_argument("archive", help="Archive path")
    ap_cat.add_argument("name", help="Entry name (first match wins)")

    args = ap.parse_args(argv)
    try:
        if args.cmd == "pack":
            cmd_pack(args.output, args.inputs, base=args.base, quiet=args.quiet)
        elif args.cmd == "unpack":
            cmd_unpack(args.archive, outdir=args.outdir, names=args.names, exists=args.exists, quiet=args.quiet)
        elif args.cmd == "list":
            cmd_list(args.archive)
        elif args.cmd == "info":
            cmd_info(args.archive)
        elif args.cmd == "cat":
            sys.exit(0 if cmd_cat(args.archive, args.name) else 1)
        else:
            raise RuntimeError("Unknown command")
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except TruncatedArchiveError as e:
        print(f"Error: archive is truncated: {e}", file=sys.stderr)
        sys.exit(2)
    except NameDecodeError as e:
        print(f"Error: archive header is malformed: {e}", file=sys.stderr)
        sys.exit(2)
    except (TaraError, ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
