from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from typing import List, Optional

from orgpack import __version__
from orgpack.codec import parse_codec
from orgpack.constants import (
    CODEC_NAMES,
    DEFAULT_ARCHIVE_NAME,
    DEFAULT_OUTPUT_DIR,
    MAGIC_PREFIX,
)
from orgpack.errors import OrgpackError
from orgpack.humanize import format_size
from orgpack.peek import peek, render_report
from orgpack.reader import EXISTS_POLICIES, ArchiveReader, unpack
from orgpack.writer import pack


COMMANDS = ("pack", "unpack", "peek", "auto")


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def _is_orgpack_file(path: str) -> bool:
    """True when the first bytes of ``path`` carry the archive magic."""
    try:
        with open(path, "rb") as fh:
            return fh.read(len(MAGIC_PREFIX)) == MAGIC_PREFIX
    except OSError:
        return False


def cmd_pack(source: str, *, output: str = DEFAULT_ARCHIVE_NAME, compress: str = "none") -> bool:
    """Pack a directory into a new archive.

    Args:
        source: Directory to pack (walked recursively).
        output: Archive path to write.
        compress: Codec name; unsupported codecs fail before anything is written.
    """
    codec = parse_codec(compress)
    t0 = time.time()
    count = pack(source, output, codec)
    dt = max(0.000001, time.time() - t0)
    size = os.path.getsize(output)
    print(f"Packed {count} files into {output} ({format_size(size)}, codec={CODEC_NAMES[codec]}) in {dt:.1f}s")
    return True


def cmd_unpack(archive: str, *, outdir: str = DEFAULT_OUTPUT_DIR, exists: str = "overwrite", quiet: bool = False) -> bool:
    """Unpack (extract) every file from an archive into ``outdir``."""
    with ArchiveReader(archive) as r:
        total = len(r.list())

    def _report(entry, dst):
        if not quiet:
            print(f"Extracted: {entry.name} ({format_size(entry.uncompressed_size)})")

    count = unpack(archive, outdir, exists=exists, progress=_report)
    print(f"Unpacked {count}/{total} files to directory: {outdir}")
    if count < total:
        print(f"Warning: {total - count} file(s) could not be extracted", file=sys.stderr)
    return count == total


def cmd_peek(archive: str) -> bool:
    """Print the archive's header and index as a tree."""
    print(render_report(peek(archive)))
    return True


def cmd_auto(
    paths: List[str],
    *,
    output: str = DEFAULT_ARCHIVE_NAME,
    outdir: str = DEFAULT_OUTPUT_DIR,
    compress: str = "none",
) -> int:
    """Guess intent for each dropped path: directories are packed, archives unpacked.

    A path that fails is reported on stderr and the remaining paths still run.

    Returns:
        How many paths were handled.
    """
    parse_codec(compress)
    handled = 0
    for p in paths:
        if not os.path.exists(p):
            print(f"Path does not exist: {p}", file=sys.stderr)
            continue
        try:
            if os.path.isdir(p):
                print(f"Auto-packing dropped folder: {p}")
                cmd_pack(p, output=output, compress=compress)
                handled += 1
            elif os.path.isfile(p) and _is_orgpack_file(p):
                print(f"Auto-unpacking detected .orgpack: {p}")
                cmd_unpack(p, outdir=outdir)
                handled += 1
            else:
                print(f"Skipped non-ORGPACK file: {p}", file=sys.stderr)
        except (OrgpackError, OSError) as e:
            print(f"Error: {e}", file=sys.stderr)
    return handled


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    ap = argparse.ArgumentParser(
        prog="orgpack",
        description="Pack a directory into a single .orgpack file, unpack it, or peek at its index",
        epilog=(
            "Without a command, each PATH is handled by type: directories are packed, "
            ".orgpack files are unpacked."
        ),
    )
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = ap.add_subparsers(dest="cmd", required=True)
    codec_choices = [CODEC_NAMES[c] for c in sorted(CODEC_NAMES)]

    ap_pack = sub.add_parser("pack", parents=[common], help="Pack a directory")
    ap_pack.add_argument("source", help="Directory to pack")
    ap_pack.add_argument("--out", "-o", default=DEFAULT_ARCHIVE_NAME, help=f"Output archive path (default {DEFAULT_ARCHIVE_NAME})")
    ap_pack.add_argument("--compress", "-c", choices=codec_choices, default="none", help="Compression codec (default none)")

    ap_unpack = sub.add_parser("unpack", parents=[common], help="Unpack an archive")
    ap_unpack.add_argument("archive", help="Archive path")
    ap_unpack.add_argument("--outdir", default=DEFAULT_OUTPUT_DIR, help=f"Output directory (default {DEFAULT_OUTPUT_DIR})")
    ap_unpack.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")
    ap_unpack.add_argument(
        "--exists",
        choices=list(EXISTS_POLICIES),
        default="overwrite",
        help=(
            "What to do if a destination file exists: overwrite (replace), skip (leave it), "
            "rename (append ' (n)' before extension), or fail (abort). Default: overwrite"
        ),
    )

    ap_peek = sub.add_parser("peek", parents=[common], help="Show the archive structure without extracting")
    ap_peek.add_argument("archive", help="Archive path")

    ap_auto = sub.add_parser("auto", parents=[common], help="Pack directories and unpack archives given as paths")
    ap_auto.add_argument("paths", nargs="+", help="Directories and/or .orgpack files")
    ap_auto.add_argument("--out", "-o", default=DEFAULT_ARCHIVE_NAME, help="Output archive path for packed directories")
    ap_auto.add_argument("--outdir", default=DEFAULT_OUTPUT_DIR, help="Output directory for unpacked archives")
    ap_auto.add_argument("--compress", "-c", choices=codec_choices, default="none", help="Compression codec (default none)")
    return ap


def main(argv: Optional[List[str]] = None):
    argv = list(sys.argv[1:] if argv is None else argv)
    # Bare paths (e.g. drag and drop onto the executable) select auto mode
    if argv and argv[0] not in COMMANDS and argv[0] not in ("-h", "--help", "--version"):
        argv.insert(0, "auto")
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    try:
        if args.cmd == "pack":
            cmd_pack(args.source, output=args.out, compress=args.compress)
        elif args.cmd == "unpack":
            ok = cmd_unpack(args.archive, outdir=args.outdir, exists=args.exists, quiet=args.quiet)
            sys.exit(0 if ok else 1)
        elif args.cmd == "peek":
            cmd_peek(args.archive)
        elif args.cmd == "auto":
            handled = cmd_auto(args.paths, output=args.out, outdir=args.outdir, compress=args.compress)
            sys.exit(0 if handled else 1)
        else:
            raise RuntimeError("Unknown command")
    except (OrgpackError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
