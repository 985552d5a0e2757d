from __future__ import annotations

import logging
import os
from typing import BinaryIO, Callable, List, Optional, Set

from .codec import Codec
from .constants import CodecId, ENTRY_SIZE, HEADER_SIZE
from .errors import CompressionError, FormatError, OrgpackError, PathError
from .pathutil import is_safe_name
from .schema import Entry, Header, decode_entry, decode_header


logger = logging.getLogger(__name__)

EXISTS_POLICIES = ("overwrite", "skip", "rename", "fail")


def read_exact(f: BinaryIO, n: int) -> bytes:
    b = f.read(n)
    if len(b) != n:
        raise FormatError(f"unexpected end of archive: wanted {n} bytes, got {len(b)}")
    return b


def check_archive_path(path: str) -> None:
    if not os.path.isfile(path):
        raise PathError(f"archive does not exist: {path}")
    if os.path.getsize(path) == 0:
        raise PathError(f"archive is empty: {path}")


class ArchiveReader:
    """Read-only view of a container: header and index are validated on open."""

    def __init__(self, path):
        self.path = os.fspath(path)
        self.f: Optional[BinaryIO] = None
        self.header: Optional[Header] = None
        self.entries: List[Entry] = []
        self.archive_size = 0

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.f is not None:
            return
        check_archive_path(self.path)
        self.f = open(self.path, "rb")
        try:
            self._load_index()
        except (OrgpackError, OSError):
            # Ensure file handle is closed on failure to avoid leaks
            self.close()
            raise

    def close(self):
        if self.f is not None:
            self.f.close()
            self.f = None

    def list(self) -> List[Entry]:
        return self.entries

    def read(self, entry: Entry) -> bytes:
        """Return the decoded payload of ``entry``.

        Raises CompressionError for an unsupported codec, a corrupt stream, or a
        length mismatch.
        """
        if self.f is None:
            raise RuntimeError("Archive not open")
        self.f.seek(entry.offset)
        payload = read_exact(self.f, entry.compressed_size)
        return Codec(entry.compression).decompress(payload, entry.uncompressed_size)

    def extract(self, entry: Entry, out_path: str) -> None:
        data = self.read(entry)
        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
        with open(out_path, "wb") as wf:
            wf.write(data)

    # internals
    def _load_index(self):
        """Decode the header, then the ``file_count`` entries at ``index_offset``.

        Bounds are checked before anything is trusted: the index must lie
        inside the file, and every payload must sit between the header and the
        index.
        """
        assert self.f is not None
        self.archive_size = os.fstat(self.f.fileno()).st_size
        self.f.seek(0)
        header = decode_header(self.f.read(HEADER_SIZE))
        if header.index_offset < HEADER_SIZE:
            raise FormatError(f"index offset {header.index_offset} overlaps the header")
        index_end = header.index_offset + header.file_count * ENTRY_SIZE
        if index_end > self.archive_size:
            raise FormatError(
                f"index ({header.file_count} entries at {header.index_offset}) "
                f"extends past end of archive ({self.archive_size} bytes)"
            )
        self.f.seek(header.index_offset)
        blob = read_exact(self.f, header.file_count * ENTRY_SIZE)
        entries: List[Entry] = []
        seen: Set[str] = set()
        for i in range(header.file_count):
            e = decode_entry(blob[i * ENTRY_SIZE : (i + 1) * ENTRY_SIZE])
            if not is_safe_name(e.name):
                raise FormatError(f"unsafe entry name: {e.name!r}")
            if e.name in seen:
                raise FormatError(f"duplicate entry name: {e.name}")
            if e.offset < HEADER_SIZE or e.end > header.index_offset:
                raise FormatError(f"entry payload out of range: {e.name}")
            if e.compression == CodecId.NONE and e.compressed_size != e.uncompressed_size:
                raise FormatError(f"stored entry size mismatch: {e.name}")
            seen.add(e.name)
            entries.append(e)
        self.header = header
        self.entries = entries


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


def unpack(
    archive_path,
    output_dir,
    *,
    exists: str = "overwrite",
    progress: Optional[Callable[[Entry, str], None]] = None,
) -> int:
    """Extract every entry of ``archive_path`` below ``output_dir``.

    ``exists`` selects what happens when a destination file is already
    present: overwrite, skip, rename (``name (n).ext``) or fail. ``progress``
    is called with the entry and its destination after each extraction.

    Returns:
        The number of entries extracted. Entries whose payload cannot be
        decoded or whose destination cannot be written are logged and skipped.

    Raises:
        PathError: the archive is missing or empty, or ``exists="fail"`` hit an
            existing destination.
        FormatError: the header or index is invalid; nothing is written.
    """
    if exists not in EXISTS_POLICIES:
        raise ValueError(f"unknown exists policy: {exists}")
    outdir = os.fspath(output_dir)
    extracted = 0
    with ArchiveReader(archive_path) as r:
        os.makedirs(outdir, exist_ok=True)
        for e in r.list():
            dst = os.path.join(outdir, *e.name.split("/"))
            if os.path.isdir(dst):
                logger.warning("Could not create file %s: a directory is in the way", dst)
                continue
            if os.path.lexists(dst):
                if exists == "skip":
                    logger.info("skipping %s (exists)", e.name)
                    continue
                if exists == "rename":
                    dst = _next_nonconflicting_path(dst)
                elif exists == "fail":
                    raise PathError(f"destination exists: {dst}")
            try:
                r.extract(e, dst)
            except CompressionError as exc:
                logger.warning("Decompression failed for %s: %s", e.name, exc)
                continue
            except OSError as exc:
                logger.warning("Could not create file %s: %s", dst, exc)
                continue
            extracted += 1
            logger.debug("extracted %s -> %s", e.name, dst)
            if progress is not None:
                progress(e, dst)
    logger.info("Unpacked %d files to %s", extracted, outdir)
    return extracted
