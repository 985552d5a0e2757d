from __future__ import annotations

import logging
import os
from typing import BinaryIO, List, Optional, Set, Tuple, Union

from .codec import Codec, parse_codec
from .constants import DEFAULT_CODEC, CodecId
from .errors import CompressionError, PathError
from .filetype import classify
from .pathutil import norm_path
from .schema import Entry, Header, encode_entry, encode_header, encode_name


logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

_MAX_FILE_COUNT = 0xFFFFFFFF


def _read_source(fs_path: str) -> bytes:
    with open(fs_path, "rb") as fh:
        return fh.read()


def iter_source_files(source_dir: PathLike, exclude: Optional[PathLike] = None) -> List[Tuple[str, str]]:
    """Collect ``(fs_path, arc_name)`` for every regular file under ``source_dir``.

    Archive names are relative, forward-slash separated and validated against
    the fixed name field; results are sorted by archive name so repeated packs
    of the same tree produce the same index order.
    """
    root = os.fspath(source_dir)
    skip = os.path.realpath(os.fspath(exclude)) if exclude is not None else None

    def _walk_error(exc: OSError) -> None:
        logger.warning("Could not read directory %s: %s", exc.filename, exc.strerror)

    files: List[Tuple[str, str]] = []
    seen: Set[str] = set()
    for dirpath, dirnames, filenames in os.walk(root, onerror=_walk_error):
        dirnames.sort()
        for fn in filenames:
            full = os.path.join(dirpath, fn)
            if not os.path.isfile(full):
                continue
            if skip is not None and os.path.realpath(full) == skip:
                continue
            arc = norm_path(os.path.relpath(full, start=root))
            encode_name(arc)
            # on POSIX a\b.txt and a/b.txt normalize to the same name
            if arc in seen:
                raise PathError(f"duplicate archive name: {arc} ({full})")
            seen.add(arc)
            files.append((full, arc))
    files.sort(key=lambda item: item[1])
    return files


class ArchiveWriter:
    """Writes a container: placeholder header, payloads, then the index and final header."""

    def __init__(self, out_path: PathLike, default_codec: CodecId = DEFAULT_CODEC, level: Optional[int] = None):
        self.out_path = os.fspath(out_path)
        self.f: Optional[BinaryIO] = None
        self.codec = Codec(parse_codec(default_codec), level)
        self.entries: List[Entry] = []
        self.index_offset = 0
        self._names: Set[str] = set()

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.f is not None:
            return
        self.f = open(self.out_path, "wb")
        # Final values are unknown until the index has been written
        self.f.write(encode_header(Header()))

    def close(self):
        if self.f is not None:
            self.f.close()
            self.f = None

    def add_file(self, arc_path: str, fs_path: PathLike, codec_id: Optional[CodecId] = None) -> Entry:
        """Read a filesystem file fully into memory and append it to the archive."""
        return self.add_bytes(arc_path, _read_source(os.fspath(fs_path)), codec_id=codec_id)

    def add_bytes(self, arc_path: str, data: bytes, codec_id: Optional[CodecId] = None) -> Entry:
        """Compress ``data`` and append it as a new entry.

        Raises:
            PathError: the name is empty, too long for the name field, or already used.
            CompressionError: the codec failed; nothing is written for the entry.
        """
        if self.f is None:
            raise RuntimeError("Archive not open")
        name = norm_path(arc_path)
        encode_name(name)
        if name in self._names:
            raise PathError(f"duplicate archive name: {name}")
        codec = self.codec if codec_id is None else Codec(parse_codec(codec_id), self.codec.level)
        payload = codec.compress(data)
        offset = self.f.tell()
        self.f.write(payload)
        e = Entry(
            offset=offset,
            uncompressed_size=len(data),
            compressed_size=len(payload),
            name=name,
            type=classify(name),
            compression=codec.codec_id,
        )
        self.entries.append(e)
        self._names.add(name)
        return e

    def finalize(self) -> Header:
        """Write the index at the current position and rewrite the header at offset 0."""
        if self.f is None:
            raise RuntimeError("Archive not open")
        if len(self.entries) > _MAX_FILE_COUNT:
            raise PathError(f"too many entries for one archive: {len(self.entries)}")
        self.index_offset = self.f.tell()
        for e in self.entries:
            self.f.write(encode_entry(e))
        header = Header(file_count=len(self.entries), index_offset=self.index_offset)
        self.f.seek(0)
        self.f.write(encode_header(header))
        self.f.seek(0, os.SEEK_END)
        return header


def pack(source_dir: PathLike, output_path: PathLike, codec: Union[CodecId, str] = DEFAULT_CODEC, *, level: Optional[int] = None) -> int:
    """Pack every regular file under ``source_dir`` into ``output_path``.

    Unreadable files and per-file compression failures are logged and skipped.

    Returns:
        The number of entries written.

    Raises:
        UnsupportedCodecError: ``codec`` is unknown or not implemented.
        PathError: ``source_dir`` is missing, holds no regular files, or holds a
            file whose relative path does not fit the name field or collides with
            another file's name after normalization.
        OSError: the output cannot be written.
    """
    codec_id = parse_codec(codec)
    src = os.fspath(source_dir)
    if not os.path.isdir(src):
        raise PathError(f"source directory does not exist: {src}")
    files = iter_source_files(src, exclude=output_path)
    if not files:
        raise PathError(f"source directory has no files: {src}")

    with ArchiveWriter(output_path, default_codec=codec_id, level=level) as w:
        for fs_path, arc in files:
            try:
                e = w.add_file(arc, fs_path)
            except OSError as exc:
                # failures writing the archive itself are not per-file
                if exc.filename != fs_path:
                    raise
                logger.warning("Could not open file %s: %s", fs_path, exc)
                continue
            except CompressionError as exc:
                logger.warning("Compression failed for %s: %s", arc, exc)
                continue
            logger.debug("packed %s (%d -> %d bytes)", e.name, e.uncompressed_size, e.compressed_size)
        header = w.finalize()
    logger.info("Packed %d files into %s", header.file_count, os.fspath(output_path))
    return header.file_count
