from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .constants import CODEC_NAMES, CodecId, FileType
from .filetype import type_label
from .humanize import format_size
from .reader import ArchiveReader
from .schema import Header


@dataclass
class EntryReport:
    name: str
    type: FileType
    compression: CodecId
    offset: int
    uncompressed_size: int
    compressed_size: Optional[int] = None  # only for compressed entries


@dataclass
class ArchiveReport:
    path: str
    header: Header
    entries: List[EntryReport] = field(default_factory=list)


def peek(archive_path) -> ArchiveReport:
    """Describe an archive's header and index without touching payload bytes."""
    with ArchiveReader(archive_path) as r:
        assert r.header is not None
        entries = [
            EntryReport(
                name=e.name,
                type=e.type,
                compression=e.compression,
                offset=e.offset,
                uncompressed_size=e.uncompressed_size,
                compressed_size=None if e.compression == CodecId.NONE else e.compressed_size,
            )
            for e in r.list()
        ]
        return ArchiveReport(path=r.path, header=r.header, entries=entries)


def render_report(report: ArchiveReport) -> str:
    h = report.header
    magic = h.magic.rstrip(b"\x00").decode("ascii", "replace")
    lines = [
        f"Packed File Structure: {report.path}",
        "+-- Header",
        f"|   +-- Magic: {magic}",
        f"|   +-- Version: {h.version}",
        f"|   +-- File Count: {h.file_count}",
        f"|   +-- Index Offset: {h.index_offset}",
        "+-- Files",
    ]
    for e in report.entries:
        lines.append(f"|   +-- {e.name}")
        lines.append(f"|   |   +-- Type: {type_label(e.type)}")
        lines.append(f"|   |   +-- Compression: {CODEC_NAMES[e.compression].upper()}")
        lines.append(f"|   |   +-- Offset: {e.offset}")
        if e.compressed_size is not None:
            lines.append(f"|   |   +-- Compressed Size: {format_size(e.compressed_size)}")
        lines.append(f"|   |   +-- Uncompressed Size: {format_size(e.uncompressed_size)}")
    return "\n".join(lines)
