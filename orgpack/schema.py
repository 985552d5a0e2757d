from __future__ import annotations

import struct
from dataclasses import dataclass

from .constants import (
    MAGIC,
    FORMAT_VERSION,
    HEADER_SIZE,
    ENTRY_SIZE,
    NAME_FIELD_SIZE,
    NAME_CAPACITY,
    FileType,
    CodecId,
)
from .errors import FormatError, PathError


# Header (fixed 32 bytes, little endian):
#  - magic[8]
#  - version u8, 3 pad
#  - file_count u32
#  - index_offset u64
#  - flags u8, 7 pad
_HEADER_STRUCT = struct.Struct("<8sB3xIQB7x")

# Entry (fixed 128 bytes, little endian):
#  - offset u64, uncompressed_size u64, compressed_size u64
#  - name[96] (NUL-terminated utf-8, forward slashes)
#  - type u8, compression u8, 6 pad
_ENTRY_STRUCT = struct.Struct("<QQQ96sBB6x")

assert _HEADER_STRUCT.size == HEADER_SIZE
assert _ENTRY_STRUCT.size == ENTRY_SIZE


@dataclass
class Header:
    file_count: int = 0
    index_offset: int = 0
    flags: int = 0
    version: int = FORMAT_VERSION
    magic: bytes = MAGIC


@dataclass(frozen=True)
class Entry:
    offset: int
    uncompressed_size: int
    compressed_size: int
    name: str
    type: FileType = FileType.UNKNOWN
    compression: CodecId = CodecId.NONE

    @property
    def end(self) -> int:
        return self.offset + self.compressed_size


def encode_name(name: str) -> bytes:
    """Encode an archive name into the fixed name field.

    Raises PathError when the name is empty, contains NUL, is not valid utf-8,
    or needs more than NAME_CAPACITY bytes of utf-8.
    """
    if not name:
        raise PathError("archive name is empty")
    if "\x00" in name:
        raise PathError(f"archive name contains NUL: {name!r}")
    try:
        raw = name.encode("utf-8")
    except UnicodeEncodeError as e:
        raise PathError(f"archive name is not valid utf-8: {name!r}") from e
    if len(raw) > NAME_CAPACITY:
        raise PathError(
            f"archive name exceeds {NAME_CAPACITY} bytes ({len(raw)}): {name}"
        )
    return raw.ljust(NAME_FIELD_SIZE, b"\x00")


def decode_name(field: bytes) -> str:
    nul = field.find(b"\x00")
    if nul < 0:
        raise FormatError("entry name is not NUL-terminated")
    if nul == 0:
        raise FormatError("entry name is empty")
    try:
        return field[:nul].decode("utf-8")
    except UnicodeDecodeError as e:
        raise FormatError(f"entry name is not valid utf-8: {e}") from None


def encode_header(header: Header) -> bytes:
    return _HEADER_STRUCT.pack(
        header.magic,
        header.version,
        header.file_count,
        header.index_offset,
        header.flags,
    )


def decode_header(raw: bytes) -> Header:
    if len(raw) < HEADER_SIZE:
        raise FormatError(f"header too short: {len(raw)} < {HEADER_SIZE} bytes")
    magic, version, file_count, index_offset, flags = _HEADER_STRUCT.unpack(raw[:HEADER_SIZE])
    if magic != MAGIC:
        raise FormatError("bad magic: not an orgpack archive")
    if version != FORMAT_VERSION:
        # Older layouts (64-byte names, unaligned) are never reinterpreted.
        raise FormatError(f"unsupported format version: {version}")
    return Header(
        file_count=file_count,
        index_offset=index_offset,
        flags=flags,
        version=version,
        magic=magic,
    )


def encode_entry(entry: Entry) -> bytes:
    return _ENTRY_STRUCT.pack(
        entry.offset,
        entry.uncompressed_size,
        entry.compressed_size,
        encode_name(entry.name),
        int(entry.type),
        int(entry.compression),
    )


def decode_entry(raw: bytes) -> Entry:
    if len(raw) < ENTRY_SIZE:
        raise FormatError(f"entry too short: {len(raw)} < {ENTRY_SIZE} bytes")
    offset, usize, csize, name_field, ftype, codec = _ENTRY_STRUCT.unpack(raw[:ENTRY_SIZE])
    try:
        ftype = FileType(ftype)
    except ValueError:
        raise FormatError(f"unknown file type id: {ftype}") from None
    try:
        codec = CodecId(codec)
    except ValueError:
        raise FormatError(f"unknown codec id: {codec}") from None
    return Entry(
        offset=offset,
        uncompressed_size=usize,
        compressed_size=csize,
        name=decode_name(name_field),
        type=ftype,
        compression=codec,
    )
