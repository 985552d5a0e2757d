from __future__ import annotations

from typing import Optional, Union

import zstandard

from .constants import CODEC_NAMES, CodecId, SUPPORTED_CODECS, ZSTD_LEVEL
from .errors import CompressionError, UnsupportedCodecError


def parse_codec(value: Union[str, int, CodecId]) -> CodecId:
    """Resolve a codec name or numeric id to a supported :class:`CodecId`.

    Raises:
        UnsupportedCodecError: for unknown names/ids and for codecs that are
            declared in the format but have no implementation (lz4).
    """
    if isinstance(value, str):
        wanted = value.strip().lower()
        for cid, name in CODEC_NAMES.items():
            if name == wanted:
                return require_supported(cid)
        raise UnsupportedCodecError(f"unknown codec: {value!r}")
    try:
        cid = CodecId(value)
    except ValueError:
        raise UnsupportedCodecError(f"unknown codec id: {value}") from None
    return require_supported(cid)


def require_supported(codec_id: CodecId) -> CodecId:
    if codec_id not in SUPPORTED_CODECS:
        name = CODEC_NAMES.get(codec_id, str(int(codec_id)))
        raise UnsupportedCodecError(f"unsupported codec: {name}")
    return CodecId(codec_id)


class Codec:
    def __init__(self, codec_id: CodecId, level: Optional[int] = None):
        self.codec_id = require_supported(codec_id)
        self.level = ZSTD_LEVEL if level is None else level

    def compress(self, data: bytes) -> bytes:
        if self.codec_id == CodecId.NONE:
            return data
        try:
            c = zstandard.ZstdCompressor(level=self.level)
            return c.compress(data)
        except zstandard.ZstdError as e:
            raise CompressionError(f"zstd compression failed: {e}") from e

    def decompress(self, data: bytes, expected_size: int) -> bytes:
        if self.codec_id == CodecId.NONE:
            raw = data
        else:
            try:
                params = zstandard.get_frame_parameters(data)
            except (zstandard.ZstdError, ValueError) as e:
                raise CompressionError(f"zstd frame header is invalid: {e}") from e
            # decoded output is bounded by the declared content size
            if params.content_size != expected_size:
                raise CompressionError(
                    f"zstd frame declares {params.content_size} bytes, expected {expected_size}"
                )
            try:
                d = zstandard.ZstdDecompressor().decompressobj()
                raw = d.decompress(data)
            except zstandard.ZstdError as e:
                raise CompressionError(f"zstd decompression failed: {e}") from e
            if not d.eof:
                raise CompressionError("zstd stream is truncated")
            if d.unused_data:
                raise CompressionError(
                    f"{len(d.unused_data)} bytes of trailing data after zstd frame"
                )
        if len(raw) != expected_size:
            raise CompressionError(
                f"decompressed length mismatch: expected {expected_size}, got {len(raw)}"
            )
        return raw


def compress(codec_id: CodecId, data: bytes, level: Optional[int] = None) -> bytes:
    return Codec(codec_id, level).compress(data)


def decompress(codec_id: CodecId, data: bytes, expected_size: int) -> bytes:
    return Codec(codec_id).decompress(data, expected_size)
