from enum import IntEnum


# Magic and version
MAGIC = b"ORGPACK\x00"  # 8 bytes: "ORGPACK\0"
MAGIC_PREFIX = MAGIC[:7]
FORMAT_VERSION = 1

# Fixed record sizes (version 1)
HEADER_SIZE = 32
ENTRY_SIZE = 128
NAME_FIELD_SIZE = 96
NAME_CAPACITY = NAME_FIELD_SIZE - 1  # one byte reserved for the NUL terminator


class FileType(IntEnum):
    IMAGE = 0
    AUDIO = 1
    MESH = 2
    SCRIPT = 3
    UNKNOWN = 4


# Codec IDs (0=lz4, 1=zstd, 2=none); lz4 is declared but has no implementation
class CodecId(IntEnum):
    LZ4 = 0
    ZSTD = 1
    NONE = 2


CODEC_NAMES = {
    CodecId.LZ4: "lz4",
    CodecId.ZSTD: "zstd",
    CodecId.NONE: "none",
}

SUPPORTED_CODECS = frozenset({CodecId.NONE, CodecId.ZSTD})

DEFAULT_CODEC = CodecId.NONE
ZSTD_LEVEL = 22

DEFAULT_ARCHIVE_NAME = "output.orgpack"
DEFAULT_OUTPUT_DIR = "outputFolder"
