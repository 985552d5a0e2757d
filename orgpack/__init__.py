"""
orgpack: single-file .orgpack containers for whole directory trees.

Features:

- Fixed-size 32-byte header and 128-byte index entries (format version 1);
  payloads sit between the header and the index.
- Per-file compression with Zstandard, or stored uncompressed.
- Content category per file (image/audio/mesh/script/unknown) from its extension.
- pack/unpack/peek via the programmatic API and the ``orgpack`` CLI.

Per-file failures while packing or unpacking are logged and skipped; archive
level problems (bad magic, wrong version, out-of-range index) raise
FormatError before anything is written.
"""

__version__ = "0.2"

__all__ = [
    "constants",
    "schema",
    "codec",
    "writer",
    "reader",
    "peek",
]
