from __future__ import annotations

import posixpath

from .constants import FileType


_EXTENSION_TYPES = {
    ".png": FileType.IMAGE,
    ".jpg": FileType.IMAGE,
    ".jpeg": FileType.IMAGE,
    ".mp3": FileType.AUDIO,
    ".ogg": FileType.AUDIO,
    ".wav": FileType.AUDIO,
    ".flac": FileType.AUDIO,
    ".obj": FileType.MESH,
    ".fbx": FileType.MESH,
    ".gltf": FileType.MESH,
    ".glb": FileType.MESH,
    ".lua": FileType.SCRIPT,
    ".py": FileType.SCRIPT,
    ".txt": FileType.SCRIPT,
    ".json": FileType.SCRIPT,
    ".ini": FileType.SCRIPT,
}


def classify(name: str) -> FileType:
    """Map an archive name to its content category by (case-insensitive) extension."""
    ext = posixpath.splitext(name)[1].lower()
    return _EXTENSION_TYPES.get(ext, FileType.UNKNOWN)


def type_label(ftype: FileType) -> str:
    return FileType(ftype).name.capitalize()
