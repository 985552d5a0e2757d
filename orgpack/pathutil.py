from __future__ import annotations

from .errors import PathError


def norm_path(p: str) -> str:
    """Normalize archive paths to a canonical forward-slash form.

    Rules:
    - Convert backslashes to slashes
    - Strip leading/trailing slashes
    - Remove empty and '.' segments
    - Reject '..' segments
    """
    p = p.replace("\\", "/").strip("/")
    parts = [q for q in p.split("/") if q not in ("", ".")]
    for q in parts:
        if q == "..":
            raise PathError(f"path may not contain '..': {p}")
    return "/".join(parts)


def is_safe_name(name: str) -> bool:
    """True when ``name`` is already canonical and stays inside the output root."""
    if not name or "\\" in name or name.startswith("/"):
        return False
    if len(name) > 1 and name[1] == ":":
        return False
    return all(q not in ("", ".", "..") for q in name.split("/"))
