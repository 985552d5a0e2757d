from __future__ import annotations

KIB = 1024
MIB = KIB * 1024
GIB = MIB * 1024


def format_size(n: int) -> str:
    """Render a byte count, e.g. ``"1.50 KiB (1536 bytes)"``."""
    for unit, label in ((GIB, "GiB"), (MIB, "MiB"), (KIB, "KiB")):
        if n >= unit:
            return f"{n / unit:.2f} {label} ({n} bytes)"
    return f"{n} bytes"
