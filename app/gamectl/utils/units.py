"""Byte size parsing and formatting helpers."""

import re

# Matches size strings like "1.2 GB", "500MB", "100 KiB"
_SIZE_PATTERN = re.compile(r"^\s*([\d.]+)\s*([KMGT]?i?B)?\s*$", re.IGNORECASE)

_SIZE_MULTIPLIERS: dict[str, int] = {
    "B": 1,
    "KB": 1024,
    "MB": 1024 * 1024,
    "GB": 1024 * 1024 * 1024,
    "TB": 1024 * 1024 * 1024 * 1024,
}


def parse_size(value: object) -> int | None:
    """Parse a size value to bytes.

    Accepts integers, numeric strings, and human-readable strings such as
    "1.2 GB" or "500 MiB".

    Args:
        value: Raw size value from the manifest.

    Returns:
        Size in bytes, or None if the value cannot be parsed.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        return int(value) if value >= 0 else None
    if not isinstance(value, str) or not value.strip():
        return None

    match = _SIZE_PATTERN.match(value)
    if not match:
        return None

    try:
        number = float(match.group(1))
    except ValueError:
        return None
    unit = (match.group(2) or "B").upper().replace("I", "")
    return int(number * _SIZE_MULTIPLIERS.get(unit, 1))


def human_size(size_bytes: int | float | None) -> str:
    """Return human-readable size string."""
    if size_bytes is None:
        return "unknown"

    size = float(size_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"
