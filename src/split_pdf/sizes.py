from __future__ import annotations

import math
import re
from decimal import Decimal, InvalidOperation

_UNITS: dict[str, int] = {
    "": 1,
    "b": 1,
    "k": 1000,
    "kb": 1000,
    "kib": 1024,
    "m": 1000**2,
    "mb": 1000**2,
    "mib": 1024**2,
    "g": 1000**3,
    "gb": 1000**3,
    "gib": 1024**3,
}

_SIZE_RE = re.compile(r"^\s*([0-9]+(?:\.[0-9]+)?)\s*([A-Za-z]*)\s*$")


def parse_size(text: str) -> int:
    """
    Parse "26214400", "25MiB", "24.5M" or "800 KiB" into a byte count.

    Bare SI suffixes (K, M, G) are decimal; the IEC forms (KiB, MiB, GiB) are
    binary. Fractional results are floored to whole bytes.
    """

    m = _SIZE_RE.match(text)
    if not m:
        raise ValueError(f"invalid size: {text!r}")
    number, unit = m.group(1), m.group(2).lower()
    if unit not in _UNITS:
        raise ValueError(f"unknown size unit {m.group(2)!r} in {text!r}")
    try:
        value = Decimal(number) * _UNITS[unit]
    except InvalidOperation as e:  # pragma: no cover - regex already constrains the number
        raise ValueError(f"invalid size: {text!r}") from e
    size = math.floor(value)
    if size <= 0:
        raise ValueError(f"size must be positive: {text!r}")
    return size


def format_size(size_bytes: int) -> str:
    """Human-readable IEC size, e.g. 23592960 -> "22.5MiB"."""
    value = float(size_bytes)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if abs(value) < 1024 or unit == "GiB":
            if unit == "B":
                return f"{int(value)}B"
            return f"{value:.1f}{unit}"
        value /= 1024
    return f"{size_bytes}B"  # pragma: no cover
