from __future__ import annotations

import math
from fractions import Fraction

from .contracts import DEFAULT_SAFETY_MARGIN
from .errors import SizeDeterminationError


def estimate_pages_per_segment(
    *,
    total_size_bytes: int | None,
    page_count: int | None,
    max_size_bytes: int,
    safety_margin: float = DEFAULT_SAFETY_MARGIN,
) -> int:
    """
    Initial pages-per-segment guess from the average bytes per page.

    floor((max_size_bytes * safety_margin) / (total_size_bytes / page_count)),
    never below 1. Evaluated with exact fractions so that a ratio which is
    mathematically whole (22.5 MiB / 0.5 MiB) does not floor to one less.
    """

    if total_size_bytes is None or total_size_bytes <= 0:
        raise SizeDeterminationError(
            "Could not determine document size",
            detail={"total_size_bytes": total_size_bytes},
        )
    if page_count is None or page_count <= 0:
        raise SizeDeterminationError(
            "Could not determine page count",
            detail={"page_count": page_count},
        )
    if max_size_bytes <= 0:
        raise ValueError("max_size_bytes must be positive")
    if not 0.0 < safety_margin <= 1.0:
        raise ValueError("safety_margin must be in (0, 1]")

    # Fraction(str(0.9)) == 9/10, whereas Fraction(0.9) is the binary approximation.
    margin = Fraction(str(safety_margin))
    budget = Fraction(max_size_bytes) * margin
    pages = math.floor(budget * page_count / total_size_bytes)
    return max(1, pages)
