"""Cosine similarity primitive shared by search, tagging, and duplicate checks.

Updates:
  v0.1.0 - 2026-02-09 - Introduce cosine similarity helper with zero-safe inputs.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


def cosine_similarity(
    left: Sequence[float] | None,
    right: Sequence[float] | None,
) -> float:
    """Return the cosine similarity of *left* and *right*.

    Missing, empty, mismatched-length, or zero-magnitude vectors score ``0.0``
    instead of raising, so callers can treat the result uniformly.
    """
    if not left or not right or len(left) != len(right):
        return 0.0

    dot = 0.0
    norm_left = 0.0
    norm_right = 0.0
    for a, b in zip(left, right, strict=True):
        dot += a * b
        norm_left += a * a
        norm_right += b * b

    if not norm_left or not norm_right:
        return 0.0

    score = dot / (math.sqrt(norm_left) * math.sqrt(norm_right))
    # Rounding can push unit vectors marginally outside the cosine range.
    return max(-1.0, min(1.0, score))


__all__ = ["cosine_similarity"]
