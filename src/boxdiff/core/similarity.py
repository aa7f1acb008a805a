"""Normalized edit-distance similarity between two text blobs."""

from __future__ import annotations

import difflib
import logging

logger = logging.getLogger(__name__)

# Largest edit-distance matrix computed exactly; beyond it similarity is
# estimated from matching lines.
MAX_EDIT_CELLS = 1_000_000


def _trim_common(a: str, b: str) -> tuple[str, str]:
    """Strip the shared prefix and suffix, which never affect edit distance."""
    limit = min(len(a), len(b))
    start = 0
    while start < limit and a[start] == b[start]:
        start += 1
    end = 0
    while end < limit - start and a[-1 - end] == b[-1 - end]:
        end += 1
    return a[start : len(a) - end], b[start : len(b) - end]


def levenshtein_distance(a: str, b: str) -> int:
    """Return the Levenshtein edit distance between *a* and *b*.

    Classic dynamic-programming formulation: insertions, deletions and
    substitutions all cost 1. Only two rows of the (len(a)+1) x (len(b)+1)
    matrix are kept alive at a time. Runs in O(len(a) * len(b)) time after
    the common prefix and suffix are removed.
    """
    if a == b:
        return 0
    a, b = _trim_common(a, b)
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(
                min(
                    previous[j] + 1,  # deletion
                    current[j - 1] + 1,  # insertion
                    previous[j - 1] + cost,  # substitution
                )
            )
        previous = current
    return previous[-1]


def similarity(a: str, b: str, *, max_cells: int = MAX_EDIT_CELLS) -> float:
    """Return a similarity ratio in [0, 1] derived from edit distance.

    ``1.0`` means identical, ``0.0`` maximally dissimilar for the lengths
    involved. Two empty strings are identical.

    When the differing middle of the two texts would need more than
    *max_cells* matrix cells, the ratio of matching lines reported by
    difflib is used instead, keeping large rewrites fast.
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    middle_a, middle_b = _trim_common(a, b)
    if len(middle_a) * len(middle_b) > max_cells:
        logger.debug(
            "Estimating similarity from lines (%d x %d chars differ)",
            len(middle_a),
            len(middle_b),
        )
        matcher = difflib.SequenceMatcher(
            None, a.splitlines(keepends=True), b.splitlines(keepends=True), autojunk=False
        )
        return matcher.ratio()
    return max(0.0, 1.0 - levenshtein_distance(middle_a, middle_b) / longest)


def size_similarity(old_size: int, new_size: int) -> float:
    """Approximate similarity from byte sizes alone.

    Used when content was not captured for one side (binary or too large).
    """
    largest = max(old_size, new_size)
    if largest == 0:
        return 1.0
    return max(0.0, 1.0 - abs(new_size - old_size) / largest)
