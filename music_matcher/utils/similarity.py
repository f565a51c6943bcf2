"""Edit-distance string similarity used by the matching engine.

The score thresholds used throughout the engine (feature deduplication at
0.8, relevance floors in the album assigner) assume this exact distance, a
restricted Damerau-Levenshtein variant. It is not optimal string alignment:
transpositions are only considered from the third character on.
"""

from __future__ import annotations


def edit_distance(a: str, b: str) -> int:
    """Restricted Damerau-Levenshtein distance between two strings.

    Insertion, deletion and substitution cost 1. For 1-based positions
    ``i > 2`` and ``j > 2`` a transposition candidate is also considered:
    ``d[i-2][j-2] + 1`` plus one for each of ``a[i-2] != b[j-1]`` and
    ``a[i-1] != b[j-2]``. The comparison is case-sensitive; callers lowercase.

    Args:
        a: First string.
        b: Second string.

    Returns:
        Number of edits.
    """
    rows = len(a) + 1
    cols = len(b) + 1
    matrix = [[0] * cols for _ in range(rows)]
    for i in range(rows):
        matrix[i][0] = i
    for j in range(cols):
        matrix[0][j] = j

    for i in range(1, rows):
        for j in range(1, cols):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            cell = min(
                matrix[i - 1][j] + 1,
                matrix[i][j - 1] + 1,
                matrix[i - 1][j - 1] + cost,
            )
            if i > 2 and j > 2:
                trans = matrix[i - 2][j - 2] + 1
                if a[i - 2] != b[j - 1]:
                    trans += 1
                if a[i - 1] != b[j - 2]:
                    trans += 1
                if cell > trans:
                    cell = trans
            matrix[i][j] = cell

    return matrix[rows - 1][cols - 1]


def similarity(a: str | None, b: str | None) -> float:
    """Case-insensitive similarity of two strings, 0.0 to 1.0.

    Computed as ``1 - edit_distance / max(len(a), len(b))``. Returns 0.0
    when either string is empty or missing.
    """
    if not a or not b:
        return 0.0
    a = a.lower()
    b = b.lower()
    return 1.0 - edit_distance(a, b) / max(len(a), len(b))
