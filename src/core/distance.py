"""
Edit distance for near-duplicate detection.

Callers normalize (trim, lowercase) before comparing; nothing here folds
case or whitespace.
"""

from typing import Iterable, Iterator


def levenshtein(a: str, b: str) -> int:
    """
    Minimum number of single-character insertions, deletions or
    substitutions turning `a` into `b`.

    Uses a single rolling row, so memory is O(min(len(a), len(b))).
    """
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    # Keep the row over the shorter string
    if len(a) < len(b):
        a, b = b, a

    row = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        prev = row[0]
        row[0] = i
        for j, cb in enumerate(b, start=1):
            cur = row[j]
            row[j] = min(
                row[j] + 1,  # deletion
                row[j - 1] + 1,  # insertion
                prev + (ca != cb),  # substitution
            )
            prev = cur
    return row[-1]


def near_duplicate_pairs(
    values: Iterable[str], max_distance: int = 2
) -> Iterator[tuple[str, str, int]]:
    """
    Yield (a, b, distance) for every unordered pair of distinct values
    with 1 <= distance <= max_distance, in input order.

    The scan is pairwise, O(k^2) in the number of distinct values. Pairs
    whose lengths differ by more than max_distance are skipped without
    running the DP.
    """
    distinct = list(dict.fromkeys(values))
    for i, a in enumerate(distinct):
        for b in distinct[i + 1:]:
            if abs(len(a) - len(b)) > max_distance:
                continue
            d = levenshtein(a, b)
            if 0 < d <= max_distance:
                yield a, b, d
