"""Word-level text diffing based on the longest common subsequence."""

from __future__ import annotations

import re

import numpy as np

from newsbrief.models import DiffKind, DiffSegment

# Capturing group keeps the whitespace runs in the token stream.
_TOKEN_SPLIT = re.compile(r"(\s+)")


def tokenize(text: str) -> list[str]:
    """Split *text* into alternating runs of whitespace and non-whitespace.

    Joining the returned tokens yields *text* exactly.  The empty string
    produces no tokens.
    """
    return [token for token in _TOKEN_SPLIT.split(text) if token]


def generate_diff(before: str, after: str) -> list[DiffSegment]:
    """Return the word-level diff that turns *before* into *after*.

    One segment is emitted per token.  When an insertion and a deletion would
    contribute equally to the common subsequence, the backtrack consumes the
    insertion first; in the returned (forward) order a replaced word
    therefore reads as ``removed`` followed by ``added``.

    Runs in O(n*m) time and space over the token counts.  There is no length
    guard; callers diffing very long texts should expect quadratic cost.

    Args:
        before: The earlier text.
        after: The later text.

    Returns:
        List of :class:`~newsbrief.models.DiffSegment`, in text order.
    """
    old = tokenize(before)
    new = tokenize(after)
    n, m = len(old), len(new)

    # table[i, j] = LCS length of old[:i] and new[:j]
    table = np.zeros((n + 1, m + 1), dtype=np.int32)
    for i in range(1, n + 1):
        for j in range(1, m + 1):
            if old[i - 1] == new[j - 1]:
                table[i, j] = table[i - 1, j - 1] + 1
            else:
                table[i, j] = max(table[i - 1, j], table[i, j - 1])

    segments: list[DiffSegment] = []
    i, j = n, m
    while i > 0 or j > 0:
        if i > 0 and j > 0 and old[i - 1] == new[j - 1]:
            segments.append(DiffSegment(old[i - 1], DiffKind.UNCHANGED))
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or table[i, j - 1] >= table[i - 1, j]):
            segments.append(DiffSegment(new[j - 1], DiffKind.ADDED))
            j -= 1
        else:
            segments.append(DiffSegment(old[i - 1], DiffKind.REMOVED))
            i -= 1

    segments.reverse()
    return segments


def coalesce(segments: list[DiffSegment]) -> list[DiffSegment]:
    """Merge adjacent segments of the same kind into one."""
    merged: list[DiffSegment] = []
    for segment in segments:
        if merged and merged[-1].kind == segment.kind:
            merged[-1] = DiffSegment(merged[-1].value + segment.value, segment.kind)
        else:
            merged.append(segment)
    return merged


def reconstruct_before(segments: list[DiffSegment]) -> str:
    return "".join(s.value for s in segments if s.kind != DiffKind.ADDED)


def reconstruct_after(segments: list[DiffSegment]) -> str:
    return "".join(s.value for s in segments if s.kind != DiffKind.REMOVED)
