"""Line-level diff engine built on the Longest Common Subsequence table.

``edit_script`` returns the raw ADDED/DELETED operations recovered from the
table. ``diff_lines`` additionally folds a DELETED immediately followed by an
ADDED at (nearly) the same position into a single MODIFIED entry. That fold
is a heuristic: an unrelated delete sitting next to an unrelated add is
reported as one modification.
"""

from __future__ import annotations

from typing import List, Sequence

from cfgaudit.diff.models import DiffEntry, DiffKind


def lcs_table(before: Sequence[str], after: Sequence[str]) -> List[List[int]]:
    """Return the (m+1)×(n+1) LCS length table."""
    m, n = len(before), len(after)
    table = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(1, m + 1):
        row, prev = table[i], table[i - 1]
        b = before[i - 1]
        for j in range(1, n + 1):
            if b == after[j - 1]:
                row[j] = prev[j - 1] + 1
            else:
                row[j] = prev[j] if prev[j] >= row[j - 1] else row[j - 1]
    return table


def edit_script(before: Sequence[str], after: Sequence[str]) -> List[DiffEntry]:
    """Reconstruct the unmerged edit script, ascending by document position.

    When both directions keep the same LCS length the ADDED branch wins.
    """
    table = lcs_table(before, after)
    entries: List[DiffEntry] = []
    i, j = len(before), len(after)

    while i > 0 or j > 0:
        if i > 0 and j > 0 and before[i - 1] == after[j - 1]:
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or table[i][j - 1] >= table[i - 1][j]):
            entries.append(DiffEntry(DiffKind.ADDED, j, after[j - 1]))
            j -= 1
        else:
            entries.append(DiffEntry(DiffKind.DELETED, i, before[i - 1]))
            i -= 1

    entries.reverse()
    return entries


def merge_modifications(entries: Sequence[DiffEntry]) -> List[DiffEntry]:
    """Fold adjacent DELETED+ADDED pairs into MODIFIED entries."""
    merged: List[DiffEntry] = []
    k = 0
    while k < len(entries):
        current = entries[k]
        if current.kind is DiffKind.DELETED and k + 1 < len(entries):
            nxt = entries[k + 1]
            if nxt.kind is DiffKind.ADDED and abs(current.line_no - nxt.line_no) <= 1:
                merged.append(
                    DiffEntry(DiffKind.MODIFIED, nxt.line_no, nxt.content, current.content)
                )
                k += 2
                continue
        merged.append(current)
        k += 1
    return merged


def diff_lines(before: Sequence[str], after: Sequence[str]) -> List[DiffEntry]:
    """Diff two line sequences; empty result means identical."""
    return merge_modifications(edit_script(before, after))


def apply_edit_script(before: Sequence[str], script: Sequence[DiffEntry]) -> List[str]:
    """Replay an unmerged edit script against *before*.

    ADDED positions index the result, DELETED positions index *before*.
    """
    result: List[str] = []
    consumed = 0
    for entry in script:
        if entry.kind is DiffKind.DELETED:
            result.extend(before[consumed:entry.line_no - 1])
            consumed = entry.line_no
        elif entry.kind is DiffKind.ADDED:
            while len(result) < entry.line_no - 1:
                result.append(before[consumed])
                consumed += 1
            result.append(entry.content)
        else:
            raise ValueError("cannot replay a merged MODIFIED entry")
    result.extend(before[consumed:])
    return result
