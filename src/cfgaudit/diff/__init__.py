"""Diff layer — LCS engine, archive expansion, snapshot comparison."""

from cfgaudit.diff.archive import expand_archive
from cfgaudit.diff.lcs import apply_edit_script, diff_lines, edit_script
from cfgaudit.diff.models import DiffEntry, DiffKind, FileSkipped, SnapshotTree
from cfgaudit.diff.snapshot import SnapshotDiff, diff_snapshot

__all__ = [
    "DiffEntry",
    "DiffKind",
    "FileSkipped",
    "SnapshotDiff",
    "SnapshotTree",
    "apply_edit_script",
    "diff_lines",
    "diff_snapshot",
    "edit_script",
    "expand_archive",
]
