"""Data models for line diffs and snapshot comparison."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional


class DiffKind(str, Enum):
    ADDED = "added"
    DELETED = "deleted"
    MODIFIED = "modified"


@dataclass(frozen=True, slots=True)
class DiffEntry:
    """A single line-level change.

    ``line_no`` is 1-based. For ADDED and MODIFIED it points into the
    *after* sequence, for DELETED into the *before* sequence.
    """

    kind: DiffKind
    line_no: int
    content: str
    before: Optional[str] = None  # set on MODIFIED

    def describe(self) -> List[str]:
        """Human-readable description lines for the audit log."""
        if self.kind is DiffKind.ADDED:
            return [f"Line {self.line_no} added: {self.content}"]
        if self.kind is DiffKind.DELETED:
            return [f"Line {self.line_no} deleted: {self.content}"]
        return [
            f"Line {self.line_no} modified:",
            f"  Before: {self.before}",
            f"  After:  {self.content}",
        ]


@dataclass(frozen=True)
class SnapshotTree:
    """Relative path → file mapping for one side of a checkpoint."""

    root: Path
    files: Dict[str, Path] = field(default_factory=dict)

    @classmethod
    def from_directory(cls, root: Path) -> "SnapshotTree":
        files = {
            p.relative_to(root).as_posix(): p
            for p in sorted(root.rglob("*"))
            if p.is_file()
        }
        return cls(root=root, files=dict(sorted(files.items())))

    @property
    def paths(self) -> List[str]:
        return list(self.files)


@dataclass(frozen=True)
class FileSkipped:
    """Record of a path that could not be diffed."""

    path: str
    reason: str  # 'binary', 'undecodable', 'unreadable'
