"""Compare the before/after trees inside an expanded checkpoint archive."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from cfgaudit.audit.models import AuditEntry, ChangeKind
from cfgaudit.checkpoints.models import Checkpoint
from cfgaudit.diff.lcs import diff_lines
from cfgaudit.diff.models import DiffEntry, DiffKind, FileSkipped, SnapshotTree
from cfgaudit.observability import get_logger

USER_ID_FILE = "user.id"
BEFORE_DIR = "before"
AFTER_DIR = "after"
UNKNOWN_USER = "Unknown"

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")

log = get_logger("snapshot")


class UndiffableContent(Exception):
    """Raised internally when a file is binary or not valid UTF-8."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


@dataclass
class SnapshotDiff:
    """Outcome of diffing one checkpoint."""

    user_id: str = UNKNOWN_USER
    entries: List[AuditEntry] = field(default_factory=list)
    skipped: List[FileSkipped] = field(default_factory=list)
    has_snapshots: bool = True


def split_lines(text: str) -> List[str]:
    """Split on CRLF, CR or LF; a trailing terminator adds no empty line."""
    if not text:
        return []
    lines = _LINE_BREAK_RE.split(text)
    if lines[-1] == "":
        lines.pop()
    return lines


def read_lines(path: Path) -> List[str]:
    """Read a text file as lines. Raises UndiffableContent for binary data."""
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise UndiffableContent("unreadable") from exc
    if b"\x00" in raw:
        raise UndiffableContent("binary")
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise UndiffableContent("undecodable") from exc
    return split_lines(text)


def read_user_id(root: Path) -> str:
    """Return the attributed user, or ``Unknown`` when absent or blank."""
    path = root / USER_ID_FILE
    if not path.is_file():
        return UNKNOWN_USER
    user = path.read_text(encoding="utf-8", errors="replace").strip()
    return user or UNKNOWN_USER


def classify(entries: List[DiffEntry]) -> Optional[ChangeKind]:
    """Map a non-empty diff to a file-level change kind (None if empty)."""
    if not entries:
        return None
    kinds = {e.kind for e in entries}
    if kinds == {DiffKind.ADDED}:
        return ChangeKind.ADDED
    if kinds == {DiffKind.DELETED}:
        return ChangeKind.DELETED
    return ChangeKind.MODIFIED


def diff_snapshot(root: Path, checkpoint: Checkpoint) -> SnapshotDiff:
    """Diff the ``before/`` and ``after/`` trees under *root*.

    A missing side yields no entries. Binary or undecodable files are
    recorded in ``skipped`` and never abort the comparison.
    """
    result = SnapshotDiff(user_id=read_user_id(root))

    before_dir = root / BEFORE_DIR
    after_dir = root / AFTER_DIR
    if not before_dir.is_dir() or not after_dir.is_dir():
        log.info(
            "snapshot.incomplete",
            checkpoint=checkpoint.name,
            before=before_dir.is_dir(),
            after=after_dir.is_dir(),
        )
        result.has_snapshots = False
        return result

    before = SnapshotTree.from_directory(before_dir)
    after = SnapshotTree.from_directory(after_dir)

    for path in sorted(set(before.files) | set(after.files)):
        before_file = before.files.get(path)
        after_file = after.files.get(path)

        if before_file is None:
            kind, changes = ChangeKind.ADDED, ["File created"]
        elif after_file is None:
            kind, changes = ChangeKind.DELETED, ["File deleted"]
        else:
            try:
                diff = diff_lines(read_lines(before_file), read_lines(after_file))
            except UndiffableContent as exc:
                log.warning(
                    "snapshot.file_skipped",
                    checkpoint=checkpoint.name,
                    path=path,
                    reason=exc.reason,
                )
                result.skipped.append(FileSkipped(path=path, reason=exc.reason))
                continue
            kind = classify(diff)
            if kind is None:
                continue
            changes = [line for entry in diff for line in entry.describe()]

        result.entries.append(
            AuditEntry(
                checkpoint_key=checkpoint.key,
                user_id=result.user_id,
                file_path=path,
                change_kind=kind,
                changes=changes,
            )
        )

    return result
