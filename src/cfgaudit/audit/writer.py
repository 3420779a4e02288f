"""Append formatted audit blocks to the audit log."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Sequence

from cfgaudit.audit.models import AuditEntry
from cfgaudit.errors import AuditWriteError
from cfgaudit.observability import get_logger

RULE_WIDTH = 80
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

log = get_logger("writer")


def format_key(key: int) -> str:
    """Render a millisecond epoch ordering key as local wall-clock time.

    Keys outside the platform's datetime range are rendered as the raw key.
    """
    try:
        return datetime.fromtimestamp(key / 1000).strftime(TIME_FORMAT)
    except (ValueError, OverflowError, OSError):
        return str(key)


def format_block(entries: Sequence[AuditEntry], run_time: datetime) -> str:
    """Build the full text of one audit block."""
    lines: List[str] = [
        "",
        "=" * RULE_WIDTH,
        f"Audit Log Entry - {run_time.strftime(TIME_FORMAT)}",
        "=" * RULE_WIDTH,
    ]
    for entry in entries:
        lines += [
            "",
            f"Timestamp: {format_key(entry.checkpoint_key)}",
            f"User: {entry.user_id}",
            f"File: {entry.file_path}",
            f"Change Type: {entry.change_kind.value}",
            "Changes:",
        ]
        lines += [f"  {change}" for change in entry.changes]
        lines.append("-" * RULE_WIDTH)
    return "\n".join(lines) + "\n"


class AuditLogWriter:
    """Append-only writer for the audit log file."""

    def __init__(self, path: Path, *, clock: Callable[[], datetime] = datetime.now) -> None:
        self.path = Path(path)
        self._clock = clock

    def write(self, entries: Sequence[AuditEntry]) -> None:
        """Append one block for *entries*. Raises AuditWriteError on I/O failure."""
        if not entries:
            return
        try:
            block = format_block(entries, self._clock())
        except (ValueError, OverflowError) as exc:
            raise AuditWriteError(f"cannot format audit block: {exc}") from exc
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as fh:
                fh.write(block)
                fh.flush()
                os.fsync(fh.fileno())
        except OSError as exc:
            raise AuditWriteError(f"cannot append to {self.path}: {exc}") from exc
        log.info("audit.written", path=str(self.path), entries=len(entries))
