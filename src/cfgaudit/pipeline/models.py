"""Run result model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from cfgaudit.audit.models import AuditEntry


@dataclass
class CheckpointFailure:
    """A checkpoint skipped during a run; stays eligible for the next run."""

    name: str
    key: int
    stage: str  # 'extract', 'archive', 'diff'
    reason: str


@dataclass
class RunResult:
    """Complete result of one pipeline run."""

    cursor: int  # cursor after the run
    previous_cursor: int
    scanned: int = 0
    pending: int = 0
    processed: List[str] = field(default_factory=list)
    failed: List[CheckpointFailure] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    entries: List[AuditEntry] = field(default_factory=list)
    log_written: bool = False
    write_failed: bool = False
    cursor_saved: bool = False
    duration_ms: float = 0.0

    @property
    def total_entries(self) -> int:
        return len(self.entries)

    @property
    def advanced(self) -> bool:
        return self.cursor > self.previous_cursor
