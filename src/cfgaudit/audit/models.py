"""Audit entry model."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class ChangeKind(str, Enum):
    """Per-file classification written to the audit log."""

    ADDED = "ADDED"
    DELETED = "DELETED"
    MODIFIED = "MODIFIED"


@dataclass
class AuditEntry:
    """One changed path within one checkpoint."""

    checkpoint_key: int
    user_id: str
    file_path: str
    change_kind: ChangeKind
    changes: List[str] = field(default_factory=list)
