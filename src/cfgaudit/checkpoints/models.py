"""Checkpoint data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List


@dataclass(frozen=True, slots=True)
class Checkpoint:
    """A discovered checkpoint directory entry."""

    name: str
    key: int  # ordering key, epoch milliseconds for WebSphere deltas
    path: Path


@dataclass
class CheckpointScan:
    """Result of listing a checkpoint directory."""

    checkpoints: List[Checkpoint] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)  # "name (reason)"
    directory_ok: bool = True
