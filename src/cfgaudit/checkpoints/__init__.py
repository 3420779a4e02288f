"""Checkpoint discovery, extraction and cursor tracking."""

from cfgaudit.checkpoints.cursor import CursorStore, FileCursorStore, InMemoryCursorStore
from cfgaudit.checkpoints.extractor import (
    ArchiveDirectoryExtractor,
    ConnectionParams,
    Credentials,
    SnapshotExtractor,
    WsadminExtractor,
)
from cfgaudit.checkpoints.models import Checkpoint, CheckpointScan
from cfgaudit.checkpoints.scanner import scan_checkpoints, select_pending

__all__ = [
    "ArchiveDirectoryExtractor",
    "Checkpoint",
    "CheckpointScan",
    "ConnectionParams",
    "Credentials",
    "CursorStore",
    "FileCursorStore",
    "InMemoryCursorStore",
    "SnapshotExtractor",
    "WsadminExtractor",
    "scan_checkpoints",
    "select_pending",
]
