"""JSON reporter for a pipeline run."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from cfgaudit.pipeline.models import RunResult


def to_dict(result: RunResult) -> Dict[str, Any]:
    """Convert RunResult to a JSON-serialisable dict."""
    entries: List[Dict[str, Any]] = []
    for e in result.entries:
        entries.append({
            "checkpoint_key": e.checkpoint_key,
            "user": e.user_id,
            "file": e.file_path,
            "change_type": e.change_kind.value,
            "changes": e.changes,
        })

    failed: List[Dict[str, Any]] = []
    for f in result.failed:
        failed.append({
            "checkpoint": f.name,
            "key": f.key,
            "stage": f.stage,
            "reason": f.reason,
        })

    return {
        "version": "1.0",
        "previous_cursor": result.previous_cursor,
        "cursor": result.cursor,
        "scanned": result.scanned,
        "pending": result.pending,
        "processed": result.processed,
        "failed": failed,
        "skipped": result.skipped,
        "total_entries": result.total_entries,
        "entries": entries,
        "log_written": result.log_written,
        "write_failed": result.write_failed,
        "cursor_saved": result.cursor_saved,
        "duration_ms": result.duration_ms,
    }


def render(result: RunResult) -> str:
    """Return formatted JSON string."""
    return json.dumps(to_dict(result), indent=2)
