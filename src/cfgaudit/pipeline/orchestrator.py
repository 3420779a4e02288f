"""One audit run: scan → filter → extract → expand → diff → write → advance.

Per-checkpoint failures are isolated: the checkpoint is reported, its key is
not folded into the batch maximum, and the loop moves on. The cursor is only
saved after the audit block has been written successfully; a failed write
leaves the cursor untouched so the same checkpoints are retried next run.
"""

from __future__ import annotations

import time
from pathlib import Path

from cfgaudit.audit.writer import AuditLogWriter
from cfgaudit.checkpoints.cursor import CursorStore
from cfgaudit.checkpoints.extractor import SnapshotExtractor
from cfgaudit.checkpoints.scanner import DEFAULT_PREFIX, scan_checkpoints, select_pending
from cfgaudit.diff.archive import expand_archive
from cfgaudit.diff.snapshot import diff_snapshot
from cfgaudit.errors import ArchiveError, AuditWriteError, CursorStoreError, ExtractionError
from cfgaudit.observability import get_logger
from cfgaudit.pipeline.models import CheckpointFailure, RunResult

log = get_logger("pipeline")


def run_pipeline(
    cursor: int,
    *,
    checkpoint_dir: Path,
    extractor: SnapshotExtractor,
    writer: AuditLogWriter,
    cursor_store: CursorStore,
    prefix: str = DEFAULT_PREFIX,
) -> RunResult:
    """Execute one run starting from *cursor*. Returns the updated cursor in the result."""
    start = time.perf_counter()
    result = RunResult(cursor=cursor, previous_cursor=cursor)

    scan = scan_checkpoints(Path(checkpoint_dir), prefix)
    result.scanned = len(scan.checkpoints)
    result.skipped.extend(scan.skipped)

    pending = select_pending(scan.checkpoints, cursor)
    result.pending = len(pending)
    if not pending:
        log.info("run.nothing_pending", cursor=cursor, scanned=result.scanned)
        result.duration_ms = round((time.perf_counter() - start) * 1000, 2)
        return result

    log.info("run.start", cursor=cursor, pending=len(pending))
    max_key = cursor

    for checkpoint in pending:
        bound = log.bind(checkpoint=checkpoint.name, key=checkpoint.key)
        stage = "extract"
        try:
            archive = extractor.extract(checkpoint)
            if not archive:
                raise ExtractionError("extractor returned an empty archive")
            stage = "archive"
            with expand_archive(archive) as root:
                stage = "diff"
                outcome = diff_snapshot(root, checkpoint)
        except (ExtractionError, ArchiveError) as exc:
            bound.warning("checkpoint.failed", stage=stage, error=str(exc))
            result.failed.append(
                CheckpointFailure(checkpoint.name, checkpoint.key, stage, str(exc))
            )
            continue
        except Exception as exc:
            bound.exception("checkpoint.failed", stage=stage)
            result.failed.append(
                CheckpointFailure(checkpoint.name, checkpoint.key, stage, repr(exc))
            )
            continue

        result.entries.extend(outcome.entries)
        result.skipped.extend(f"{checkpoint.name}:{s.path} ({s.reason})" for s in outcome.skipped)
        result.processed.append(checkpoint.name)
        max_key = max(max_key, checkpoint.key)
        bound.info("checkpoint.processed", user=outcome.user_id, changes=len(outcome.entries))

    if not result.entries:
        log.info("run.no_changes", processed=len(result.processed), failed=len(result.failed))
        result.duration_ms = round((time.perf_counter() - start) * 1000, 2)
        return result

    result.entries.sort(key=lambda e: e.checkpoint_key)

    try:
        writer.write(result.entries)
    except AuditWriteError as exc:
        log.error("audit.write_failed", error=str(exc), entries=len(result.entries))
        result.write_failed = True
    else:
        result.log_written = True
        # entries are on disk: the in-process cursor moves even if persisting it fails
        result.cursor = max_key
        try:
            cursor_store.save(max_key)
        except CursorStoreError as exc:
            log.error("cursor.save_failed", error=str(exc), cursor=max_key)
        else:
            result.cursor_saved = True

    result.duration_ms = round((time.perf_counter() - start) * 1000, 2)
    log.info(
        "run.complete",
        cursor=result.cursor,
        entries=result.total_entries,
        failed=len(result.failed),
        duration_ms=result.duration_ms,
    )
    return result
