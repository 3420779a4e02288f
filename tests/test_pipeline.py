"""Integration tests for the pipeline orchestrator."""

from datetime import datetime
from pathlib import Path

from conftest import FakeExtractor, build_archive

from cfgaudit.audit.writer import AuditLogWriter
from cfgaudit.checkpoints.cursor import FileCursorStore, InMemoryCursorStore
from cfgaudit.errors import AuditWriteError, ExtractionError
from cfgaudit.pipeline.orchestrator import run_pipeline

RUN_TIME = datetime(2024, 5, 1, 12, 0, 0)


def _changed(user: str, path: str = "cell.xml") -> bytes:
    return build_archive({
        "user.id": user,
        f"before/{path}": "a\nb\n",
        f"after/{path}": "a\nc\n",
    })


class FailingWriter:
    def __init__(self) -> None:
        self.calls = 0

    def write(self, entries) -> None:
        self.calls += 1
        raise AuditWriteError("disk full")


def _run(root: Path, extractor, store, writer, cursor=None):
    return run_pipeline(
        store.load() if cursor is None else cursor,
        checkpoint_dir=root,
        extractor=extractor,
        writer=writer,
        cursor_store=store,
    )


class TestOrdering:
    def test_two_checkpoints_in_key_order(self, checkpoint_dir, tmp_path: Path):
        root = checkpoint_dir("Delta-200", "Delta-100")
        extractor = FakeExtractor({"Delta-100": _changed("alice"), "Delta-200": _changed("bob")})
        store = InMemoryCursorStore(50)
        log_path = tmp_path / "audit.log"

        result = _run(root, extractor, store, AuditLogWriter(log_path, clock=lambda: RUN_TIME))

        assert extractor.calls == ["Delta-100", "Delta-200"]
        assert result.cursor == 200
        assert store.saves == [200]
        assert [e.user_id for e in result.entries] == ["alice", "bob"]
        text = log_path.read_text(encoding="utf-8")
        assert text.index("User: alice") < text.index("User: bob")
        assert text.count("Audit Log Entry") == 1

    def test_already_processed_skipped(self, checkpoint_dir, tmp_path: Path):
        root = checkpoint_dir("Delta-100", "Delta-200")
        extractor = FakeExtractor({"Delta-200": _changed("bob")})
        store = InMemoryCursorStore(100)

        result = _run(root, extractor, store, AuditLogWriter(tmp_path / "audit.log"))

        assert extractor.calls == ["Delta-200"]
        assert result.pending == 1
        assert result.cursor == 200


class TestIdempotence:
    def test_second_run_is_noop(self, checkpoint_dir, tmp_path: Path):
        root = checkpoint_dir("Delta-100")
        extractor = FakeExtractor({"Delta-100": _changed("alice")})
        cursor_path = tmp_path / ".cursor"
        log_path = tmp_path / "audit.log"
        store = FileCursorStore(cursor_path)
        writer = AuditLogWriter(log_path)

        first = _run(root, extractor, store, writer)
        log_after_first = log_path.read_text(encoding="utf-8")
        cursor_mtime = cursor_path.stat().st_mtime_ns

        second = _run(root, extractor, store, writer)

        assert first.cursor == 100
        assert second.cursor == 100
        assert second.entries == []
        assert second.pending == 0
        assert log_path.read_text(encoding="utf-8") == log_after_first
        assert cursor_path.stat().st_mtime_ns == cursor_mtime
        assert extractor.calls == ["Delta-100"]

    def test_cursor_never_decreases(self, checkpoint_dir, tmp_path: Path):
        root = checkpoint_dir("Delta-100", "Delta-300")
        extractor = FakeExtractor({"Delta-100": _changed("a"), "Delta-300": _changed("b")})
        store = InMemoryCursorStore(0)
        writer = AuditLogWriter(tmp_path / "audit.log")

        seen = []
        for _ in range(3):
            seen.append(_run(root, extractor, store, writer).cursor)
        (root / "Delta-200").mkdir()  # older than the cursor: never picked up
        seen.append(_run(root, extractor, store, writer).cursor)

        assert seen == [300, 300, 300, 300]
        assert store.saves == [300]


class TestFailureIsolation:
    def test_extraction_failure_not_folded_into_cursor(self, checkpoint_dir, tmp_path: Path):
        root = checkpoint_dir("Delta-100", "Delta-200")
        extractor = FakeExtractor({
            "Delta-100": _changed("alice"),
            "Delta-200": ExtractionError("wsadmin exited with code 105"),
        })
        store = InMemoryCursorStore(0)

        result = _run(root, extractor, store, AuditLogWriter(tmp_path / "audit.log"))

        assert result.cursor == 100
        assert [f.name for f in result.failed] == ["Delta-200"]
        assert result.failed[0].stage == "extract"

    def test_failed_checkpoint_retried_next_run(self, checkpoint_dir, tmp_path: Path):
        root = checkpoint_dir("Delta-100")
        extractor = FakeExtractor({"Delta-100": ExtractionError("down")})
        store = InMemoryCursorStore(0)
        writer = AuditLogWriter(tmp_path / "audit.log")

        first = _run(root, extractor, store, writer)
        assert first.cursor == 0
        assert store.saves == []

        extractor.archives["Delta-100"] = _changed("alice")
        second = _run(root, extractor, store, writer)
        assert second.cursor == 100
        assert extractor.calls == ["Delta-100", "Delta-100"]

    def test_corrupt_archive_isolated(self, checkpoint_dir, tmp_path: Path):
        root = checkpoint_dir("Delta-100", "Delta-200")
        extractor = FakeExtractor({"Delta-100": b"garbage", "Delta-200": _changed("bob")})
        store = InMemoryCursorStore(0)

        result = _run(root, extractor, store, AuditLogWriter(tmp_path / "audit.log"))

        assert result.failed[0].name == "Delta-100"
        assert result.failed[0].stage == "archive"
        assert result.cursor == 200

    def test_unexpected_error_isolated(self, checkpoint_dir, tmp_path: Path):
        root = checkpoint_dir("Delta-100", "Delta-200")
        extractor = FakeExtractor({
            "Delta-100": RuntimeError("bug in extractor"),
            "Delta-200": _changed("bob"),
        })
        result = _run(root, extractor, InMemoryCursorStore(0), AuditLogWriter(tmp_path / "a.log"))
        assert [f.name for f in result.failed] == ["Delta-100"]
        assert result.processed == ["Delta-200"]

    def test_empty_archive_treated_as_failure(self, checkpoint_dir, tmp_path: Path):
        root = checkpoint_dir("Delta-100")
        extractor = FakeExtractor({"Delta-100": b""})
        result = _run(root, extractor, InMemoryCursorStore(0), AuditLogWriter(tmp_path / "a.log"))
        assert result.cursor == 0
        assert len(result.failed) == 1


class TestNoEntries:
    def test_missing_after_tree_leaves_cursor_and_log(self, checkpoint_dir, tmp_path: Path):
        root = checkpoint_dir("Delta-100")
        extractor = FakeExtractor({"Delta-100": build_archive({"before/a.xml": "a\n"})})
        store = InMemoryCursorStore(0)
        log_path = tmp_path / "audit.log"

        result = _run(root, extractor, store, AuditLogWriter(log_path))

        assert result.entries == []
        assert result.failed == []
        assert result.processed == ["Delta-100"]
        assert store.saves == []
        assert not log_path.exists()

    def test_missing_checkpoint_directory(self, tmp_path: Path):
        store = InMemoryCursorStore(0)
        result = _run(tmp_path / "missing", FakeExtractor({}), store, AuditLogWriter(tmp_path / "a.log"))
        assert result.scanned == 0
        assert store.saves == []


class TestWriteFailure:
    def test_cursor_not_advanced_when_write_fails(self, checkpoint_dir):
        root = checkpoint_dir("Delta-100")
        extractor = FakeExtractor({"Delta-100": _changed("alice")})
        store = InMemoryCursorStore(0)
        writer = FailingWriter()

        result = _run(root, extractor, store, writer)

        assert writer.calls == 1
        assert result.write_failed is True
        assert result.log_written is False
        assert result.cursor == 0
        assert store.saves == []

    def test_entries_retried_after_write_recovers(self, checkpoint_dir, tmp_path: Path):
        root = checkpoint_dir("Delta-100")
        extractor = FakeExtractor({"Delta-100": _changed("alice")})
        store = InMemoryCursorStore(0)

        _run(root, extractor, store, FailingWriter())
        result = _run(root, extractor, store, AuditLogWriter(tmp_path / "audit.log"))

        assert result.cursor == 100
        assert "User: alice" in (tmp_path / "audit.log").read_text(encoding="utf-8")


class TestLargeKeys:
    def test_key_beyond_datetime_range_is_recorded(self, checkpoint_dir, tmp_path: Path):
        root = checkpoint_dir("Delta-9000000000000000000")
        extractor = FakeExtractor({"Delta-9000000000000000000": _changed("alice")})
        store = InMemoryCursorStore(0)
        log_path = tmp_path / "audit.log"

        result = _run(root, extractor, store, AuditLogWriter(log_path))

        assert result.log_written
        assert result.cursor == 9_000_000_000_000_000_000
        assert store.saves == [9_000_000_000_000_000_000]
        assert "Timestamp: 9000000000000000000" in log_path.read_text(encoding="utf-8")
