"""Persistence of the last fully-processed checkpoint key."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import List, Protocol

from cfgaudit.errors import CursorStoreError
from cfgaudit.observability import get_logger

DEFAULT_CURSOR = 0

log = get_logger("cursor")


class CursorStore(Protocol):
    def load(self) -> int: ...

    def save(self, key: int) -> None: ...


class FileCursorStore:
    """Single-line base-10 cursor file, replaced atomically on save."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def ensure_writable(self) -> None:
        """Fail fast when the cursor cannot be persisted at all."""
        parent = self.path.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CursorStoreError(f"cannot create {parent}: {exc}") from exc
        if not os.access(parent, os.W_OK):
            raise CursorStoreError(f"cursor directory is not writable: {parent}")
        if self.path.exists() and not os.access(self.path, os.W_OK):
            raise CursorStoreError(f"cursor file is not writable: {self.path}")

    def load(self) -> int:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            log.warning("cursor.missing", path=str(self.path), default=DEFAULT_CURSOR)
            return DEFAULT_CURSOR
        except OSError as exc:
            log.warning("cursor.unreadable", path=str(self.path), error=str(exc))
            return DEFAULT_CURSOR

        line = text.strip().splitlines()[0].strip() if text.strip() else ""
        try:
            value = int(line)
        except ValueError:
            log.warning("cursor.unparsable", path=str(self.path), content=line[:40])
            return DEFAULT_CURSOR
        log.info("cursor.loaded", path=str(self.path), cursor=value)
        return value

    def save(self, key: int) -> None:
        parent = self.path.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=".cursor_", dir=parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(f"{key}\n")
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp, self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise CursorStoreError(f"cannot save cursor to {self.path}: {exc}") from exc
        log.info("cursor.saved", path=str(self.path), cursor=key)


class InMemoryCursorStore:
    """Cursor held in memory; records every save."""

    def __init__(self, initial: int = DEFAULT_CURSOR) -> None:
        self.value = initial
        self.saves: List[int] = []

    def load(self) -> int:
        return self.value

    def save(self, key: int) -> None:
        self.value = key
        self.saves.append(key)
