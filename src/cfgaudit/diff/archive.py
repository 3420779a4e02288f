"""Expand checkpoint archives into scoped temporary directories."""

from __future__ import annotations

import io
import tempfile
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from cfgaudit.errors import ArchiveError


@contextmanager
def expand_archive(data: bytes, *, prefix: str = "checkpoint_") -> Iterator[Path]:
    """Unzip *data* into a temp directory, removed on every exit path.

    Raises ArchiveError when the bytes are not a readable zip archive.
    """
    with tempfile.TemporaryDirectory(prefix=prefix) as tmp:
        root = Path(tmp)
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as zf:
                bad = zf.testzip()
                if bad is not None:
                    raise ArchiveError(f"corrupt archive member: {bad}")
                zf.extractall(root)
        except ArchiveError:
            raise
        except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, OSError, ValueError) as exc:
            raise ArchiveError(f"cannot expand archive: {exc}") from exc
        yield root
