"""Shared test fixtures — checkpoint archives, directories, fake extractors."""

from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Callable, Dict, List, Union

import pytest
import structlog

from cfgaudit.checkpoints.models import Checkpoint
from cfgaudit.errors import ExtractionError

Content = Union[str, bytes]


def build_archive(files: Dict[str, Content]) -> bytes:
    """Zip *files* (archive path → content) into bytes."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buf.getvalue()


class FakeExtractor:
    """Return canned archives per checkpoint name; raise for unknown names."""

    def __init__(self, archives: Dict[str, Union[bytes, Exception]]) -> None:
        self.archives = archives
        self.calls: List[str] = []

    def extract(self, checkpoint: Checkpoint) -> bytes:
        self.calls.append(checkpoint.name)
        archive = self.archives.get(checkpoint.name)
        if archive is None:
            raise ExtractionError(f"no archive for {checkpoint.name}")
        if isinstance(archive, Exception):
            raise archive
        return archive


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def make_archive() -> Callable[[Dict[str, Content]], bytes]:
    return build_archive


@pytest.fixture
def checkpoint_dir(tmp_path: Path) -> Callable[..., Path]:
    """Factory creating ``Delta-<key>`` directories under a checkpoints root."""
    root = tmp_path / "checkpoints"
    root.mkdir()

    def _make(*names: str) -> Path:
        for name in names:
            (root / name).mkdir()
        return root

    return _make


@pytest.fixture
def simple_change_archive() -> bytes:
    """One modified, one added, one deleted and one unchanged file."""
    return build_archive({
        "user.id": "wasadmin\n",
        "before/cells/cell1/security.xml": "a\nb\nc\n",
        "after/cells/cell1/security.xml": "a\nx\nc\n",
        "after/cells/cell1/new.xml": "<new/>\n",
        "before/cells/cell1/old.xml": "<old/>\n",
        "before/cells/cell1/same.xml": "same\n",
        "after/cells/cell1/same.xml": "same\n",
    })
