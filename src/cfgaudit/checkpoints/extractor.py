"""Checkpoint extraction — the boundary to the external admin tool.

Production extraction shells out to ``wsadmin.sh`` running a one-line Jython
script that calls ``AdminTask.extractRepositoryCheckpoint``. The tool writes
``<checkpoint>.zip`` into its working directory; the bytes are read back and
the working directory is discarded.
"""

from __future__ import annotations

import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Protocol

from cfgaudit.checkpoints.models import Checkpoint
from cfgaudit.errors import ExtractionError
from cfgaudit.observability import get_logger

log = get_logger("extractor")


class SnapshotExtractor(Protocol):
    def extract(self, checkpoint: Checkpoint) -> bytes:
        """Return the checkpoint archive bytes. Raises ExtractionError."""
        ...


@dataclass(frozen=True)
class Credentials:
    user: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(user={self.user!r}, password='***')"


@dataclass(frozen=True)
class ConnectionParams:
    conntype: str = "SOAP"
    host: str = "localhost"
    port: int = 8879


def build_script(checkpoint_name: str) -> str:
    """Jython source asking wsadmin to extract *checkpoint_name*."""
    return (
        "# WebSphere Checkpoint Extraction Script\n"
        f"checkpointName = {checkpoint_name!r}\n"
        "zipFileName = checkpointName + '.zip'\n"
        "AdminTask.extractRepositoryCheckpoint("
        "'[-checkpointName ' + checkpointName + ' -extractToFile ' + zipFileName + ']')\n"
        "print 'Checkpoint extracted to: ' + zipFileName\n"
    )


def _read_archive(path: Path) -> bytes:
    if not path.is_file():
        raise ExtractionError(f"archive not created: {path.name}")
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ExtractionError(f"cannot read archive {path.name}: {exc}") from exc
    if not data:
        raise ExtractionError(f"archive is empty: {path.name}")
    return data


class WsadminExtractor:
    """Extract checkpoints by running wsadmin in a scratch directory."""

    def __init__(
        self,
        wsadmin_path: Path,
        credentials: Credentials,
        connection: ConnectionParams = ConnectionParams(),
        *,
        timeout: float = 600,
    ) -> None:
        self.wsadmin_path = Path(wsadmin_path)
        self.credentials = credentials
        self.connection = connection
        self.timeout = timeout

    @property
    def executable(self) -> Path:
        return self.wsadmin_path / "wsadmin.sh"

    def command(self, script: Path) -> List[str]:
        return [
            str(self.executable),
            "-conntype", self.connection.conntype,
            "-host", self.connection.host,
            "-port", str(self.connection.port),
            "-user", self.credentials.user,
            "-password", self.credentials.password,
            "-f", str(script),
        ]

    def extract(self, checkpoint: Checkpoint) -> bytes:
        with tempfile.TemporaryDirectory(prefix="extract_") as tmp:
            workdir = Path(tmp)
            script = workdir / "extract_checkpoint.py"
            script.write_text(build_script(checkpoint.name), encoding="utf-8")

            try:
                result = subprocess.run(
                    self.command(script),
                    cwd=workdir,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    text=True,
                    encoding="utf-8",
                    errors="replace",
                    timeout=self.timeout,
                )
            except FileNotFoundError:
                raise ExtractionError(f"wsadmin not found: {self.executable}")
            except PermissionError:
                raise ExtractionError(f"wsadmin is not executable: {self.executable}")
            except subprocess.TimeoutExpired:
                raise ExtractionError(
                    f"wsadmin timed out after {self.timeout}s for {checkpoint.name}"
                )

            for line in result.stdout.splitlines():
                log.debug("wsadmin.output", checkpoint=checkpoint.name, line=line)

            if result.returncode != 0:
                raise ExtractionError(f"wsadmin exited with code {result.returncode}")

            data = _read_archive(workdir / f"{checkpoint.name}.zip")
            log.info("extract.ok", checkpoint=checkpoint.name, size=len(data))
            return data


class ArchiveDirectoryExtractor:
    """Read archives already materialised as ``<dir>/<checkpoint>.zip``."""

    def __init__(self, archive_dir: Path) -> None:
        self.archive_dir = Path(archive_dir)

    def extract(self, checkpoint: Checkpoint) -> bytes:
        return _read_archive(self.archive_dir / f"{checkpoint.name}.zip")
