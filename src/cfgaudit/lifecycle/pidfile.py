"""PID file guard for the watch loop — cfgaudit watch / status / stop."""

from __future__ import annotations

import os
import signal
import time
from pathlib import Path
from typing import Optional, Tuple

from cfgaudit.errors import PidFileError

DEFAULT_PID_FILE = ".cfgaudit.pid"


def read_pid(pid_path: Path) -> Optional[int]:
    """Return the PID recorded in *pid_path*, or None."""
    try:
        text = pid_path.read_text(encoding="utf-8").strip()
    except OSError:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def is_running(pid: int) -> bool:
    """Return True if a process with *pid* exists."""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True  # exists, owned by someone else
    return True


def acquire(pid_path: Path) -> Tuple[bool, str]:
    """Record the current PID unless another live watcher holds the file.

    Raises PidFileError when the file cannot be written.

    Returns (success, message).
    """
    pid = read_pid(pid_path)
    if pid is not None and pid != os.getpid() and is_running(pid):
        return False, f"cfgaudit is already running with PID {pid} ({pid_path})"
    stale = f"Removed stale PID file {pid_path}. " if pid_path.exists() else ""
    try:
        pid_path.unlink(missing_ok=True)
        pid_path.parent.mkdir(parents=True, exist_ok=True)
        pid_path.write_text(f"{os.getpid()}\n", encoding="utf-8")
    except OSError as exc:
        raise PidFileError(f"cannot write PID file {pid_path}: {exc}") from exc
    return True, f"{stale}Watching with PID {os.getpid()}"


def release(pid_path: Path) -> None:
    """Remove *pid_path* if it belongs to this process."""
    if read_pid(pid_path) == os.getpid():
        pid_path.unlink(missing_ok=True)


def stop(pid_path: Path, *, timeout: float = 10.0, poll: float = 0.2) -> Tuple[bool, str]:
    """Send SIGTERM to the recorded watcher, escalating to SIGKILL after *timeout*.

    Returns (success, message).
    """
    pid = read_pid(pid_path)
    if pid is None:
        return False, "cfgaudit is not running (PID file not found)"
    if not is_running(pid):
        pid_path.unlink(missing_ok=True)
        return True, f"cfgaudit is not running (stale PID {pid} removed)"

    try:
        os.kill(pid, signal.SIGTERM)
    except ProcessLookupError:
        pid_path.unlink(missing_ok=True)
        return True, f"Stopped cfgaudit (PID {pid})"
    except PermissionError:
        return False, f"Cannot stop cfgaudit (PID {pid}): permission denied"
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if not is_running(pid):
            pid_path.unlink(missing_ok=True)
            return True, f"Stopped cfgaudit (PID {pid})"
        time.sleep(poll)

    kill = getattr(signal, "SIGKILL", signal.SIGTERM)
    try:
        os.kill(pid, kill)
    except ProcessLookupError:
        pid_path.unlink(missing_ok=True)
        return True, f"Stopped cfgaudit (PID {pid})"
    except PermissionError:
        return False, f"Cannot stop cfgaudit (PID {pid}): permission denied"
    time.sleep(poll)
    if is_running(pid):
        return False, f"Failed to stop cfgaudit (PID {pid})"
    pid_path.unlink(missing_ok=True)
    return True, f"Stopped cfgaudit (PID {pid}, forced)"
