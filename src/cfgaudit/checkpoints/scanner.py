"""Checkpoint discovery and incremental selection."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List

from cfgaudit.checkpoints.models import Checkpoint, CheckpointScan
from cfgaudit.observability import get_logger

DEFAULT_PREFIX = "Delta-"

_KEY_RE = re.compile(r"^\d+$")

log = get_logger("scanner")


def parse_checkpoint_name(name: str, prefix: str = DEFAULT_PREFIX) -> int:
    """Return the ordering key encoded in *name*.

    Raises ValueError if *name* lacks *prefix* or the key is not a
    base-10 integer.
    """
    if not name.startswith(prefix):
        raise ValueError(f"missing prefix {prefix!r}")
    raw = name[len(prefix):]
    if not _KEY_RE.match(raw):
        raise ValueError(f"non-numeric ordering key {raw!r}")
    return int(raw)


def scan_checkpoints(directory: Path, prefix: str = DEFAULT_PREFIX) -> CheckpointScan:
    """List checkpoint directories under *directory*.

    Never raises: an unreadable directory gives an empty result and
    malformed names are skipped one by one.
    """
    result = CheckpointScan()
    try:
        children = sorted(directory.iterdir())
    except OSError as exc:
        log.warning("scan.directory_unreadable", directory=str(directory), error=str(exc))
        result.directory_ok = False
        return result

    for child in children:
        name = child.name
        if not child.is_dir():
            log.warning("scan.entry_ignored", entry=name, reason="not a directory")
            result.skipped.append(f"{name} (not a directory)")
            continue
        if not name.startswith(prefix):
            log.warning("scan.entry_ignored", entry=name, reason="name does not match prefix")
            result.skipped.append(f"{name} (unmatched)")
            continue
        try:
            key = parse_checkpoint_name(name, prefix)
        except ValueError as exc:
            log.warning("scan.invalid_name", entry=name, error=str(exc))
            result.skipped.append(f"{name} (invalid name)")
            continue
        result.checkpoints.append(Checkpoint(name=name, key=key, path=child))

    log.debug("scan.complete", directory=str(directory), found=len(result.checkpoints))
    return result


def select_pending(checkpoints: Iterable[Checkpoint], cursor: int) -> List[Checkpoint]:
    """Checkpoints newer than *cursor*, ascending by key (name breaks ties)."""
    return sorted(
        (cp for cp in checkpoints if cp.key > cursor),
        key=lambda cp: (cp.key, cp.name),
    )
