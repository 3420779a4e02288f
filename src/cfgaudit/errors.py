"""Exception hierarchy shared across the audit pipeline."""

from __future__ import annotations


class AuditError(Exception):
    """Base class for every error raised by cfgaudit."""


class ExtractionError(AuditError):
    """The external tool failed to materialise a checkpoint archive."""


class ArchiveError(AuditError):
    """A checkpoint archive is corrupt or cannot be expanded."""


class AuditWriteError(AuditError):
    """The audit log could not be appended to."""


class CursorStoreError(AuditError):
    """The cursor location cannot be written."""


class PidFileError(AuditError):
    """The watcher PID file cannot be written."""
