"""Audit entries and the audit log writer."""

from cfgaudit.audit.models import AuditEntry, ChangeKind
from cfgaudit.audit.writer import AuditLogWriter, format_block, format_key

__all__ = ["AuditEntry", "AuditLogWriter", "ChangeKind", "format_block", "format_key"]
