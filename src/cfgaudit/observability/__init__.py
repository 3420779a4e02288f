"""Operational logging."""

from cfgaudit.observability.logging import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
