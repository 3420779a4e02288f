"""cfgaudit — incremental audit log of configuration checkpoints."""

__version__ = "0.1.0"
