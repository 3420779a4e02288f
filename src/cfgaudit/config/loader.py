"""Load and merge configuration from cfgaudit.toml and env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from cfgaudit.config.defaults import CONFIG_FILENAME
from cfgaudit.config.schema import (
    CONNTYPES,
    LOG_FORMATS,
    LOG_LEVELS,
    AuditConfig,
    AuditorConfig,
    CheckpointsConfig,
    ExtractorConfig,
    LoggingConfig,
    ScheduleConfig,
)
from cfgaudit.errors import AuditError

_CREDENTIAL_KEYS = ("user", "username", "password")


class ConfigError(AuditError):
    """Raised when config is malformed or unreadable."""


def find_config_file(base_dir: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = base_dir / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _reject_credentials(raw: Dict[str, Any]) -> None:
    for section, values in raw.items():
        if not isinstance(values, dict):
            continue
        found = [k for k in values if k.lower() in _CREDENTIAL_KEYS]
        if found:
            raise ConfigError(
                f"Credentials must not be stored in the config file "
                f"([{section}] {', '.join(found)})"
            )


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in data.get(section, {}).items() if k in valid_fields}
    return cls(**filtered)


def _validate(cfg: AuditorConfig) -> None:
    if cfg.schedule.interval_minutes <= 0:
        raise ConfigError("schedule.interval_minutes must be positive")
    if cfg.schedule.mode not in ("fixed_delay", "fixed_rate"):
        raise ConfigError(f"Invalid schedule.mode: {cfg.schedule.mode}")
    if cfg.extractor.kind not in ("wsadmin", "archive_dir"):
        raise ConfigError(f"Invalid extractor.kind: {cfg.extractor.kind}")
    if cfg.extractor.conntype.upper() not in CONNTYPES:
        raise ConfigError(f"Invalid extractor.conntype: {cfg.extractor.conntype}")
    if cfg.extractor.timeout_seconds <= 0:
        raise ConfigError("extractor.timeout_seconds must be positive")
    if not cfg.checkpoints.prefix:
        raise ConfigError("checkpoints.prefix must not be empty")
    if cfg.logging.level.lower() not in LOG_LEVELS:
        raise ConfigError(f"Invalid logging.level: {cfg.logging.level}")
    if cfg.logging.format not in LOG_FORMATS:
        raise ConfigError(f"Invalid logging.format: {cfg.logging.format}")


def _merge_env_overrides(cfg: AuditorConfig) -> None:
    """Apply CFGAUDIT_* environment variable overrides."""
    if val := os.environ.get("CFGAUDIT_CHECKPOINT_DIR"):
        cfg.checkpoints.directory = val
    if val := os.environ.get("CFGAUDIT_AUDIT_LOG"):
        cfg.audit.log_path = val
    if val := os.environ.get("CFGAUDIT_CURSOR_FILE"):
        cfg.audit.cursor_path = val
    if val := os.environ.get("CFGAUDIT_INTERVAL_MINUTES"):
        try:
            minutes = float(val)
        except ValueError:
            minutes = 0
        if minutes > 0:
            cfg.schedule.interval_minutes = minutes
    if val := os.environ.get("CFGAUDIT_LOG_LEVEL"):
        if val.lower() in LOG_LEVELS:
            cfg.logging.level = val.lower()
    if val := os.environ.get("CFGAUDIT_LOG_FORMAT"):
        if val in LOG_FORMATS:
            cfg.logging.format = val  # type: ignore[assignment]


def load_config(
    base_dir: Path,
    config_override: Optional[str] = None,
) -> AuditorConfig:
    """Load, validate, and return an AuditorConfig."""
    config_path = find_config_file(base_dir, config_override)

    if config_path is None:
        cfg = AuditorConfig()
    else:
        raw = _parse_toml(config_path)
        _reject_credentials(raw)
        try:
            cfg = AuditorConfig(
                checkpoints=_build_section(raw, CheckpointsConfig, "checkpoints"),
                audit=_build_section(raw, AuditConfig, "audit"),
                schedule=_build_section(raw, ScheduleConfig, "schedule"),
                extractor=_build_section(raw, ExtractorConfig, "extractor"),
                logging=_build_section(raw, LoggingConfig, "logging"),
            )
        except (TypeError, AttributeError) as exc:
            raise ConfigError(f"Malformed config {config_path}: {exc}") from exc

    _merge_env_overrides(cfg)
    try:
        _validate(cfg)
    except (TypeError, AttributeError) as exc:
        raise ConfigError(f"Invalid config value: {exc}") from exc
    return cfg
