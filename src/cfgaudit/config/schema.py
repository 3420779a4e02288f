"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

ScheduleMode = Literal["fixed_delay", "fixed_rate"]
ExtractorKind = Literal["wsadmin", "archive_dir"]

CONNTYPES = ("SOAP", "RMI", "IPC", "NONE")
LOG_LEVELS = ("debug", "info", "warning", "error")
LOG_FORMATS = ("console", "json")


@dataclass
class CheckpointsConfig:
    directory: str = "/dmgr/config/temp/download/cells/was90cell/repository/checkpoints"
    prefix: str = "Delta-"


@dataclass
class AuditConfig:
    log_path: str = "./audit.log"
    cursor_path: str = ".last_processed_timestamp"


@dataclass
class ScheduleConfig:
    interval_minutes: float = 60
    mode: ScheduleMode = "fixed_delay"


@dataclass
class ExtractorConfig:
    kind: ExtractorKind = "wsadmin"
    wsadmin_path: str = "/opt/IBM/WebSphere/AppServer/bin"
    conntype: str = "SOAP"
    host: str = "localhost"
    port: int = 8879
    timeout_seconds: float = 600
    archive_dir: str = "."


@dataclass
class LoggingConfig:
    level: str = "info"
    format: Literal["console", "json"] = "console"


@dataclass
class AuditorConfig:
    checkpoints: CheckpointsConfig = field(default_factory=CheckpointsConfig)
    audit: AuditConfig = field(default_factory=AuditConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    extractor: ExtractorConfig = field(default_factory=ExtractorConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def interval_seconds(self) -> float:
        return self.schedule.interval_minutes * 60
