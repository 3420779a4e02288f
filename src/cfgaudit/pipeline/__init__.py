"""Pipeline orchestration and scheduling."""

from cfgaudit.pipeline.models import CheckpointFailure, RunResult
from cfgaudit.pipeline.orchestrator import run_pipeline
from cfgaudit.pipeline.scheduler import Scheduler

__all__ = ["CheckpointFailure", "RunResult", "Scheduler", "run_pipeline"]
