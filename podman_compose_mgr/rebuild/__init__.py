"""Rebuild jobs, build planning and the queue orchestrator."""

from .jobs import (
    JobFinished,
    JobOutput,
    JobStarted,
    OutputLine,
    OutputStream,
    QUEUE_COMPLETED_LINE,
    QueueFinished,
    QueueResult,
    RebuildJob,
    RebuildJobSpec,
    RebuildStatus,
)
from .orchestrator import RebuildOrchestrator
from .planner import BuildPlan, BuildPlanner, PlannedCommand

__all__ = [
    "BuildPlan",
    "BuildPlanner",
    "JobFinished",
    "JobOutput",
    "JobStarted",
    "OutputLine",
    "OutputStream",
    "PlannedCommand",
    "QUEUE_COMPLETED_LINE",
    "QueueFinished",
    "QueueResult",
    "RebuildJob",
    "RebuildJobSpec",
    "RebuildOrchestrator",
    "RebuildStatus",
]
