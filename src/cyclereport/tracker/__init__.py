"""Tracking Client - Reads cycles, projects and issues from Linear."""

from cyclereport.tracker.client import (
    BUG_LABEL,
    FLAGGED_LABEL_OR_TRIAGE,
    FLAGGED_TRIAGE_ONLY,
    LinearClient,
    is_excluded,
)
from cyclereport.tracker.exceptions import (
    CycleNotFoundError,
    NotFoundError,
    TeamNotFoundError,
    TrackerError,
)
from cyclereport.tracker.models import (
    Cycle,
    CycleSelection,
    Issue,
    Project,
    StateType,
    Team,
    WorkflowState,
)

__all__ = [
    "BUG_LABEL",
    "Cycle",
    "CycleNotFoundError",
    "CycleSelection",
    "FLAGGED_LABEL_OR_TRIAGE",
    "FLAGGED_TRIAGE_ONLY",
    "Issue",
    "LinearClient",
    "NotFoundError",
    "Project",
    "StateType",
    "Team",
    "TeamNotFoundError",
    "TrackerError",
    "WorkflowState",
    "is_excluded",
]
