"""Data models for the Linear tracking client."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class StateType(str, Enum):
    """Workflow state categories reported by Linear."""

    COMPLETED = "completed"
    STARTED = "started"
    CANCELED = "canceled"
    TRIAGE = "triage"
    UNSTARTED = "unstarted"
    BACKLOG = "backlog"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str | None) -> StateType:
        """Map a service value onto a known category, defaulting to OTHER."""
        if not value:
            return cls.OTHER
        if value == "triaged":
            return cls.TRIAGE
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp as returned by the GraphQL API."""
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@dataclass
class Team:
    """A Linear team."""

    id: str
    name: str
    key: str = ""


@dataclass
class Cycle:
    """A time-boxed iteration (sprint).

    Attributes:
        id: Linear cycle ID.
        number: Sequential cycle number within the team.
        progress: Completion ratio in [0, 1]. Only the active cycle is non-zero.
    """

    id: str
    number: int | None = None
    name: str | None = None
    progress: float = 0.0
    starts_at: datetime | None = None
    ends_at: datetime | None = None

    @classmethod
    def from_node(cls, node: dict[str, Any]) -> Cycle:
        return cls(
            id=node["id"],
            number=node.get("number"),
            name=node.get("name"),
            progress=float(node.get("progress") or 0),
            starts_at=parse_datetime(node.get("startsAt")),
            ends_at=parse_datetime(node.get("endsAt")),
        )


@dataclass
class CycleSelection:
    """The cycle in progress and the one right after it in service order."""

    current: Cycle
    previous: Cycle | None = None


@dataclass
class Project:
    """A named body of work containing issues."""

    id: str
    name: str
    url: str
    state: str = ""

    @classmethod
    def from_node(cls, node: dict[str, Any]) -> Project:
        return cls(
            id=node["id"],
            name=node["name"],
            url=node.get("url") or "",
            state=node.get("state") or "",
        )


@dataclass
class WorkflowState:
    """An issue's position in its team's workflow."""

    id: str
    name: str
    type: StateType = StateType.OTHER

    @classmethod
    def from_node(cls, node: dict[str, Any]) -> WorkflowState:
        return cls(
            id=node.get("id") or "",
            name=node.get("name") or "",
            type=StateType.parse(node.get("type")),
        )


@dataclass
class Issue:
    """A unit of trackable work.

    Attributes:
        id: Linear issue ID (UUID).
        identifier: Human-readable code, e.g. "ENG-123".
        state: Workflow state when it was loaded with the issue, else None.
    """

    id: str
    identifier: str
    title: str
    url: str
    description: str = ""
    created_at: datetime | None = None
    triaged_at: datetime | None = None
    labels: list[str] = field(default_factory=list)
    state: WorkflowState | None = None

    @classmethod
    def from_node(cls, node: dict[str, Any]) -> Issue:
        label_nodes = (node.get("labels") or {}).get("nodes", [])
        state_node = node.get("state")
        return cls(
            id=node["id"],
            identifier=node["identifier"],
            title=node["title"],
            url=node.get("url") or "",
            description=node.get("description") or "",
            created_at=parse_datetime(node.get("createdAt")),
            triaged_at=parse_datetime(node.get("triagedAt")),
            labels=[label["name"] for label in label_nodes],
            state=WorkflowState.from_node(state_node) if state_node else None,
        )
