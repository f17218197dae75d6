"""Markdown rendering for the status report."""

from __future__ import annotations

from collections.abc import Sequence

from cyclereport.tracker import Issue, Project, StateType, WorkflowState

PROGRESS_HEADING = "## 📊 **Progress**"
BUGS_HEADING = "## 🐛 Ops, Bugs & Incidents"
NEXT_WEEK_HEADING = "## 📅 Next Week"
ON_TRACK_STATUS = "💙 On Track"

PLACEHOLDERS = """
## ⚠️  Problems

- *Any challenges and issues*

## 💙 Team Pulse

- *Any challenges and issues*
"""

STATE_ANNOTATIONS: dict[StateType, str] = {
    StateType.COMPLETED: "✅ **DONE** →",
    StateType.STARTED: "🏃 **WIP** →",
    StateType.CANCELED: "🚫 **CANCELED** →",
    StateType.TRIAGE: "",
    StateType.UNSTARTED: "",
    StateType.BACKLOG: "",
    StateType.OTHER: "",
}


def state_annotation(state: WorkflowState | StateType | None) -> str:
    """Get the bug-list prefix for a workflow state (empty if none applies)."""
    if state is None:
        return ""
    state_type = state.type if isinstance(state, WorkflowState) else state
    return STATE_ANNOTATIONS.get(state_type, "")


def format_issue(title: str, issue: Issue) -> str:
    """Format an issue as ``<title> ([<code>](<url>))``."""
    return f"{title} ([{issue.identifier}]({issue.url}))"


def render_header(team_name: str, team_url: str) -> str:
    return f"\n[{team_name}]({team_url})\n"


def render_project_progress(project: Project, lines: Sequence[str]) -> str:
    """Render a previous-cycle project subsection."""
    bullets = "\n".join(f"- {line}" for line in lines)
    return (
        f"\n### {project.name}\n"
        f"\n**Status:** {ON_TRACK_STATUS}\n"
        f"\n**Links:** [Linear]({project.url})\n"
        f"\n{bullets}\n"
    )


def render_bug_entry(annotation: str, line: str) -> str:
    if annotation:
        return f"- {annotation} {line}"
    return f"- {line}"


def render_bugs(entries: Sequence[str]) -> str:
    """Render the bugs section from already formatted entries."""
    return f"\n{BUGS_HEADING}\n\n" + "\n".join(entries) + "\n"


def render_next_week_project(project: Project, lines: Sequence[str]) -> str:
    """Render a current-cycle project as a nested list."""
    children = "\n".join(f"\t- {line}" for line in lines)
    return f"\n- {project.name}\n{children}\n"
