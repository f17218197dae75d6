"""Unit tests for ReportAssembler."""

import asyncio
from dataclasses import replace
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from cyclereport.config import ReportConfig
from cyclereport.enhancer import TitleResult
from cyclereport.report import EnhancementAbortedError, ReportAssembler
from cyclereport.tracker import (
    Cycle,
    CycleNotFoundError,
    CycleSelection,
    Issue,
    Project,
    StateType,
    WorkflowState,
)

CURRENT = Cycle(id="c-current", number=12, progress=0.4)
PREVIOUS = Cycle(id="c-previous", number=11, progress=0)


def _issue(identifier: str, state: StateType | None = None) -> Issue:
    return Issue(
        id=f"id-{identifier}",
        identifier=identifier,
        title=f"raw {identifier}",
        url=f"https://linear.app/acme/issue/{identifier}",
        state=WorkflowState(id="s", name=state.value, type=state) if state else None,
    )


def _project(project_id: str, name: str) -> Project:
    return Project(id=project_id, name=name, url=f"https://linear.app/acme/project/{project_id}")


class FakeEnhancer:
    """Enhancer that prefixes titles, or fails for chosen identifiers."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.calls: list[str] = []

    async def enhance_title(self, issue: Issue) -> TitleResult:
        self.calls.append(issue.identifier)
        if issue.identifier in self.failing:
            return TitleResult(success=False, title=issue.title, error="model down")
        return TitleResult(success=True, title=f"Nice {issue.identifier}", enhanced=True)


@pytest.fixture
def mock_tracker() -> MagicMock:
    """Create a mock LinearClient with one project and no issues."""
    tracker = MagicMock()
    tracker.resolve_current_and_previous_cycle = AsyncMock(
        return_value=CycleSelection(current=CURRENT, previous=PREVIOUS)
    )
    tracker.list_projects = AsyncMock(return_value=[_project("p1", "Builder")])
    tracker.list_issues_for_project_and_cycle = AsyncMock(return_value=[])
    tracker.list_recent_flagged_issues = AsyncMock(return_value=[])
    tracker.resolve_issue_state = AsyncMock(side_effect=lambda issue: issue.state)
    return tracker


@pytest.fixture
def output() -> list[str]:
    return []


def _assembler(
    tracker: MagicMock,
    config: ReportConfig,
    output: list[str],
    enhancer: FakeEnhancer | None = None,
) -> ReportAssembler:
    return ReportAssembler(tracker, enhancer or FakeEnhancer(), config, write=output.append)


def _issues_by_cycle(mapping: dict[tuple[str, str], list[Issue]]) -> AsyncMock:
    async def lookup(project_id: str, cycle_id: str) -> list[Issue]:
        return mapping.get((project_id, cycle_id), [])

    return AsyncMock(side_effect=lookup)


@pytest.mark.unit
class TestRun:
    """Tests for the full run."""

    @pytest.mark.asyncio
    async def test_section_order(
        self, mock_tracker: MagicMock, report_config: ReportConfig, output: list[str]
    ) -> None:
        await _assembler(mock_tracker, report_config, output).run(date(2026, 10, 14))

        text = "".join(output)
        positions = [
            text.index("[Platform](https://linear.app/acme/team/PLT)"),
            text.index("## 📊 **Progress**"),
            text.index("## 🐛 Ops, Bugs & Incidents"),
            text.index("## ⚠️  Problems"),
            text.index("## 💙 Team Pulse"),
            text.index("## 📅 Next Week"),
        ]
        assert positions == sorted(positions)

    @pytest.mark.asyncio
    async def test_no_current_cycle_writes_nothing(
        self, mock_tracker: MagicMock, report_config: ReportConfig, output: list[str]
    ) -> None:
        mock_tracker.resolve_current_and_previous_cycle.side_effect = CycleNotFoundError("none")

        with pytest.raises(CycleNotFoundError):
            await _assembler(mock_tracker, report_config, output).run()

        assert output == []

    @pytest.mark.asyncio
    async def test_bug_window_starts_last_weeks_monday(
        self, mock_tracker: MagicMock, report_config: ReportConfig, output: list[str]
    ) -> None:
        await _assembler(mock_tracker, report_config, output).run(date(2026, 10, 14))

        args, kwargs = mock_tracker.list_recent_flagged_issues.call_args
        assert args[0] == "team-1"
        assert args[1].date() == date(2026, 10, 5)
        assert kwargs["predicate"] == "label_or_triage"


@pytest.mark.unit
class TestPreviousCycle:
    """Tests for the progress section."""

    @pytest.mark.asyncio
    async def test_one_subsection_per_project_with_issues(
        self, mock_tracker: MagicMock, report_config: ReportConfig, output: list[str]
    ) -> None:
        projects = [_project("p1", "Builder"), _project("p2", "Empty")]
        mock_tracker.list_issues_for_project_and_cycle = _issues_by_cycle(
            {("p1", PREVIOUS.id): [_issue("PLT-1"), _issue("PLT-2")]}
        )

        await _assembler(mock_tracker, report_config, output).write_previous_cycle(
            projects, PREVIOUS
        )

        text = "".join(output)
        assert text.count("### ") == 1
        assert "### Builder" in text
        assert "Empty" not in text
        assert "- Nice PLT-1 ([PLT-1](https://linear.app/acme/issue/PLT-1))" in text
        assert "- Nice PLT-2 ([PLT-2](https://linear.app/acme/issue/PLT-2))" in text

    @pytest.mark.asyncio
    async def test_no_previous_cycle(
        self, mock_tracker: MagicMock, report_config: ReportConfig, output: list[str]
    ) -> None:
        await _assembler(mock_tracker, report_config, output).write_previous_cycle(
            [_project("p1", "Builder")], None
        )

        assert output == ["## 📊 **Progress**"]
        mock_tracker.list_issues_for_project_and_cycle.assert_not_called()


@pytest.mark.unit
class TestBugs:
    """Tests for the bugs section."""

    @pytest.mark.asyncio
    async def test_entries_annotated_by_state(
        self, mock_tracker: MagicMock, report_config: ReportConfig, output: list[str]
    ) -> None:
        mock_tracker.list_recent_flagged_issues.return_value = [
            _issue("BUG-1", StateType.COMPLETED),
            _issue("BUG-2", StateType.STARTED),
            _issue("BUG-3", StateType.CANCELED),
            _issue("BUG-4", StateType.TRIAGE),
            _issue("BUG-5"),
        ]

        await _assembler(mock_tracker, report_config, output).write_bugs(date(2026, 10, 5))

        lines = output[0].splitlines()
        assert "- ✅ **DONE** → Nice BUG-1 ([BUG-1](https://linear.app/acme/issue/BUG-1))" in lines
        assert "- 🏃 **WIP** → Nice BUG-2 ([BUG-2](https://linear.app/acme/issue/BUG-2))" in lines
        assert "- 🚫 **CANCELED** → Nice BUG-3 ([BUG-3](https://linear.app/acme/issue/BUG-3))" in (
            lines
        )
        assert "- Nice BUG-4 ([BUG-4](https://linear.app/acme/issue/BUG-4))" in lines
        assert "- Nice BUG-5 ([BUG-5](https://linear.app/acme/issue/BUG-5))" in lines
        assert mock_tracker.resolve_issue_state.await_count == 5

    @pytest.mark.asyncio
    async def test_abort_leaves_no_state_lookups_running(
        self, mock_tracker: MagicMock, report_config: ReportConfig, output: list[str]
    ) -> None:
        """An aborted title fan-out cancels the concurrent state lookups."""
        resolved: list[str] = []

        async def slow_state(issue: Issue) -> WorkflowState | None:
            await asyncio.sleep(0.05)
            resolved.append(issue.identifier)
            return issue.state

        mock_tracker.list_recent_flagged_issues.return_value = [_issue("BUG-1"), _issue("BUG-2")]
        mock_tracker.resolve_issue_state = AsyncMock(side_effect=slow_state)
        enhancer = FakeEnhancer(failing={"BUG-1"})

        with pytest.raises(EnhancementAbortedError):
            await _assembler(mock_tracker, report_config, output, enhancer).write_bugs(
                date(2026, 10, 5)
            )

        assert asyncio.all_tasks() == {asyncio.current_task()}
        await asyncio.sleep(0.1)
        assert resolved == []
        assert output == []

    @pytest.mark.asyncio
    async def test_triage_only_predicate(
        self, mock_tracker: MagicMock, report_config: ReportConfig, output: list[str]
    ) -> None:
        config = replace(report_config, bug_list_predicate="triage_only")

        await _assembler(mock_tracker, config, output).write_bugs(date(2026, 10, 5))

        assert mock_tracker.list_recent_flagged_issues.call_args.kwargs["predicate"] == (
            "triage_only"
        )


@pytest.mark.unit
class TestNextWeek:
    """Tests for the current-cycle section."""

    @pytest.mark.asyncio
    async def test_nested_list(
        self, mock_tracker: MagicMock, report_config: ReportConfig, output: list[str]
    ) -> None:
        mock_tracker.list_issues_for_project_and_cycle = _issues_by_cycle(
            {("p1", CURRENT.id): [_issue("PLT-3")]}
        )

        await _assembler(mock_tracker, report_config, output).write_next_week(
            [_project("p1", "Builder"), _project("p2", "Empty")], CURRENT
        )

        assert output == [
            "## 📅 Next Week",
            "\n- Builder\n\t- Nice PLT-3 ([PLT-3](https://linear.app/acme/issue/PLT-3))\n",
        ]


@pytest.mark.unit
class TestExclusions:
    """Tests for where the project exclusion filter applies."""

    @pytest.mark.asyncio
    async def test_project_fetch_passes_exclusions(
        self, mock_tracker: MagicMock, report_config: ReportConfig, output: list[str]
    ) -> None:
        config = replace(report_config, exclude_project_names=("ops",))

        await _assembler(mock_tracker, config, output).run(date(2026, 10, 14))

        assert mock_tracker.list_projects.call_args.kwargs["exclude_names"] == ("ops",)

    @pytest.mark.asyncio
    async def test_render_time_only_filters_next_week(
        self, mock_tracker: MagicMock, report_config: ReportConfig, output: list[str]
    ) -> None:
        config = replace(
            report_config,
            exclude_project_names=("ops",),
            exclude_filter_applied_at="render_time",
        )
        mock_tracker.list_projects.return_value = [_project("p1", "Builder"), _project("p2", "Ops")]
        mock_tracker.list_issues_for_project_and_cycle = _issues_by_cycle(
            {
                ("p2", PREVIOUS.id): [_issue("OPS-1")],
                ("p2", CURRENT.id): [_issue("OPS-2")],
            }
        )

        await _assembler(mock_tracker, config, output).run(date(2026, 10, 14))

        text = "".join(output)
        assert mock_tracker.list_projects.call_args.kwargs["exclude_names"] == ()
        assert "### Ops" in text
        assert "OPS-2" not in text


@pytest.mark.unit
class TestEnhancementFailures:
    """Tests for the enhancement failure policy."""

    @pytest.mark.asyncio
    async def test_abort_policy_raises(
        self, mock_tracker: MagicMock, report_config: ReportConfig, output: list[str]
    ) -> None:
        mock_tracker.list_issues_for_project_and_cycle = _issues_by_cycle(
            {("p1", PREVIOUS.id): [_issue("PLT-1"), _issue("PLT-2")]}
        )
        enhancer = FakeEnhancer(failing={"PLT-2"})

        with pytest.raises(EnhancementAbortedError) as exc_info:
            await _assembler(mock_tracker, report_config, output, enhancer).run(date(2026, 10, 14))

        assert exc_info.value.identifier == "PLT-2"
        assert "Ops, Bugs" not in "".join(output)

    @pytest.mark.asyncio
    async def test_fallback_policy_keeps_original_title(
        self, mock_tracker: MagicMock, report_config: ReportConfig, output: list[str]
    ) -> None:
        config = replace(report_config, on_enhancement_error="fallback")
        enhancer = FakeEnhancer(failing={"PLT-2"})

        lines = await _assembler(mock_tracker, config, output, enhancer).issue_lines(
            [_issue("PLT-1"), _issue("PLT-2")]
        )

        assert lines == [
            "Nice PLT-1 ([PLT-1](https://linear.app/acme/issue/PLT-1))",
            "raw PLT-2 ([PLT-2](https://linear.app/acme/issue/PLT-2))",
        ]
