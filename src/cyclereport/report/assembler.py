"""ReportAssembler - Builds the weekly status report section by section."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import date
from typing import TYPE_CHECKING

import click

from cyclereport.config import EXCLUDE_AT_PROJECT_FETCH, EXCLUDE_AT_RENDER_TIME, ON_ERROR_ABORT
from cyclereport.report import render
from cyclereport.report.dates import last_weeks_monday, local_midnight
from cyclereport.report.exceptions import EnhancementAbortedError
from cyclereport.report.fanout import gather_all, gather_map
from cyclereport.tracker import is_excluded

if TYPE_CHECKING:
    from cyclereport.config import ReportConfig
    from cyclereport.enhancer import PassthroughEnhancer, TitleEnhancer
    from cyclereport.tracker import Cycle, Issue, LinearClient, Project

logger = logging.getLogger("cyclereport.report")


class ReportAssembler:
    """Gathers tracker data and writes the markdown report.

    Sections are written in a fixed order, each one fully before the next:
    header, previous-cycle progress, recent bugs, placeholders, next week.
    Within a section, per-issue work (title enhancement, state lookups) runs
    concurrently and the section is rendered once all of it has finished.
    """

    def __init__(
        self,
        tracker: LinearClient,
        enhancer: TitleEnhancer | PassthroughEnhancer,
        config: ReportConfig,
        write: Callable[[str], None] = click.echo,
    ) -> None:
        """Initialize the assembler.

        Args:
            tracker: Linear client used for all reads.
            enhancer: Title enhancer (or passthrough when disabled).
            config: Team identity, exclusions and policies.
            write: Output function, called once per rendered block.
        """
        self.tracker = tracker
        self.enhancer = enhancer
        self.config = config
        self.write = write

    async def run(self, today: date | None = None) -> None:
        """Produce the full report.

        Args:
            today: Reference date for the bug window. Defaults to today.

        Raises:
            TeamNotFoundError: If the configured team doesn't exist.
            CycleNotFoundError: If the team has no cycle in progress.
            EnhancementAbortedError: If a title enhancement failed and the
                policy is to abort.
        """
        cycles = await self.tracker.resolve_current_and_previous_cycle(self.config.team_id)

        exclude_at_fetch = self.config.exclude_filter_applied_at == EXCLUDE_AT_PROJECT_FETCH
        projects = await self.tracker.list_projects(
            self.config.team_id,
            exclude_names=self.config.exclude_project_names if exclude_at_fetch else (),
            states=self.config.project_states or None,
        )

        self.write(render.render_header(self.config.team_name, self.config.team_url))

        await self.write_previous_cycle(projects, cycles.previous)
        await self.write_bugs(last_weeks_monday(today))
        self.write(render.PLACEHOLDERS)
        await self.write_next_week(projects, cycles.current)
        logger.info("Report complete")

    async def issue_lines(self, issues: Sequence[Issue]) -> list[str]:
        """Enhance titles concurrently and format each issue as a list item.

        Raises:
            EnhancementAbortedError: On a failed enhancement under the abort policy.
        """
        results = await gather_map(self.enhancer.enhance_title, issues)

        lines = []
        for issue, result in zip(issues, results):
            if not result.success:
                if self.config.on_enhancement_error == ON_ERROR_ABORT:
                    raise EnhancementAbortedError(issue.identifier, result.error)
                logger.warning("Using original title for %s", issue.identifier)
            lines.append(render.format_issue(result.title, issue))
        return lines

    async def write_previous_cycle(self, projects: Sequence[Project], cycle: Cycle | None) -> None:
        """Write the progress section for the cycle before the current one."""
        self.write(render.PROGRESS_HEADING)
        if cycle is None:
            logger.warning("No previous cycle, progress section left empty")
            return

        for project in projects:
            issues = await self.tracker.list_issues_for_project_and_cycle(project.id, cycle.id)
            if not issues:
                continue

            lines = await self.issue_lines(issues)
            self.write(render.render_project_progress(project, lines))
            self.write("\n")

    async def write_bugs(self, since: date) -> None:
        """Write the bugs section for flagged issues created after ``since``."""
        issues = await self.tracker.list_recent_flagged_issues(
            self.config.team_id,
            local_midnight(since),
            predicate=self.config.bug_list_predicate,
        )

        lines, states = await gather_all(
            self.issue_lines(issues),
            gather_map(self.tracker.resolve_issue_state, issues),
        )

        entries = [
            render.render_bug_entry(render.state_annotation(state), line)
            for line, state in zip(lines, states)
        ]
        self.write(render.render_bugs(entries))

    async def write_next_week(self, projects: Sequence[Project], cycle: Cycle) -> None:
        """Write the current-cycle preview as a nested list."""
        self.write(render.NEXT_WEEK_HEADING)
        exclude_now = self.config.exclude_filter_applied_at == EXCLUDE_AT_RENDER_TIME

        for project in projects:
            if exclude_now and is_excluded(project.name, self.config.exclude_project_names):
                continue

            issues = await self.tracker.list_issues_for_project_and_cycle(project.id, cycle.id)
            if not issues:
                continue

            lines = await self.issue_lines(issues)
            self.write(render.render_next_week_project(project, lines))
