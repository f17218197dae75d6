"""LinearClient - Read-only access to the Linear GraphQL API."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

import httpx

from cyclereport.logging import sanitize_for_log, truncate_output
from cyclereport.tracker.exceptions import CycleNotFoundError, TeamNotFoundError, TrackerError
from cyclereport.tracker.models import (
    Cycle,
    CycleSelection,
    Issue,
    Project,
    Team,
    WorkflowState,
)

logger = logging.getLogger("cyclereport.tracker")

LINEAR_API_URL = "https://api.linear.app/graphql"
DEFAULT_PAGE_SIZE = 50

BUG_LABEL = "Bug"

# Predicates for the flagged-issue (bug) query
FLAGGED_LABEL_OR_TRIAGE = "label_or_triage"
FLAGGED_TRIAGE_ONLY = "triage_only"

ISSUE_FIELDS = """
    id
    identifier
    title
    description
    url
    createdAt
    triagedAt
    labels {
        nodes {
            name
        }
    }
"""

PAGE_INFO = """
    pageInfo {
        hasNextPage
        endCursor
    }
"""


def is_excluded(name: str, exclude_names: Iterable[str]) -> bool:
    """Check whether a project name contains any exclusion substring.

    Matching is case-insensitive; an empty exclusion list excludes nothing.
    """
    lowered = name.lower()
    return any(excluded.lower() in lowered for excluded in exclude_names if excluded)


class LinearClient:
    """Async client for the Linear GraphQL API.

    Only issues read queries. Each public call performs one request per
    result page; nothing is cached between calls.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = LINEAR_API_URL,
        page_size: int = DEFAULT_PAGE_SIZE,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the Linear client.

        Args:
            api_key: Linear personal API key
            base_url: GraphQL endpoint (for testing)
            page_size: Number of nodes requested per page
            transport: Optional httpx transport (for testing)
        """
        self.api_key = api_key
        self.base_url = base_url
        self.page_size = page_size
        self.transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client for GraphQL API."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    "Authorization": self.api_key,
                    "Content-Type": "application/json",
                },
                timeout=30.0,
                transport=self.transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> LinearClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _graphql(
        self, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Execute a GraphQL query.

        Args:
            query: GraphQL query string
            variables: Query variables

        Returns:
            Response data

        Raises:
            TrackerError: If query fails
        """
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        response = await self.client.post(self.base_url, json=payload)

        if response.status_code != 200:
            detail = sanitize_for_log(truncate_output(response.text))
            raise TrackerError(f"GraphQL request failed: {response.status_code} - {detail}")

        data: dict[str, Any] = response.json()
        if "errors" in data:
            raise TrackerError(f"GraphQL errors: {data['errors']}")

        return dict(data["data"])

    async def _paginate(
        self, query: str, variables: dict[str, Any], path: Sequence[str]
    ) -> list[dict[str, Any]]:
        """Collect every node of a connection, following cursors in order.

        Args:
            query: Query taking $first and $after variables
            variables: Remaining query variables
            path: Keys leading from the response data to the connection

        Returns:
            Nodes from all pages, in service order
        """
        nodes: list[dict[str, Any]] = []
        after: str | None = None

        while True:
            data = await self._graphql(
                query, {**variables, "first": self.page_size, "after": after}
            )
            connection: dict[str, Any] = data
            for key in path:
                connection = connection.get(key) or {}

            nodes.extend(connection.get("nodes", []))
            page_info = connection.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                return nodes
            after = page_info.get("endCursor")
            if not after:
                logger.warning("Page of %s reported more results but no cursor", "/".join(path))
                return nodes

    async def list_cycles(self, team_id: str) -> list[Cycle]:
        """Get all cycles for a team in the service's native order.

        Args:
            team_id: Linear team ID

        Returns:
            List of Cycle objects
        """
        query = """
        query($teamId: ID!, $first: Int!, $after: String) {
            cycles(filter: { team: { id: { eq: $teamId } } }, first: $first, after: $after) {
                nodes {
                    id
                    number
                    name
                    progress
                    startsAt
                    endsAt
                }
        """ + PAGE_INFO + """
            }
        }
        """

        nodes = await self._paginate(query, {"teamId": team_id}, ("cycles",))
        cycles = [Cycle.from_node(node) for node in nodes]
        logger.info("Found %d cycle(s) for team %s", len(cycles), team_id)
        return cycles

    async def resolve_current_and_previous_cycle(self, team_id: str) -> CycleSelection:
        """Find the cycle in progress and the one following it in the ordering.

        Args:
            team_id: Linear team ID

        Returns:
            CycleSelection; ``previous`` is None if the current cycle is last

        Raises:
            CycleNotFoundError: If no cycle has non-zero progress
        """
        cycles = await self.list_cycles(team_id)

        for index, cycle in enumerate(cycles):
            if cycle.progress != 0:
                previous = cycles[index + 1] if index + 1 < len(cycles) else None
                logger.info(
                    "Current cycle %s, previous cycle %s",
                    cycle.number or cycle.id,
                    (previous.number or previous.id) if previous else None,
                )
                return CycleSelection(current=cycle, previous=previous)

        raise CycleNotFoundError(f"No current cycle found for team {team_id}")

    async def get_team(self, team_id: str) -> Team:
        """Get a team by ID.

        Raises:
            TeamNotFoundError: If the team doesn't exist
        """
        query = """
        query($teamId: ID!) {
            teams(filter: { id: { eq: $teamId } }) {
                nodes {
                    id
                    name
                    key
                }
            }
        }
        """

        data = await self._graphql(query, {"teamId": team_id})
        nodes = (data.get("teams") or {}).get("nodes", [])
        if not nodes:
            raise TeamNotFoundError(f"No team found with ID {team_id}")

        node = nodes[0]
        return Team(id=node["id"], name=node.get("name") or "", key=node.get("key") or "")

    async def list_projects(
        self,
        team_id: str,
        exclude_names: Iterable[str] = (),
        states: Iterable[str] | None = None,
    ) -> list[Project]:
        """Get a team's projects, minus excluded names.

        Args:
            team_id: Linear team ID
            exclude_names: Case-insensitive substrings; matching projects are dropped
            states: Optional lifecycle states to keep (e.g. "started", "planned")

        Returns:
            List of Project objects

        Raises:
            TeamNotFoundError: If the team doesn't exist
        """
        team = await self.get_team(team_id)

        query = """
        query($teamId: String!, $first: Int!, $after: String) {
            team(id: $teamId) {
                projects(first: $first, after: $after) {
                    nodes {
                        id
                        name
                        url
                        state
                    }
        """ + PAGE_INFO + """
                }
            }
        }
        """

        nodes = await self._paginate(query, {"teamId": team.id}, ("team", "projects"))
        projects = [Project.from_node(node) for node in nodes]

        exclude_names = list(exclude_names)
        wanted_states = {state.lower() for state in states} if states else None
        kept = []
        for project in projects:
            if is_excluded(project.name, exclude_names):
                logger.debug("Excluding project %s", project.name)
                continue
            if wanted_states is not None and project.state.lower() not in wanted_states:
                logger.debug("Skipping project %s in state %s", project.name, project.state)
                continue
            kept.append(project)

        logger.info(
            "Found %d project(s) for team %s (%d kept)", len(projects), team.name, len(kept)
        )
        return kept

    async def _list_issues(self, issue_filter: dict[str, Any]) -> list[Issue]:
        query = """
        query($filter: IssueFilter!, $first: Int!, $after: String) {
            issues(filter: $filter, first: $first, after: $after) {
                nodes {
        """ + ISSUE_FIELDS + """
                }
        """ + PAGE_INFO + """
            }
        }
        """

        nodes = await self._paginate(query, {"filter": issue_filter}, ("issues",))
        return [Issue.from_node(node) for node in nodes]

    async def list_issues_for_project_and_cycle(
        self, project_id: str, cycle_id: str
    ) -> list[Issue]:
        """Get the issues of a project that belong to a cycle."""
        logger.debug("Listing issues for project %s in cycle %s", project_id, cycle_id)
        issues = await self._list_issues(
            {
                "cycle": {"id": {"eq": cycle_id}},
                "project": {"id": {"eq": project_id}},
            }
        )
        logger.info("Found %d issue(s) for project %s", len(issues), project_id)
        return issues

    async def list_recent_flagged_issues(
        self,
        team_id: str,
        since: datetime,
        predicate: str = FLAGGED_LABEL_OR_TRIAGE,
    ) -> list[Issue]:
        """Get bug-like issues created after a point in time.

        Args:
            team_id: Linear team ID
            since: Only issues created strictly after this are returned
            predicate: FLAGGED_LABEL_OR_TRIAGE (labelled "Bug" or triaged) or
                FLAGGED_TRIAGE_ONLY (triaged)

        Returns:
            List of Issue objects
        """
        triaged = {"triagedAt": {"null": False}}
        issue_filter: dict[str, Any] = {
            "team": {"id": {"eq": team_id}},
            "createdAt": {"gt": since.isoformat()},
        }
        if predicate == FLAGGED_LABEL_OR_TRIAGE:
            issue_filter["or"] = [{"labels": {"name": {"eq": BUG_LABEL}}}, triaged]
        elif predicate == FLAGGED_TRIAGE_ONLY:
            issue_filter.update(triaged)
        else:
            raise ValueError(f"Unknown flagged-issue predicate: {predicate}")

        issues = await self._list_issues(issue_filter)
        logger.info("Found %d flagged issue(s) since %s", len(issues), since.date())
        return issues

    async def resolve_issue_state(self, issue: Issue) -> WorkflowState | None:
        """Get an issue's workflow state, fetching it if it wasn't loaded.

        Args:
            issue: The issue

        Returns:
            WorkflowState, or None if the issue has no state
        """
        if issue.state is not None:
            return issue.state

        query = """
        query($id: String!) {
            issue(id: $id) {
                state {
                    id
                    name
                    type
                }
            }
        }
        """

        data = await self._graphql(query, {"id": issue.id})
        state_node = (data.get("issue") or {}).get("state")
        if not state_node:
            return None

        issue.state = WorkflowState.from_node(state_node)
        return issue.state
