"""Shared pytest fixtures and configuration."""

import pytest

from cyclereport.config import ReportConfig
from cyclereport.tracker import Issue, Project


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")
    config.addinivalue_line("markers", "real: calls the live Linear API (local only)")


# Shared fixtures


@pytest.fixture
def report_config() -> ReportConfig:
    """A config with enhancement enabled and no exclusions."""
    return ReportConfig(
        linear_api_key="lin_api_test",
        team_id="team-1",
        team_name="Platform",
        team_url="https://linear.app/acme/team/PLT",
        openai_api_key="sk-test",
    )


@pytest.fixture
def sample_issue() -> Issue:
    """A single issue without a preloaded state."""
    return Issue(
        id="issue-1",
        identifier="PLT-1",
        title="UI bug on radio control",
        url="https://linear.app/acme/issue/PLT-1",
        description="Radio control does not toggle",
    )


@pytest.fixture
def sample_project() -> Project:
    return Project(
        id="project-1",
        name="Builder",
        url="https://linear.app/acme/project/builder",
        state="started",
    )
