"""Configuration loading for cycle-report.

All settings come from environment variables, optionally seeded from a
``.env`` file. They are read and validated once at startup.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

# Where the project-name exclusion filter is applied
EXCLUDE_AT_PROJECT_FETCH = "project_fetch"
EXCLUDE_AT_RENDER_TIME = "render_time"
EXCLUDE_FILTER_CHOICES = (EXCLUDE_AT_PROJECT_FETCH, EXCLUDE_AT_RENDER_TIME)

# Which issues count as bugs in the "Ops, Bugs & Incidents" section
BUGS_LABEL_OR_TRIAGE = "label_or_triage"
BUGS_TRIAGE_ONLY = "triage_only"
BUG_PREDICATE_CHOICES = (BUGS_LABEL_OR_TRIAGE, BUGS_TRIAGE_ONLY)

# What to do when the language model call fails
ON_ERROR_ABORT = "abort"
ON_ERROR_FALLBACK = "fallback"
ON_ENHANCEMENT_ERROR_CHOICES = (ON_ERROR_ABORT, ON_ERROR_FALLBACK)

DEFAULT_OPENAI_MODEL = "gpt-3.5-turbo"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


@dataclass(frozen=True)
class ReportConfig:
    """Settings for one report run."""

    linear_api_key: str
    team_id: str
    team_name: str = ""
    team_url: str = ""
    exclude_project_names: tuple[str, ...] = ()
    project_states: tuple[str, ...] = ()
    exclude_filter_applied_at: str = EXCLUDE_AT_PROJECT_FETCH
    bug_list_predicate: str = BUGS_LABEL_OR_TRIAGE
    enhance_titles: bool = True
    on_enhancement_error: str = ON_ERROR_ABORT
    openai_api_key: str | None = field(default=None, repr=False)
    openai_model: str = DEFAULT_OPENAI_MODEL

    def __post_init__(self) -> None:
        _check_choice(
            "EXCLUDE_FILTER_APPLIED_AT", self.exclude_filter_applied_at, EXCLUDE_FILTER_CHOICES
        )
        _check_choice("BUG_LIST_PREDICATE", self.bug_list_predicate, BUG_PREDICATE_CHOICES)
        _check_choice(
            "ON_ENHANCEMENT_ERROR", self.on_enhancement_error, ON_ENHANCEMENT_ERROR_CHOICES
        )
        if self.enhance_titles and not self.openai_api_key:
            raise ConfigError("OPENAI_API_KEY is required when title enhancement is enabled")

    @classmethod
    def from_env(cls, env: Mapping[str, str], **overrides: Any) -> ReportConfig:
        """Create config from environment-style key/value pairs.

        Args:
            env: Mapping of variable names to values.
            overrides: Field values that take precedence over the environment.
                None values are ignored.

        Returns:
            Parsed configuration object.

        Raises:
            ConfigError: If required variables are missing or values are invalid.
        """
        required = ["LINEAR_API_KEY", "TEAM_ID"]
        missing = [key for key in required if not env.get(key, "").strip()]
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        overrides = {key: value for key, value in overrides.items() if value is not None}
        if "enhance_titles" not in overrides:
            overrides["enhance_titles"] = parse_bool(
                "ENHANCE_TITLES", env.get("ENHANCE_TITLES"), default=True
            )

        values: dict[str, Any] = dict(
            linear_api_key=env["LINEAR_API_KEY"].strip(),
            team_id=env["TEAM_ID"].strip(),
            team_name=env.get("TEAM_NAME", "").strip(),
            team_url=env.get("TEAM_URL", "").strip(),
            exclude_project_names=split_list(env.get("EXCLUDE_PROJECT_NAMES")),
            project_states=split_list(env.get("PROJECT_STATES")),
            exclude_filter_applied_at=env.get(
                "EXCLUDE_FILTER_APPLIED_AT", EXCLUDE_AT_PROJECT_FETCH
            ).strip(),
            bug_list_predicate=env.get("BUG_LIST_PREDICATE", BUGS_LABEL_OR_TRIAGE).strip(),
            on_enhancement_error=env.get("ON_ENHANCEMENT_ERROR", ON_ERROR_ABORT).strip(),
            openai_api_key=env.get("OPENAI_API_KEY", "").strip() or None,
            openai_model=env.get("OPENAI_MODEL", "").strip() or DEFAULT_OPENAI_MODEL,
        )
        values.update(overrides)
        return cls(**values)


def split_list(value: str | None) -> tuple[str, ...]:
    """Split a semicolon-delimited value into trimmed, non-empty items."""
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(";") if part.strip())


def parse_bool(name: str, value: str | None, default: bool) -> bool:
    """Parse a boolean environment value."""
    if value is None or not value.strip():
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _check_choice(name: str, value: str, choices: tuple[str, ...]) -> None:
    if value not in choices:
        raise ConfigError(f"{name} must be one of {', '.join(choices)}, got {value!r}")


def load_config(
    env: Mapping[str, str] | None = None,
    env_file: Path | str | None = None,
    **overrides: Any,
) -> ReportConfig:
    """Load report configuration.

    Args:
        env: Explicit variables to read. When omitted, an optional ``.env``
             file is loaded into the process environment first (existing
             variables win) and ``os.environ`` is used.
        env_file: Path to a ``.env`` file. Defaults to searching from the
                  current directory.
        overrides: Field values that take precedence over the environment.

    Returns:
        Validated configuration.

    Raises:
        ConfigError: If the env file doesn't exist or the configuration is invalid.
    """
    if env is None:
        if env_file is not None:
            env_file = Path(env_file)
            if not env_file.exists():
                raise ConfigError(f"Environment file not found: {env_file}")
            load_dotenv(env_file)
        else:
            load_dotenv(find_dotenv(usecwd=True))
        env = os.environ

    return ReportConfig.from_env(env, **overrides)
