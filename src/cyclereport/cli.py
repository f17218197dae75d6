"""CLI entry point for cycle-report.

Prints a markdown status report for a Linear team to stdout. Logs go to
stderr.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

import click
import openai

from cyclereport import __version__
from cyclereport.config import (
    BUG_PREDICATE_CHOICES,
    EXCLUDE_FILTER_CHOICES,
    ON_ENHANCEMENT_ERROR_CHOICES,
    ConfigError,
    ReportConfig,
    load_config,
)
from cyclereport.enhancer import PassthroughEnhancer, TitleEnhancer
from cyclereport.logging import setup_logging
from cyclereport.report import EnhancementAbortedError, ReportAssembler
from cyclereport.tracker import LinearClient

logger = logging.getLogger("cyclereport.cli")


def build_tracker(config: ReportConfig) -> LinearClient:
    return LinearClient(api_key=config.linear_api_key)


def build_enhancer(config: ReportConfig) -> TitleEnhancer | PassthroughEnhancer:
    """Create the title enhancer, or a passthrough when enhancement is off."""
    if not config.enhance_titles:
        return PassthroughEnhancer()
    client = openai.AsyncOpenAI(api_key=config.openai_api_key)
    return TitleEnhancer(client, model=config.openai_model)


async def run_report(config: ReportConfig, today: date | None = None) -> None:
    """Build the clients, write the report and release the clients."""
    tracker = build_tracker(config)
    enhancer = build_enhancer(config)
    try:
        async with tracker:
            await ReportAssembler(tracker, enhancer, config).run(today)
    finally:
        await enhancer.aclose()


@click.command()
@click.version_option(version=__version__, prog_name="cycle-report")
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to a .env file (default: search from the current directory)",
)
@click.option(
    "--enhance/--no-enhance",
    default=None,
    help="Rewrite issue titles with the language model (default: ENHANCE_TITLES)",
)
@click.option(
    "--on-enhancement-error",
    type=click.Choice(ON_ENHANCEMENT_ERROR_CHOICES),
    default=None,
    help="Abort the report or keep original titles when the model call fails",
)
@click.option(
    "--exclude-at",
    "exclude_filter_applied_at",
    type=click.Choice(EXCLUDE_FILTER_CHOICES),
    default=None,
    help="Apply project exclusions when fetching projects or only in the Next Week section",
)
@click.option(
    "--bugs",
    "bug_list_predicate",
    type=click.Choice(BUG_PREDICATE_CHOICES),
    default=None,
    help="Which recent issues count as bugs",
)
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v info, -vv debug)")
def main(
    env_file: Path | None,
    enhance: bool | None,
    on_enhancement_error: str | None,
    exclude_filter_applied_at: str | None,
    bug_list_predicate: str | None,
    verbose: int,
) -> None:
    """Print the weekly status report for a Linear team."""
    level = {0: None, 1: "INFO"}.get(verbose, "DEBUG")
    setup_logging(level=level)

    try:
        config = load_config(
            env_file=env_file,
            enhance_titles=enhance,
            on_enhancement_error=on_enhancement_error,
            exclude_filter_applied_at=exclude_filter_applied_at,
            bug_list_predicate=bug_list_predicate,
        )
    except ConfigError as e:
        raise click.UsageError(str(e)) from e

    try:
        asyncio.run(run_report(config))
    except EnhancementAbortedError as e:
        logger.error("Aborting report: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
