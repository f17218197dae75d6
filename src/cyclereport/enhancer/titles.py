"""Title enhancement through the OpenAI chat completions API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import openai

from cyclereport.enhancer.models import TitleResult
from cyclereport.logging import sanitize_for_log, truncate_output

if TYPE_CHECKING:
    from cyclereport.tracker import Issue

logger = logging.getLogger("cyclereport.enhancer")

DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_MAX_TOKENS = 100
DEFAULT_TEMPERATURE = 0.9

EXAMPLES = [
    ("[UI] Import callouts for errors/warnings", "Implement callouts for import error/warnings"),
    ("Live Embed as Default release note modal", "Show Live Embed modal"),
    ("UI bug on radio control in LWT builder block", "Fix radio control in LWT builder block"),
]


def build_prompt(issue: Issue) -> str:
    """Build the rewrite prompt for an issue.

    Args:
        issue: The issue whose title and description are embedded.

    Returns:
        Prompt string for the language model.
    """
    prompt_parts = [
        "Give me a title for this Linear ticket that is about the same size "
        "(one line is preferred) but it's more readable and understandable for a human. "
        'Try to make it an "action" we do, for example:',
        "",
    ]
    prompt_parts.extend(f'"{before}" should be "{after}".' for before, after in EXAMPLES)
    prompt_parts.extend(
        [
            "",
            'Please reply only with the generated title, no boilerplate, no chat, no "Title:".',
            "",
            f"Title: {issue.title}",
            f"Description: {issue.description}",
        ]
    )
    return "\n".join(prompt_parts)


class TitleEnhancer:
    """Rewrites issue titles into short, action-oriented sentences.

    Makes one chat completion per issue. Call failures are reported through
    the returned TitleResult, never raised, so the caller decides whether to
    abort or fall back to the original title.
    """

    def __init__(
        self,
        client: openai.AsyncOpenAI,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> None:
        """Initialize the enhancer.

        Args:
            client: OpenAI async client.
            model: Chat model name.
            max_tokens: Cap on generated tokens.
            temperature: Sampling temperature.
        """
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def enhance_title(self, issue: Issue) -> TitleResult:
        """Ask the model for a more readable title.

        Args:
            issue: The issue to retitle.

        Returns:
            TitleResult. On an empty reply the original title is kept.
        """
        prompt = build_prompt(issue)
        logger.debug("Enhancing title of %s (%d char prompt)", issue.identifier, len(prompt))

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                n=1,
            )
        except openai.OpenAIError as e:
            message = sanitize_for_log(str(e))
            logger.error("Title enhancement failed for %s: %s", issue.identifier, message)
            return TitleResult(success=False, title=issue.title, error=message)

        content = None
        if response.choices:
            content = response.choices[0].message.content
        if content:
            content = content.replace("\n", "", 1)

        if not content:
            logger.info("Empty title from model for %s, keeping original", issue.identifier)
            return TitleResult(success=True, title=issue.title)

        logger.debug(
            "Title for %s: %r -> %r", issue.identifier, issue.title, truncate_output(content)
        )
        return TitleResult(success=True, title=content, enhanced=True)

    async def aclose(self) -> None:
        """Close the underlying OpenAI client."""
        await self.client.close()


class PassthroughEnhancer:
    """Enhancer that keeps every title as is."""

    async def enhance_title(self, issue: Issue) -> TitleResult:
        return TitleResult(success=True, title=issue.title)

    async def aclose(self) -> None:
        pass
