"""Title Enhancement - Rewrites issue titles with a language model."""

from cyclereport.enhancer.models import TitleResult
from cyclereport.enhancer.titles import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    PassthroughEnhancer,
    TitleEnhancer,
    build_prompt,
)

__all__ = [
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_TEMPERATURE",
    "PassthroughEnhancer",
    "TitleEnhancer",
    "TitleResult",
    "build_prompt",
]
