from .advice import (
    AdviceProvider,
    AdviceService,
    GeminiAdviceProvider,
    NullAdviceProvider,
)
from .context import build_round_context
from .prompts import AdviceResponse, build_advice_prompt

__all__ = [
    "AdviceProvider",
    "AdviceService",
    "GeminiAdviceProvider",
    "NullAdviceProvider",
    "build_round_context",
    "AdviceResponse",
    "build_advice_prompt",
]
