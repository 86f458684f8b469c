import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ================================================================
# Response schema
# ================================================================

class AdviceResponse(BaseModel):
    """Structured advice returned by the model."""
    advice: str
    recommended_club: Optional[str] = None
    key_points: List[str] = Field(default_factory=list)


# ================================================================
# Prompt builders
# ================================================================

_PREAMBLE = "You are an experienced, encouraging golf caddie."

_GUIDELINES = """
GUIDELINES:
- Base your answer on the round context below; do not invent hole details that are not present.
- Distances in the context are meters. Quote distances to the golfer in yards.
- Keep the advice to two or three sentences a golfer can act on before the next shot.
- If position data is marked low_accuracy, say the distance is approximate."""


def build_advice_prompt(question: str, context: Dict[str, Any]) -> str:
    """Prompt for one advice request."""
    return (
        f"{_PREAMBLE}\n"
        f"{_GUIDELINES}\n\n"
        f"ROUND CONTEXT (JSON):\n{json.dumps(context, indent=2, default=str)}\n\n"
        f"GOLFER'S QUESTION:\n{question.strip()}"
    )
