import logging
import os
from typing import Any, Dict, Optional, Protocol

from dotenv import load_dotenv
from google import genai
from google.genai import types

from llm.context import build_round_context
from llm.prompts import AdviceResponse, build_advice_prompt
from services.errors import Forbidden, NotFound, ValidationError
from tracking.shot_tracker import resolve_shots

logger = logging.getLogger(__name__)

GEMINI_MODEL = "gemini-2.5-flash"
MAX_QUESTION_LENGTH = 1000


class AdviceProvider(Protocol):
    """Anything that turns a question plus round context into advice."""

    async def get_advice(self, question: str, context: Dict[str, Any]) -> AdviceResponse:
        ...


class NullAdviceProvider:
    """Placeholder used when no LLM is configured."""

    async def get_advice(self, question: str, context: Dict[str, Any]) -> AdviceResponse:
        return AdviceResponse(
            advice="Advice is not available right now. Play your usual shot.",
        )


def _create_client() -> genai.Client:
    load_dotenv()
    api_key = os.environ.get("GOOGLE_API_KEY")
    if not api_key:
        raise EnvironmentError(
            "GOOGLE_API_KEY environment variable is not set. "
            "Get an API key at https://aistudio.google.com/apikey"
        )
    return genai.Client(api_key=api_key)


class GeminiAdviceProvider:
    """Advice from Gemini, parsed into ``AdviceResponse`` via a JSON schema."""

    def __init__(self, client: Optional[genai.Client] = None, model: str = GEMINI_MODEL):
        self._client = client or _create_client()
        self._model = model

    async def get_advice(self, question: str, context: Dict[str, Any]) -> AdviceResponse:
        response = await self._client.aio.models.generate_content(
            model=self._model,
            contents=[build_advice_prompt(question, context)],
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_json_schema=AdviceResponse.model_json_schema(),
            ),
        )
        return AdviceResponse.model_validate_json(response.text)


class AdviceService:
    """Collects round context and asks the configured provider."""

    def __init__(self, db, provider: Optional[AdviceProvider] = None):
        self._rounds = db.rounds
        self._courses = db.courses
        self._locations = db.locations
        self._shots = db.shots
        self._provider = provider or NullAdviceProvider()

    async def context_for(self, user_id: str, round_id: str) -> Dict[str, Any]:
        round_ = await self._rounds.get_round(round_id)
        if round_ is None:
            raise NotFound(f"Round {round_id} not found")
        if round_.user_id != user_id:
            raise Forbidden(f"Round {round_id} belongs to another user")

        course = await self._courses.get_course(round_.course_id)
        scores = await self._rounds.get_hole_scores(round_id)
        recent = await self._locations.list_fixes(round_id, limit=1)
        shots = resolve_shots(
            await self._shots.list_shots(round_id, hole_number=round_.current_hole)
        )
        return build_round_context(
            round_, course, scores, recent[-1] if recent else None, shots
        )

    async def advise(self, user_id: str, round_id: str, question: str) -> AdviceResponse:
        question = (question or "").strip()
        if not question:
            raise ValidationError("Question cannot be empty")
        if len(question) > MAX_QUESTION_LENGTH:
            raise ValidationError(
                f"Question is longer than {MAX_QUESTION_LENGTH} characters"
            )
        context = await self.context_for(user_id, round_id)
        logger.info("Requesting advice for round %s hole %s",
                    round_id, context["round"]["current_hole"])
        return await self._provider.get_advice(question, context)
