import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from database import DatabaseManager
from llm import (
    AdviceResponse,
    AdviceService,
    GeminiAdviceProvider,
    NullAdviceProvider,
    build_advice_prompt,
    build_round_context,
)
from models import (
    EnrichedLocationFix,
    HoleScore,
    PositionOnHole,
    Round,
    RoundStatus,
    ShotEvent,
    ShotSource,
)
from services import Forbidden, NotFound, RoundLifecycleService, ValidationError

from conftest import HOLE1_PIN, HOLE1_TEE, T0, make_course

USER = "user-1"


def _round(course, **overrides):
    values = dict(
        id="r1", user_id=USER, course_id=course.id,
        status=RoundStatus.IN_PROGRESS, current_hole=2,
        total_score=5, total_putts=2,
    )
    values.update(overrides)
    return Round(**values)


def _fix(position=PositionOnHole.FAIRWAY, low_accuracy=False):
    return EnrichedLocationFix(
        user_id=USER, round_id="r1", latitude=55.0226, longitude=-7.2452,
        accuracy_meters=5.0, recorded_at=T0, hole_number=2, detected_hole=2,
        position_on_hole=position, distance_to_pin_meters=123.456,
        distance_to_tee_meters=10.04, low_accuracy=low_accuracy,
    )


def _shot(hole, number, source=ShotSource.GPS):
    return ShotEvent(
        round_id="r1", hole_number=hole, shot_number=number,
        start_location=HOLE1_TEE, end_location=HOLE1_PIN,
        distance_meters=201.26, lie_condition=PositionOnHole.TEE,
        estimated_club="3-Wood", source=source,
    )


class FakeModels:
    def __init__(self, payload):
        self.payload = payload
        self.calls = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(text=json.dumps(self.payload))


class FakeProvider:
    def __init__(self):
        self.calls = []

    async def get_advice(self, question, context):
        self.calls.append((question, context))
        return AdviceResponse(advice="Lay up short of the burn.", recommended_club="7-Iron")


# ================================================================
# Context and prompt
# ================================================================

def test_build_round_context():
    course = make_course()
    scores = [HoleScore(round_id="r1", hole_number=1, score=5, putts=2)]

    context = build_round_context(
        _round(course), course, scores, _fix(), [_shot(1, 1), _shot(2, 1)]
    )

    assert context["round"]["current_hole"] == 2
    assert context["round"]["holes_scored"] == 1
    assert context["round"]["to_par"] == 1
    assert context["course"]["name"] == course.name
    assert context["course"]["par"] is None
    assert context["hole"] == {"number": 2, "par": 4}
    assert context["position"]["position_on_hole"] == "fairway"
    assert context["position"]["distance_to_pin_meters"] == 123.5
    assert context["shots_this_hole"] == [
        {"shot_number": 1, "distance_meters": 201.3, "lie": "tee", "club": "3-Wood"}
    ]
    json.dumps(context)


def test_build_round_context_without_course_or_fix():
    course = make_course()
    context = build_round_context(_round(course, total_score=None), None, [])

    assert context["course"] == {"name": None, "par": None}
    assert context["hole"]["par"] is None
    assert context["round"]["to_par"] is None
    assert context["position"] is None
    assert context["shots_this_hole"] == []


def test_build_advice_prompt_embeds_context_and_question():
    prompt = build_advice_prompt("  What club from here? ", {"hole": {"number": 3}})

    assert "ROUND CONTEXT (JSON)" in prompt
    assert '"number": 3' in prompt
    assert prompt.endswith("What club from here?")
    assert "yards" in prompt


# ================================================================
# Providers
# ================================================================

@pytest.mark.asyncio
async def test_gemini_provider_parses_structured_response():
    models = FakeModels({
        "advice": "Take one more club into the wind.",
        "recommended_club": "6-Iron",
        "key_points": ["wind", "front pin"],
    })
    client = SimpleNamespace(aio=SimpleNamespace(models=models))
    provider = GeminiAdviceProvider(client=client, model="test-model")

    result = await provider.get_advice("Which club?", {"hole": {"number": 1}})

    assert result.recommended_club == "6-Iron"
    assert result.key_points == ["wind", "front pin"]
    call = models.calls[0]
    assert call["model"] == "test-model"
    assert "Which club?" in call["contents"][0]
    assert call["config"].response_mime_type == "application/json"


def test_gemini_provider_requires_api_key(monkeypatch):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.setattr("llm.advice.load_dotenv", lambda: None)
    with pytest.raises(EnvironmentError):
        GeminiAdviceProvider()


@pytest.mark.asyncio
async def test_null_provider_returns_placeholder():
    result = await NullAdviceProvider().get_advice("Anything?", {})
    assert result.advice
    assert result.recommended_club is None


# ================================================================
# Advice service
# ================================================================

@pytest.fixture
def db(course):
    manager = DatabaseManager.in_memory()
    manager.courses.add_course(course)
    return manager


@pytest.mark.asyncio
async def test_advise_passes_round_context_to_provider(db, course):
    round_ = await RoundLifecycleService(db).start_round(USER, course.id)
    await db.shots.add_shots([
        _shot(1, 1).model_copy(update={"round_id": round_.id}),
        _shot(1, 1, ShotSource.SENSOR).model_copy(update={"round_id": round_.id}),
    ])
    provider = FakeProvider()

    result = await AdviceService(db, provider).advise(USER, round_.id, "Driver or 3-wood?")

    assert result.recommended_club == "7-Iron"
    question, context = provider.calls[0]
    assert question == "Driver or 3-wood?"
    assert context["round"]["current_hole"] == 1
    assert context["position"] is None
    assert len(context["shots_this_hole"]) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("question", ["", "   ", "x" * 1001])
async def test_advise_rejects_bad_questions(db, course, question):
    round_ = await RoundLifecycleService(db).start_round(USER, course.id)
    provider = FakeProvider()

    with pytest.raises(ValidationError):
        await AdviceService(db, provider).advise(USER, round_.id, question)
    assert provider.calls == []


@pytest.mark.asyncio
async def test_advise_checks_ownership(db, course):
    round_ = await RoundLifecycleService(db).start_round(USER, course.id)
    service = AdviceService(db, FakeProvider())

    with pytest.raises(Forbidden):
        await service.advise("user-2", round_.id, "Where do I aim?")
    with pytest.raises(NotFound):
        await service.advise(USER, "missing", "Where do I aim?")


@pytest.mark.asyncio
async def test_advise_works_against_mocked_repositories():
    course = make_course()
    db = MagicMock()
    db.rounds.get_round = AsyncMock(return_value=_round(course))
    db.rounds.get_hole_scores = AsyncMock(return_value=[])
    db.courses.get_course = AsyncMock(return_value=course)
    db.locations.list_fixes = AsyncMock(return_value=[_fix(low_accuracy=True)])
    db.shots.list_shots = AsyncMock(return_value=[])

    context = await AdviceService(db).context_for(USER, "r1")

    assert context["position"]["low_accuracy"] is True
    db.locations.list_fixes.assert_awaited_once_with("r1", limit=1)
    db.shots.list_shots.assert_awaited_once_with("r1", hole_number=2)
