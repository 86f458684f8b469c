"""Advice endpoint backed by the configured LLM provider."""

from fastapi import APIRouter, Depends

from api.dependencies import get_advice, get_current_user_id
from api.schemas import AdviceRequest
from llm.advice import AdviceService
from llm.prompts import AdviceResponse

router = APIRouter()


@router.post("/{round_id}/advice", response_model=AdviceResponse)
async def get_round_advice(
    round_id: str,
    req: AdviceRequest,
    user_id: str = Depends(get_current_user_id),
    advice: AdviceService = Depends(get_advice),
):
    return await advice.advise(user_id, round_id, req.question)
