"""AI-assisted comparison of two cars under /api/gemini."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dependencies import get_gemini_client
from infrastructure.ai.gemini import GeminiClient
from schemas.dto.requests.car import CompareCarsRequest
from schemas.dto.responses.car import (
    ComparisonResponse,
    GeminiModelInfo,
    GeminiModelsResponse,
)

router = APIRouter(prefix="/api/gemini", tags=["comparison"])


@router.post("/compare-cars", response_model=ComparisonResponse)
async def compare_cars(
    payload: CompareCarsRequest,
    gemini: GeminiClient = Depends(get_gemini_client),
) -> ComparisonResponse:
    return ComparisonResponse(comparison=await gemini.compare_cars(payload.car_a, payload.car_b))


@router.get("/models", response_model=GeminiModelsResponse)
async def list_models(
    gemini: GeminiClient = Depends(get_gemini_client),
) -> GeminiModelsResponse:
    total, models = await gemini.list_models()
    return GeminiModelsResponse(
        total=total,
        generate_content_models=[GeminiModelInfo.from_api(m) for m in models],
    )
