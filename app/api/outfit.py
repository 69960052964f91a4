from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_resolver, get_weather_client
from app.schemas.recommendation import (
    OutfitRecommendationRequest,
    OutfitRecommendationResponse,
    RecommendationBundle,
    RecommendationPreferences,
    TemperatureUnit,
)
from app.services.recommendation_resolver import RecommendationResolver
from app.services.weather_client import WeatherClient

router = APIRouter(prefix="/outfit", tags=["outfit"])

ADVISORY_NOTICE = "AI-powered recommendation"
QUICK_NOTICE = "Quick recommendation"


def _respond(bundle: RecommendationBundle) -> OutfitRecommendationResponse:
    notice = ADVISORY_NOTICE if bundle.is_advisory else QUICK_NOTICE
    return OutfitRecommendationResponse(recommendation=bundle, notice=notice)


@router.post("/recommendation", response_model=OutfitRecommendationResponse)
def recommend_outfit(
    payload: OutfitRecommendationRequest,
    resolver: RecommendationResolver = Depends(get_resolver),
) -> OutfitRecommendationResponse:
    """Recommend clothing for the supplied weather snapshot.

    Always answers with a usable recommendation; when the AI service fails the
    rule-based bundle is returned with a short explanation in ``message``.
    """
    bundle = resolver.resolve(payload.weather, payload.preferences, timeout_ms=payload.timeout_ms)
    return _respond(bundle)


@router.get("/current", response_model=OutfitRecommendationResponse)
def recommend_for_current_weather(
    city: str = Query(..., min_length=1),
    country: str | None = Query(None, min_length=2, max_length=2),
    unit: TemperatureUnit = Query("Celsius"),
    use_advisory: bool = Query(True),
    resolver: RecommendationResolver = Depends(get_resolver),
    weather_client: WeatherClient = Depends(get_weather_client),
) -> OutfitRecommendationResponse:
    snapshot = weather_client.fetch_current(city, country)
    if snapshot is None:
        raise HTTPException(status_code=503, detail="weather_unavailable")
    preferences = RecommendationPreferences(temperature_unit=unit, use_advisory=use_advisory)
    return _respond(resolver.resolve(snapshot, preferences))
