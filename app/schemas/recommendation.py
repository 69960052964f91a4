from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Provenance = Literal["rule-based", "advisory", "cached-advisory", "fallback-after-error"]
TemperatureUnit = Literal["Celsius", "Fahrenheit"]

ADVISORY_PROVENANCES: frozenset[str] = frozenset({"advisory", "cached-advisory"})


def utcnow() -> datetime:
    return datetime.now(UTC)


class WeatherSnapshot(BaseModel):
    """Current conditions as supplied by the weather source.

    Ranges are checked by the advisory client, not here, so an out-of-range
    snapshot can still be answered by the rule engine.
    """

    model_config = ConfigDict(frozen=True)

    temperature_c: float | None = None
    description: str | None = None
    humidity: float | None = 50
    wind_speed: float | None = None
    location: str | None = None


class RecommendationPreferences(BaseModel):
    model_config = ConfigDict(frozen=True)

    temperature_unit: TemperatureUnit = "Celsius"
    use_advisory: bool = True


class RecommendationBundle(BaseModel):
    essentials: list[str] = Field(default_factory=list)
    footwear: list[str] = Field(default_factory=list)
    accessories: list[str] = Field(default_factory=list)
    tip: str = ""
    provenance: Provenance = "rule-based"
    generated_at: datetime = Field(default_factory=utcnow)
    raw_response: str | None = None
    message: str | None = None

    @property
    def is_advisory(self) -> bool:
        return self.provenance in ADVISORY_PROVENANCES


class OutfitRecommendationRequest(BaseModel):
    weather: WeatherSnapshot
    preferences: RecommendationPreferences = Field(default_factory=RecommendationPreferences)
    timeout_ms: int | None = Field(None, ge=1, le=120_000)


class OutfitRecommendationResponse(BaseModel):
    recommendation: RecommendationBundle
    notice: str


__all__ = [
    "ADVISORY_PROVENANCES",
    "OutfitRecommendationRequest",
    "OutfitRecommendationResponse",
    "Provenance",
    "RecommendationBundle",
    "RecommendationPreferences",
    "TemperatureUnit",
    "WeatherSnapshot",
]
