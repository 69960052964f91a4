"""Prompt construction for the clothing advisory service."""

from __future__ import annotations

from app.schemas.recommendation import RecommendationPreferences, WeatherSnapshot
from app.services.prompt_templates import CLOTHING_PROMPT_TEMPLATE


def build_clothing_prompt(
    snapshot: WeatherSnapshot,
    preferences: RecommendationPreferences | None = None,
) -> str:
    preferences = preferences or RecommendationPreferences()
    unit = preferences.temperature_unit
    temperature = snapshot.temperature_c
    if temperature is not None and unit == "Fahrenheit":
        temperature = temperature * 9 / 5 + 32

    wind_line = f"\n- Wind Speed: {_format_number(snapshot.wind_speed)} km/h" if snapshot.wind_speed else ""
    location_line = f"\n- Location: {snapshot.location}" if snapshot.location else ""
    humidity = snapshot.humidity if snapshot.humidity is not None else 50

    return CLOTHING_PROMPT_TEMPLATE.format(
        temperature=_format_number(temperature),
        unit=unit,
        description=snapshot.description or "",
        humidity=_format_number(humidity),
        wind_line=wind_line,
        location_line=location_line,
    )


def _format_number(value: float | None) -> str:
    if value is None:
        return "unknown"
    rounded = round(float(value), 1)
    if rounded.is_integer():
        return str(int(rounded))
    return str(rounded)


__all__ = ["build_clothing_prompt"]
