from __future__ import annotations

from fastapi import Request

from app.services.recommendation_resolver import RecommendationResolver
from app.services.weather_client import WeatherClient


def get_resolver(request: Request) -> RecommendationResolver:
    return request.app.state.resolver


def get_weather_client(request: Request) -> WeatherClient:
    return request.app.state.weather_client
