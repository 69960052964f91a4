from __future__ import annotations

import logging

import requests

from app.core.config import Settings
from app.schemas.recommendation import WeatherSnapshot


logger = logging.getLogger(__name__)

MS_TO_KMH = 3.6


class WeatherClient:
    """Lightweight wrapper around OpenWeather current weather API."""

    def __init__(self, config: Settings, session: requests.Session | None = None) -> None:
        self.base_url = config.weather_api_base_url.rstrip("/")
        self.api_key = config.weather_api_key
        self.lang = config.weather_lang
        self.timeout = config.weather_timeout_sec
        self.session = session or requests.Session()

    def fetch_current(self, city: str | None, country_code: str | None = None) -> WeatherSnapshot | None:
        """Return a weather snapshot or None if unavailable."""
        if not self.api_key:
            logger.debug("Weather API key missing, skipping weather lookup")
            return None
        query = city or country_code
        if not query:
            return None
        if city and country_code:
            query = f"{city},{country_code}"
        params = {
            "q": query,
            "appid": self.api_key,
            "units": "metric",
            "lang": self.lang,
        }
        try:
            resp = self.session.get(
                f"{self.base_url}/weather",
                params=params,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Failed to fetch weather data: %s", exc)
            return None

        weather_entries = payload.get("weather") or []
        weather_entry = weather_entries[0] if weather_entries else {}
        main_block = payload.get("main") or {}
        wind_block = payload.get("wind") or {}

        wind_speed = wind_block.get("speed")
        if wind_speed is not None:
            wind_speed = round(wind_speed * MS_TO_KMH, 1)

        return WeatherSnapshot(
            temperature_c=main_block.get("temp"),
            description=weather_entry.get("description") or weather_entry.get("main"),
            humidity=main_block.get("humidity"),
            wind_speed=wind_speed,
            location=payload.get("name") or city,
        )

    def close(self) -> None:
        self.session.close()


__all__ = ["WeatherClient"]
