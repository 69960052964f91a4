from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict  # type: ignore[import-not-found]


class Settings(BaseSettings):
    app_env: str = "local"
    app_name: str = "outfitcast"
    port: int = 8000

    cors_origins: list[str] | str = "*"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> list[str] | str:
        if isinstance(v, str):
            if v == "*":
                return "*"
            if "," in v:
                return [origin.strip() for origin in v.split(",") if origin.strip()]
            return [v.strip()] if v.strip() else "*"
        if isinstance(v, list):
            return v
        return "*"

    # Advisory (Gemini) service
    gemini_model: str = "models/gemini-2.5-flash-lite"
    gemini_api_key: str | None = None
    advisory_temperature: float = 0.7
    advisory_max_output_tokens: int = 300
    advisory_request_timeout_sec: float = 10.0
    advisory_max_retries: int = 3
    advisory_backoff_base_sec: float = 1.0
    advisory_workers: int = 4

    # Recommendation resolution
    recommendation_cache_ttl_seconds: int = 60 * 10
    recommendation_timeout_ms: int = 30_000

    # Current weather lookup
    weather_api_key: str | None = None
    weather_api_base_url: str = "https://api.openweathermap.org/data/2.5"
    weather_lang: str = "en"
    weather_timeout_sec: float = 5.0

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    @property
    def advisory_enabled(self) -> bool:
        return bool(self.gemini_api_key)


settings = Settings()
