"""Advisory-backed outfit recommendations with bounded retry."""

from __future__ import annotations

import logging
import math
import threading
import time
from typing import Callable

from app.core.config import Settings
from app.schemas.recommendation import RecommendationBundle, RecommendationPreferences, WeatherSnapshot
from app.services.advisory_errors import AdvisoryError, SnapshotValidationError
from app.services.gemini_client import AdvisoryTransport, GeminiCircuitOpenError, GeminiClient
from app.services.outfit_parser import parse_clothing_response
from app.services.outfit_prompt import build_clothing_prompt
from app.services.prompt_templates import CONNECTION_TEST_PROMPT


logger = logging.getLogger(__name__)

MIN_TEMPERATURE_C = -100
MAX_TEMPERATURE_C = 60


def validate_snapshot(snapshot: WeatherSnapshot | None) -> WeatherSnapshot:
    if snapshot is None:
        raise SnapshotValidationError("Weather data is required")

    temperature = snapshot.temperature_c
    if temperature is None:
        raise SnapshotValidationError("Temperature is required in weather data")
    if not math.isfinite(temperature) or not MIN_TEMPERATURE_C <= temperature <= MAX_TEMPERATURE_C:
        raise SnapshotValidationError(
            f"Temperature must be between {MIN_TEMPERATURE_C} and {MAX_TEMPERATURE_C} degrees Celsius"
        )

    if not snapshot.description or not snapshot.description.strip():
        raise SnapshotValidationError("Weather description is required")

    humidity = snapshot.humidity
    if humidity is not None and (not math.isfinite(humidity) or not 0 <= humidity <= 100):
        raise SnapshotValidationError("Humidity must be a number between 0 and 100")
    return snapshot


class AdvisoryClient:
    """Prompt -> transport -> parse, retrying transient failures.

    Retry delays are ``backoff_base_sec * 2 ** attempt`` for attempt 0, 1, 2...
    A ``deadline`` (``time.monotonic()`` value) stops retries that would run
    past it, and a set ``cancel_event`` aborts a pending backoff wait.
    """

    def __init__(
        self,
        transport: AdvisoryTransport,
        *,
        temperature: float = 0.7,
        max_output_tokens: int = 300,
        max_retries: int = 3,
        backoff_base_sec: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._transport = transport
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.max_retries = max_retries
        self.backoff_base_sec = backoff_base_sec
        self._sleep = sleep

    @classmethod
    def from_settings(cls, config: Settings) -> "AdvisoryClient | None":
        if not config.advisory_enabled:
            return None
        transport = GeminiClient(
            api_key=config.gemini_api_key or "",
            model_name=config.gemini_model,
            timeout=config.advisory_request_timeout_sec,
            failure_threshold=config.advisory_max_retries + 2,
        )
        return cls(
            transport,
            temperature=config.advisory_temperature,
            max_output_tokens=config.advisory_max_output_tokens,
            max_retries=config.advisory_max_retries,
            backoff_base_sec=config.advisory_backoff_base_sec,
        )

    def request(
        self,
        snapshot: WeatherSnapshot,
        preferences: RecommendationPreferences | None = None,
        *,
        deadline: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> RecommendationBundle:
        validate_snapshot(snapshot)
        prompt = build_clothing_prompt(snapshot, preferences)

        attempt = 0
        previous: AdvisoryError | None = None
        while True:
            try:
                return self._attempt(prompt)
            except GeminiCircuitOpenError as exc:
                # the breaker opened under us; report what actually went wrong
                if previous is not None:
                    raise previous from exc
                raise AdvisoryError.from_exception(exc) from exc
            except Exception as exc:  # pylint: disable=broad-except
                error = AdvisoryError.from_exception(exc)
                error.attempts = attempt + 1
                logger.warning("Advisory request failed (attempt %d): %s", attempt + 1, error)
                if attempt >= self.max_retries or not error.retryable:
                    if error is exc:
                        raise
                    raise error from exc
                if getattr(self._transport, "circuit_open", False):
                    logger.warning("Advisory circuit opened, giving up without another retry")
                    raise error from exc
                previous = error

            delay = self.backoff_base_sec * (2**attempt)
            if deadline is not None and time.monotonic() + delay >= deadline:
                raise AdvisoryError(
                    "Advisory request timed out before the next retry",
                    "timeout",
                    attempts=attempt + 1,
                ) from error
            logger.info("Retrying advisory request in %.1fs", delay)
            if self._pause(delay, cancel_event):
                raise AdvisoryError(
                    "Advisory request cancelled",
                    "timeout",
                    attempts=attempt + 1,
                ) from error
            attempt += 1

    def test_connection(self) -> str:
        try:
            reply = self._transport.generate_text(
                CONNECTION_TEST_PROMPT,
                temperature=self.temperature,
                max_output_tokens=10,
            )
        except Exception as exc:  # pylint: disable=broad-except
            raise AdvisoryError.from_exception(exc) from exc
        return reply.strip() or "Connection test completed"

    def _attempt(self, prompt: str) -> RecommendationBundle:
        raw_text = self._transport.generate_text(
            prompt,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
        )
        if not raw_text or not raw_text.strip():
            raise AdvisoryError("Empty response from advisory service", "malformed_response", retryable=True)
        logger.debug("Advisory raw response: %s", raw_text)

        bundle = parse_clothing_response(raw_text)
        if not bundle.essentials or not bundle.footwear:
            raise AdvisoryError(
                "Malformed advisory response: missing essentials or footwear",
                "malformed_response",
                retryable=True,
            )
        return bundle

    def _pause(self, delay: float, cancel_event: threading.Event | None) -> bool:
        if cancel_event is None:
            self._sleep(delay)
            return False
        return cancel_event.wait(delay)


__all__ = ["AdvisoryClient", "validate_snapshot"]
