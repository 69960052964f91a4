"""Thin wrapper around the Gemini API with basic circuit breaking."""

from __future__ import annotations

import threading
import time
from typing import Protocol

import google.generativeai as genai
from google.generativeai import types as genai_types


class GeminiClientError(RuntimeError):
    """Base exception for Gemini client failures."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GeminiCircuitOpenError(GeminiClientError):
    """Raised when the circuit breaker is open."""


class AdvisoryTransport(Protocol):
    def generate_text(
        self,
        prompt: str,
        *,
        temperature: float,
        max_output_tokens: int,
    ) -> str: ...


class GeminiClient:
    circuit_cooldown_sec = 30.0

    def __init__(
        self,
        api_key: str,
        model_name: str,
        timeout: float,
        failure_threshold: int = 3,
    ) -> None:
        if not api_key:
            raise ValueError("Gemini API key is required")

        genai.configure(api_key=api_key)
        self._model = genai.GenerativeModel(model_name)
        self._model_name = model_name
        self._timeout = timeout
        self.failure_threshold = failure_threshold
        self._lock = threading.Lock()
        self._failure_count = 0
        self._circuit_open_until = 0.0

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def circuit_open(self) -> bool:
        with self._lock:
            return time.monotonic() < self._circuit_open_until

    def generate_text(
        self,
        prompt: str,
        *,
        temperature: float,
        max_output_tokens: int,
    ) -> str:
        if not prompt:
            raise ValueError("Prompt must not be empty")

        now = time.monotonic()
        with self._lock:
            if now < self._circuit_open_until:
                raise GeminiCircuitOpenError("Gemini circuit is open due to recent failures")

        try:
            response = self._model.generate_content(
                [{"role": "user", "parts": [prompt]}],
                generation_config=genai_types.GenerationConfig(
                    temperature=temperature,
                    max_output_tokens=max_output_tokens,
                ),
                request_options={"timeout": self._timeout},
            )
        except Exception as exc:  # pragma: no cover - network failures
            self._record_failure()
            raise GeminiClientError(str(exc), status_code=_status_code_of(exc)) from exc

        self._record_success()
        try:
            return response.text or ""
        except ValueError:
            # raised when the candidate carries no text parts
            return ""

    def _record_failure(self) -> None:
        with self._lock:
            self._failure_count += 1
            if self._failure_count >= self.failure_threshold:
                self._circuit_open_until = time.monotonic() + self.circuit_cooldown_sec

    def _record_success(self) -> None:
        with self._lock:
            self._failure_count = 0
            self._circuit_open_until = 0.0


def _status_code_of(exc: Exception) -> int | None:
    code = getattr(exc, "code", None)
    if isinstance(code, int):
        return code
    return None


__all__ = ["AdvisoryTransport", "GeminiCircuitOpenError", "GeminiClient", "GeminiClientError"]
