from __future__ import annotations

import math
import threading
import time

import pytest

from app.schemas.recommendation import RecommendationPreferences, WeatherSnapshot
from app.services.advisory_client import AdvisoryClient, validate_snapshot
from app.services.advisory_errors import AdvisoryError, SnapshotValidationError
from app.services.gemini_client import GeminiCircuitOpenError, GeminiClient, GeminiClientError

VALID_REPLY = (
    "**ESSENTIALS:**\n• Light jacket\n• Cotton t-shirt\n"
    "**FOOTWEAR:**\n• Waterproof sneakers\n"
    "**ACCESSORIES:**\n• Compact umbrella\n"
    "**TIP:**\n• Keep a spare layer handy"
)


class DummyTransport:
    def __init__(self, outcomes: list) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[dict] = []

    def generate_text(self, prompt: str, *, temperature: float, max_output_tokens: int) -> str:
        self.calls.append(
            {"prompt": prompt, "temperature": temperature, "max_output_tokens": max_output_tokens}
        )
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture()
def snapshot() -> WeatherSnapshot:
    return WeatherSnapshot(temperature_c=14, description="light rain", humidity=60, location="Busan")


def _client(transport: DummyTransport, sleep: RecordingSleep | None = None) -> AdvisoryClient:
    return AdvisoryClient(transport, sleep=sleep or RecordingSleep())


def test_request_parses_successful_reply(snapshot: WeatherSnapshot) -> None:
    transport = DummyTransport([VALID_REPLY])

    result = _client(transport).request(snapshot, RecommendationPreferences())

    assert result.essentials == ["Light jacket", "Cotton t-shirt"]
    assert result.footwear == ["Waterproof sneakers"]
    assert result.accessories == ["Compact umbrella"]
    assert result.tip == "Keep a spare layer handy"
    assert result.provenance == "advisory"
    assert transport.calls[0]["temperature"] == 0.7
    assert transport.calls[0]["max_output_tokens"] == 300
    assert "- Location: Busan" in transport.calls[0]["prompt"]


def test_retries_transient_errors_then_succeeds(snapshot: WeatherSnapshot) -> None:
    transport = DummyTransport(
        [
            GeminiClientError("429 rate_limit_exceeded", status_code=429),
            GeminiClientError("503 Service Unavailable", status_code=503),
            VALID_REPLY,
        ]
    )
    sleep = RecordingSleep()

    result = _client(transport, sleep).request(snapshot)

    assert result.essentials == ["Light jacket", "Cotton t-shirt"]
    assert len(transport.calls) == 3
    assert sleep.delays == [1.0, 2.0]


def test_non_retryable_error_fails_immediately(snapshot: WeatherSnapshot) -> None:
    transport = DummyTransport([GeminiClientError("401 Unauthorized: invalid API key", status_code=401)])
    sleep = RecordingSleep()

    with pytest.raises(AdvisoryError) as exc:
        _client(transport, sleep).request(snapshot)

    assert exc.value.kind == "unauthorized"
    assert exc.value.attempts == 1
    assert len(transport.calls) == 1
    assert sleep.delays == []


def test_exhausted_retries_propagate_last_error(snapshot: WeatherSnapshot) -> None:
    transport = DummyTransport([GeminiClientError("network error: connection reset")])
    sleep = RecordingSleep()

    with pytest.raises(AdvisoryError) as exc:
        _client(transport, sleep).request(snapshot)

    assert exc.value.kind == "network"
    assert exc.value.attempts == 4
    assert len(transport.calls) == 4
    assert sleep.delays == [1.0, 2.0, 4.0]


def test_empty_completion_is_retried(snapshot: WeatherSnapshot) -> None:
    transport = DummyTransport(["", "   ", VALID_REPLY])
    sleep = RecordingSleep()

    result = _client(transport, sleep).request(snapshot)

    assert result.footwear == ["Waterproof sneakers"]
    assert sleep.delays == [1.0, 2.0]


def test_reply_without_required_sections_is_malformed(snapshot: WeatherSnapshot) -> None:
    transport = DummyTransport(["Just wear something nice."])

    with pytest.raises(AdvisoryError) as exc:
        _client(transport).request(snapshot)

    assert exc.value.kind == "malformed_response"
    assert len(transport.calls) == 4


@pytest.mark.parametrize(
    "snapshot",
    [
        WeatherSnapshot(temperature_c=None, description="rain"),
        WeatherSnapshot(temperature_c=61, description="rain"),
        WeatherSnapshot(temperature_c=-101, description="rain"),
        WeatherSnapshot(temperature_c=10, description=None),
        WeatherSnapshot(temperature_c=10, description="   "),
        WeatherSnapshot(temperature_c=10, description="rain", humidity=101),
        WeatherSnapshot(temperature_c=10, description="rain", humidity=-1),
        WeatherSnapshot(temperature_c=math.inf, description="rain"),
        WeatherSnapshot(temperature_c=math.nan, description="rain"),
        WeatherSnapshot(temperature_c=10, description="rain", humidity=math.inf),
    ],
)
def test_invalid_snapshot_fails_before_transport(snapshot: WeatherSnapshot) -> None:
    transport = DummyTransport([VALID_REPLY])

    with pytest.raises(SnapshotValidationError):
        _client(transport).request(snapshot)

    assert transport.calls == []


def test_validate_snapshot_accepts_edges() -> None:
    for temperature in (-100, 60):
        validate_snapshot(WeatherSnapshot(temperature_c=temperature, description="clear", humidity=0))
    validate_snapshot(WeatherSnapshot(temperature_c=0, description="clear", humidity=None))


def test_retry_stops_at_deadline(snapshot: WeatherSnapshot) -> None:
    transport = DummyTransport([GeminiClientError("request timeout")])
    sleep = RecordingSleep()

    with pytest.raises(AdvisoryError) as exc:
        _client(transport, sleep).request(snapshot, deadline=time.monotonic() + 0.5)

    assert exc.value.kind == "timeout"
    assert len(transport.calls) == 1
    assert sleep.delays == []


def test_cancel_event_aborts_backoff(snapshot: WeatherSnapshot) -> None:
    transport = DummyTransport([GeminiClientError("temporary failure")])
    cancel_event = threading.Event()
    cancel_event.set()

    with pytest.raises(AdvisoryError) as exc:
        _client(transport).request(snapshot, cancel_event=cancel_event)

    assert exc.value.kind == "timeout"
    assert len(transport.calls) == 1


def test_test_connection_returns_reply() -> None:
    transport = DummyTransport(["Connection successful"])

    assert _client(transport).test_connection() == "Connection successful"
    assert transport.calls[0]["max_output_tokens"] == 10


def test_test_connection_wraps_errors() -> None:
    transport = DummyTransport([GeminiClientError("quota exceeded for this project", status_code=429)])

    with pytest.raises(AdvisoryError) as exc:
        _client(transport).test_connection()

    assert exc.value.kind == "quota_exceeded"


def test_open_circuit_is_not_retried(snapshot: WeatherSnapshot) -> None:
    transport = DummyTransport([GeminiCircuitOpenError("Gemini circuit is open due to recent failures")])
    sleep = RecordingSleep()

    with pytest.raises(AdvisoryError) as exc:
        _client(transport, sleep).request(snapshot)

    assert exc.value.kind == "server_error"
    assert len(transport.calls) == 1
    assert sleep.delays == []


def test_rejected_request_is_not_retried(snapshot: WeatherSnapshot) -> None:
    transport = DummyTransport([GeminiClientError("400 Malformed request: invalid argument", status_code=400)])
    sleep = RecordingSleep()

    with pytest.raises(AdvisoryError) as exc:
        _client(transport, sleep).request(snapshot)

    assert exc.value.kind == "bad_request"
    assert len(transport.calls) == 1
    assert sleep.delays == []


def test_circuit_opening_mid_request_keeps_earlier_error(snapshot: WeatherSnapshot) -> None:
    transport = DummyTransport(
        [
            GeminiClientError("429 Too Many Requests", status_code=429),
            GeminiCircuitOpenError("Gemini circuit is open due to recent failures"),
        ]
    )
    sleep = RecordingSleep()

    with pytest.raises(AdvisoryError) as exc:
        _client(transport, sleep).request(snapshot)

    assert exc.value.kind == "rate_limited"
    assert len(transport.calls) == 2
    assert sleep.delays == [1.0]


class RateLimitedModel:
    def __init__(self) -> None:
        self.calls = 0

    def generate_content(self, *args, **kwargs):
        self.calls += 1
        raise RuntimeError("429 Too Many Requests: rate limit")


def test_gemini_breaker_stops_retries_with_rate_limit_kind(
    snapshot: WeatherSnapshot, monkeypatch: pytest.MonkeyPatch
) -> None:
    transport = GeminiClient(api_key="dummy", model_name="m", timeout=1)
    model = RateLimitedModel()
    monkeypatch.setattr(transport, "_model", model)
    sleep = RecordingSleep()

    with pytest.raises(AdvisoryError) as exc:
        AdvisoryClient(transport, sleep=sleep).request(snapshot)

    assert exc.value.kind == "rate_limited"
    assert exc.value.attempts == 3
    assert model.calls == 3
    assert sleep.delays == [1.0, 2.0]
    assert transport.circuit_open
