"""In-process cache for advisory recommendations."""

from __future__ import annotations

import json
import math
import threading
import time
from typing import Callable

from app.schemas.recommendation import RecommendationBundle, RecommendationPreferences, WeatherSnapshot


def _round_half_up(value: float | None, step: int) -> int | None:
    if value is None or not math.isfinite(value):
        return None
    return int(math.floor(value / step + 0.5) * step)


def snapshot_fingerprint(
    snapshot: WeatherSnapshot,
    preferences: RecommendationPreferences | None = None,
) -> str:
    """Quantized key: temperature to 5°, humidity to 10%, lowered description, unit.

    Missing humidity buckets to 0. Missing or non-finite temperatures share a
    null bucket; such snapshots never pass validation, so they are never stored.
    """
    preferences = preferences or RecommendationPreferences()
    temperature = snapshot.temperature_c
    humidity = snapshot.humidity
    key = {
        "temp": _round_half_up(temperature, 5),
        "desc": (snapshot.description or "").lower(),
        "humidity": _round_half_up(humidity, 10) if humidity else 0,
        "unit": preferences.temperature_unit,
    }
    return json.dumps(key, sort_keys=True)


class RecommendationCache:
    """Fingerprint -> bundle store with a fixed freshness window.

    Stale entries are removed when they are read; there is no capacity bound
    and no background sweep.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._store: dict[str, tuple[float, RecommendationBundle]] = {}

    def lookup(self, fingerprint: str) -> RecommendationBundle | None:
        with self._lock:
            entry = self._store.get(fingerprint)
            if entry is None:
                return None
            stored_at, bundle = entry
            if self._clock() - stored_at >= self.ttl:
                self._store.pop(fingerprint, None)
                return None
        return bundle.model_copy(update={"provenance": "cached-advisory"}, deep=True)

    def store(self, fingerprint: str, bundle: RecommendationBundle) -> None:
        entry = (self._clock(), bundle.model_copy(deep=True))
        with self._lock:
            self._store[fingerprint] = entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, fingerprint: object) -> bool:
        with self._lock:
            return fingerprint in self._store


__all__ = ["RecommendationCache", "snapshot_fingerprint"]
