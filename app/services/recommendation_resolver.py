"""Cache -> advisory (raced against a timeout) -> rule-engine fallback."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

from app.core.cache import RecommendationCache, snapshot_fingerprint
from app.core.config import Settings
from app.schemas.recommendation import RecommendationBundle, RecommendationPreferences, WeatherSnapshot
from app.services.advisory_client import AdvisoryClient
from app.services.advisory_errors import AdvisoryError, classify_error, user_message
from app.services.rule_engine import RuleEngine


logger = logging.getLogger(__name__)


class RecommendationResolver:
    """Single entry point for outfit recommendations. ``resolve`` never raises."""

    def __init__(
        self,
        advisory: AdvisoryClient | None,
        cache: RecommendationCache,
        *,
        rule_engine: RuleEngine | None = None,
        default_timeout_ms: int = 30_000,
        max_workers: int = 4,
    ) -> None:
        self._advisory = advisory
        self._cache = cache
        self._rules = rule_engine or RuleEngine()
        self.default_timeout_ms = default_timeout_ms
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="advisory")
        self._pending: set[threading.Event] = set()
        self._pending_lock = threading.Lock()

    @classmethod
    def from_settings(cls, config: Settings) -> "RecommendationResolver":
        return cls(
            AdvisoryClient.from_settings(config),
            RecommendationCache(config.recommendation_cache_ttl_seconds),
            default_timeout_ms=config.recommendation_timeout_ms,
            max_workers=config.advisory_workers,
        )

    @property
    def advisory(self) -> AdvisoryClient | None:
        return self._advisory

    @property
    def cache(self) -> RecommendationCache:
        return self._cache

    def resolve(
        self,
        snapshot: WeatherSnapshot,
        preferences: RecommendationPreferences | None = None,
        timeout_ms: int | None = None,
    ) -> RecommendationBundle:
        preferences = preferences or RecommendationPreferences()
        if self._advisory is None or not preferences.use_advisory:
            return self._rules.recommend(snapshot)

        timeout_sec = (timeout_ms if timeout_ms is not None else self.default_timeout_ms) / 1000
        try:
            fingerprint = snapshot_fingerprint(snapshot, preferences)
            cached = self._cache.lookup(fingerprint)
            if cached is not None:
                logger.debug("Recommendation cache hit for %s", fingerprint)
                return cached
            bundle = self._request_with_timeout(self._advisory, snapshot, preferences, timeout_sec)
        except Exception as exc:  # pylint: disable=broad-except
            return self._fallback(snapshot, exc)

        bundle = bundle.model_copy(update={"provenance": "advisory"})
        self._cache.store(fingerprint, bundle)
        return bundle

    def close(self) -> None:
        """Abandon in-flight advisory calls and release the worker pool."""
        with self._pending_lock:
            for cancel_event in self._pending:
                cancel_event.set()
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _request_with_timeout(
        self,
        advisory: AdvisoryClient,
        snapshot: WeatherSnapshot,
        preferences: RecommendationPreferences,
        timeout_sec: float,
    ) -> RecommendationBundle:
        cancel_event = threading.Event()
        deadline = time.monotonic() + timeout_sec
        with self._pending_lock:
            self._pending.add(cancel_event)
        try:
            future: Future[RecommendationBundle] = self._executor.submit(
                advisory.request,
                snapshot,
                preferences,
                deadline=deadline,
                cancel_event=cancel_event,
            )
            return future.result(timeout=timeout_sec)
        except FutureTimeoutError as exc:
            # The transport call may still finish; its result is discarded.
            cancel_event.set()
            future.cancel()
            raise AdvisoryError(
                f"Advisory request timed out after {int(timeout_sec * 1000)}ms", "timeout"
            ) from exc
        finally:
            with self._pending_lock:
                self._pending.discard(cancel_event)

    def _fallback(self, snapshot: WeatherSnapshot, exc: BaseException) -> RecommendationBundle:
        logger.warning(
            "Advisory recommendation failed (%s), falling back to rules: %s",
            classify_error(exc),
            exc,
        )
        bundle = self._rules.recommend(snapshot, provenance="fallback-after-error")
        bundle.message = user_message(exc)
        return bundle


__all__ = ["RecommendationResolver"]
