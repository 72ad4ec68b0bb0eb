from __future__ import annotations

import random
import time
from typing import Any, Dict, Optional

import requests

from core.config import Settings, get_settings
from core.logging import get_logger
from .exceptions import RateLimitError, TransientFeedError

log = get_logger(__name__)

_TRANSIENT_STATUSES = (500, 502, 503, 504)


class FeedHttpClient:
    """
    Scarica il feed JSON dei risultati con retry e backoff esponenziale (+ jitter).
    429 e 5xx / errori di rete vengono ritentati fino a FEED_MAX_ATTEMPTS;
    gli altri 4xx falliscono subito con ValueError.

    Telemetria dell'ultima chiamata in get_stats():
      attempts, retries, latency_ms, last_status
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._session = requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        self._max_attempts = max(1, self._settings.feed_max_attempts)
        self._base = self._settings.feed_backoff_base
        self._factor = self._settings.feed_backoff_factor
        self._jitter = self._settings.feed_backoff_jitter
        self._timeout = self._settings.feed_timeout

        self._last_attempts: int = 0
        self._last_latency_ms: float = 0.0
        self._last_status: Optional[int] = None
        self._started: float = 0.0

    def _compute_delay(self, attempt: int) -> float:
        # attempt parte da 1
        delay = self._base * (self._factor ** (attempt - 1))
        if self._jitter > 0:
            delay *= random.uniform(1 - self._jitter, 1 + self._jitter)
        return delay

    def _close_attempt(self, attempt: int) -> None:
        self._last_attempts = attempt
        self._last_latency_ms = (time.perf_counter() - self._started) * 1000

    def _wait(self, attempt: int, reason: str, retry_after: Optional[str] = None) -> None:
        wait = self._compute_delay(attempt)
        if retry_after:
            try:
                wait = max(wait, float(retry_after))
            except ValueError:
                pass
        log.warning("retry attempt=%s wait=%.2fs reason=%s", attempt, wait, reason)
        time.sleep(wait)

    def fetch(self, url: Optional[str] = None) -> Dict[str, Any]:
        target = url or self._settings.feed_url
        if not target:
            raise ValueError("FEED_URL non configurata e nessun url passato")
        log.info("feed GET %s", target)

        self._started = time.perf_counter()
        self._last_attempts = 0
        self._last_latency_ms = 0.0
        self._last_status = None

        for attempt in range(1, self._max_attempts + 1):
            last = attempt == self._max_attempts
            try:
                resp = self._session.get(target, timeout=self._timeout)
            except (requests.Timeout, requests.ConnectionError) as e:
                if last:
                    self._close_attempt(attempt)
                    raise TransientFeedError(
                        f"Errore di rete persistente dopo {attempt} tentativi: {e}"
                    ) from e
                self._wait(attempt, f"network:{e.__class__.__name__}")
                continue

            self._last_status = resp.status_code

            if 200 <= resp.status_code < 300:
                self._close_attempt(attempt)
                try:
                    return resp.json()
                except ValueError as e:
                    raise RuntimeError(
                        f"Risposta non valida (non JSON) status={resp.status_code}"
                    ) from e

            if resp.status_code == 429:
                if last:
                    self._close_attempt(attempt)
                    raise RateLimitError(f"Rate limit dopo {attempt} tentativi (429).")
                self._wait(attempt, "rate_limit", resp.headers.get("Retry-After"))
                continue

            if resp.status_code in _TRANSIENT_STATUSES:
                if last:
                    self._close_attempt(attempt)
                    raise TransientFeedError(
                        f"Status {resp.status_code} persistente dopo {attempt} tentativi."
                    )
                self._wait(attempt, f"http_{resp.status_code}")
                continue

            self._close_attempt(attempt)
            if 400 <= resp.status_code < 500:
                raise ValueError(
                    f"Download feed fallito (status={resp.status_code}) non retriable: {resp.text[:200]}"
                )
            raise RuntimeError(f"Risposta inattesa (status={resp.status_code}) non retriable")

        # raggiungibile solo con max_attempts < 1
        raise RuntimeError(f"Fallimento imprevisto url={target} last_status={self._last_status}")

    def get_stats(self) -> Dict[str, Any]:
        return {
            "attempts": self._last_attempts,
            "retries": max(0, self._last_attempts - 1),
            "latency_ms": round(self._last_latency_ms, 2),
            "last_status": self._last_status,
        }


def get_http_client(settings: Optional[Settings] = None) -> FeedHttpClient:
    """Sempre una nuova istanza: i test che cambiano l'ambiente hanno effetto immediato."""
    return FeedHttpClient(settings)


__all__ = ["FeedHttpClient", "get_http_client"]
