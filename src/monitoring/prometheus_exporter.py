from __future__ import annotations

from typing import Any, Dict, Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    generate_latest,
)

from analytics.performance import compute_performance_metrics
from core.config import Settings, get_settings
from core.logging import get_logger
from core.persistence import BaseStore

logger = get_logger("monitoring.prometheus_exporter")

# Registry dedicato (non il default globale di prometheus_client)
_REGISTRY = CollectorRegistry()

UPDATE_RUNS_TOTAL = Counter("eagle_metrics_updates_total", "Numero aggiornamenti metriche", registry=_REGISTRY)
RESULTS_TOTAL = Gauge("eagle_results_total", "Results salvati nello store", registry=_REGISTRY)
ODDS_TOTAL = Gauge("eagle_odds_total", "Quote correnti nello store", registry=_REGISTRY)
PREDICTIONS_PENDING = Gauge("eagle_predictions_pending", "Predictions in attesa di risultato", registry=_REGISTRY)
PREDICTIONS_RESOLVED = Gauge("eagle_predictions_resolved", "Predictions risolte", registry=_REGISTRY)
ACCURACY = Gauge("eagle_prediction_accuracy", "Accuracy complessiva (%)", registry=_REGISTRY)
ROLLING_ACCURACY = Gauge("eagle_prediction_rolling_accuracy", "Accuracy ultime N predictions (%)", registry=_REGISTRY)
CALIBRATION_FACTOR = Gauge("eagle_calibration_factor", "Accuracy / probabilità media prevista", registry=_REGISTRY)
PROFIT_UNITS = Gauge("eagle_profit_units", "Profitto cumulato a stake unitario", registry=_REGISTRY)
FEED_LATENCY_MS = Gauge("eagle_feed_latency_ms", "Ultima latenza download feed in ms", registry=_REGISTRY)
FEED_ATTEMPTS = Gauge("eagle_feed_attempts", "Tentativi ultimo download feed", registry=_REGISTRY)
FEED_RETRIES = Gauge("eagle_feed_retries", "Retry ultimo download feed", registry=_REGISTRY)


def update_prom_metrics(
    store: BaseStore,
    fetch_stats: Optional[Dict[str, Any]] = None,
    settings: Optional[Settings] = None,
) -> bool:
    """
    Aggiorna i gauge leggendo lo store. No-op (False) con exporter disabilitato.
    """
    settings = settings or get_settings()
    if not settings.enable_prometheus_exporter:
        logger.debug("Exporter disabilitato, skip update")
        return False

    UPDATE_RUNS_TOTAL.inc()
    RESULTS_TOTAL.set(len(store.get_all_results()))
    ODDS_TOTAL.set(len(store.get_all_odds()))

    metrics = compute_performance_metrics(
        store.get_predictions(),
        rolling_window=settings.performance_rolling_window,
        bands=settings.performance_probability_bands,
    )
    PREDICTIONS_PENDING.set(metrics.pending)
    PREDICTIONS_RESOLVED.set(metrics.resolved)
    ACCURACY.set(metrics.accuracy)
    ROLLING_ACCURACY.set(metrics.rolling_accuracy)
    CALIBRATION_FACTOR.set(metrics.calibration_factor)
    PROFIT_UNITS.set(metrics.profit_units)

    if fetch_stats:
        FEED_LATENCY_MS.set(fetch_stats.get("latency_ms", 0) or 0)
        FEED_ATTEMPTS.set(fetch_stats.get("attempts", 0) or 0)
        FEED_RETRIES.set(fetch_stats.get("retries", 0) or 0)

    logger.debug("Prometheus metrics updated.")
    return True


def render_metrics() -> bytes:
    return generate_latest(_REGISTRY)


__all__ = ["update_prom_metrics", "render_metrics", "_REGISTRY"]
