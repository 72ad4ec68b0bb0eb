from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from analysis.aggregation import attach_odds, bucket_stats, pattern_stats
from analysis.buckets import HOME_ODD, OVER25_ODD, bucket_config_from_settings
from analytics.performance import compute_performance_metrics
from core.config import Settings, get_settings
from core.logging import get_logger
from core.models import (
    LABEL_OVER_15,
    STATUS_RISKY,
    MatchResult,
    Over25Analysis,
    Over25Input,
    Prediction,
    PredictionRecord,
)
from core.persistence import BaseStore, StoreResult
from predictions.scorer import analyze_match, analyze_upcoming_match

logger = get_logger("predictions.pipeline")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _calibration_factor(store: BaseStore, settings: Settings) -> Optional[float]:
    if not settings.enable_calibration:
        return None
    records = store.get_predictions()
    resolved = [r for r in records if r.resolved and r.is_correct is not None]
    if len(resolved) < settings.calibration_min_samples:
        logger.info(
            "Calibrazione saltata: %d record risolti (minimo %d)",
            len(resolved),
            settings.calibration_min_samples,
        )
        return None
    return compute_performance_metrics(resolved, settings.performance_rolling_window).calibration_factor


def _stake_odd(pred: Prediction) -> Optional[float]:
    # quota OVER 1.5 solo se la quota corrente è sulla linea 1.5
    q = pred.match
    if pred.prediction == LABEL_OVER_15 and abs(q.goal_line - 1.5) < 1e-9:
        return q.over_odd
    return None


def _to_record(pred: Prediction) -> PredictionRecord:
    q = pred.match
    return PredictionRecord(
        id=uuid.uuid4().hex,
        created_at=_now_iso(),
        block_time=q.block_time,
        home_team=q.home_team,
        away_team=q.away_team,
        match_date=q.match_date,
        prediction=pred.prediction,
        predicted_probability=float(pred.confidence),
        calibrated_probability=pred.calibrated_probability,
        status=pred.status,
        odd=_stake_odd(pred),
    )


def generate_predictions(store: BaseStore, settings: Optional[Settings] = None) -> List[Prediction]:
    """
    Valuta ogni quota corrente contro lo storico dei results.
    Con il tracking attivo salva un PredictionRecord per ogni prediction non RISKY
    non ancora presente per lo stesso match. Per le quote senza data blocca
    solo una prediction ancora pending della stessa coppia.
    """
    settings = settings or get_settings()
    results = store.get_all_results()
    quotes = store.get_all_odds()
    factor = _calibration_factor(store, settings)

    predictions = [analyze_match(q, results, calibration_factor=factor) for q in quotes]

    stored = 0
    if settings.enable_prediction_tracking:
        for pred in predictions:
            if pred.status == STATUS_RISKY:
                continue
            q = pred.match
            if store.get_prediction_by_match(
                q.home_team, q.away_team, q.match_date, pending_only=q.match_date is None
            ) is not None:
                continue
            res = store.insert_prediction(_to_record(pred))
            if res.success:
                stored += 1
            else:
                logger.warning("Salvataggio prediction %s - %s fallito: %s", q.home_team, q.away_team, res.error)

    logger.info(
        "Predictions generate: %d (salvate %d)",
        len(predictions),
        stored,
        extra={"count": len(predictions), "updated": stored},
    )
    return predictions


def refresh_bucket_cache(store: BaseStore, settings: Optional[Settings] = None) -> int:
    """
    Ricalcola le statistiche per bucket e per pattern dallo storico Over 2.5 e
    le salva come viste materializzate. Ritorna i pattern aggiornati.
    """
    settings = settings or get_settings()
    config = bucket_config_from_settings(settings)
    history = store.get_over25_results()
    for bucket_type in (HOME_ODD, OVER25_ODD):
        res = store.upsert_bucket_stats(bucket_type, bucket_stats(history, bucket_type, config))
        if not res.success:
            logger.warning("Cache bucket %s non aggiornata: %s", bucket_type, res.error)
            return 0
    updated = 0
    for pattern in pattern_stats(history, config):
        if store.upsert_odds_pattern(pattern).success:
            updated += 1
    logger.debug("Cache bucket/pattern aggiornata", extra={"updated": updated})
    return updated


def ingest_results(
    store: BaseStore,
    results: List[MatchResult],
    settings: Optional[Settings] = None,
) -> Tuple[StoreResult, int]:
    """
    Salva i results e, per quelli nuovi, registra gli Over25Result collegandoli
    alle quote correnti; poi aggiorna la cache bucket/pattern.
    Ritorna (esito insert, over25 registrati).
    """
    known = {r.dedup_key for r in store.get_all_results()}
    fresh = []
    for r in results:
        if r.dedup_key not in known:
            known.add(r.dedup_key)
            fresh.append(r)

    res = store.insert_results(results)
    if not res.success or not fresh:
        return res, 0

    linked = attach_odds(fresh, store.get_all_odds())
    if not linked:
        return res, 0
    over = store.insert_over25_results(linked)
    if not over.success:
        logger.warning("Salvataggio over25 results fallito: %s", over.error)
        return res, 0
    refresh_bucket_cache(store, settings)
    return res, over.count


def analyze_and_store_upcoming(
    store: BaseStore,
    match: Over25Input,
    settings: Optional[Settings] = None,
) -> Over25Analysis:
    settings = settings or get_settings()
    analysis = analyze_upcoming_match(
        match,
        store.get_over25_results(),
        bucket_config_from_settings(settings),
    )
    entry: Dict[str, Any] = match.to_dict()
    if not entry.get("match_date"):
        entry["match_date"] = datetime.now(timezone.utc).date().isoformat()
    entry["analysis"] = analysis.to_dict()
    res = store.insert_upcoming_match(entry)
    if not res.success:
        logger.warning("Salvataggio upcoming match fallito: %s", res.error)
    return analysis


__all__ = ["generate_predictions", "ingest_results", "refresh_bucket_cache", "analyze_and_store_upcoming"]
