"""
Performance tracker delle predictions salvate:

- link_results_to_predictions: collega i results conclusi alle predictions pending
  (una sola volta per record) calcolando esito e P/L a stake unitario
- compute_performance_metrics: accuracy globale e rolling, accuracy per fascia di
  probabilità, calibration factor, profit/yield, streak
"""
from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from analysis.buckets import parse_numeric_range
from core.config import DEFAULT_PROBABILITY_BANDS
from core.logging import get_logger
from core.models import BandAccuracy, MatchResult, PerformanceMetrics, PredictionRecord
from core.persistence import BaseStore

logger = get_logger("analytics.performance")

_LABEL_RE = re.compile(r"^\s*(OVER|UNDER)\s+(1\.5|2\.5)\s*$", re.IGNORECASE)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _norm(name: Optional[str]) -> str:
    return (name or "").strip().lower()


# -------------------- Resolution --------------------
def evaluate_label(label: str, result: MatchResult) -> Optional[bool]:
    """
    "OVER 1.5" -> over_15, "OVER 2.5" -> over_25, "UNDER x" -> negazione.
    Label senza mercato (es. "LOW CONFIDENCE") -> None.
    """
    m = _LABEL_RE.match(label or "")
    if not m:
        return None
    side, line = m.group(1).upper(), m.group(2)
    outcome = result.over_15 if line == "1.5" else result.over_25
    return outcome if side == "OVER" else not outcome


def _profit_loss(is_correct: Optional[bool], odd: Optional[float]) -> Optional[float]:
    # senza quota il record resta fuori dal profitto, vinto o perso
    if is_correct is None or odd is None:
        return None
    if not is_correct:
        return -1.0
    return round(float(odd) - 1.0, 6)


def resolve_prediction(
    record: PredictionRecord,
    result: MatchResult,
    now: Optional[str] = None,
) -> PredictionRecord:
    """Nuovo record risolto; quello in ingresso non viene modificato."""
    is_correct = evaluate_label(record.prediction, result)
    return replace(
        record,
        resolved=True,
        resolved_at=now or _now_iso(),
        home_goals=result.home_goals,
        away_goals=result.away_goals,
        total_goals=result.total_goals,
        actual_over_15=result.over_15,
        actual_over_25=result.over_25,
        is_correct=is_correct,
        profit_loss=_profit_loss(is_correct, record.odd),
    )


def find_matching_result(
    record: PredictionRecord,
    results: Iterable[MatchResult],
) -> Optional[MatchResult]:
    candidates: List[MatchResult] = []
    for r in results:
        if _norm(r.home_team) != _norm(record.home_team) or _norm(r.away_team) != _norm(record.away_team):
            continue
        if record.match_date and r.match_date:
            if record.match_date != r.match_date:
                continue
        elif r.created_at and record.created_at and r.created_at < record.created_at:
            # senza date: un result salvato prima della prediction non la risolve
            continue
        candidates.append(r)
    if not candidates:
        return None
    for r in candidates:
        if r.block_time == record.block_time:
            return r
    return candidates[0]


@dataclass
class LinkOutcome:
    success: bool
    updated: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {"success": self.success, "updated": self.updated}
        if self.error:
            out["error"] = self.error
        return out


def link_results_to_predictions(store: BaseStore, now: Optional[str] = None) -> LinkOutcome:
    pending = store.get_pending_predictions()
    if not pending:
        return LinkOutcome(success=True, updated=0)

    results = store.get_all_results()
    updated = 0
    last_error: Optional[str] = None
    for record in pending:
        if record.resolved:
            continue
        match = find_matching_result(record, results)
        if match is None:
            continue
        res = store.update_prediction(resolve_prediction(record, match, now))
        if res.success:
            updated += 1
        else:
            last_error = res.error
            logger.warning("Aggiornamento prediction %s fallito: %s", record.id, res.error)

    logger.info("Predictions collegate ai results: %d", updated,
                extra={"updated": updated, "pending": len(pending) - updated})
    if last_error:
        return LinkOutcome(success=False, updated=updated, error=last_error)
    return LinkOutcome(success=True, updated=updated)


# -------------------- Metrics --------------------
def _pct(num: float, den: float) -> float:
    return round(num / den * 100, 2) if den > 0 else 0.0


def _band_label(spec: str) -> str:
    spec = spec.strip()
    return f"{spec.rstrip('-').strip()}+" if spec.endswith("-") else spec


def _band_accuracy(evaluated: Sequence[PredictionRecord], bands: Sequence[str]) -> List[BandAccuracy]:
    out: List[BandAccuracy] = []
    for spec in bands:
        lo, hi = parse_numeric_range(spec)
        if lo is None and hi is None:
            logger.warning("Fascia di probabilità non valida ignorata: %r", spec)
            continue
        lo = lo if lo is not None else 0.0
        members = [
            r for r in evaluated
            if r.predicted_probability >= lo and (hi is None or r.predicted_probability < hi)
        ]
        correct = sum(1 for r in members if r.is_correct)
        avg_prob = sum(r.predicted_probability for r in members) / len(members) if members else 0.0
        out.append(
            BandAccuracy(
                band=_band_label(spec),
                predictions=len(members),
                correct=correct,
                accuracy=_pct(correct, len(members)),
                avg_predicted_probability=round(avg_prob, 2),
            )
        )
    return out


def _streak_stats(evaluated: Sequence[PredictionRecord]) -> Dict[str, int]:
    cw = cl = 0
    lw = ll = 0
    for r in evaluated:
        if r.is_correct:
            cw += 1
            cl = 0
            if cw > lw:
                lw = cw
        else:
            cl += 1
            cw = 0
            if cl > ll:
                ll = cl
    return {
        "current_win_streak": cw,
        "current_loss_streak": cl,
        "longest_win_streak": lw,
        "longest_loss_streak": ll,
    }


def compute_performance_metrics(
    records: Iterable[PredictionRecord],
    rolling_window: int = 50,
    bands: Optional[Sequence[str]] = None,
) -> PerformanceMetrics:
    items = list(records)
    resolved = [r for r in items if r.resolved]
    evaluated = [r for r in resolved if r.is_correct is not None]
    evaluated.sort(key=lambda r: (r.resolved_at or r.created_at or "", r.created_at or ""))

    correct = sum(1 for r in evaluated if r.is_correct)
    accuracy = _pct(correct, len(evaluated))

    window = evaluated[-rolling_window:] if rolling_window > 0 else evaluated
    rolling_accuracy = _pct(sum(1 for r in window if r.is_correct), len(window))

    avg_prob = sum(r.predicted_probability for r in evaluated) / len(evaluated) if evaluated else 0.0
    # accuracy / probabilità media attesa, 1.0 quando non definito
    calibration_factor = round((correct / len(evaluated) * 100) / avg_prob, 4) if evaluated and avg_prob > 0 else 1.0

    settled = [r for r in evaluated if r.profit_loss is not None]
    profit = sum(r.profit_loss for r in settled)

    band_specs = bands if bands is not None else DEFAULT_PROBABILITY_BANDS.split(",")

    return PerformanceMetrics(
        total_predictions=len(items),
        resolved=len(resolved),
        pending=len(items) - len(resolved),
        evaluated=len(evaluated),
        correct=correct,
        accuracy=accuracy,
        rolling_window=rolling_window,
        rolling_accuracy=rolling_accuracy,
        avg_predicted_probability=round(avg_prob, 2),
        calibration_factor=calibration_factor,
        profit_units=round(profit, 6),
        yield_pct=_pct(profit, len(settled)),
        bands=_band_accuracy(evaluated, band_specs),
        **_streak_stats(evaluated),
    )


__all__ = [
    "LinkOutcome",
    "evaluate_label",
    "resolve_prediction",
    "find_matching_result",
    "link_results_to_predictions",
    "compute_performance_metrics",
]
