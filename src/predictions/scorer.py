from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence

from analysis.aggregation import block_time_stats, compute_streak, matching_pattern_results, team_stats
from analysis.buckets import DEFAULT_BUCKET_CONFIG, home_odd_bucket, over25_odd_bucket
from core.models import (
    LABEL_LOW_CONFIDENCE,
    LABEL_OVER_15,
    STATUS_MODERATE,
    STATUS_RISKY,
    STATUS_SAFE,
    BucketConfig,
    MatchResult,
    OddsQuote,
    Over25Analysis,
    Over25Input,
    Over25Result,
    Prediction,
    TeamStats,
)

# Soglie Over 1.5: (rate fascia %, media gol fascia, gol attesi, rate squadre %, campione minimo)
SAFE_THRESHOLDS = (75.0, 2.2, 2.0, 65.0, 10)
MODERATE_THRESHOLDS = (60.0, 1.8, 1.5, 55.0, 5)

SAFE_CONFIDENCE_CAP = 95

CONFIDENCE_HIGH = "HIGH"
CONFIDENCE_MEDIUM = "MEDIUM"
CONFIDENCE_LOW = "LOW"

STRONG_SAMPLE = 20
LIMITED_SAMPLE = 10


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _passes(thresholds, block_rate, block_avg, expected_goals, team_rate, sample) -> bool:
    min_rate, min_avg, min_expected, min_team_rate, min_sample = thresholds
    return (
        block_rate >= min_rate
        and block_avg >= min_avg
        and expected_goals >= min_expected
        and team_rate >= min_team_rate
        and sample >= min_sample
    )


def analyze_match(
    quote: OddsQuote,
    results: Sequence[MatchResult],
    calibration_factor: Optional[float] = None,
) -> Prediction:
    """
    Scorer Over 1.5: statistiche della fascia oraria della quota + media delle
    statistiche delle due squadre.

    SAFE e MODERATE producono "OVER 1.5", altrimenti RISKY / "LOW CONFIDENCE".
    La confidence è il rate Over 1.5 della fascia arrotondato (max 95 per SAFE).
    Con `calibration_factor` viene valorizzato anche calibrated_probability.
    """
    hist = block_time_stats(results, quote.block_time)
    home = team_stats(results, quote.home_team)
    away = team_stats(results, quote.away_team)

    combined = TeamStats(
        avg_scored=(home.avg_scored + away.avg_scored) / 2,
        avg_conceded=(home.avg_conceded + away.avg_conceded) / 2,
        matches_played=min(home.matches_played, away.matches_played),
        over15_rate=(home.over15_rate + away.over15_rate) / 2,
    )
    expected_goals = combined.avg_scored + combined.avg_conceded
    args = (hist.over15_rate, hist.avg_goals, expected_goals, combined.over15_rate, hist.total_matches)

    rounded = round_half_up(hist.over15_rate)
    if _passes(SAFE_THRESHOLDS, *args):
        label, status, confidence = LABEL_OVER_15, STATUS_SAFE, min(SAFE_CONFIDENCE_CAP, rounded)
    elif _passes(MODERATE_THRESHOLDS, *args):
        label, status, confidence = LABEL_OVER_15, STATUS_MODERATE, rounded
    else:
        label, status, confidence = LABEL_LOW_CONFIDENCE, STATUS_RISKY, max(0, rounded)

    calibrated = None
    if calibration_factor is not None:
        calibrated = round(max(0.0, min(100.0, confidence * calibration_factor)), 1)

    return Prediction(
        match=quote,
        historical_stats=hist,
        team_stats=combined,
        prediction=label,
        confidence=confidence,
        status=status,
        calibrated_probability=calibrated,
    )


def _confidence(total: int, rate: float):
    if total >= STRONG_SAMPLE:
        if rate >= 70:
            return CONFIDENCE_HIGH, "Strong Over 2.5 pattern detected"
        if rate >= 55:
            return CONFIDENCE_MEDIUM, "Moderate Over 2.5 tendency"
        if rate <= 40:
            return CONFIDENCE_HIGH, "Strong Under 2.5 pattern detected"
        return CONFIDENCE_MEDIUM, "Mixed results, proceed with caution"
    if total >= LIMITED_SAMPLE:
        return CONFIDENCE_MEDIUM, "Limited data, moderate confidence"
    return CONFIDENCE_LOW, "Insufficient historical data"


def analyze_upcoming_match(
    match: Over25Input,
    history: Iterable[Over25Result],
    config: BucketConfig = DEFAULT_BUCKET_CONFIG,
) -> Over25Analysis:
    """Scorer Over 2.5 per struttura quote: rate e streak storici del pattern (bucket casa, bucket over)."""
    home_bucket = home_odd_bucket(match.home_odd, config)
    over_bucket = over25_odd_bucket(match.over25_odd, config)

    matching = matching_pattern_results(history, home_bucket, over_bucket, config)
    total = len(matching)
    hits = sum(1 for r in matching if r.result_over25)
    rate = (hits / total) * 100 if total > 0 else 0.0
    streak, streak_type = compute_streak(matching)
    indicator, recommendation = _confidence(total, rate)

    return Over25Analysis(
        bucket_home=home_bucket,
        bucket_over25=over_bucket,
        historical_over25_rate=round(rate, 1),
        total_in_bucket=total,
        current_streak=streak,
        streak_type=streak_type,
        confidence_indicator=indicator,
        recommendation=recommendation,
    )


__all__ = [
    "analyze_match",
    "analyze_upcoming_match",
    "round_half_up",
    "SAFE_THRESHOLDS",
    "MODERATE_THRESHOLDS",
    "CONFIDENCE_HIGH",
    "CONFIDENCE_MEDIUM",
    "CONFIDENCE_LOW",
]
