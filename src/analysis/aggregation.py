"""
Motore di aggregazione: funzioni pure su liste in memoria.
Ogni chiamata ricalcola da zero; gli input non vengono mai modificati.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from core.models import (
    STREAK_NONE,
    STREAK_OVER,
    STREAK_UNDER,
    BucketConfig,
    BucketPerformance,
    DayBlockPerformance,
    HistoricalStats,
    MatchResult,
    OddsPattern,
    OddsQuote,
    Over25Result,
    OverallOver25Stats,
    TeamStats,
)
from .buckets import (
    DEFAULT_BUCKET_CONFIG,
    HOME_ODD,
    OVER25_ODD,
    home_odd_bucket,
    over25_odd_bucket,
    pattern_hash,
)


def _rate(hits: int, total: int) -> float:
    return (hits / total) * 100 if total > 0 else 0.0


def _same_team(a: str, b: str) -> bool:
    return (a or "").strip().lower() == (b or "").strip().lower()


# -------------------- Goals stats --------------------
def _historical(results: Sequence[MatchResult]) -> HistoricalStats:
    if not results:
        return HistoricalStats()
    n = len(results)
    return HistoricalStats(
        total_matches=n,
        avg_goals=sum(r.total_goals for r in results) / n,
        over15_rate=_rate(sum(1 for r in results if r.over_15), n),
        over25_rate=_rate(sum(1 for r in results if r.over_25), n),
    )


def block_time_stats(results: Iterable[MatchResult], block_time: str) -> HistoricalStats:
    return _historical([r for r in results if r.block_time == block_time])


def overall_stats(results: Iterable[MatchResult]) -> HistoricalStats:
    return _historical(list(results))


def team_stats(results: Iterable[MatchResult], team: str) -> TeamStats:
    """Gol fatti/subiti orientati per partita a seconda che la squadra giochi in casa o fuori."""
    scored = conceded = over15 = played = 0
    for r in results:
        if _same_team(r.home_team, team):
            scored += r.home_goals
            conceded += r.away_goals
        elif _same_team(r.away_team, team):
            scored += r.away_goals
            conceded += r.home_goals
        else:
            continue
        played += 1
        if r.over_15:
            over15 += 1
    if played == 0:
        return TeamStats()
    return TeamStats(
        avg_scored=scored / played,
        avg_conceded=conceded / played,
        matches_played=played,
        over15_rate=_rate(over15, played),
    )


# -------------------- Streaks --------------------
def _by_date_desc(records: Iterable[Over25Result]) -> List[Over25Result]:
    # sort stabile; le date mancanti finiscono in coda
    return sorted(records, key=lambda r: (r.match_date is not None, r.match_date or ""), reverse=True)


def compute_streak(records: Iterable[Over25Result]) -> Tuple[int, str]:
    """
    Lunghezza del prefisso massimo (per data decrescente) con lo stesso esito
    over/under del match più recente. Gruppo vuoto -> (0, "none").
    """
    ordered = _by_date_desc(records)
    if not ordered:
        return 0, STREAK_NONE
    first_over = ordered[0].result_over25
    count = 0
    for r in ordered:
        if r.result_over25 != first_over:
            break
        count += 1
    return count, STREAK_OVER if first_over else STREAK_UNDER


# -------------------- Buckets --------------------
def _bucket_of(result: Over25Result, bucket_type: str, config: BucketConfig) -> Optional[str]:
    if bucket_type == HOME_ODD:
        return home_odd_bucket(result.home_odd, config) if result.home_odd else None
    if bucket_type == OVER25_ODD:
        return over25_odd_bucket(result.over25_odd, config) if result.over25_odd else None
    raise ValueError(f"bucket_type sconosciuto: {bucket_type!r}")


def bucket_stats(
    results: Iterable[Over25Result],
    bucket_type: str = HOME_ODD,
    config: BucketConfig = DEFAULT_BUCKET_CONFIG,
) -> List[BucketPerformance]:
    groups: Dict[str, List[Over25Result]] = {}
    for r in results:
        label = _bucket_of(r, bucket_type, config)
        if label is None:
            continue
        groups.setdefault(label, []).append(r)

    out: List[BucketPerformance] = []
    for label, members in groups.items():
        hits = sum(1 for m in members if m.result_over25)
        streak, streak_type = compute_streak(members)
        out.append(
            BucketPerformance(
                bucket_range=label,
                total_matches=len(members),
                over25_hits=hits,
                over25_rate=_rate(hits, len(members)),
                current_streak=streak,
                streak_type=streak_type,
            )
        )
    out.sort(key=lambda b: (-b.total_matches, b.bucket_range))
    return out


def pattern_stats(
    results: Iterable[Over25Result],
    config: BucketConfig = DEFAULT_BUCKET_CONFIG,
) -> List[OddsPattern]:
    groups: Dict[str, List[Over25Result]] = {}
    ranges: Dict[str, Tuple[str, str]] = {}
    for r in results:
        if not r.home_odd or not r.over25_odd:
            continue
        hb = home_odd_bucket(r.home_odd, config)
        ob = over25_odd_bucket(r.over25_odd, config)
        key = pattern_hash(hb, ob)
        groups.setdefault(key, []).append(r)
        ranges[key] = (hb, ob)

    out: List[OddsPattern] = []
    for key, members in groups.items():
        hits = sum(1 for m in members if m.result_over25)
        dates = [m.match_date for m in members if m.match_date]
        streak, streak_type = compute_streak(members)
        out.append(
            OddsPattern(
                pattern_hash=key,
                home_odd_range=ranges[key][0],
                over25_odd_range=ranges[key][1],
                total_matches=len(members),
                over25_hits=hits,
                over25_rate=_rate(hits, len(members)),
                last_seen=max(dates) if dates else None,
                current_streak=streak,
                streak_type=streak_type,
            )
        )
    out.sort(key=lambda p: (-p.total_matches, p.pattern_hash))
    return out


def matching_pattern_results(
    results: Iterable[Over25Result],
    home_bucket: str,
    over25_bucket: str,
    config: BucketConfig = DEFAULT_BUCKET_CONFIG,
) -> List[Over25Result]:
    return [
        r
        for r in results
        if r.home_odd
        and r.over25_odd
        and home_odd_bucket(r.home_odd, config) == home_bucket
        and over25_odd_bucket(r.over25_odd, config) == over25_bucket
    ]


# -------------------- Day / block --------------------
def day_block_performance(
    results: Iterable[Over25Result],
    group_by: str = "day",
) -> List[DayBlockPerformance]:
    if group_by not in {"day", "block"}:
        raise ValueError(f"group_by non supportato: {group_by!r}")
    groups: Dict[Tuple[Optional[str], Optional[str]], List[int]] = {}
    for r in results:
        block = (r.block_id or "default") if group_by == "block" else None
        acc = groups.setdefault((r.match_date, block), [0, 0])
        acc[0] += 1
        if r.result_over25:
            acc[1] += 1

    out = [
        DayBlockPerformance(
            date=date,
            block_id=block,
            total_matches=total,
            over25_hits=hits,
            over25_rate=_rate(hits, total),
        )
        for (date, block), (total, hits) in groups.items()
    ]
    out.sort(key=lambda d: (d.date is not None, d.date or ""), reverse=True)
    return out


def overall_over25_stats(results: Iterable[Over25Result]) -> OverallOver25Stats:
    items = list(results)
    hits = sum(1 for r in items if r.result_over25)
    streak, streak_type = compute_streak(items)
    return OverallOver25Stats(
        total_matches=len(items),
        over25_hits=hits,
        over25_rate=_rate(hits, len(items)),
        current_streak=streak,
        streak_type=streak_type,
    )


# -------------------- Join results + quote --------------------
def attach_odds(
    results: Iterable[MatchResult],
    quotes: Iterable[OddsQuote],
) -> List[Over25Result]:
    """
    Collega i results conclusi alle quote pre-partita (stesse squadre, stesso
    block_time, stessa data quando nota da entrambi i lati). Le quote over/under
    vengono riportate solo se la linea gol è 2.5.
    """
    quote_list = list(quotes)
    out: List[Over25Result] = []
    for res in results:
        for q in quote_list:
            if q.block_time != res.block_time:
                continue
            if not (_same_team(q.home_team, res.home_team) and _same_team(q.away_team, res.away_team)):
                continue
            if q.match_date and res.match_date and q.match_date != res.match_date:
                continue
            is_25 = abs(q.goal_line - 2.5) < 1e-9
            out.append(
                Over25Result(
                    match_date=res.match_date or q.match_date,
                    block_id=res.block_time,
                    home_team=res.home_team,
                    away_team=res.away_team,
                    home_goals=res.home_goals,
                    away_goals=res.away_goals,
                    home_odd=q.home_odd,
                    away_odd=q.away_odd,
                    over25_odd=q.over_odd if is_25 else None,
                    under25_odd=q.under_odd if is_25 else None,
                )
            )
            break
    return out


__all__ = [
    "block_time_stats",
    "overall_stats",
    "team_stats",
    "compute_streak",
    "bucket_stats",
    "pattern_stats",
    "matching_pattern_results",
    "day_block_performance",
    "overall_over25_stats",
    "attach_odds",
]
