"""
Decoder del feed JSON dei risultati (formato vFootball):

    {"bizCode": 10000,
     "data": {"tournaments": [{"events": [
         {"estimateStartTime": 1737880440000, "setScore": "2:1",
          "homeTeamName": "LEV", "awayTeamName": "HSV", "matchStatus": "End"}]}]}}

La struttura viene validata una sola volta al confine con pydantic; solo gli eventi
con matchStatus == "End" diventano MatchResult.
"""
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, ValidationError

from core.config import get_settings
from core.logging import get_logger
from core.models import MatchResult
from .common import ParseError, ParseOutcome

logger = get_logger("parsers.feed")

FINISHED_STATUS = "End"


class FeedEvent(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    estimate_start_time: Optional[int] = Field(default=None, alias="estimateStartTime")
    set_score: Optional[str] = Field(default=None, alias="setScore")
    home_team_name: Optional[str] = Field(default=None, alias="homeTeamName")
    away_team_name: Optional[str] = Field(default=None, alias="awayTeamName")
    match_status: Optional[str] = Field(default=None, alias="matchStatus")


class Tournament(BaseModel):
    model_config = ConfigDict(extra="ignore")

    events: List[FeedEvent] = Field(default_factory=list)


class FeedData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tournaments: List[Tournament]


class FeedResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    # numero JSON, intero o decimale
    biz_code: Union[StrictInt, StrictFloat] = Field(alias="bizCode")
    data: FeedData


def parse_score(score: Optional[str]) -> Tuple[int, int]:
    """
    "2:1" -> (2, 1). Solleva ParseError se la stringa non si divide in esattamente
    due interi non negativi.
    """
    parts = (score or "").split(":")
    if len(parts) != 2:
        raise ParseError(f"score non valido: {score!r}")
    try:
        home, away = int(parts[0].strip()), int(parts[1].strip())
    except ValueError as e:
        raise ParseError(f"score non valido: {score!r}") from e
    if home < 0 or away < 0:
        raise ParseError(f"score non valido: {score!r}")
    return home, away


def _zone(name: str):
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("BLOCK_TIMEZONE %r non riconosciuta, uso UTC", name)
        return timezone.utc


def timestamp_to_block(timestamp_ms: int, tz_name: str = "UTC") -> Tuple[str, str]:
    """Epoch in millisecondi -> (block_time "HH:MM", match_date "YYYY-MM-DD") nel fuso indicato."""
    dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=_zone(tz_name))
    return dt.strftime("%H:%M"), dt.strftime("%Y-%m-%d")


def _describe_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0] if exc.errors() else {}
    loc = ".".join(str(p) for p in first.get("loc", ()))
    return f"Struttura feed non valida: {loc or 'root'} {first.get('msg', '')}".strip()


def parse_feed_payload(
    payload: Any,
    *,
    score_policy: Optional[str] = None,
    tz_name: Optional[str] = None,
) -> ParseOutcome[MatchResult]:
    settings = get_settings()
    policy = score_policy or settings.score_parse_policy
    zone_name = tz_name or settings.block_timezone

    if not isinstance(payload, dict):
        return ParseOutcome.fail("Struttura feed non valida: atteso un oggetto JSON")
    try:
        feed = FeedResponse.model_validate(payload)
    except ValidationError as exc:
        return ParseOutcome.fail(_describe_validation_error(exc))

    results: List[MatchResult] = []
    skipped = 0
    try:
        for t_idx, tournament in enumerate(feed.data.tournaments):
            for e_idx, event in enumerate(tournament.events):
                if event.match_status != FINISHED_STATUS:
                    skipped += 1
                    continue
                where = f"torneo {t_idx}, evento {e_idx}"
                if event.estimate_start_time is None or not event.home_team_name or not event.away_team_name:
                    raise ParseError(f"{where}: campi obbligatori mancanti")
                try:
                    home_goals, away_goals = parse_score(event.set_score)
                except ParseError as exc:
                    if policy == "strict":
                        raise ParseError(f"{where}: {exc.message}") from exc
                    logger.warning("Score malformato (%s) %s, uso 0-0", where, event.set_score)
                    home_goals, away_goals = 0, 0
                block_time, match_date = timestamp_to_block(event.estimate_start_time, zone_name)
                results.append(
                    MatchResult(
                        block_time=block_time,
                        home_team=event.home_team_name,
                        away_team=event.away_team_name,
                        home_goals=home_goals,
                        away_goals=away_goals,
                        match_date=match_date,
                    )
                )
    except ParseError as exc:
        return ParseOutcome.fail(exc)

    logger.info("Feed decodificato: %d results, %d eventi non conclusi", len(results), skipped,
                extra={"count": len(results)})
    return ParseOutcome.ok(results)


def parse_feed_text(text: str, **kwargs: Any) -> ParseOutcome[MatchResult]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        return ParseOutcome.fail(f"JSON non valido: {exc.msg} (riga {exc.lineno})")
    return parse_feed_payload(payload, **kwargs)


__all__ = [
    "FeedResponse",
    "FeedEvent",
    "FINISHED_STATUS",
    "parse_score",
    "timestamp_to_block",
    "parse_feed_payload",
    "parse_feed_text",
]
