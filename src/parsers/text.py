from __future__ import annotations

import math
import re
from typing import List, Optional

from core.logging import get_logger
from core.models import MatchResult, OddsQuote
from .common import DATE_TOKEN_PATTERN, ParseError, ParseOutcome, normalize_date

logger = get_logger("parsers.text")

_RESULT_SEPARATOR = re.compile(r"[\t,]")

DATED_ODDS_COLUMNS = 9
LEGACY_ODDS_COLUMNS = 8


def _parse_result_line(line: str, line_no: int) -> MatchResult:
    parts = _RESULT_SEPARATOR.split(line)
    first = parts[0].strip()

    date_col: Optional[str] = None
    if DATE_TOKEN_PATTERN.match(first):
        # Formato con data: Data, Ora, Risultato
        if len(parts) < 3:
            raise ParseError("atteso formato Data, Ora, Risultato", line_no)
        date_col = first
        time_col = parts[1].strip()
        result_col = parts[2].strip()
    else:
        # Formato legacy: Ora, Risultato
        if len(parts) < 2:
            raise ParseError("separatore mancante tra orario e risultato (usa tab o virgola)", line_no)
        time_col = first
        result_col = parts[1].strip()

    result_parts = result_col.split()
    if len(result_parts) != 3:
        raise ParseError('formato risultato non valido, atteso "TEAM GOL-GOL TEAM"', line_no)
    home_team, score, away_team = result_parts

    score_parts = score.split("-")
    if len(score_parts) != 2:
        raise ParseError('formato score non valido, atteso "GOL-GOL"', line_no)
    try:
        home_goals = int(score_parts[0])
        away_goals = int(score_parts[1])
    except ValueError as e:
        raise ParseError("valori score non validi", line_no) from e
    if home_goals < 0 or away_goals < 0:
        raise ParseError("valori score non validi", line_no)

    if not time_col or not home_team or not away_team:
        raise ParseError("campi obbligatori mancanti", line_no)

    return MatchResult(
        block_time=time_col,
        home_team=home_team,
        away_team=away_team,
        home_goals=home_goals,
        away_goals=away_goals,
        match_date=normalize_date(date_col),
    )


def parse_results_text(text: str) -> ParseOutcome[MatchResult]:
    """
    Una riga per match, separatori tab o virgola:
      legacy:    "08:24\\tLEV 0-2 HSV"  oppure  "08:24,LEV 0-2 HSV"
      con data:  "26/01/2026\\t08:24\\tLEV 0-2 HSV"
    Qualsiasi riga malformata fa fallire l'intero batch con il numero di riga.
    """
    lines = (text or "").strip().split("\n")
    parsed: List[MatchResult] = []
    try:
        for line_no, raw in enumerate(lines, start=1):
            line = raw.strip()
            if not line:
                continue
            parsed.append(_parse_result_line(line, line_no))
    except ParseError as exc:
        return ParseOutcome.fail(exc)

    if not parsed:
        return ParseOutcome.fail("Nessuna riga valida trovata")
    logger.info("Results testuali: %d righe", len(parsed), extra={"count": len(parsed)})
    return ParseOutcome.ok(parsed)


def _parse_odd(value: str, line_no: int) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError) as e:
        raise ParseError("valori numerici non validi", line_no) from e
    if math.isnan(v):
        raise ParseError("valori numerici non validi", line_no)
    return v


def _parse_odds_line(line: str, line_no: int, has_date: bool) -> OddsQuote:
    parts = line.split("\t")

    date_col: Optional[str] = None
    if has_date:
        if len(parts) < DATED_ODDS_COLUMNS:
            raise ParseError(
                f"attese {DATED_ODDS_COLUMNS} colonne con data, trovate {len(parts)}. "
                "Formato: Date, Time, Event, 1, X, 2, Goals, Over, Under",
                line_no,
            )
        date_col = parts[0].strip()
        values = parts[1:]
    else:
        if len(parts) < LEGACY_ODDS_COLUMNS:
            raise ParseError(
                f"attese almeno {LEGACY_ODDS_COLUMNS} colonne, trovate {len(parts)}. "
                "Formato: Time, Event, 1, X, 2, Goals, Over, Under",
                line_no,
            )
        values = parts

    time_col = values[0].strip()
    event_col = values[1].strip()

    teams = event_col.split(" - ")
    if len(teams) != 2:
        raise ParseError('formato evento non valido, atteso "HomeTeam - AwayTeam"', line_no)
    home_team, away_team = teams[0].strip(), teams[1].strip()

    home_odd, draw_odd, away_odd, goal_line, over_odd, under_odd = (
        _parse_odd(v, line_no) for v in values[2:8]
    )

    if not time_col or not home_team or not away_team:
        raise ParseError("campi obbligatori mancanti", line_no)

    return OddsQuote(
        block_time=time_col,
        home_team=home_team,
        away_team=away_team,
        home_odd=home_odd,
        draw_odd=draw_odd,
        away_odd=away_odd,
        goal_line=goal_line,
        over_odd=over_odd,
        under_odd=under_odd,
        match_date=normalize_date(date_col),
    )


def parse_odds_text(text: str) -> ParseOutcome[OddsQuote]:
    """
    Quote incollate come tabella separata da tab, con riga di intestazione.
    Se l'intestazione contiene "date" si usa il layout a 9 colonne
    (Date, Time, Event, 1, X, 2, Goals, Over, Under), altrimenti quello legacy a 8.
    """
    lines = (text or "").strip().split("\n")
    if len(lines) < 2:
        return ParseOutcome.fail("Nessuna riga dati: includi l'intestazione e almeno una riga")

    has_date = "date" in lines[0].lower()
    parsed: List[OddsQuote] = []
    try:
        for line_no, raw in enumerate(lines[1:], start=2):
            line = raw.strip()
            if not line:
                continue
            parsed.append(_parse_odds_line(line, line_no, has_date))
    except ParseError as exc:
        return ParseOutcome.fail(exc)

    if not parsed:
        return ParseOutcome.fail("Nessuna riga valida trovata")
    logger.info("Quote testuali: %d righe (layout %s)", len(parsed), "data" if has_date else "legacy",
                extra={"count": len(parsed)})
    return ParseOutcome.ok(parsed)


__all__ = ["parse_results_text", "parse_odds_text"]
