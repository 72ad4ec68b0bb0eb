from __future__ import annotations

import json
import logging
import os
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from json import JSONDecodeError
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .config import Settings
from .models import (
    BucketPerformance,
    HistoricalStats,
    MatchResult,
    OddsPattern,
    OddsQuote,
    Over25Result,
    PredictionRecord,
)

LOGGER = logging.getLogger(__name__)

NOT_INITIALIZED = "store non inizializzato"

# ---------------------------------------------------------------------------
# Nomi tabelle (un file JSON per tabella nel JsonFileStore)
# ---------------------------------------------------------------------------
RESULTS_TABLE = "results"
ODDS_TABLE = "odds"
PREDICTIONS_TABLE = "predictions"
UPCOMING_TABLE = "upcoming_matches"
OVER25_TABLE = "over25_results"
BUCKET_STATS_TABLE = "bucket_stats"
PATTERNS_TABLE = "odds_patterns"

Row = Dict[str, Any]


@dataclass
class StoreResult:
    success: bool
    count: int = 0
    duplicates: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success, "count": self.count}
        if self.duplicates:
            out["duplicates"] = self.duplicates
        if self.error:
            out["error"] = self.error
        return out


class StoreError(Exception):
    """Errore del backend di persistenza, convertito in StoreResult dalle operazioni pubbliche."""


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _norm(name: str) -> str:
    return (name or "").strip().lower()


# ---------------------------------------------------------------------------
# Low level (file JSON atomici)
# ---------------------------------------------------------------------------


def _ensure_dir(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _write_json_atomic(path: Path, data: Any, indent: int = 2) -> None:
    _ensure_dir(path)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=indent)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp_path, path)


def _load_json_list(path: Path) -> List[Row]:
    if not path.exists():
        return []
    try:
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except JSONDecodeError:
        LOGGER.warning("Invalid / corrupt table JSON at %s", path)
        return []
    if not isinstance(raw, list):
        LOGGER.warning("Invalid structure in table JSON (expected list) at %s", path)
        return []
    return [item for item in raw if isinstance(item, dict)]


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class BaseStore(ABC):
    """
    Handle esplicito verso la persistenza, iniettato nei componenti che ne hanno bisogno.
    Le sottoclassi implementano solo le primitive di tabella (_read_table / _write_table);
    le operazioni pubbliche non sollevano eccezioni per errori del backend ma ritornano
    StoreResult / liste vuote.
    """

    def __init__(self, page_size: int = 1000) -> None:
        self.page_size = max(1, page_size)

    @abstractmethod
    def _read_table(self, name: str) -> List[Row]:
        ...

    @abstractmethod
    def _write_table(self, name: str, rows: List[Row]) -> None:
        ...

    def _read_page(self, name: str, offset: int, limit: int) -> List[Row]:
        return self._read_table(name)[offset:offset + limit]

    def _safe_read(self, name: str) -> List[Row]:
        try:
            return self._read_table(name)
        except (OSError, StoreError) as exc:
            LOGGER.error("Errore lettura tabella %s: %s", name, exc)
            return []

    def _append_rows(self, name: str, new_rows: Iterable[Row]) -> StoreResult:
        try:
            rows = self._read_table(name)
            added = list(new_rows)
            rows.extend(added)
            self._write_table(name, rows)
        except (OSError, StoreError) as exc:
            LOGGER.error("Errore scrittura tabella %s: %s", name, exc)
            return StoreResult(success=False, error=str(exc))
        return StoreResult(success=True, count=len(added))

    def _clear(self, name: str) -> StoreResult:
        try:
            self._write_table(name, [])
        except (OSError, StoreError) as exc:
            LOGGER.error("Errore svuotamento tabella %s: %s", name, exc)
            return StoreResult(success=False, error=str(exc))
        return StoreResult(success=True)

    # -- Results ----------------------------------------------------------

    def insert_results(self, results: List[MatchResult]) -> StoreResult:
        """
        Upsert con vincolo di unicità implicito su
        (block_time, home_team, away_team, home_goals, away_goals): i duplicati
        vengono ignorati silenziosamente e contati in `duplicates`.
        """
        try:
            rows = self._read_table(RESULTS_TABLE)
        except (OSError, StoreError) as exc:
            LOGGER.error("Errore lettura results: %s", exc)
            return StoreResult(success=False, error=str(exc))
        seen = {MatchResult.from_dict(r).dedup_key for r in rows}
        now = _now_iso()
        fresh: List[Row] = []
        duplicates = 0
        for res in results:
            if res.dedup_key in seen:
                duplicates += 1
                continue
            seen.add(res.dedup_key)
            row = res.to_dict()
            row["created_at"] = now
            fresh.append(row)
        try:
            self._write_table(RESULTS_TABLE, rows + fresh)
        except (OSError, StoreError) as exc:
            LOGGER.error("Errore scrittura results: %s", exc)
            return StoreResult(success=False, error=str(exc))
        LOGGER.info("Results salvati: %d nuovi, %d duplicati", len(fresh), duplicates)
        return StoreResult(success=True, count=len(fresh), duplicates=duplicates)

    def get_all_results(self) -> List[MatchResult]:
        """Legge tutti i results a pagine di `page_size` finché una pagina corta segnala la fine."""
        out: List[MatchResult] = []
        offset = 0
        while True:
            try:
                page = self._read_page(RESULTS_TABLE, offset, self.page_size)
            except (OSError, StoreError) as exc:
                LOGGER.error("Errore lettura results (offset=%d): %s", offset, exc)
                break
            out.extend(MatchResult.from_dict(r) for r in page)
            if len(page) < self.page_size:
                break
            offset += self.page_size
        return out

    def get_historical_stats(self) -> HistoricalStats:
        from analysis.aggregation import overall_stats

        return overall_stats(self.get_all_results())

    # -- Odds (replace-all) -----------------------------------------------

    def insert_odds(self, quotes: List[OddsQuote]) -> StoreResult:
        now = _now_iso()
        rows = []
        for q in quotes:
            row = q.to_dict()
            row["created_at"] = now
            rows.append(row)
        return self._append_rows(ODDS_TABLE, rows)

    def get_all_odds(self) -> List[OddsQuote]:
        return [OddsQuote.from_dict(r) for r in self._safe_read(ODDS_TABLE)]

    def clear_odds(self) -> StoreResult:
        return self._clear(ODDS_TABLE)

    # -- Predictions ------------------------------------------------------

    def insert_prediction(self, record: PredictionRecord) -> StoreResult:
        row = record.to_dict()
        if not row.get("id"):
            row["id"] = uuid.uuid4().hex
        return self._append_rows(PREDICTIONS_TABLE, [row])

    def update_prediction(self, record: PredictionRecord) -> StoreResult:
        try:
            rows = self._read_table(PREDICTIONS_TABLE)
            for i, row in enumerate(rows):
                if row.get("id") == record.id:
                    rows[i] = record.to_dict()
                    break
            else:
                return StoreResult(success=False, error=f"prediction {record.id} non trovata")
            self._write_table(PREDICTIONS_TABLE, rows)
        except (OSError, StoreError) as exc:
            LOGGER.error("Errore aggiornamento prediction %s: %s", record.id, exc)
            return StoreResult(success=False, error=str(exc))
        return StoreResult(success=True, count=1)

    def get_predictions(self, limit: Optional[int] = None) -> List[PredictionRecord]:
        records = [PredictionRecord.from_dict(r) for r in self._safe_read(PREDICTIONS_TABLE)]
        records.sort(key=lambda r: r.created_at or "", reverse=True)
        if limit is not None:
            records = records[:limit]
        return records

    def get_pending_predictions(self) -> List[PredictionRecord]:
        return [
            PredictionRecord.from_dict(r)
            for r in self._safe_read(PREDICTIONS_TABLE)
            if not r.get("resolved")
        ]

    def get_prediction_by_match(
        self,
        home_team: str,
        away_team: str,
        match_date: Optional[str] = None,
        pending_only: bool = False,
    ) -> Optional[PredictionRecord]:
        for row in self._safe_read(PREDICTIONS_TABLE):
            if pending_only and row.get("resolved"):
                continue
            if _norm(row.get("home_team", "")) != _norm(home_team):
                continue
            if _norm(row.get("away_team", "")) != _norm(away_team):
                continue
            if match_date and row.get("match_date") and row.get("match_date") != match_date:
                continue
            return PredictionRecord.from_dict(row)
        return None

    # -- Upcoming matches -------------------------------------------------

    def insert_upcoming_match(self, entry: Dict[str, Any]) -> StoreResult:
        row = dict(entry)
        row.setdefault("id", uuid.uuid4().hex)
        row.setdefault("created_at", _now_iso())
        return self._append_rows(UPCOMING_TABLE, [row])

    def get_upcoming_matches(self) -> List[Row]:
        rows = self._safe_read(UPCOMING_TABLE)
        rows.sort(key=lambda r: r.get("created_at") or "", reverse=True)
        return rows

    def clear_upcoming_matches(self) -> StoreResult:
        return self._clear(UPCOMING_TABLE)

    # -- Over 2.5 results -------------------------------------------------

    def insert_over25_results(self, results: List[Over25Result]) -> StoreResult:
        return self._append_rows(OVER25_TABLE, [r.to_dict() for r in results])

    def get_over25_results(self) -> List[Over25Result]:
        return [Over25Result.from_dict(r) for r in self._safe_read(OVER25_TABLE)]

    # -- Cache bucket / pattern -------------------------------------------

    def _upsert_by_key(self, name: str, key: str, rows: List[Row]) -> StoreResult:
        try:
            current = {r.get(key): r for r in self._read_table(name)}
            for row in rows:
                current[row.get(key)] = row
            self._write_table(name, list(current.values()))
        except (OSError, StoreError) as exc:
            LOGGER.error("Errore upsert %s: %s", name, exc)
            return StoreResult(success=False, error=str(exc))
        return StoreResult(success=True, count=len(rows))

    def get_bucket_stats(self, bucket_type: str) -> List[BucketPerformance]:
        return [
            BucketPerformance.from_dict(r)
            for r in self._safe_read(BUCKET_STATS_TABLE)
            if r.get("bucket_type") == bucket_type
        ]

    def upsert_bucket_stats(self, bucket_type: str, stats: List[BucketPerformance]) -> StoreResult:
        rows = []
        for s in stats:
            row = s.to_dict()
            row["bucket_type"] = bucket_type
            row["key"] = f"{bucket_type}:{s.bucket_range}"
            rows.append(row)
        return self._upsert_by_key(BUCKET_STATS_TABLE, "key", rows)

    def get_odds_patterns(self) -> List[OddsPattern]:
        return [OddsPattern.from_dict(r) for r in self._safe_read(PATTERNS_TABLE)]

    def upsert_odds_pattern(self, pattern: OddsPattern) -> StoreResult:
        return self._upsert_by_key(PATTERNS_TABLE, "pattern_hash", [pattern.to_dict()])


class InMemoryStore(BaseStore):
    """Store volatile, usato nei test e per esecuzioni one-shot."""

    def __init__(self, page_size: int = 1000) -> None:
        super().__init__(page_size)
        self._tables: Dict[str, List[Row]] = {}

    def _read_table(self, name: str) -> List[Row]:
        return [dict(r) for r in self._tables.get(name, [])]

    def _write_table(self, name: str, rows: List[Row]) -> None:
        self._tables[name] = [dict(r) for r in rows]


class JsonFileStore(BaseStore):
    """Un file JSON per tabella dentro `base_dir`, scritture atomiche (tmp + os.replace)."""

    def __init__(self, base_dir: Path, page_size: int = 1000) -> None:
        super().__init__(page_size)
        self.base_dir = Path(base_dir)

    def _path(self, name: str) -> Path:
        return self.base_dir / f"{name}.json"

    def _read_table(self, name: str) -> List[Row]:
        return _load_json_list(self._path(name))

    def _write_table(self, name: str, rows: List[Row]) -> None:
        _write_json_atomic(self._path(name), rows)


class NullStore(BaseStore):
    """
    Backend mancante / non configurato: ogni scrittura ritorna il fallimento uniforme
    "store non inizializzato", ogni lettura ritorna vuoto.
    """

    def _read_table(self, name: str) -> List[Row]:
        return []

    def _write_table(self, name: str, rows: List[Row]) -> None:
        raise StoreError(NOT_INITIALIZED)

    def _fail(self) -> StoreResult:
        return StoreResult(success=False, error=NOT_INITIALIZED)

    def insert_results(self, results: List[MatchResult]) -> StoreResult:
        return self._fail()

    def insert_odds(self, quotes: List[OddsQuote]) -> StoreResult:
        return self._fail()

    def clear_odds(self) -> StoreResult:
        return self._fail()

    def insert_prediction(self, record: PredictionRecord) -> StoreResult:
        return self._fail()

    def update_prediction(self, record: PredictionRecord) -> StoreResult:
        return self._fail()

    def insert_upcoming_match(self, entry: Dict[str, Any]) -> StoreResult:
        return self._fail()

    def clear_upcoming_matches(self) -> StoreResult:
        return self._fail()

    def insert_over25_results(self, results: List[Over25Result]) -> StoreResult:
        return self._fail()

    def upsert_bucket_stats(self, bucket_type: str, stats: List[BucketPerformance]) -> StoreResult:
        return self._fail()

    def upsert_odds_pattern(self, pattern: OddsPattern) -> StoreResult:
        return self._fail()


def open_store(settings: Settings) -> BaseStore:
    """
    Costruisce lo store a partire dai settings. Chiamato una volta dall'entry point
    (app FastAPI o script) e poi passato esplicitamente ai componenti.
    """
    backend = settings.store_backend
    if backend == "memory":
        return InMemoryStore(page_size=settings.results_page_size)
    if backend == "json":
        if not settings.data_dir or not settings.data_dir.strip():
            LOGGER.warning("EAGLE_DATA_DIR vuota: store non inizializzato")
            return NullStore()
        return JsonFileStore(Path(settings.data_dir), page_size=settings.results_page_size)
    LOGGER.warning("STORE_BACKEND=%s: store non inizializzato", backend)
    return NullStore()


__all__ = [
    "StoreResult",
    "StoreError",
    "BaseStore",
    "InMemoryStore",
    "JsonFileStore",
    "NullStore",
    "open_store",
    "NOT_INITIALIZED",
]
