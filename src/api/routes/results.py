from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel

from analysis.aggregation import block_time_stats
from api.deps import fail, get_store, ok
from core.logging import get_logger
from core.persistence import BaseStore
from parsers.feed import parse_feed_payload
from parsers.text import parse_results_text
from predictions.pipeline import ingest_results

logger = get_logger("api.routes.results")

router = APIRouter(prefix="/results", tags=["results"])


class TextPayload(BaseModel):
    text: str


def _store_parsed(store: BaseStore, outcome):
    if not outcome.valid:
        return fail(outcome.error or "input non valido")
    res, over25 = ingest_results(store, outcome.data)
    if not res.success:
        return fail(res.error or "salvataggio fallito", status_code=500)
    return ok(res.to_dict(), over25_linked=over25)


@router.post("/feed", summary="Import results da feed JSON")
def import_feed(payload: Any = Body(...), store: BaseStore = Depends(get_store)):
    return _store_parsed(store, parse_feed_payload(payload))


@router.post("/text", summary="Import results da testo incollato")
def import_text(body: TextPayload, store: BaseStore = Depends(get_store)):
    return _store_parsed(store, parse_results_text(body.text))


@router.get("/stats", summary="Statistiche storiche (globali o per fascia oraria)")
def stats(
    block_time: Optional[str] = Query(None, description="Fascia oraria HH:MM"),
    store: BaseStore = Depends(get_store),
):
    if block_time:
        data = block_time_stats(store.get_all_results(), block_time)
    else:
        data = store.get_historical_stats()
    return ok(data.to_dict())
