from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from analysis.aggregation import bucket_stats, day_block_performance, overall_over25_stats, pattern_stats
from analysis.buckets import HOME_ODD, OVER25_ODD, bucket_config_from_settings
from api.deps import fail, get_store, ok
from core.config import get_settings
from core.logging import get_logger
from core.models import Over25Input
from core.persistence import BaseStore
from predictions.pipeline import analyze_and_store_upcoming

logger = get_logger("api.routes.over25")

router = APIRouter(prefix="/over25", tags=["over25"])


class UpcomingMatchPayload(BaseModel):
    home_team: str
    away_team: str
    home_odd: float = Field(gt=0)
    away_odd: float = Field(gt=0)
    over25_odd: float = Field(gt=0)
    under25_odd: float = Field(gt=0)
    match_date: Optional[str] = None
    block_id: Optional[str] = None


class Over25Action(BaseModel):
    action: str
    data: Optional[Dict[str, Any]] = None


@router.get("", summary="Analisi storica Over 2.5 per struttura quote")
def over25_analysis(
    action: Optional[str] = Query(None, description="bucket-stats|patterns|day-performance|block-performance|overall|upcoming"),
    type: str = Query(HOME_ODD, description="Dimensione bucket per action=bucket-stats"),
    store: BaseStore = Depends(get_store),
):
    config = bucket_config_from_settings(get_settings())

    if action == "upcoming":
        return ok(store.get_upcoming_matches())

    results = store.get_over25_results()

    if action == "bucket-stats":
        if type not in (HOME_ODD, OVER25_ODD):
            return fail(f"type non valido: {type}")
        return ok([b.to_dict() for b in bucket_stats(results, type, config)])
    if action == "patterns":
        return ok([p.to_dict() for p in pattern_stats(results, config)])
    if action == "day-performance":
        return ok([d.to_dict() for d in day_block_performance(results, "day")])
    if action == "block-performance":
        return ok([d.to_dict() for d in day_block_performance(results, "block")])
    if action == "overall":
        return ok(overall_over25_stats(results).to_dict())
    if action:
        return fail(f"action non valida: {action}")

    return ok(
        {
            "results": [r.to_dict() for r in results],
            "home_odd_buckets": [b.to_dict() for b in bucket_stats(results, HOME_ODD, config)],
            "over25_odd_buckets": [b.to_dict() for b in bucket_stats(results, OVER25_ODD, config)],
            "patterns": [p.to_dict() for p in pattern_stats(results, config)],
            "day_performance": [d.to_dict() for d in day_block_performance(results, "day")],
            "overall_stats": overall_over25_stats(results).to_dict(),
        }
    )


@router.post("", summary="Analizza un upcoming match o svuota gli upcoming")
def over25_action(body: Over25Action, store: BaseStore = Depends(get_store)):
    if body.action == "analyze":
        try:
            payload = UpcomingMatchPayload.model_validate(body.data or {})
        except ValueError as exc:
            logger.info("Input upcoming match non valido: %s", exc)
            return fail("Quote mancanti o non valide")
        match = Over25Input(**payload.model_dump())
        analysis = analyze_and_store_upcoming(store, match)
        return ok({"input": match.to_dict(), "analysis": analysis.to_dict()})

    if body.action == "clear-upcoming":
        res = store.clear_upcoming_matches()
        if not res.success:
            return fail(res.error or "clear fallito", status_code=500)
        return ok(res.to_dict())

    return fail("action non valida")
