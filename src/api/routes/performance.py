from __future__ import annotations

from fastapi import APIRouter, Depends

from analytics.performance import compute_performance_metrics, link_results_to_predictions
from api.deps import fail, get_store, ok
from core.config import get_settings
from core.persistence import BaseStore

router = APIRouter(prefix="/performance", tags=["performance"])


@router.get("", summary="Metriche di performance delle predictions")
def performance(store: BaseStore = Depends(get_store)):
    settings = get_settings()
    metrics = compute_performance_metrics(
        store.get_predictions(),
        rolling_window=settings.performance_rolling_window,
        bands=settings.performance_probability_bands,
    )
    return ok(metrics.to_dict())


@router.post("/link", summary="Collega i results alle predictions pending")
def link(store: BaseStore = Depends(get_store)):
    outcome = link_results_to_predictions(store)
    if not outcome.success:
        return fail(outcome.error or "collegamento fallito", status_code=500, data={"updated": outcome.updated})
    return ok(outcome.to_dict())
