from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.deps import get_store, ok
from core.logging import get_logger
from core.persistence import BaseStore
from predictions.pipeline import generate_predictions

logger = get_logger("api.routes.predictions")

router = APIRouter(prefix="/predictions", tags=["predictions"])


@router.get("", summary="Predictions per le quote correnti")
def list_predictions(store: BaseStore = Depends(get_store)):
    """
    Valuta tutte le quote correnti contro lo storico dei results.
    Con ENABLE_PREDICTION_TRACKING le predictions non RISKY vengono anche salvate.
    """
    preds = generate_predictions(store)
    return ok([p.to_dict() for p in preds])


@router.get("/history", summary="Predictions salvate (più recenti prima)")
def history(
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Limite max risultati"),
    store: BaseStore = Depends(get_store),
):
    return ok([r.to_dict() for r in store.get_predictions(limit)])
