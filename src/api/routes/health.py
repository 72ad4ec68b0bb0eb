from __future__ import annotations

from fastapi import APIRouter, Depends

from api.deps import get_store
from core.config import get_settings
from core.persistence import BaseStore, NullStore

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health check")
def health(store: BaseStore = Depends(get_store)):
    """Stato del servizio: backend dello store, flag attivi e quote correnti caricate."""
    settings = get_settings()
    ready = not isinstance(store, NullStore)
    return {
        "status": "ok",
        "store_backend": settings.store_backend,
        "store_ready": ready,
        "odds_loaded": len(store.get_all_odds()) if ready else 0,
        "prediction_tracking_enabled": settings.enable_prediction_tracking,
        "calibration_enabled": settings.enable_calibration,
    }
