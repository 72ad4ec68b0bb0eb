from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from core.config import get_settings
from core.logging import get_logger
from core.persistence import BaseStore, NullStore, open_store

from api.routes.health import router as health_router
from api.routes.results import router as results_router
from api.routes.odds import router as odds_router
from api.routes.predictions import router as predictions_router
from api.routes.over25 import router as over25_router
from api.routes.performance import router as performance_router
from api.routes.metrics import router as metrics_router

logger = get_logger("api.app")


def create_app(store: Optional[BaseStore] = None) -> FastAPI:
    """
    Lo store viene costruito una volta qui (o passato dai test) e reso disponibile
    alle route tramite app.state.store.
    """
    app = FastAPI(title="Eagle Eye API", version="0.1.0")
    if store is None:
        try:
            store = open_store(get_settings())
        except ValueError as exc:
            logger.error("Impossibile caricare settings: %s", exc)
            store = NullStore()
    app.state.store = store

    app.include_router(health_router)
    app.include_router(results_router)
    app.include_router(odds_router)
    app.include_router(predictions_router)
    app.include_router(over25_router)
    app.include_router(performance_router)
    app.include_router(metrics_router)
    return app


app = create_app()
