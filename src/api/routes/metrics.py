from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST

from api.deps import get_store
from core.persistence import BaseStore
from monitoring.prometheus_exporter import render_metrics, update_prom_metrics

router = APIRouter(tags=["metrics"])


@router.get("/metrics", summary="Metriche in formato Prometheus")
def get_metrics(store: BaseStore = Depends(get_store)):
    update_prom_metrics(store)
    return Response(content=render_metrics(), media_type=CONTENT_TYPE_LATEST)
