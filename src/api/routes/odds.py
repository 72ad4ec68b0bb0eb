from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.deps import fail, get_store, ok
from core.persistence import BaseStore
from parsers.text import parse_odds_text

router = APIRouter(prefix="/odds", tags=["odds"])


class TextPayload(BaseModel):
    text: str


@router.post("", summary="Sostituisce le quote correnti (clear + insert)")
def replace_odds(body: TextPayload, store: BaseStore = Depends(get_store)):
    outcome = parse_odds_text(body.text)
    if not outcome.valid:
        return fail(outcome.error or "input non valido")
    cleared = store.clear_odds()
    if not cleared.success:
        return fail(cleared.error or "clear quote fallito", status_code=500)
    res = store.insert_odds(outcome.data)
    if not res.success:
        return fail(res.error or "salvataggio quote fallito", status_code=500)
    return ok(res.to_dict())


@router.get("", summary="Quote correnti")
def list_odds(store: BaseStore = Depends(get_store)):
    return ok([q.to_dict() for q in store.get_all_odds()])
