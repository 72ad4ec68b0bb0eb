from __future__ import annotations

from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from core.persistence import BaseStore


def get_store(request: Request) -> BaseStore:
    return request.app.state.store


def ok(data: Any = None, **extra: Any) -> dict:
    out = {"success": True, "data": data}
    out.update(extra)
    return out


def fail(error: str, status_code: int = 400, data: Optional[Any] = None) -> JSONResponse:
    content = {"success": False, "error": error}
    if data is not None:
        content["data"] = data
    return JSONResponse(status_code=status_code, content=content)
