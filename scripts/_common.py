from __future__ import annotations

import sys
from typing import Optional, Tuple

from dotenv import find_dotenv, load_dotenv

from core.config import Settings, get_settings
from core.logging import get_logger
from core.persistence import BaseStore, open_store

log = get_logger("scripts.common")


def load_env() -> None:
    p = find_dotenv(usecwd=True)
    if p:
        load_dotenv(p, override=True)


def bootstrap() -> Optional[Tuple[Settings, BaseStore]]:
    """Carica .env, settings e store; None se la configurazione non è valida."""
    load_env()
    try:
        settings = get_settings()
    except ValueError as e:
        log.error("Configurazione non valida: %s", e)
        return None
    return settings, open_store(settings)


def read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as fh:
        return fh.read()
