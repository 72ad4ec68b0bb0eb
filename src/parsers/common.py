from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Generic, List, Optional, TypeVar

T = TypeVar("T")

DATE_TOKEN_PATTERN = re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$")


class ParseError(ValueError):
    """Riga (o file) non valida: interrompe l'intero batch."""

    def __init__(self, message: str, line: Optional[int] = None) -> None:
        self.line = line
        self.message = message
        super().__init__(f"Riga {line}: {message}" if line is not None else message)


@dataclass
class ParseOutcome(Generic[T]):
    """Esito taggato di un parser: valid=True con data, oppure valid=False con error."""

    valid: bool
    data: List[T] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: List[T]) -> "ParseOutcome[T]":
        return cls(valid=True, data=data)

    @classmethod
    def fail(cls, error: Any) -> "ParseOutcome[T]":
        return cls(valid=False, error=str(error))


def normalize_date(token: Optional[str]) -> Optional[str]:
    """
    DD/MM/YYYY -> YYYY-MM-DD (zero padding su giorno e mese).
    Un token che non si divide in tre parti ritorna None invece di essere rifiutato.
    """
    if not token:
        return None
    parts = token.strip().split("/")
    if len(parts) != 3:
        return None
    day, month, year = parts
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


__all__ = ["ParseError", "ParseOutcome", "normalize_date", "DATE_TOKEN_PATTERN"]
