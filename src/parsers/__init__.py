"""
Parser degli input grezzi:
- feed: feed JSON dei risultati (solo eventi conclusi)
- text: righe incollate a mano (risultati e quote)

Ogni entry point ritorna un ParseOutcome (valid / data / error), mai eccezioni.
"""
from .common import ParseError, ParseOutcome, normalize_date  # noqa: F401
from .feed import parse_feed_payload, parse_feed_text  # noqa: F401
from .text import parse_odds_text, parse_results_text  # noqa: F401

__all__ = [
    "ParseError",
    "ParseOutcome",
    "normalize_date",
    "parse_feed_payload",
    "parse_feed_text",
    "parse_odds_text",
    "parse_results_text",
]
