"""
Predictions package.

Contiene:
- scorer: scorer Over 1.5 (fascia oraria + squadre) e scorer Over 2.5 per struttura quote
- pipeline: orchestrazione su store (generazione, salvataggio, upcoming matches)
"""
from .pipeline import analyze_and_store_upcoming, generate_predictions, ingest_results, refresh_bucket_cache  # noqa: F401
from .scorer import analyze_match, analyze_upcoming_match  # noqa: F401

__all__ = [
    "analyze_match",
    "analyze_upcoming_match",
    "generate_predictions",
    "ingest_results",
    "analyze_and_store_upcoming",
]
