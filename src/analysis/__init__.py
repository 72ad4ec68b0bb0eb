"""
Analisi statistica dei risultati:
- buckets: classificazione delle quote in range configurabili
- aggregation: statistiche per fascia oraria, squadra, bucket, pattern, giorno/blocco
"""
from .aggregation import (  # noqa: F401
    attach_odds,
    block_time_stats,
    bucket_stats,
    compute_streak,
    day_block_performance,
    overall_over25_stats,
    overall_stats,
    pattern_stats,
    team_stats,
)
from .buckets import (  # noqa: F401
    DEFAULT_BUCKET_CONFIG,
    HOME_ODD,
    OVER25_ODD,
    bucket_config_from_settings,
    classify,
    home_odd_bucket,
    over25_odd_bucket,
    pattern_hash,
)

__all__ = [
    "attach_odds",
    "block_time_stats",
    "bucket_stats",
    "compute_streak",
    "day_block_performance",
    "overall_over25_stats",
    "overall_stats",
    "pattern_stats",
    "team_stats",
    "DEFAULT_BUCKET_CONFIG",
    "HOME_ODD",
    "OVER25_ODD",
    "bucket_config_from_settings",
    "classify",
    "home_odd_bucket",
    "over25_odd_bucket",
    "pattern_hash",
]
