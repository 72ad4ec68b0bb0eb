from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple

from core.config import (
    DEFAULT_HOME_ODD_BUCKETS,
    DEFAULT_OVER25_ODD_BUCKETS,
    Settings,
)
from core.logging import get_logger
from core.models import BucketConfig, BucketRange

logger = get_logger("analysis.buckets")

HOME_ODD = "home_odd"
OVER25_ODD = "over25_odd"
DIMENSIONS = (HOME_ODD, OVER25_ODD)

_RANGE_RE = re.compile(r"^\s*([+-]?\d+(?:\.\d+)?)?\s*-\s*([+-]?\d+(?:\.\d+)?)?\s*$")


def parse_numeric_range(spec: str) -> Tuple[Optional[float], Optional[float]]:
    """
    Range numerici con estremi opzionali:
      "1.20-1.40" -> (1.2, 1.4)
      "2.21-"     -> (2.21, None)
      "-1.40"     -> (None, 1.4)
    Formato non valido -> (None, None).
    """
    spec = (spec or "").strip()
    m = _RANGE_RE.match(spec)
    if not spec or not m:
        return (None, None)
    left_s, right_s = m.group(1), m.group(2)
    left_v = float(left_s) if left_s is not None else None
    right_v = float(right_s) if right_s is not None else None
    return (left_v, right_v)


def parse_bucket_specs(specs: Sequence[str]) -> Tuple[BucketRange, ...]:
    out: List[BucketRange] = []
    for spec in specs:
        lo, hi = parse_numeric_range(spec)
        if lo is None and hi is None:
            logger.warning("Range bucket non valido ignorato: %r", spec)
            continue
        lo = lo if lo is not None else 0.0
        label = spec.strip() if hi is not None else f"{spec.strip().rstrip('-').strip()}+"
        out.append(BucketRange(label=label, min=lo, max=hi))
    if not out:
        raise ValueError(f"Nessun range bucket valido in {list(specs)!r}")
    return tuple(out)


def build_bucket_config(
    home_specs: Sequence[str],
    over25_specs: Sequence[str],
) -> BucketConfig:
    return BucketConfig(
        home_odd_buckets=parse_bucket_specs(home_specs),
        over25_odd_buckets=parse_bucket_specs(over25_specs),
    )


DEFAULT_BUCKET_CONFIG = build_bucket_config(
    DEFAULT_HOME_ODD_BUCKETS.split(","),
    DEFAULT_OVER25_ODD_BUCKETS.split(","),
)


def bucket_config_from_settings(settings: Settings) -> BucketConfig:
    return build_bucket_config(settings.home_odd_buckets, settings.over25_odd_buckets)


def _ranges(dimension: str, config: BucketConfig) -> Tuple[BucketRange, ...]:
    if dimension == HOME_ODD:
        return config.home_odd_buckets
    if dimension == OVER25_ODD:
        return config.over25_odd_buckets
    raise ValueError(f"Dimensione bucket sconosciuta: {dimension!r}")


def fallback_label(dimension: str, config: BucketConfig = DEFAULT_BUCKET_CONFIG) -> str:
    return _ranges(dimension, config)[-1].label


def classify(odd: float, dimension: str, config: BucketConfig = DEFAULT_BUCKET_CONFIG) -> str:
    """
    Primo range (inclusivo) che contiene la quota; se nessuno la contiene
    (quote oltre l'ultimo estremo, buchi tra range, valori <= 0) si ricade nel
    bucket più alto.
    """
    ranges = _ranges(dimension, config)
    for bucket in ranges:
        if bucket.contains(odd):
            return bucket.label
    return ranges[-1].label


def home_odd_bucket(odd: float, config: BucketConfig = DEFAULT_BUCKET_CONFIG) -> str:
    return classify(odd, HOME_ODD, config)


def over25_odd_bucket(odd: float, config: BucketConfig = DEFAULT_BUCKET_CONFIG) -> str:
    return classify(odd, OVER25_ODD, config)


def pattern_hash(home_bucket: str, over25_bucket: str) -> str:
    return f"{home_bucket}_{over25_bucket}"


__all__ = [
    "HOME_ODD",
    "OVER25_ODD",
    "DEFAULT_BUCKET_CONFIG",
    "parse_numeric_range",
    "build_bucket_config",
    "bucket_config_from_settings",
    "classify",
    "fallback_label",
    "home_odd_bucket",
    "over25_odd_bucket",
    "pattern_hash",
]
