import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, List


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    v = value.strip().lower()
    if v in {"0", "false", "no"}:
        return False
    return True


def _parse_list(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    parts = [p.strip() for p in value.split(",")]
    clean = [p for p in parts if p]
    return clean or None


DEFAULT_HOME_ODD_BUCKETS = "1.20-1.40,1.41-1.70,1.71-2.20,2.21-"
DEFAULT_OVER25_ODD_BUCKETS = "1.00-1.40,1.41-1.60,1.61-1.80,1.81-"
DEFAULT_PROBABILITY_BANDS = "0-50,50-60,60-70,70-80,80-90,90-"


@dataclass
class Settings:
    data_dir: str
    log_level: str

    store_backend: str
    results_page_size: int

    score_parse_policy: str
    block_timezone: str

    home_odd_buckets: List[str]
    over25_odd_buckets: List[str]

    enable_prediction_tracking: bool
    enable_calibration: bool
    calibration_min_samples: int

    performance_rolling_window: int
    performance_probability_bands: List[str]

    feed_url: Optional[str]
    feed_max_attempts: int
    feed_backoff_base: float
    feed_backoff_factor: float
    feed_backoff_jitter: float
    feed_timeout: float

    enable_prometheus_exporter: bool
    prometheus_port: int

    @classmethod
    def from_env(cls) -> "Settings":
        def _int(name: str, default: int) -> int:
            raw = os.getenv(name)
            if not raw:
                return default
            try:
                return int(raw)
            except ValueError as e:
                raise ValueError(f"Variabile {name} deve essere un intero (valore: {raw!r})") from e

        def _float(name: str, default: float) -> float:
            raw = os.getenv(name)
            if not raw:
                return default
            try:
                return float(raw)
            except ValueError as e:
                raise ValueError(f"Variabile {name} deve essere un numero (valore: {raw!r})") from e

        data_dir = os.getenv("EAGLE_DATA_DIR", "data")
        log_level = os.getenv("EAGLE_LOG_LEVEL", "INFO").upper()

        store_backend = os.getenv("STORE_BACKEND", "json").lower()
        if store_backend not in {"json", "memory", "none"}:
            store_backend = "json"
        results_page_size = _int("RESULTS_PAGE_SIZE", 1000)
        if results_page_size < 1:
            results_page_size = 1000

        score_parse_policy = os.getenv("SCORE_PARSE_POLICY", "zero").lower()
        if score_parse_policy not in {"zero", "strict"}:
            score_parse_policy = "zero"
        block_timezone = os.getenv("BLOCK_TIMEZONE", "UTC")

        home_odd_buckets = _parse_list(os.getenv("HOME_ODD_BUCKETS")) or _parse_list(DEFAULT_HOME_ODD_BUCKETS)
        over25_odd_buckets = _parse_list(os.getenv("OVER25_ODD_BUCKETS")) or _parse_list(DEFAULT_OVER25_ODD_BUCKETS)

        enable_prediction_tracking = _parse_bool(os.getenv("ENABLE_PREDICTION_TRACKING"), True)
        enable_calibration = _parse_bool(os.getenv("ENABLE_CALIBRATION"), False)
        calibration_min_samples = _int("CALIBRATION_MIN_SAMPLES", 20)

        performance_rolling_window = _int("PERFORMANCE_ROLLING_WINDOW", 50)
        if performance_rolling_window < 1:
            performance_rolling_window = 50
        performance_probability_bands = _parse_list(os.getenv("PERFORMANCE_PROBABILITY_BANDS")) or _parse_list(
            DEFAULT_PROBABILITY_BANDS
        )

        feed_url = os.getenv("FEED_URL") or None
        feed_max_attempts = _int("FEED_MAX_ATTEMPTS", 3)
        if feed_max_attempts < 1:
            feed_max_attempts = 1
        feed_backoff_base = _float("FEED_BACKOFF_BASE", 0.5)
        feed_backoff_factor = _float("FEED_BACKOFF_FACTOR", 2.0)
        feed_backoff_jitter = _float("FEED_BACKOFF_JITTER", 0.2)
        feed_timeout = _float("FEED_TIMEOUT", 10.0)

        enable_prometheus_exporter = _parse_bool(os.getenv("ENABLE_PROMETHEUS_EXPORTER"), False)
        prometheus_port = _int("PROMETHEUS_PORT", 9100)

        return cls(
            data_dir=data_dir,
            log_level=log_level,
            store_backend=store_backend,
            results_page_size=results_page_size,
            score_parse_policy=score_parse_policy,
            block_timezone=block_timezone,
            home_odd_buckets=home_odd_buckets or [],
            over25_odd_buckets=over25_odd_buckets or [],
            enable_prediction_tracking=enable_prediction_tracking,
            enable_calibration=enable_calibration,
            calibration_min_samples=calibration_min_samples,
            performance_rolling_window=performance_rolling_window,
            performance_probability_bands=performance_probability_bands or [],
            feed_url=feed_url,
            feed_max_attempts=feed_max_attempts,
            feed_backoff_base=feed_backoff_base,
            feed_backoff_factor=feed_backoff_factor,
            feed_backoff_jitter=feed_backoff_jitter,
            feed_timeout=feed_timeout,
            enable_prometheus_exporter=enable_prometheus_exporter,
            prometheus_port=prometheus_port,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def _reset_settings_cache_for_tests() -> None:
    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "_reset_settings_cache_for_tests"]
