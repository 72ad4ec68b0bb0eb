import pytest

from core.config import get_settings, _reset_settings_cache_for_tests


def test_defaults(monkeypatch) -> None:
    monkeypatch.delenv("RESULTS_PAGE_SIZE", raising=False)
    _reset_settings_cache_for_tests()
    s = get_settings()
    assert s.store_backend == "json"
    assert s.score_parse_policy == "zero"
    assert s.block_timezone == "UTC"
    assert s.results_page_size == 1000
    assert s.home_odd_buckets == ["1.20-1.40", "1.41-1.70", "1.71-2.20", "2.21-"]
    assert s.enable_prediction_tracking is True
    assert s.enable_calibration is False
    assert s.calibration_min_samples == 20


def test_invalid_int_raises(monkeypatch) -> None:
    monkeypatch.setenv("RESULTS_PAGE_SIZE", "tanti")
    _reset_settings_cache_for_tests()
    with pytest.raises(ValueError) as exc:
        get_settings()
    assert "RESULTS_PAGE_SIZE" in str(exc.value)


def test_invalid_float_raises(monkeypatch) -> None:
    monkeypatch.setenv("FEED_TIMEOUT", "veloce")
    _reset_settings_cache_for_tests()
    with pytest.raises(ValueError) as exc:
        get_settings()
    assert "FEED_TIMEOUT" in str(exc.value)


def test_invalid_enum_falls_back(monkeypatch) -> None:
    monkeypatch.setenv("STORE_BACKEND", "postgres")
    monkeypatch.setenv("SCORE_PARSE_POLICY", "boh")
    _reset_settings_cache_for_tests()
    s = get_settings()
    assert s.store_backend == "json"
    assert s.score_parse_policy == "zero"


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("STORE_BACKEND", "Memory")
    monkeypatch.setenv("SCORE_PARSE_POLICY", "strict")
    monkeypatch.setenv("HOME_ODD_BUCKETS", "1.0-1.5, 1.51-")
    monkeypatch.setenv("ENABLE_PREDICTION_TRACKING", "0")
    _reset_settings_cache_for_tests()
    s = get_settings()
    assert s.store_backend == "memory"
    assert s.score_parse_policy == "strict"
    assert s.home_odd_buckets == ["1.0-1.5", "1.51-"]
    assert s.enable_prediction_tracking is False


def test_settings_cached() -> None:
    assert get_settings() is get_settings()
