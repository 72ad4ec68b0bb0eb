import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402
from core.config import _reset_settings_cache_for_tests  # noqa: E402
from core.models import MatchResult, OddsQuote, Over25Result  # noqa: E402
from core.persistence import InMemoryStore  # noqa: E402


@pytest.fixture(autouse=True)
def reset_settings_cache(monkeypatch):
    for var in (
        "STORE_BACKEND",
        "SCORE_PARSE_POLICY",
        "BLOCK_TIMEZONE",
        "HOME_ODD_BUCKETS",
        "OVER25_ODD_BUCKETS",
        "ENABLE_PREDICTION_TRACKING",
        "ENABLE_CALIBRATION",
        "ENABLE_PROMETHEUS_EXPORTER",
        "FEED_URL",
    ):
        monkeypatch.delenv(var, raising=False)
    _reset_settings_cache_for_tests()
    yield
    _reset_settings_cache_for_tests()


@pytest.fixture
def store():
    return InMemoryStore(page_size=3)


def _make_result(block="08:00", home="A", away="B", hg=1, ag=1, date=None):
    return MatchResult(
        block_time=block,
        home_team=home,
        away_team=away,
        home_goals=hg,
        away_goals=ag,
        match_date=date,
    )


def _make_quote(block="08:00", home="A", away="B", date=None, goal_line=2.5, over=1.8, under=2.0):
    return OddsQuote(
        block_time=block,
        home_team=home,
        away_team=away,
        home_odd=1.55,
        draw_odd=3.5,
        away_odd=4.2,
        goal_line=goal_line,
        over_odd=over,
        under_odd=under,
        match_date=date,
    )


def _make_over25(date, hg, ag, home_odd=1.55, over25_odd=1.50, block=None):
    return Over25Result(
        match_date=date,
        home_team="H",
        away_team="A",
        home_goals=hg,
        away_goals=ag,
        home_odd=home_odd,
        over25_odd=over25_odd,
        block_id=block,
    )


@pytest.fixture
def make_result():
    return _make_result


@pytest.fixture
def make_quote():
    return _make_quote


@pytest.fixture
def make_over25():
    return _make_over25
