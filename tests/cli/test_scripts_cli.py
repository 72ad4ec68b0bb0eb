import json

import pytest

from core.persistence import JsonFileStore
from scripts import import_odds, import_results, link_results, run_predictions


@pytest.fixture
def json_env(monkeypatch, tmp_path):
    monkeypatch.setenv("STORE_BACKEND", "json")
    monkeypatch.setenv("EAGLE_DATA_DIR", str(tmp_path))
    return tmp_path


def test_import_results_text_and_duplicates(json_env):
    src = json_env / "results.txt"
    src.write_text("08:00\tA 2-1 B\n08:00\tA 0-0 C\n", encoding="utf-8")

    assert import_results.main([str(src), "--format", "text"]) == 0
    assert import_results.main([str(src), "--format", "text"]) == 0
    assert len(JsonFileStore(json_env).get_all_results()) == 2


def test_import_results_invalid_file(json_env):
    src = json_env / "feed.json"
    src.write_text(json.dumps({"bizCode": 10000}), encoding="utf-8")
    assert import_results.main([str(src)]) == 1


def test_import_odds_then_predictions_and_link(json_env):
    odds = json_env / "odds.txt"
    odds.write_text(
        "Time\tEvent\t1\tX\t2\tGoals\tOver\tUnder\n08:00\tA - B\t1.55\t3.80\t5.20\t2.5\t1.45\t2.60\n",
        encoding="utf-8",
    )
    assert import_odds.main([str(odds)]) == 0
    assert len(JsonFileStore(json_env).get_all_odds()) == 1

    assert run_predictions.main() == 0
    assert link_results.main() == 0
