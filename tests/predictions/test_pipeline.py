from dataclasses import replace

import pytest

from analysis.buckets import HOME_ODD
from analytics.performance import compute_performance_metrics, link_results_to_predictions
from core.config import get_settings
from core.models import Over25Input, PredictionRecord
from core.persistence import NullStore
from predictions.pipeline import analyze_and_store_upcoming, generate_predictions, ingest_results

# dedup su (fascia, squadre, score): per avere un campione servono score distinti
SCORES = [(2, 0), (0, 2), (1, 1), (2, 1), (1, 2), (3, 0), (0, 3), (2, 2), (3, 1), (1, 3)]


def _history(make_result, home, away):
    return [make_result(home=home, away=away, hg=hg, ag=ag) for hg, ag in SCORES]


def _seed(store, make_result, make_quote):
    store.insert_results(_history(make_result, "A", "B"))
    store.insert_odds([make_quote(home="A", away="B"), make_quote(home="C", away="D")])


def test_generate_predictions_stores_non_risky_once(store, make_result, make_quote):
    _seed(store, make_result, make_quote)
    preds = generate_predictions(store, get_settings())
    assert [p.status for p in preds] == ["SAFE", "RISKY"]

    stored = store.get_predictions()
    assert len(stored) == 1
    rec = stored[0]
    assert (rec.home_team, rec.away_team, rec.prediction) == ("A", "B", "OVER 1.5")
    assert rec.predicted_probability == 95.0
    assert rec.resolved is False
    # linea 2.5: nessuna quota OVER 1.5 da registrare
    assert rec.odd is None

    generate_predictions(store, get_settings())
    assert len(store.get_predictions()) == 1


def test_generate_predictions_undated_quote_after_resolution(store, make_result, make_quote):
    _seed(store, make_result, make_quote)
    generate_predictions(store)
    first = store.get_predictions()[0]
    store.update_prediction(replace(first, resolved=True, is_correct=True))

    generate_predictions(store)
    stored = store.get_predictions()
    assert len(stored) == 2
    assert len(store.get_pending_predictions()) == 1


def test_generate_predictions_tracking_disabled(monkeypatch, store, make_result, make_quote):
    monkeypatch.setenv("ENABLE_PREDICTION_TRACKING", "0")
    _seed(store, make_result, make_quote)
    preds = generate_predictions(store)
    assert len(preds) == 2
    assert store.get_predictions() == []


def test_tracked_predictions_profit_after_linking(store, make_result, make_quote):
    store.insert_results(_history(make_result, "A", "B") + _history(make_result, "C", "D"))
    store.insert_odds(
        [
            make_quote(home="A", away="B", goal_line=1.5, over=1.30),
            make_quote(home="C", away="D", goal_line=1.5, over=1.30),
        ]
    )
    preds = generate_predictions(store)
    assert [p.status for p in preds] == ["SAFE", "SAFE"]
    assert [r.odd for r in store.get_predictions()] == [1.30, 1.30]

    # results successivi alle predictions: A-B Over 1.5, C-D no
    store.insert_results([make_result(home="A", away="B", hg=4, ag=0), make_result(home="C", away="D", hg=1, ag=0)])
    outcome = link_results_to_predictions(store)
    assert outcome.success and outcome.updated == 2

    by_home = {r.home_team: r for r in store.get_predictions()}
    assert by_home["A"].is_correct is True
    assert by_home["A"].profit_loss == pytest.approx(0.3)
    assert by_home["C"].is_correct is False
    assert by_home["C"].profit_loss == -1.0

    m = compute_performance_metrics(store.get_predictions())
    assert m.accuracy == 50.0
    assert m.profit_units == pytest.approx(-0.7)
    assert m.yield_pct == pytest.approx(-35.0)


def _resolved(rid, correct):
    return PredictionRecord(
        id=rid,
        created_at="2026-01-01T00:00:00+00:00",
        block_time="07:00",
        home_team=f"X{rid}",
        away_team="Y",
        prediction="OVER 1.5",
        predicted_probability=80.0,
        status="SAFE",
        resolved=True,
        resolved_at="2026-01-01T01:00:00+00:00",
        is_correct=correct,
    )


def test_generate_predictions_with_calibration(monkeypatch, store, make_result, make_quote):
    monkeypatch.setenv("ENABLE_CALIBRATION", "1")
    monkeypatch.setenv("CALIBRATION_MIN_SAMPLES", "2")
    _seed(store, make_result, make_quote)
    store.insert_prediction(_resolved("1", True))
    store.insert_prediction(_resolved("2", False))

    preds = generate_predictions(store)
    safe = preds[0]
    # accuracy 50% / probabilità media 80% = 0.625
    assert safe.calibrated_probability == 59.4
    rec = store.get_prediction_by_match("A", "B", pending_only=True)
    assert rec.predicted_probability == 95.0
    assert rec.calibrated_probability == 59.4


def test_calibration_uses_raw_probabilities_across_rounds(monkeypatch, store, make_result, make_quote):
    monkeypatch.setenv("ENABLE_CALIBRATION", "1")
    monkeypatch.setenv("CALIBRATION_MIN_SAMPLES", "10")
    _seed(store, make_result, make_quote)
    for i in range(10):
        store.insert_prediction(_resolved(str(i), i < 6))

    # primo giro: 60% osservato / 80% previsto = 0.75
    first = generate_predictions(store)[0]
    assert first.calibrated_probability == pytest.approx(71.25, abs=0.06)
    rec = store.get_prediction_by_match("A", "B", pending_only=True)
    assert rec.predicted_probability == 95.0

    store.update_prediction(replace(rec, resolved=True, resolved_at="2026-01-02T00:00:00+00:00", is_correct=True))

    # secondo giro: il fattore si ricalcola sulle probabilità grezze (10 x 80 + 95)
    avg_prob = (10 * 80.0 + 95.0) / 11
    factor = round((7 / 11 * 100) / avg_prob, 4)
    second = generate_predictions(store)[0]
    assert second.calibrated_probability == round(max(0.0, min(100.0, 95 * factor)), 1)
    assert second.calibrated_probability == pytest.approx(74.3)


def test_calibration_skipped_below_min_samples(monkeypatch, store, make_result, make_quote):
    monkeypatch.setenv("ENABLE_CALIBRATION", "1")
    _seed(store, make_result, make_quote)
    store.insert_prediction(_resolved("1", True))
    preds = generate_predictions(store)
    assert preds[0].calibrated_probability is None



def test_ingest_results_links_over25_once(store, make_result, make_quote):
    store.insert_odds([make_quote(block="08:24", home="LEV", away="HSV")])
    batch = [make_result(block="08:24", home="LEV", away="HSV", hg=2, ag=1), make_result(home="Q", away="R")]

    res, linked = ingest_results(store, batch)
    assert res.success and res.count == 2
    assert linked == 1
    over25 = store.get_over25_results()
    assert len(over25) == 1 and over25[0].result_over25 is True
    assert [b.bucket_range for b in store.get_bucket_stats(HOME_ODD)] == ["1.41-1.70"]
    assert store.get_odds_patterns()[0].pattern_hash == "1.41-1.70_1.61-1.80"

    res, linked = ingest_results(store, batch)
    assert res.duplicates == 2
    assert linked == 0
    assert len(store.get_over25_results()) == 1


def test_analyze_and_store_upcoming(store, make_over25):
    store.insert_over25_results([make_over25(f"2026-01-{d:02d}", 2, 1) for d in range(1, 11)])
    match = Over25Input(home_team="LEV", away_team="HSV", home_odd=1.55, away_odd=4.0, over25_odd=1.5, under25_odd=2.5)
    analysis = analyze_and_store_upcoming(store, match)
    assert analysis.total_in_bucket == 10
    assert analysis.confidence_indicator == "MEDIUM"

    upcoming = store.get_upcoming_matches()
    assert len(upcoming) == 1
    assert upcoming[0]["home_team"] == "LEV"
    assert upcoming[0]["analysis"]["bucket_home"] == "1.41-1.70"


def test_analyze_upcoming_with_null_store_still_returns_analysis():
    match = Over25Input(home_team="LEV", away_team="HSV", home_odd=1.55, away_odd=4.0, over25_odd=1.5, under25_odd=2.5)
    analysis = analyze_and_store_upcoming(NullStore(), match)
    assert analysis.confidence_indicator == "LOW"
