from analysis.aggregation import (
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
from analysis.buckets import HOME_ODD, OVER25_ODD


def test_block_time_stats_two_matches(make_result):
    results = [make_result(home="A", away="B", hg=2, ag=1), make_result(home="A", away="C", hg=0, ag=0)]
    stats = block_time_stats(results, "08:00")
    assert stats.total_matches == 2
    assert stats.avg_goals == 1.5
    assert stats.over15_rate == 50.0
    # 2-1 fa 3 gol: Over 2.5
    assert stats.over25_rate == 50.0


def test_block_time_stats_filters_and_empty(make_result):
    results = [make_result(block="08:00", hg=1, ag=0), make_result(block="09:00", hg=3, ag=3)]
    only = block_time_stats(results, "09:00")
    assert only.total_matches == 1 and only.avg_goals == 6.0
    empty = block_time_stats(results, "23:59")
    assert empty.total_matches == 0 and empty.avg_goals == 0.0 and empty.over15_rate == 0.0


def test_overall_stats(make_result):
    stats = overall_stats([make_result(hg=1, ag=0), make_result(block="09:00", hg=2, ag=2)])
    assert stats.total_matches == 2
    assert stats.avg_goals == 2.5
    assert stats.over25_rate == 50.0


def test_team_stats_oriented_and_case_insensitive(make_result):
    results = [
        make_result(home="LEV", away="HSV", hg=3, ag=1),
        make_result(home="BAY", away="lev", hg=0, ag=2),
        make_result(home="BAY", away="DOR", hg=5, ag=5),
    ]
    ts = team_stats(results, "Lev")
    assert ts.matches_played == 2
    assert ts.avg_scored == 2.5
    assert ts.avg_conceded == 0.5
    assert ts.over15_rate == 100.0


def test_team_stats_unknown_team(make_result):
    ts = team_stats([make_result()], "ZZZ")
    assert ts.matches_played == 0 and ts.avg_scored == 0.0


def test_compute_streak_prefix_by_date(make_over25):
    records = [
        make_over25("2026-01-01", 0, 0),
        make_over25("2026-01-04", 2, 1),
        make_over25("2026-01-03", 3, 0),
        make_over25("2026-01-02", 1, 0),
    ]
    assert compute_streak(records) == (2, "over")


def test_compute_streak_empty_and_missing_dates(make_over25):
    assert compute_streak([]) == (0, "none")
    records = [make_over25(None, 3, 3), make_over25("2026-01-01", 0, 1)]
    assert compute_streak(records) == (1, "under")


def test_bucket_stats_ranked(make_over25):
    results = [
        make_over25("2026-01-01", 2, 1, home_odd=1.55),
        make_over25("2026-01-02", 0, 1, home_odd=1.60),
        make_over25("2026-01-03", 1, 0, home_odd=1.30),
        make_over25("2026-01-04", 1, 0, home_odd=2.50),
        make_over25("2026-01-05", 2, 2, home_odd=None),
    ]
    stats = bucket_stats(results, HOME_ODD)
    assert [(b.bucket_range, b.total_matches) for b in stats] == [
        ("1.41-1.70", 2),
        ("1.20-1.40", 1),
        ("2.21+", 1),
    ]
    top = stats[0]
    assert top.over25_hits == 1 and top.over25_rate == 50.0
    assert (top.current_streak, top.streak_type) == (1, "under")


def test_bucket_stats_over25_dimension(make_over25):
    stats = bucket_stats([make_over25("2026-01-01", 2, 1, over25_odd=1.90)], OVER25_ODD)
    assert stats[0].bucket_range == "1.81+"


def test_pattern_stats(make_over25):
    results = [
        make_over25("2026-01-01", 2, 1),
        make_over25("2026-01-03", 2, 2),
        make_over25("2026-01-02", 0, 0),
        make_over25("2026-01-04", 0, 0, home_odd=2.5, over25_odd=1.9),
        make_over25("2026-01-05", 0, 0, over25_odd=None),
    ]
    patterns = pattern_stats(results)
    assert [p.pattern_hash for p in patterns] == ["1.41-1.70_1.41-1.60", "2.21+_1.81+"]
    top = patterns[0]
    assert top.total_matches == 3 and top.over25_hits == 2
    assert top.last_seen == "2026-01-03"
    assert (top.current_streak, top.streak_type) == (1, "over")


def test_aggregation_does_not_mutate_and_is_repeatable(make_over25):
    results = [make_over25("2026-01-02", 0, 0), make_over25("2026-01-01", 3, 0)]
    snapshot = [r.to_dict() for r in results]
    first = [p.to_dict() for p in pattern_stats(results)]
    second = [p.to_dict() for p in pattern_stats(results)]
    assert first == second
    assert [r.to_dict() for r in results] == snapshot


def test_day_block_performance(make_over25):
    results = [
        make_over25("2026-01-01", 2, 1, block="08:00"),
        make_over25("2026-01-01", 0, 0, block=None),
        make_over25("2026-01-02", 2, 2, block="08:00"),
    ]
    by_day = day_block_performance(results, "day")
    assert [(d.date, d.total_matches, d.over25_hits) for d in by_day] == [
        ("2026-01-02", 1, 1),
        ("2026-01-01", 2, 1),
    ]
    by_block = day_block_performance(results, "block")
    assert {(d.date, d.block_id) for d in by_block} == {
        ("2026-01-02", "08:00"),
        ("2026-01-01", "08:00"),
        ("2026-01-01", "default"),
    }
    assert by_block[0].date == "2026-01-02"


def test_overall_over25_stats(make_over25):
    stats = overall_over25_stats([make_over25("2026-01-02", 2, 1), make_over25("2026-01-01", 0, 0)])
    assert stats.total_matches == 2
    assert stats.over25_rate == 50.0
    assert (stats.current_streak, stats.streak_type) == (1, "over")


def test_attach_odds(make_result, make_quote):
    results = [
        make_result(block="08:24", home="LEV", away="HSV", hg=2, ag=1, date="2026-01-26"),
        make_result(block="08:27", home="BAY", away="DOR", hg=0, ag=0),
        make_result(block="08:30", home="X", away="Y", hg=0, ag=0),
    ]
    quotes = [
        make_quote(block="08:24", home="lev", away="hsv", date="2026-01-26", over=1.5, under=2.4),
        make_quote(block="08:27", home="BAY", away="DOR", goal_line=1.5),
    ]
    linked = attach_odds(results, quotes)
    assert len(linked) == 2
    first, second = linked
    assert first.home_odd == 1.55 and first.over25_odd == 1.5 and first.under25_odd == 2.4
    assert first.result_over25 is True and first.block_id == "08:24"
    assert second.over25_odd is None and second.under25_odd is None


def test_attach_odds_date_mismatch(make_result, make_quote):
    linked = attach_odds(
        [make_result(date="2026-01-26")],
        [make_quote(date="2026-01-27")],
    )
    assert linked == []
