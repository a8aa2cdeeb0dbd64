"""Cohort statistics, rankings and cohort construction."""
import pytest

from movers_analysis.change_computer import ChangeRecord
from movers_analysis.stats_analyzer import (
    StatisticsAnalyzer,
    calculate_median,
    format_change,
    generate_time_label,
)
from movers_analysis.universe import UniverseSelection
from movers_analysis.validation import Watchlist


def records(*pairs):
    return [ChangeRecord(symbol, change) for symbol, change in pairs]


@pytest.mark.parametrize("values, expected", [
    ([1, 2, 3], 2),
    ([1, 2, 3, 4], 2.5),
    ([], 0),
    ([5], 5),
    ([3, -1, 2], 2),
])
def test_median(values, expected):
    assert calculate_median(values) == expected


def test_stats_counts_zero_as_neither():
    stats = StatisticsAnalyzer().calculate_stats(records(("A", 4.0), ("B", -2.0), ("C", 0.0), ("D", 1.0)))

    assert stats.mean == pytest.approx(0.75)
    assert stats.median == pytest.approx(0.5)
    assert stats.gainer_count == 2
    assert stats.loser_count == 1
    assert stats.count == 4


def test_stats_on_empty_cohort():
    stats = StatisticsAnalyzer().calculate_stats([])
    assert (stats.mean, stats.median, stats.gainer_count, stats.loser_count, stats.count) == (0, 0, 0, 0, 0)


def test_small_cohort_single_performance_table():
    tables = StatisticsAnalyzer().rank(records(("A", 1.0), ("B", 3.0), ("C", -2.0)))

    assert len(tables) == 1
    assert tables[0].title == "Performance"
    assert [r.symbol for r in tables[0].rows] == ["B", "A", "C"]


def test_large_cohort_gainers_and_losers():
    data = records(*[(f"S{i:02d}", float(i - 7)) for i in range(15)])
    gainers, losers = StatisticsAnalyzer().rank(data)

    assert gainers.title == "Top 10 Gainers"
    assert losers.title == "Top 10 Losers"
    assert [r.change_percent for r in gainers.rows] == [7, 6, 5, 4, 3, 2, 1, 0, -1, -2]
    assert [r.change_percent for r in losers.rows] == [-7, -6, -5, -4, -3, -2, -1, 0, 1, 2]


def test_ties_keep_input_order():
    data = records(("A", 1.0), ("B", 2.0), ("C", 1.0), ("D", 2.0), ("E", 1.0))
    table, = StatisticsAnalyzer().rank(data)
    assert [r.symbol for r in table.rows] == ["B", "D", "A", "C", "E"]

    many = records(*[(f"T{i:02d}", 0.0) for i in range(12)])
    gainers, losers = StatisticsAnalyzer().rank(many)
    assert [r.symbol for r in gainers.rows] == [f"T{i:02d}" for i in range(10)]
    assert [r.symbol for r in losers.rows] == [f"T{i:02d}" for i in range(10)]


def test_market_cohort_majors_excluded_roots_and_ignored():
    selection = UniverseSelection.market("BTC, ETH, SOL, USDC")
    requested = ["AUSDT", "BUSDT", "CUSDT", "BTCUSDT", "ETHUSDT", "SOLUSDT"]
    data = records(("AUSDT", 3.0), ("CUSDT", -1.0), ("BTCUSDT", 2.5), ("ETHUSDT", -0.5))

    cohort = StatisticsAnalyzer().build_market_cohort(data, requested, selection, "4 Hours")

    assert cohort.label == "Full Market Analysis"
    assert cohort.subtitle == "Timeframe: 4 Hours"
    assert [m.symbol for m in cohort.major_movers] == ["BTCUSDT", "ETHUSDT"]
    assert [m.symbol for m in cohort.members] == ["AUSDT", "CUSDT"]
    assert cohort.ignored_symbols == ["BUSDT", "SOLUSDT"]
    assert cohort.stats.count == 2


def test_market_cohort_every_requested_symbol_accounted_for_once():
    selection = UniverseSelection.market("")
    requested = ["AUSDT", "BUSDT", "CUSDT"]
    data = records(("CUSDT", 1.0), ("AUSDT", 2.0))

    cohort = StatisticsAnalyzer().build_market_cohort(data, requested, selection, "1 Day")
    with_record = {m.symbol for m in cohort.members}

    assert with_record.isdisjoint(cohort.ignored_symbols)
    assert with_record | set(cohort.ignored_symbols) == set(requested)


def test_watchlist_cohorts_share_symbols():
    watchlist = Watchlist(long={"AUSDT": {}, "BUSDT": {}}, short={"BUSDT": {}, "CUSDT": {}})
    data = records(("AUSDT", 1.0), ("BUSDT", -3.0))

    long_cohort, short_cohort = StatisticsAnalyzer().build_watchlist_cohorts(data, watchlist)

    assert long_cohort.label == "Long Watchlist"
    assert [m.symbol for m in long_cohort.members] == ["AUSDT", "BUSDT"]
    assert long_cohort.ignored_symbols == []
    assert long_cohort.subtitle == "2 Symbols"

    assert short_cohort.label == "Short Watchlist"
    assert [m.symbol for m in short_cohort.members] == ["BUSDT"]
    assert short_cohort.ignored_symbols == ["CUSDT"]
    assert short_cohort.major_movers == []


@pytest.mark.parametrize("hours, label", [
    (0.5, "30 Minutes"),
    (1, "1 Hours"),
    (4.5, "4.5 Hours"),
    (1.3333, "1.33 Hours"),
    (24, "1 Day"),
    (168, "7 Days"),
    (36, "36 Hours"),
])
def test_time_label(hours, label):
    assert generate_time_label(hours) == label


def test_format_change():
    assert format_change(5.34) == "+5.34%"
    assert format_change(-2) == "-2.00%"
    assert format_change(0) == "0.00%"


def test_text_report_mentions_tables_and_movers():
    analyzer = StatisticsAnalyzer()
    selection = UniverseSelection.market("BTC")
    data = records(("AUSDT", 3.0), ("BTCUSDT", 1.0))
    cohort = analyzer.build_market_cohort(data, ["AUSDT", "BTCUSDT", "ZUSDT"], selection, "1 Day")

    report = analyzer.generate_text_report(cohort)

    assert "Full Market Analysis" in report
    assert "MAJOR MOVERS" in report
    assert "PERFORMANCE" in report
    assert "+3.00%" in report
    assert "IGNORED" in report
