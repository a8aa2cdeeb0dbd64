"""Lookback -> kline interval / candle count / tolerance mapping."""
import pytest

from market_data.models import Candle
from movers_analysis.window_resolver import (
    AnalysisWindow,
    resolve_analysis_window,
    resolve_chart_window,
)

from tests.conftest import HOUR_MS, NOW_MS

MINUTE_MS = 60_000


@pytest.mark.parametrize("hours, interval, limit", [
    (0.25, '1', 20),      # 15 candles clamped up
    (1, '1', 60),
    (2, '5', 24),
    (6, '5', 72),
    (12, '15', 48),
    (24, '15', 96),
    (72, '60', 72),
    (168, '60', 168),
    (720, 'D', 30),
    (8760, 'D', 365),
])
def test_chart_window(hours, interval, limit):
    window = resolve_chart_window(hours)
    assert window.interval == interval
    assert window.limit == limit


def test_chart_window_limit_is_always_within_bounds():
    for hours in (0.01, 0.5, 1.5, 5.9, 23, 100, 1000, 8760):
        assert 20 <= resolve_chart_window(hours).limit <= 1000


def test_chart_window_fractional_hours_round_up():
    assert resolve_chart_window(5.5).limit == 66
    assert resolve_chart_window(30.5).limit == 31


@pytest.mark.parametrize("hours, interval, tolerance_ms", [
    (0.5, '5', 20 * MINUTE_MS),
    (4, '5', 20 * MINUTE_MS),
    (24, '5', 20 * MINUTE_MS),
    (48, '60', 2 * HOUR_MS),
    (720, '60', 2 * HOUR_MS),
    (721, 'D', 3 * 24 * HOUR_MS),
])
def test_analysis_window_interval_and_tolerance(hours, interval, tolerance_ms):
    window = resolve_analysis_window(hours, NOW_MS)
    assert window.interval == interval
    assert window.tolerance_ms == tolerance_ms


def test_analysis_target_is_minute_truncated_now_minus_lookback():
    window = resolve_analysis_window(4, NOW_MS)
    minute_floor = NOW_MS - NOW_MS % MINUTE_MS

    assert minute_floor != NOW_MS
    assert window.target_ms == minute_floor - 4 * HOUR_MS
    assert window.target_ms % MINUTE_MS == 0


def test_candle_beyond_tolerance_is_stale():
    target = 1_699_000_000_000
    window = AnalysisWindow(interval='60', target_ms=target, tolerance_ms=2 * HOUR_MS)

    def candle_at(ms):
        return Candle(time=ms // 1000, open=1, high=1, low=1, close=1)

    assert window.is_stale(candle_at(target + 3 * HOUR_MS))
    assert not window.is_stale(candle_at(target + 2 * HOUR_MS))
    assert not window.is_stale(candle_at(target))
    assert not window.is_stale(candle_at(target - HOUR_MS))
