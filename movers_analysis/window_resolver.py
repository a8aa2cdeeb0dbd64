"""Map a lookback duration onto Bybit's discrete kline grid."""
import math
from dataclasses import dataclass

from market_data.models import Candle
from market_data.utils import DAY_MS, HOUR_MS, MINUTE_MS, floor_to_minute

# Chart sizing
MIN_CHART_CANDLES = 20
MAX_CHART_CANDLES = 1000
MAX_MINUTE_CANDLES = 200

# How far a returned candle may start after the target before it is
# considered the wrong bar (about 3-4 bars)
TOLERANCE_MS = {
    '5': 4 * 5 * MINUTE_MS,
    '60': 2 * HOUR_MS,
    'D': 3 * DAY_MS,
}
DEFAULT_TOLERANCE_MS = HOUR_MS


@dataclass(frozen=True)
class ChartWindow:
    interval: str
    limit: int


@dataclass(frozen=True)
class AnalysisWindow:
    interval: str
    target_ms: int
    tolerance_ms: int

    def is_stale(self, candle: Candle) -> bool:
        """True when the candle starts too long after the target time."""
        return candle.start_ms > self.target_ms + self.tolerance_ms


def resolve_chart_window(hours: float) -> ChartWindow:
    """Pick an interval and candle count giving roughly 100-200 bars."""
    if hours <= 1:
        interval = '1'
        limit = min(MAX_MINUTE_CANDLES, math.ceil(hours * 60))
    elif hours <= 6:
        interval = '5'
        limit = math.ceil(hours * 60 / 5)
    elif hours <= 24:
        interval = '15'
        limit = math.ceil(hours * 60 / 15)
    elif hours <= 168:
        interval = '60'
        limit = math.ceil(hours)
    else:
        interval = 'D'
        limit = math.ceil(hours / 24)

    limit = max(MIN_CHART_CANDLES, min(MAX_CHART_CANDLES, limit))
    return ChartWindow(interval=interval, limit=limit)


def analysis_interval(hours: float) -> str:
    if hours <= 24:
        return '5'
    if hours <= 720:
        return '60'
    return 'D'


def resolve_analysis_window(hours: float, now_ms: int) -> AnalysisWindow:
    """
    Interval, reference time and staleness tolerance for a lookback.

    The reference time is ``now`` truncated to the minute minus the lookback.
    """
    interval = analysis_interval(hours)
    target_ms = floor_to_minute(int(now_ms)) - int(round(hours * HOUR_MS))
    return AnalysisWindow(
        interval=interval,
        target_ms=target_ms,
        tolerance_ms=TOLERANCE_MS.get(interval, DEFAULT_TOLERANCE_MS),
    )
