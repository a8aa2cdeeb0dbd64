"""Per-symbol percentage change over the lookback window."""
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from market_data.bybit_client import BybitClient
from market_data.config import CONCURRENCY_LIMIT
from market_data.models import TickerEntry
from market_data.scheduler import ProgressCallback, process_with_concurrency
from market_data.utils import HOUR_MS, timestamp_to_datetime

from .window_resolver import resolve_analysis_window

logger = logging.getLogger(__name__)

# Window answered straight from the ticker's rolling 24h figure
TICKER_WINDOW_HOURS = 24


class DropReason(str, Enum):
    """Why a requested symbol has no change record."""
    LISTED_AFTER_CUTOFF = "listed_after_cutoff"
    NO_TICKER = "no_ticker"
    NO_CANDLE = "no_candle"
    STALE_CANDLE = "stale_candle"
    ZERO_PRICE = "zero_price"
    ERROR = "error"


@dataclass(frozen=True)
class ChangeRecord:
    symbol: str
    change_percent: float


@dataclass
class ChangeRun:
    """Records (in requested order) and the reason every other symbol was dropped."""
    records: List[ChangeRecord] = field(default_factory=list)
    dropped: Dict[str, DropReason] = field(default_factory=dict)

    @property
    def symbols(self) -> List[str]:
        return [r.symbol for r in self.records]

    def reason_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for reason in self.dropped.values():
            counts[reason.value] = counts.get(reason.value, 0) + 1
        return counts


def ticker_change(ticker: TickerEntry) -> float:
    """Exchange rolling 24h change as a percentage, 2 decimals."""
    return round(ticker.price_24h_pcnt * 100, 2)


def price_change(current_price: float, historic_price: float) -> Optional[float]:
    """Percentage move from historic to current, or None when historic is zero."""
    if historic_price == 0:
        return None
    return round((current_price - historic_price) / historic_price * 100, 2)


def launch_cutoff_ms(hours: float, now_ms: int) -> int:
    return now_ms - int(round(hours * HOUR_MS))


def listed_after(launch_time: Optional[int], cutoff_ms: int) -> bool:
    """Unknown (0/None) launch times never exclude."""
    return bool(launch_time) and launch_time > cutoff_ms


class ChangeComputer:
    """
    Turns ticker snapshots and historical candles into ChangeRecords.

    Args:
        client: Entered BybitClient
        concurrency_limit: Max kline requests in flight
        clock: Returns current time in seconds (injectable for tests)
    """

    def __init__(
        self,
        client: BybitClient,
        concurrency_limit: int = CONCURRENCY_LIMIT,
        clock: Callable[[], float] = time.time
    ):
        self.client = client
        self.concurrency_limit = concurrency_limit
        self.clock = clock

    def now_ms(self) -> int:
        return int(self.clock() * 1000)

    async def compute(
        self,
        symbols: Sequence[str],
        hours: float,
        launch_times: Mapping[str, int],
        progress_callback: Optional[ProgressCallback] = None
    ) -> ChangeRun:
        """
        Compute changes for every symbol over ``hours``.

        The 24h window uses the ticker's own figure; any other window fetches
        one historical candle per symbol.

        Raises:
            TickerError: Ticker snapshot failed (fatal)
        """
        now_ms = self.now_ms()
        cutoff_ms = launch_cutoff_ms(hours, now_ms)
        ticker_map = await self.client.get_ticker_map()

        if hours == TICKER_WINDOW_HOURS:
            return self.from_tickers(symbols, ticker_map, launch_times, cutoff_ms)
        return await self.from_klines(
            symbols, hours, ticker_map, launch_times, now_ms, progress_callback
        )

    def from_tickers(
        self,
        symbols: Sequence[str],
        ticker_map: Mapping[str, TickerEntry],
        launch_times: Mapping[str, int],
        cutoff_ms: int
    ) -> ChangeRun:
        run = ChangeRun()
        for symbol in symbols:
            if listed_after(launch_times.get(symbol), cutoff_ms):
                run.dropped[symbol] = DropReason.LISTED_AFTER_CUTOFF
                continue
            ticker = ticker_map.get(symbol)
            if ticker is None or ticker.price_24h_pcnt is None:
                run.dropped[symbol] = DropReason.NO_TICKER
                continue
            run.records.append(ChangeRecord(symbol, ticker_change(ticker)))

        logger.info(f"Ticker changes: {len(run.records)}/{len(symbols)} symbols")
        return run

    async def from_klines(
        self,
        symbols: Sequence[str],
        hours: float,
        ticker_map: Mapping[str, TickerEntry],
        launch_times: Mapping[str, int],
        now_ms: int,
        progress_callback: Optional[ProgressCallback] = None
    ) -> ChangeRun:
        window = resolve_analysis_window(hours, now_ms)
        cutoff_ms = launch_cutoff_ms(hours, now_ms)
        run = ChangeRun()

        logger.info(
            f"Fetching {window.interval} candles at {timestamp_to_datetime(window.target_ms)} "
            f"for {len(symbols)} symbols (tolerance {window.tolerance_ms // 60000} min)"
        )

        async def compute_symbol(symbol: str) -> Optional[ChangeRecord]:
            if listed_after(launch_times.get(symbol), cutoff_ms):
                run.dropped[symbol] = DropReason.LISTED_AFTER_CUTOFF
                return None

            ticker = ticker_map.get(symbol)
            if ticker is None or ticker.last_price is None:
                run.dropped[symbol] = DropReason.NO_TICKER
                return None

            candle = await self.client.get_kline_at(symbol, window.interval, window.target_ms)
            if candle is None:
                run.dropped[symbol] = DropReason.NO_CANDLE
                return None

            if window.is_stale(candle):
                logger.debug(
                    f"{symbol}: candle at {timestamp_to_datetime(candle.start_ms)} is past "
                    f"target {timestamp_to_datetime(window.target_ms)} + tolerance, skipping"
                )
                run.dropped[symbol] = DropReason.STALE_CANDLE
                return None

            change = price_change(ticker.last_price, candle.close)
            if change is None:
                run.dropped[symbol] = DropReason.ZERO_PRICE
                return None
            return ChangeRecord(symbol, change)

        batch = await process_with_concurrency(
            symbols, self.concurrency_limit, compute_symbol, progress_callback
        )

        for outcome in batch.failed:
            run.dropped[outcome.item] = DropReason.ERROR

        # Scheduler returns completion order
        position = {symbol: i for i, symbol in enumerate(symbols)}
        run.records = sorted(batch.results, key=lambda r: position[r.symbol])

        logger.info(f"Kline changes: {len(run.records)}/{len(symbols)} symbols ({run.reason_counts()})")
        return run
