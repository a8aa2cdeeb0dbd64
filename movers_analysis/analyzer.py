"""End-to-end movers analysis: catalog -> universe -> changes -> cohorts."""
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from market_data.bybit_client import BybitClient
from market_data.config import CONCURRENCY_LIMIT
from market_data.models import Candle
from market_data.scheduler import ProgressCallback

from .change_computer import ChangeComputer, DropReason
from .config import MAX_TIMEFRAME_HOURS
from .stats_analyzer import Cohort, StatisticsAnalyzer, generate_time_label
from .universe import MARKET, UniverseSelection
from .validation import ValidationError
from .window_resolver import resolve_chart_window

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    mode: str
    hours: float
    time_label: str
    requested: List[str]
    cohorts: List[Cohort]
    # symbol -> cause, for every requested symbol without a record
    dropped: Dict[str, DropReason] = field(default_factory=dict)


class MoversAnalyzer:
    """
    One-shot analysis runs against a shared BybitClient.

    Catalog and ticker errors abort the run; per-symbol gaps only end up in
    each cohort's ignored list.
    """

    def __init__(
        self,
        client: BybitClient,
        concurrency_limit: int = CONCURRENCY_LIMIT,
        clock: Callable[[], float] = time.time,
        stats_analyzer: Optional[StatisticsAnalyzer] = None
    ):
        self.client = client
        self.change_computer = ChangeComputer(client, concurrency_limit, clock)
        self.stats_analyzer = stats_analyzer or StatisticsAnalyzer()

    async def run(
        self,
        selection: UniverseSelection,
        hours: float,
        progress_callback: Optional[ProgressCallback] = None
    ) -> AnalysisResult:
        """
        Analyse the selected universe over the last ``hours``.

        Raises:
            ValidationError: Bad lookback, or the universe is empty
            CatalogError / TickerError: Fatal fetch failures
        """
        if not 0 < hours <= MAX_TIMEFRAME_HOURS:
            raise ValidationError(f"Timeframe must be in (0, {MAX_TIMEFRAME_HOURS}] hours, got {hours}")

        time_label = generate_time_label(hours)
        logger.info(f"Preparing {selection.mode} analysis ({time_label})...")

        instruments = await self.client.get_instruments()
        launch_times = {i.symbol: i.launch_time for i in instruments}

        symbols = selection.select_symbols(instruments)
        if not symbols:
            raise ValidationError("No symbols found")

        logger.info(f"Fetching data for {len(symbols)} symbols...")
        run = await self.change_computer.compute(symbols, hours, launch_times, progress_callback)

        if run.dropped:
            logger.info(f"Dropped {len(run.dropped)} symbols: {run.reason_counts()}")

        if selection.mode == MARKET:
            cohorts = [self.stats_analyzer.build_market_cohort(run.records, symbols, selection, time_label)]
        else:
            cohorts = self.stats_analyzer.build_watchlist_cohorts(run.records, selection.watchlist)

        return AnalysisResult(
            mode=selection.mode,
            hours=hours,
            time_label=time_label,
            requested=symbols,
            cohorts=cohorts,
            dropped=dict(run.dropped),
        )

    async def fetch_chart(self, symbol: str, hours: float) -> List[Candle]:
        """
        Candle series sized for display over ``hours``.

        Raises:
            ChartFetchError: Retries exhausted
        """
        window = resolve_chart_window(hours)
        return await self.client.get_kline_history(symbol, window.interval, window.limit)
