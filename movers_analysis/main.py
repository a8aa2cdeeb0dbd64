"""
Perpetual Movers - CLI entry point.

Ranks Bybit USDT perpetuals by price change over a lookback window.
"""
import asyncio
import argparse
import logging
import sys
from dataclasses import asdict
from typing import List, Optional

import pandas as pd
from tqdm import tqdm

from market_data.bybit_client import BybitClient
from market_data.config import CONCURRENCY_LIMIT
from market_data.exceptions import MarketDataError

from .analyzer import MoversAnalyzer
from .config import DEFAULT_EXCLUDED, DEFAULT_TIMEFRAME_HOURS
from .universe import MARKET, WATCHLIST, UniverseSelection
from .validation import ValidationError, load_watchlist, validate_timeframe

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False) -> logging.Logger:
    """Initialise logging."""
    log_level = logging.DEBUG if debug else logging.INFO
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    return logging.getLogger(__name__)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Bybit perpetual movers - gainers/losers over a lookback window",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Whole market, last 24 hours (default)
  python -m movers_analysis.main

  # Whole market, last 4 hours, only stablecoins excluded
  python -m movers_analysis.main --timeframe 4h --exclude "USDC, USDE"

  # Long/short watchlist over 7 days
  python -m movers_analysis.main --mode watchlist --watchlist lists.json --timeframe 7d

  # Candle series for one symbol (chart data)
  python -m movers_analysis.main --history BTCUSDT --timeframe 6h
        """
    )

    parser.add_argument('--mode', choices=[MARKET, WATCHLIST], default=MARKET,
                        help='Universe to analyse (default: market)')
    parser.add_argument('--timeframe', type=str, default=f'{DEFAULT_TIMEFRAME_HOURS}h',
                        help=f'Lookback, e.g. 30m, 4h, 7d (default: {DEFAULT_TIMEFRAME_HOURS}h)')
    parser.add_argument('--exclude', type=str, default=DEFAULT_EXCLUDED,
                        help='Comma separated symbol roots left out of the market cohort')
    parser.add_argument('--watchlist', type=str, default=None,
                        help='JSON file with long_watchlist / short_watchlist')
    parser.add_argument('--concurrency', type=int, default=CONCURRENCY_LIMIT,
                        help=f'Max kline requests in flight (default: {CONCURRENCY_LIMIT})')
    parser.add_argument('--history', type=str, default=None, metavar='SYMBOL',
                        help='Print the chart candle series for SYMBOL instead of ranking')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')

    return parser.parse_args(argv)


def build_selection(args: argparse.Namespace) -> UniverseSelection:
    if args.mode == WATCHLIST:
        if not args.watchlist:
            raise ValidationError("--watchlist is required in watchlist mode")
        return UniverseSelection.from_watchlist(load_watchlist(args.watchlist))
    return UniverseSelection.market(args.exclude)


async def run_history(analyzer: MoversAnalyzer, symbol: str, hours: float) -> str:
    candles = await analyzer.fetch_chart(symbol, hours)
    if not candles:
        return f"No historical data found for {symbol}"

    instrument = await analyzer.client.get_instrument(symbol)
    precision = instrument.price_precision if instrument else 4

    df = pd.DataFrame([asdict(c) for c in candles])
    df['time'] = pd.to_datetime(df['time'], unit='s', utc=True)
    return df.to_string(index=False, float_format=lambda v: f"{v:.{precision}f}")


async def run_analysis(analyzer: MoversAnalyzer, selection: UniverseSelection, hours: float) -> str:
    pbar = None

    def on_progress(processed: int, total: int) -> None:
        nonlocal pbar
        if pbar is None:
            pbar = tqdm(total=total, desc="Kline fetch", unit="symbol")
        pbar.update(1)

    try:
        result = await analyzer.run(selection, hours, progress_callback=on_progress)
    finally:
        if pbar is not None:
            pbar.close()

    return "".join(analyzer.stats_analyzer.generate_text_report(c) for c in result.cohorts)


async def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    setup_logging(args.debug)

    try:
        hours = validate_timeframe(args.timeframe)
        selection = None if args.history else build_selection(args)

        async with BybitClient() as client:
            analyzer = MoversAnalyzer(client, concurrency_limit=args.concurrency)
            if args.history:
                output = await run_history(analyzer, args.history.upper(), hours)
            else:
                output = await run_analysis(analyzer, selection, hours)
    except ValidationError as e:
        logger.error(f"Invalid input: {e}")
        return 1
    except MarketDataError as e:
        logger.error(f"Analysis failed: {e}")
        return 1

    print(output)
    return 0


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
