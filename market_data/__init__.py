"""
Bybit market data access.

- bybit_client: catalog, ticker and kline endpoints
- cache: TTL cache used for catalog and ticker snapshots
- scheduler: bounded-concurrency batch runner
- utils: retry policies and HTTP helpers
"""

from .bybit_client import BybitClient
from .cache import TTLCache
from .exceptions import (
    BybitAPIError,
    CatalogError,
    ChartFetchError,
    HTTPStatusError,
    MarketDataError,
    TickerError,
)
from .models import Candle, Instrument, TickerEntry
from .scheduler import BatchResult, ItemOutcome, process_with_concurrency
from .utils import RetryPolicy, exponential_backoff, fixed_delay

__all__ = [
    'BybitClient',
    'TTLCache',
    'BybitAPIError',
    'CatalogError',
    'ChartFetchError',
    'HTTPStatusError',
    'MarketDataError',
    'TickerError',
    'Candle',
    'Instrument',
    'TickerEntry',
    'BatchResult',
    'ItemOutcome',
    'process_with_concurrency',
    'RetryPolicy',
    'exponential_backoff',
    'fixed_delay',
]
__version__ = '0.1.0'
