"""Bybit API client for perpetual market data."""
import logging
from typing import Dict, List, Optional

import aiohttp

from .cache import TTLCache
from .config import (
    BYBIT_BASE_URL,
    CATEGORY,
    INSTRUMENTS_CACHE_TTL,
    INSTRUMENTS_ENDPOINT,
    INSTRUMENTS_PAGE_LIMIT,
    KLINE_ENDPOINT,
    QUOTE_COIN,
    TICKERS_CACHE_TTL,
    TICKERS_ENDPOINT,
)
from .exceptions import CatalogError, ChartFetchError, TickerError
from .models import Candle, Instrument, TickerEntry
from .utils import (
    DEFAULT_RETRY_POLICY,
    RETRYABLE_ERRORS,
    RetryPolicy,
    fetch_with_retry,
    get_json,
    timestamp_to_datetime,
)

logger = logging.getLogger(__name__)

# Cache keys are the fixed request signature of each cached call
INSTRUMENTS_CACHE_KEY = f"GET {INSTRUMENTS_ENDPOINT}?category={CATEGORY}&limit={INSTRUMENTS_PAGE_LIMIT}"
TICKERS_CACHE_KEY = f"GET {TICKERS_ENDPOINT}?category={CATEGORY}"

# Malformed payloads are reported the same way as failed requests
_PARSE_ERRORS = (AttributeError, KeyError, IndexError, TypeError, ValueError)


class BybitClient:
    """
    Client for the Bybit V5 public market endpoints.

    Catalog and ticker responses are kept in the TTL caches passed in, so
    several clients (or several runs) can share them. A session may be
    injected; otherwise one is opened by ``async with``.
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        instruments_cache: Optional[TTLCache] = None,
        tickers_cache: Optional[TTLCache] = None,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        base_url: str = BYBIT_BASE_URL
    ):
        self.base_url = base_url
        self.session = session
        self._owns_session = False
        self.instruments_cache = instruments_cache or TTLCache(INSTRUMENTS_CACHE_TTL)
        self.tickers_cache = tickers_cache or TTLCache(TICKERS_CACHE_TTL)
        self.retry_policy = retry_policy
        # symbol -> last error for klines that could not be fetched
        self.kline_failures: Dict[str, str] = {}

    async def __aenter__(self):
        if self.session is None:
            self.session = aiohttp.ClientSession()
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._owns_session and self.session:
            await self.session.close()
            self.session = None
            self._owns_session = False

    def _require_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            raise RuntimeError("BybitClient has no session; use 'async with BybitClient()' or pass one in")
        return self.session

    async def get_instruments(self) -> List[Instrument]:
        """
        Get all actively trading USDT linear perpetuals.

        Walks every page of the cursor-paginated catalog. The full list is
        cached for ``INSTRUMENTS_CACHE_TTL`` seconds.

        Returns:
            List of instruments with launch time and tick size

        Raises:
            CatalogError: Any page failed; nothing is cached
        """
        cached = self.instruments_cache.get(INSTRUMENTS_CACHE_KEY)
        if cached is not None:
            return cached

        session = self._require_session()
        url = f"{self.base_url}{INSTRUMENTS_ENDPOINT}"
        params = {
            'category': CATEGORY,
            'limit': INSTRUMENTS_PAGE_LIMIT
        }

        logger.info("Fetching Bybit instruments info...")

        instruments: List[Instrument] = []
        cursor = None
        page = 0

        while True:
            if cursor:
                params['cursor'] = cursor

            try:
                data = await get_json(session, url, params)
                result = data.get('result') or {}
                for item in result.get('list') or []:
                    if item.get('status') == 'Trading' and item.get('symbol', '').endswith(QUOTE_COIN):
                        instruments.append(Instrument.from_api(item))
            except RETRYABLE_ERRORS + _PARSE_ERRORS as e:
                logger.error(f"Failed to fetch Bybit instruments (page {page + 1}): {e}")
                raise CatalogError(f"Failed to fetch instruments: {e}") from e

            page += 1
            cursor = result.get('nextPageCursor')
            if not cursor:
                break

        logger.info(f"Found {len(instruments)} Bybit {QUOTE_COIN} perpetual symbols ({page} pages)")
        self.instruments_cache.set(INSTRUMENTS_CACHE_KEY, instruments)
        return instruments

    async def get_instrument(self, symbol: str) -> Optional[Instrument]:
        """Look a single symbol up in the (cached) catalog."""
        for instrument in await self.get_instruments():
            if instrument.symbol == symbol:
                return instrument
        return None

    async def get_tickers(self) -> List[TickerEntry]:
        """
        Get the live ticker snapshot for every linear symbol.

        Cached for ``TICKERS_CACHE_TTL`` seconds. Two callers racing past an
        expired entry may both hit the API; the later write wins.

        Raises:
            TickerError: Request or payload failure
        """
        cached = self.tickers_cache.get(TICKERS_CACHE_KEY)
        if cached is not None:
            return cached

        session = self._require_session()
        url = f"{self.base_url}{TICKERS_ENDPOINT}"
        params = {'category': CATEGORY}

        try:
            data = await get_json(session, url, params)
            tickers = [TickerEntry.from_api(t) for t in (data.get('result') or {}).get('list') or []]
        except RETRYABLE_ERRORS + _PARSE_ERRORS as e:
            logger.error(f"Failed to fetch Bybit tickers: {e}")
            raise TickerError(f"Failed to fetch tickers: {e}") from e

        logger.debug(f"Fetched {len(tickers)} Bybit tickers")
        self.tickers_cache.set(TICKERS_CACHE_KEY, tickers)
        return tickers

    async def get_ticker_map(self) -> Dict[str, TickerEntry]:
        return {t.symbol: t for t in await self.get_tickers()}

    async def get_kline_at(
        self,
        symbol: str,
        interval: str,
        target_ms: int
    ) -> Optional[Candle]:
        """
        Get the single candle starting at (or just after) ``target_ms``.

        An empty candle list is a definitive "no data" and is not retried.

        Args:
            symbol: Trading pair symbol (e.g., 'BTCUSDT')
            interval: Bybit kline interval ('1', '5', '60', 'D', ...)
            target_ms: Requested start time in milliseconds

        Returns:
            The candle, or None when there is no data or every attempt failed
        """
        session = self._require_session()
        url = f"{self.base_url}{KLINE_ENDPOINT}"
        params = {
            'category': CATEGORY,
            'symbol': symbol,
            'interval': interval,
            'start': int(target_ms),
            'limit': 1
        }

        try:
            data = await fetch_with_retry(session, url, params, self.retry_policy)
            rows = (data.get('result') or {}).get('list') or []
            if not rows:
                logger.debug(f"Bybit {symbol}: no {interval} candle at {timestamp_to_datetime(target_ms)}")
                return None
            return Candle.from_api(rows[0])
        except RETRYABLE_ERRORS + _PARSE_ERRORS as e:
            logger.error(f"Bybit {symbol}: kline fetch failed ({e})")
            self.kline_failures[symbol] = str(e)
            return None

    async def get_kline_history(
        self,
        symbol: str,
        interval: str,
        limit: int
    ) -> List[Candle]:
        """
        Get up to ``limit`` most recent candles, oldest first, for charting.

        Raises:
            ChartFetchError: Every attempt failed
        """
        session = self._require_session()
        url = f"{self.base_url}{KLINE_ENDPOINT}"
        params = {
            'category': CATEGORY,
            'symbol': symbol,
            'interval': interval,
            'limit': int(limit)
        }

        logger.info(f"Fetching Bybit {symbol} history ({limit} x {interval})...")

        try:
            data = await fetch_with_retry(session, url, params, self.retry_policy)
            rows = (data.get('result') or {}).get('list') or []
            candles = [Candle.from_api(row) for row in rows]
        except RETRYABLE_ERRORS + _PARSE_ERRORS as e:
            logger.error(f"Bybit {symbol}: history fetch failed ({e})")
            raise ChartFetchError(symbol, str(e)) from e

        # Bybit returns newest first
        candles.sort(key=lambda c: c.time)
        return candles
