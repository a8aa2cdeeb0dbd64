"""Exceptions raised by the market data layer."""
from typing import Optional


class MarketDataError(Exception):
    """Base class for all market data failures."""


class BybitAPIError(MarketDataError):
    """Bybit answered with a non-zero retCode."""

    def __init__(self, ret_code: int, ret_msg: Optional[str] = None):
        self.ret_code = ret_code
        self.ret_msg = ret_msg or "Bybit API returned error"
        super().__init__(f"retCode {ret_code}: {self.ret_msg}")


class HTTPStatusError(MarketDataError):
    """Non-200 HTTP response."""

    def __init__(self, status: int, body: str = ""):
        self.status = status
        self.body = body
        super().__init__(f"HTTP {status}: {body[:200]}" if body else f"HTTP {status}")


class CatalogError(MarketDataError):
    """Instrument list could not be fetched. Fatal to an analysis run."""


class TickerError(MarketDataError):
    """Ticker snapshot could not be fetched. Fatal to an analysis run."""


class ChartFetchError(MarketDataError):
    """Candle series for display could not be fetched after retries."""

    def __init__(self, symbol: str, message: str):
        self.symbol = symbol
        super().__init__(f"{symbol}: {message}")
