"""Typed records parsed from Bybit V5 market data responses."""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Instrument:
    """Tradable perpetual contract from the instrument catalog."""
    symbol: str
    launch_time: int  # ms
    tick_size: str

    @property
    def price_precision(self) -> int:
        """Number of decimals implied by the tick size ('0.10' -> 1)."""
        tick = self.tick_size
        if '.' in tick:
            tick = tick.rstrip('0').rstrip('.')
        if '.' not in tick:
            return 0
        return len(tick.split('.')[1])

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "Instrument":
        price_filter = item.get('priceFilter') or {}
        return cls(
            symbol=item['symbol'],
            launch_time=int(item.get('launchTime') or 0),
            tick_size=str(price_filter.get('tickSize', '')),
        )


def _optional_float(value: Any) -> Optional[float]:
    """Bybit sends '' for fields it has no value for."""
    if value is None or value == '':
        return None
    return float(value)


@dataclass(frozen=True)
class TickerEntry:
    """Ticker snapshot row; prices are None when Bybit reports them empty."""
    symbol: str
    last_price: Optional[float]
    price_24h_pcnt: Optional[float]

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "TickerEntry":
        return cls(
            symbol=item['symbol'],
            last_price=_optional_float(item.get('lastPrice')),
            price_24h_pcnt=_optional_float(item.get('price24hPcnt')),
        )


@dataclass(frozen=True)
class Candle:
    """OHLC bar. ``time`` is the bar start in unix seconds."""
    time: int
    open: float
    high: float
    low: float
    close: float

    @property
    def start_ms(self) -> int:
        return self.time * 1000

    @classmethod
    def from_api(cls, row: List[Any]) -> "Candle":
        """
        Parse a Bybit kline row.

        Bybit returns each candle as
        [startTime(ms), open, high, low, close, volume, turnover], all strings.
        """
        return cls(
            time=int(row[0]) // 1000,
            open=float(row[1]),
            high=float(row[2]),
            low=float(row[3]),
            close=float(row[4]),
        )
