"""Symbol universe selection (market or watchlist mode)."""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from market_data.config import QUOTE_COIN
from market_data.models import Instrument

from .config import DEFAULT_EXCLUDED, MAJOR_SYMBOLS
from .validation import ValidationError, Watchlist

logger = logging.getLogger(__name__)

MARKET = "market"
WATCHLIST = "watchlist"


def parse_excluded(text: Optional[str]) -> List[str]:
    """'btc, eth ,' -> ['BTC', 'ETH']"""
    if not text:
        return []
    return [s.strip().upper() for s in text.split(',') if s.strip()]


def symbol_root(symbol: str) -> str:
    """BTCUSDT -> BTC"""
    return symbol.replace(QUOTE_COIN, '')


@dataclass(frozen=True)
class UniverseSelection:
    """Which symbols an analysis run covers."""
    mode: str
    excluded_roots: List[str] = field(default_factory=list)
    watchlist: Optional[Watchlist] = None

    @classmethod
    def market(cls, excluded: Optional[str] = DEFAULT_EXCLUDED) -> "UniverseSelection":
        return cls(mode=MARKET, excluded_roots=parse_excluded(excluded))

    @classmethod
    def from_watchlist(cls, watchlist: Watchlist) -> "UniverseSelection":
        return cls(mode=WATCHLIST, watchlist=watchlist)

    def __post_init__(self):
        if self.mode not in (MARKET, WATCHLIST):
            raise ValidationError(f"Unknown mode: {self.mode!r}")
        if self.mode == WATCHLIST and self.watchlist is None:
            raise ValidationError("No watchlist loaded")

    def is_excluded(self, symbol: str) -> bool:
        return symbol_root(symbol) in self.excluded_roots

    def select_symbols(self, instruments: Sequence[Instrument]) -> List[str]:
        """
        Resolve the symbols to fetch.

        Market mode takes every catalog symbol whose root is not excluded and
        then appends any missing major symbol. Watchlist mode takes the union
        of the long and short keys.
        """
        if self.mode == MARKET:
            symbols = [i.symbol for i in instruments if not self.is_excluded(i.symbol)]
            for major in MAJOR_SYMBOLS:
                if major not in symbols:
                    symbols.append(major)
            logger.info(f"Market universe: {len(symbols)} symbols ({len(self.excluded_roots)} roots excluded)")
            return symbols

        symbols = self.watchlist.symbols
        logger.info(f"Watchlist universe: {len(symbols)} symbols")
        return symbols
