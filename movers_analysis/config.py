"""Configuration for perpetual movers analysis."""
import os
from dotenv import load_dotenv

load_dotenv()

# Symbol roots left out of the market cohort (comma separated)
DEFAULT_EXCLUDED = os.getenv(
    "EXCLUDED_SYMBOLS",
    "BTC, ETH, ETHBTC, PAXG, RLUSD, SOL, USD1, USDC, USDE, XAUT"
)

# Always fetched in market mode and surfaced as highlighted movers
MAJOR_SYMBOLS = ['BTCUSDT', 'ETHUSDT', 'SOLUSDT']

# Timeframe limits
DEFAULT_TIMEFRAME_HOURS = 24
MAX_TIMEFRAME_HOURS = 8760  # 1 year
TIME_UNITS = ('m', 'h', 'd')

# Ranked table size
TOP_N = 10

# Watchlist file keys
LONG_WATCHLIST_KEY = "long_watchlist"
SHORT_WATCHLIST_KEY = "short_watchlist"
