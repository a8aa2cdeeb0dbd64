"""Configuration for the market data module."""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# API Base URL
BYBIT_BASE_URL = os.getenv('BYBIT_BASE_URL', "https://api.bybit.com")

# Endpoints (Bybit V5 market data, public)
INSTRUMENTS_ENDPOINT = "/v5/market/instruments-info"
TICKERS_ENDPOINT = "/v5/market/tickers"
KLINE_ENDPOINT = "/v5/market/kline"

# Market selection
CATEGORY = "linear"
QUOTE_COIN = "USDT"
INSTRUMENTS_PAGE_LIMIT = 1000

# Concurrency (max kline requests in flight)
CONCURRENCY_LIMIT = int(os.getenv('CONCURRENCY_LIMIT', '30'))

# Retry Configuration
MAX_RETRIES = 3
RETRY_DELAY = float(os.getenv('RETRY_DELAY', '0.3'))  # seconds
BACKOFF_FACTOR = 2

# API Request Configuration
REQUEST_TIMEOUT = 30  # seconds

# Cache TTLs (seconds)
INSTRUMENTS_CACHE_TTL = 3600
TICKERS_CACHE_TTL = 15
