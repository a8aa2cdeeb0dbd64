"""Shared fakes for the Bybit HTTP surface."""
from pathlib import Path
import sys
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from market_data.utils import RetryPolicy, fixed_delay

NOW_S = 1_700_000_000.0  # 2023-11-14 22:13:20 UTC
NOW_MS = int(NOW_S * 1000)
HOUR_MS = 3_600_000

NO_WAIT = RetryPolicy(max_attempts=3, delay=fixed_delay(0))


class FakeClock:
    def __init__(self, now: float = NOW_S):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResponse:
    """Stands in for the aiohttp response context manager."""

    def __init__(self, payload: Any = None, status: int = 200, error: Optional[BaseException] = None):
        self.payload = payload
        self.status = status
        self.error = error

    async def __aenter__(self):
        if self.error is not None:
            raise self.error
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False

    async def json(self):
        return self.payload

    async def text(self):
        return str(self.payload)


class FakeSession:
    """
    Routes ``get`` calls to a handler ``(path, params) -> FakeResponse``.

    Every call is recorded as ``(path, params)`` with the base URL stripped.
    """

    def __init__(self, handler: Callable[[str, Dict[str, Any]], FakeResponse]):
        self.handler = handler
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    def get(self, url: str, params=None, timeout=None):
        path = url.split("bybit.com", 1)[-1]
        params = dict(params or {})
        self.calls.append((path, params))
        return self.handler(path, params)

    def count(self, path: str) -> int:
        return sum(1 for p, _ in self.calls if p == path)

    async def close(self):
        pass


def envelope(items: List[Any], cursor: str = "", ret_code: int = 0, ret_msg: str = "OK") -> Dict[str, Any]:
    return {
        'retCode': ret_code,
        'retMsg': ret_msg,
        'result': {'category': 'linear', 'list': items, 'nextPageCursor': cursor},
    }


def instrument(symbol: str, launch_time: int = 1_600_000_000_000, status: str = "Trading",
               tick_size: str = "0.10") -> Dict[str, Any]:
    return {
        'symbol': symbol,
        'status': status,
        'launchTime': str(launch_time),
        'priceFilter': {'tickSize': tick_size},
    }


def ticker(symbol: str, last_price: float, pcnt: float = 0.0) -> Dict[str, Any]:
    return {'symbol': symbol, 'lastPrice': str(last_price), 'price24hPcnt': str(pcnt)}


def kline_row(start_ms: int, close: float) -> List[str]:
    return [str(start_ms), str(close), str(close), str(close), str(close), "100", "1000"]


@pytest.fixture
def clock():
    return FakeClock()
