"""HTTP helpers, retry policies and time utilities."""
import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import aiohttp

from .config import MAX_RETRIES, RETRY_DELAY, BACKOFF_FACTOR, REQUEST_TIMEOUT
from .exceptions import BybitAPIError, HTTPStatusError

logger = logging.getLogger(__name__)

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

# Failures worth another attempt: transport, HTTP status, API retCode
RETRYABLE_ERRORS = (
    aiohttp.ClientError,
    asyncio.TimeoutError,
    json.JSONDecodeError,
    HTTPStatusError,
    BybitAPIError,
)


def fixed_delay(seconds: float) -> Callable[[int], float]:
    """Same wait before every retry."""
    return lambda attempt: seconds


def exponential_backoff(
    base: float = RETRY_DELAY,
    factor: float = BACKOFF_FACTOR,
    max_delay: float = 30.0
) -> Callable[[int], float]:
    """Wait ``base * factor ** attempt`` seconds, capped at ``max_delay``."""
    return lambda attempt: min(base * (factor ** attempt), max_delay)


@dataclass(frozen=True)
class RetryPolicy:
    """
    How many times a request is attempted and how long to wait in between.

    ``delay`` receives the zero-based index of the attempt that just failed.
    """
    max_attempts: int = MAX_RETRIES
    delay: Callable[[int], float] = fixed_delay(RETRY_DELAY)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")


DEFAULT_RETRY_POLICY = RetryPolicy()


async def get_json(
    session: aiohttp.ClientSession,
    url: str,
    params: Optional[Dict[str, Any]] = None,
    timeout: float = REQUEST_TIMEOUT
) -> Dict[str, Any]:
    """
    Single GET against a Bybit V5 endpoint.

    Returns:
        The decoded response envelope ``{retCode, retMsg, result, ...}``

    Raises:
        HTTPStatusError: Non-200 response
        BybitAPIError: retCode != 0
        aiohttp.ClientError / asyncio.TimeoutError: Transport failure
    """
    async with session.get(url, params=params, timeout=aiohttp.ClientTimeout(total=timeout)) as response:
        if response.status != 200:
            raise HTTPStatusError(response.status, await response.text())
        data = await response.json()

    if not isinstance(data, dict) or data.get('retCode') != 0:
        ret_code = data.get('retCode', -1) if isinstance(data, dict) else -1
        ret_msg = data.get('retMsg') if isinstance(data, dict) else None
        raise BybitAPIError(ret_code, ret_msg)
    return data


async def fetch_with_retry(
    session: aiohttp.ClientSession,
    url: str,
    params: Optional[Dict[str, Any]] = None,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY
) -> Dict[str, Any]:
    """
    GET with retries on transport, HTTP status and API errors.

    Raises the last error once ``policy.max_attempts`` is exhausted.
    """
    last_error: Optional[Exception] = None
    for attempt in range(policy.max_attempts):
        try:
            return await get_json(session, url, params)
        except RETRYABLE_ERRORS as e:
            last_error = e
            logger.warning(f"Request to {url} failed (attempt {attempt + 1}/{policy.max_attempts}): {e}")
            if attempt < policy.max_attempts - 1:
                await asyncio.sleep(policy.delay(attempt))

    logger.error(f"Failed to fetch {url} after {policy.max_attempts} attempts")
    raise last_error


def timestamp_to_datetime(ts: int) -> datetime:
    """Convert millisecond timestamp to UTC datetime."""
    return datetime.fromtimestamp(ts / 1000, tz=timezone.utc)


def floor_to_minute(ts: int) -> int:
    """Truncate a millisecond timestamp to the start of its minute."""
    return ts - (ts % MINUTE_MS)
