"""Boundary validation of user-supplied timeframes and watchlists."""
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

from .config import LONG_WATCHLIST_KEY, MAX_TIMEFRAME_HOURS, SHORT_WATCHLIST_KEY, TIME_UNITS

logger = logging.getLogger(__name__)

_TIMEFRAME_RE = re.compile(r'^\s*([0-9]*\.?[0-9]+)\s*([a-zA-Z]?)\s*$')


class ValidationError(ValueError):
    """Malformed user input, raised before any network call."""


@dataclass(frozen=True)
class Watchlist:
    """Validated watchlist: symbol -> per-symbol config, for each side."""
    long: Dict[str, Any] = field(default_factory=dict)
    short: Dict[str, Any] = field(default_factory=dict)

    @property
    def long_symbols(self) -> List[str]:
        return list(self.long.keys())

    @property
    def short_symbols(self) -> List[str]:
        return list(self.short.keys())

    @property
    def symbols(self) -> List[str]:
        """Union of both sides, deduplicated, long side first."""
        return list(dict.fromkeys(self.long_symbols + self.short_symbols))


def validate_timeframe(value: Union[str, float], unit: str = 'h') -> float:
    """
    Convert a timeframe to hours.

    Args:
        value: Number, or a string like '30m', '4h', '7d' (suffix overrides unit)
        unit: 'm', 'h' or 'd' when value carries no suffix

    Returns:
        Lookback in hours, in (0, MAX_TIMEFRAME_HOURS]

    Raises:
        ValidationError: Non-positive, unknown unit, or longer than a year
    """
    if isinstance(value, str):
        match = _TIMEFRAME_RE.match(value)
        if not match:
            raise ValidationError(f"Invalid timeframe: {value!r}")
        number, suffix = match.groups()
        num = float(number)
        if suffix:
            unit = suffix.lower()
    else:
        try:
            num = float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid timeframe: {value!r}")

    if num != num or num <= 0:
        raise ValidationError("Timeframe must be positive")
    if unit not in TIME_UNITS:
        raise ValidationError(f"Invalid unit: {unit!r}")

    hours = num
    if unit == 'm':
        hours /= 60
    elif unit == 'd':
        hours *= 24

    if hours > MAX_TIMEFRAME_HOURS:
        raise ValidationError("Timeframe cannot exceed 1 year")
    return hours


def validate_watchlist(data: Any) -> Watchlist:
    """
    Validate a decoded watchlist document.

    At least one of ``long_watchlist`` / ``short_watchlist`` must be an
    object keyed by symbol.
    """
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON format")

    long_side = data.get(LONG_WATCHLIST_KEY)
    short_side = data.get(SHORT_WATCHLIST_KEY)
    has_long = isinstance(long_side, dict)
    has_short = isinstance(short_side, dict)

    if not has_long and not has_short:
        raise ValidationError(
            f'Watchlist must contain "{LONG_WATCHLIST_KEY}" or "{SHORT_WATCHLIST_KEY}"'
        )

    def _clean(side: Dict[str, Any]) -> Dict[str, Any]:
        cleaned = {}
        for symbol, conf in side.items():
            key = str(symbol).strip().upper()
            if key:
                cleaned[key] = conf
        return cleaned

    return Watchlist(
        long=_clean(long_side) if has_long else {},
        short=_clean(short_side) if has_short else {},
    )


def load_watchlist(path: Union[str, Path]) -> Watchlist:
    """Read and validate a watchlist JSON file."""
    path = Path(path)
    if not path.exists():
        raise ValidationError(f"Watchlist file not found: {path}")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in {path.name}: {e}") from e

    watchlist = validate_watchlist(data)
    logger.info(f"Loaded watchlist {path.name}: {len(watchlist.long)} long, {len(watchlist.short)} short")
    return watchlist
