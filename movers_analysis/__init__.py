"""
Perpetual movers analysis.

Modules:
- validation: timeframe and watchlist input checks
- universe: market / watchlist symbol selection
- window_resolver: lookback -> kline interval, target time, tolerance
- change_computer: per-symbol percentage change
- stats_analyzer: cohort statistics and rankings
- analyzer: end-to-end run
- main: CLI
"""

from .analyzer import AnalysisResult, MoversAnalyzer
from .universe import UniverseSelection
from .validation import ValidationError, Watchlist

__all__ = ['AnalysisResult', 'MoversAnalyzer', 'UniverseSelection', 'ValidationError', 'Watchlist']
__version__ = '0.1.0'
