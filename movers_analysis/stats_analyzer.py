"""Cohort statistics and gainer/loser rankings."""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from .change_computer import ChangeRecord
from .config import MAJOR_SYMBOLS, TOP_N
from .universe import UniverseSelection, symbol_root
from .validation import Watchlist

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CohortStats:
    mean: float
    median: float
    gainer_count: int
    loser_count: int
    count: int


@dataclass(frozen=True)
class RankedTable:
    title: str
    rows: List[ChangeRecord]


@dataclass
class Cohort:
    """A named group of symbols analysed and ranked together."""
    label: str
    subtitle: str
    members: List[ChangeRecord]
    ignored_symbols: List[str]
    ranked_tables: List[RankedTable]
    stats: CohortStats
    major_movers: List[ChangeRecord] = field(default_factory=list)


def calculate_median(values: Sequence[float]) -> float:
    """Middle value, mean of the two middles on even counts, 0 when empty."""
    if len(values) == 0:
        return 0.0
    return float(pd.Series(values, dtype='float64').median())


def generate_time_label(hours: float) -> str:
    """Human readable lookback: '30 Minutes', '4 Hours', '7 Days'."""
    if hours < 1:
        return f"{round(hours * 60)} Minutes"
    if hours >= 24 and hours % 24 == 0:
        days = int(hours // 24)
        return f"{days} {'Day' if days == 1 else 'Days'}"
    return f"{float(f'{hours:.2f}'):g} Hours"


def format_change(value: float) -> str:
    return f"{'+' if value > 0 else ''}{value:.2f}%"


def ignored_from(requested: Iterable[str], records: Iterable[ChangeRecord]) -> List[str]:
    """Requested symbols without a record, in requested order."""
    analysed = {r.symbol for r in records}
    return [s for s in dict.fromkeys(requested) if s not in analysed]


class StatisticsAnalyzer:
    """Build ranked cohorts from change records."""

    def __init__(self, top_n: int = TOP_N):
        self.top_n = top_n

    @staticmethod
    def to_dataframe(records: Sequence[ChangeRecord]) -> pd.DataFrame:
        return pd.DataFrame(
            [(r.symbol, r.change_percent) for r in records],
            columns=['symbol', 'change']
        ).astype({'change': 'float64'})

    def calculate_stats(self, records: Sequence[ChangeRecord]) -> CohortStats:
        """
        Aggregate statistics for a cohort.

        Zero changes count as neither gainers nor losers.
        """
        if not records:
            return CohortStats(mean=0.0, median=0.0, gainer_count=0, loser_count=0, count=0)

        changes = self.to_dataframe(records)['change']
        return CohortStats(
            mean=float(changes.mean()),
            median=calculate_median(changes.tolist()),
            gainer_count=int((changes > 0).sum()),
            loser_count=int((changes < 0).sum()),
            count=len(changes),
        )

    def rank(self, records: Sequence[ChangeRecord]) -> List[RankedTable]:
        """
        One descending 'Performance' table for small cohorts, otherwise top
        gainers (descending) and top losers (most negative first).

        Sorting is stable, so equal changes keep the order of ``records``.
        """
        if not records:
            return [RankedTable("Performance", [])]

        df = self.to_dataframe(records)
        desc = df.sort_values('change', ascending=False, kind='mergesort')

        def _rows(frame: pd.DataFrame) -> List[ChangeRecord]:
            return [records[i] for i in frame.index]

        if len(records) <= self.top_n:
            return [RankedTable("Performance", _rows(desc))]

        asc = df.sort_values('change', ascending=True, kind='mergesort')
        return [
            RankedTable(f"Top {self.top_n} Gainers", _rows(desc.head(self.top_n))),
            RankedTable(f"Top {self.top_n} Losers", _rows(asc.head(self.top_n))),
        ]

    def build_cohort(
        self,
        label: str,
        subtitle: str,
        members: Sequence[ChangeRecord],
        ignored_symbols: Sequence[str],
        major_movers: Optional[Sequence[ChangeRecord]] = None
    ) -> Cohort:
        members = list(members)
        return Cohort(
            label=label,
            subtitle=subtitle,
            members=members,
            ignored_symbols=list(ignored_symbols),
            ranked_tables=self.rank(members),
            stats=self.calculate_stats(members),
            major_movers=list(major_movers or []),
        )

    def build_market_cohort(
        self,
        records: Sequence[ChangeRecord],
        requested: Sequence[str],
        selection: UniverseSelection,
        time_label: str
    ) -> Cohort:
        """
        Full-market cohort.

        Major symbols are surfaced as movers even when their root is excluded;
        excluded roots are kept out of the statistics and tables.
        """
        by_symbol = {r.symbol: r for r in records}
        major_movers = [by_symbol[s] for s in MAJOR_SYMBOLS if s in by_symbol]
        members = [r for r in records if not selection.is_excluded(r.symbol)]
        ignored = ignored_from(requested, records)

        logger.info(
            f"Market cohort: {len(members)} ranked, {len(major_movers)} majors, {len(ignored)} ignored"
        )
        return self.build_cohort(
            "Full Market Analysis", f"Timeframe: {time_label}", members, ignored, major_movers
        )

    def build_watchlist_cohorts(
        self,
        records: Sequence[ChangeRecord],
        watchlist: Watchlist
    ) -> List[Cohort]:
        """Long and short cohorts; a symbol listed on both sides lands in both."""
        cohorts = []
        for label, side in (("Long Watchlist", watchlist.long_symbols),
                            ("Short Watchlist", watchlist.short_symbols)):
            wanted = set(side)
            members = [r for r in records if r.symbol in wanted]
            ignored = ignored_from(side, members)
            cohorts.append(self.build_cohort(label, f"{len(members)} Symbols", members, ignored))
            logger.info(f"{label}: {len(members)} ranked, {len(ignored)} ignored")
        return cohorts

    def generate_text_report(self, cohort: Cohort) -> str:
        """
        Generate a text report for one cohort.

        Args:
            cohort: Cohort built by this analyzer

        Returns:
            Formatted text report
        """
        stats = cohort.stats
        title = f"{cohort.label} - {cohort.subtitle}"

        report = f"""
╔══════════════════════════════════════════════════════════════════════╗
║ {title:<68s} ║
╚══════════════════════════════════════════════════════════════════════╝

📊 SUMMARY
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
  Symbols Analysed:       {stats.count}
  Ignored:                {len(cohort.ignored_symbols)}
  Average Change:         {format_change(stats.mean)}
  Median Change:          {format_change(stats.median)}
  Gainers / Losers:       {stats.gainer_count} / {stats.loser_count}
"""
        if cohort.major_movers:
            report += "\n⭐ MAJOR MOVERS\n" + "━" * 70 + "\n"
            for m in cohort.major_movers:
                report += f"  {symbol_root(m.symbol):15s} {format_change(m.change_percent):>10s}\n"

        for table in cohort.ranked_tables:
            report += f"\n📈 {table.title.upper()}\n" + "━" * 70 + "\n"
            for i, row in enumerate(table.rows, 1):
                report += f"  {i:2d}. {symbol_root(row.symbol):15s} {format_change(row.change_percent):>10s}\n"

        if cohort.ignored_symbols:
            preview = ', '.join(symbol_root(s) for s in cohort.ignored_symbols[:20])
            more = len(cohort.ignored_symbols) - 20
            report += f"\n🚫 IGNORED\n" + "━" * 70 + f"\n  {preview}"
            report += f" (+{more} more)\n" if more > 0 else "\n"

        report += "\n" + "=" * 70 + "\n"
        return report
