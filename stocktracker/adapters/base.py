"""Market data source contract."""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional

from stocktracker.adapters import placeholder
from stocktracker.core.errors import QuoteUnavailable
from stocktracker.core.models import IndexSnapshot, QuoteSnapshot, SearchResult, Series

logger = logging.getLogger(__name__)

DEFAULT_PERIOD = "1mo"
DEFAULT_INTERVAL = "1d"


class QuoteSource(ABC):
    """
    Abstract base class for market data sources.

    Subclasses implement the ``_fetch_*`` methods and raise QuoteUnavailable
    when the vendor cannot be reached. The public methods never raise for
    connectivity problems: they log and fall back to placeholder data.
    """

    name = "quotes"

    def get_quotes(self, symbols: Iterable[str]) -> List[QuoteSnapshot]:
        """Best-effort quotes. Symbols missing from the result have no live data."""
        symbols = list(dict.fromkeys(s for s in symbols if s))
        if not symbols:
            return []
        try:
            return self._fetch_quotes(symbols)
        except QuoteUnavailable as e:
            logger.warning("%s: %s", self.name, e)
            return placeholder.quotes(symbols)

    def get_history(self, symbol: str, period: str = DEFAULT_PERIOD, interval: str = DEFAULT_INTERVAL) -> Series:
        try:
            return self._fetch_history(symbol, period, interval)
        except QuoteUnavailable as e:
            logger.warning("%s: %s", self.name, e)
            return placeholder.history(symbol, period, interval)

    def get_market_summary(self) -> List[IndexSnapshot]:
        try:
            return filter_major_indices(self._fetch_market_summary())
        except QuoteUnavailable as e:
            logger.warning("%s: %s", self.name, e)
            return placeholder.market_summary()

    def search(self, query: str) -> List[SearchResult]:
        query = (query or "").strip()
        if not query:
            return []
        try:
            return self._fetch_search(query)
        except QuoteUnavailable as e:
            logger.warning("%s: %s", self.name, e)
            return placeholder.search(query)

    @abstractmethod
    def _fetch_quotes(self, symbols: List[str]) -> List[QuoteSnapshot]:
        pass

    @abstractmethod
    def _fetch_history(self, symbol: str, period: str, interval: str) -> Series:
        pass

    @abstractmethod
    def _fetch_market_summary(self) -> List[IndexSnapshot]:
        pass

    @abstractmethod
    def _fetch_search(self, query: str) -> List[SearchResult]:
        pass


def filter_major_indices(snapshots: Iterable[IndexSnapshot]) -> List[IndexSnapshot]:
    """Keep only the indices shown on the market overview, in vendor order."""
    names = {short_name for _, short_name in placeholder.MAJOR_INDICES}
    return [s for s in snapshots if s.short_name in names]


@dataclass
class SeriesSummary:
    open: Optional[float]
    close: Optional[float]
    change_percent: Optional[float]


def summarize_series(series: Series) -> SeriesSummary:
    """Open (first point), close (last point) and change between them."""
    if not series.points:
        return SeriesSummary(open=None, close=None, change_percent=None)

    first = series.points[0].price
    last = series.points[-1].price
    if len(series.points) < 2 or not first:
        return SeriesSummary(open=first, close=last, change_percent=None)

    return SeriesSummary(open=first, close=last, change_percent=(last - first) / first * 100)
