"""Yahoo Finance market data adapter using yfinance."""
import logging
import math
from typing import List, Optional

import pandas as pd
import yfinance as yf

from stocktracker.adapters.base import QuoteSource
from stocktracker.adapters.placeholder import MAJOR_INDICES
from stocktracker.core.errors import QuoteUnavailable
from stocktracker.core.models import IndexSnapshot, PricePoint, QuoteSnapshot, SearchResult, Series

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 10


def _number(value) -> Optional[float]:
    """Float from a yfinance field, None for missing or NaN values."""
    if value is None:
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def _change(price: float, previous_close: Optional[float]) -> tuple[float, float]:
    if not previous_close:
        return 0.0, 0.0
    change = price - previous_close
    return change, change / previous_close * 100


class YFinanceQuoteSource(QuoteSource):
    """Quotes, history, indices and search from Yahoo Finance via yfinance."""

    name = "yfinance"

    def _fetch_quotes(self, symbols: List[str]) -> List[QuoteSnapshot]:
        """
        Fetch current quotes one symbol at a time.

        Args:
            symbols: Stock tickers (e.g., ["AAPL", "SPY"])

        Returns:
            One snapshot per symbol that has a price. Failed symbols are omitted.
        """
        snapshots = []
        for symbol in symbols:
            try:
                snapshot = self._fetch_quote(symbol)
            except Exception as e:
                logger.warning("Error fetching quote for %s: %s", symbol, e)
                continue
            if snapshot is not None:
                snapshots.append(snapshot)
        return snapshots

    def _fetch_quote(self, symbol: str) -> Optional[QuoteSnapshot]:
        info = yf.Ticker(symbol).fast_info

        price = _number(info.last_price)
        if price is None:
            return None

        change, change_percent = _change(price, _number(info.previous_close))
        volume = _number(info.last_volume)

        return QuoteSnapshot(
            symbol=symbol,
            price=price,
            change=change,
            change_percent=change_percent,
            volume=int(volume) if volume is not None else None,
            day_high=_number(info.day_high),
            day_low=_number(info.day_low),
            day_open=_number(info.open),
        )

    def _fetch_history(self, symbol: str, period: str, interval: str) -> Series:
        """
        Fetch historical closing prices.

        Args:
            symbol: Stock ticker
            period: yfinance period (1d, 5d, 1mo, 6mo, 1y, 5y, max)
            interval: Bar size (1m, 5m, 15m, 1h, 1d, 1wk, 1mo)

        Returns:
            Series of (timestamp, close, volume) points, rows without a close dropped
        """
        try:
            hist = yf.Ticker(symbol).history(period=period, interval=interval, prepost=True)
        except Exception as e:
            raise QuoteUnavailable(symbol, e) from e

        if hist is None or hist.empty or "Close" not in hist.columns:
            raise QuoteUnavailable(symbol, f"no {period}/{interval} history")

        return Series(symbol=symbol, period=period, interval=interval, points=frame_to_points(hist))

    def _fetch_market_summary(self) -> List[IndexSnapshot]:
        indices = []
        for symbol, short_name in MAJOR_INDICES:
            try:
                info = yf.Ticker(symbol).fast_info
                price = _number(info.last_price)
            except Exception as e:
                logger.warning("Error fetching index %s: %s", symbol, e)
                continue
            if price is None:
                continue

            change, change_percent = _change(price, _number(info.previous_close))
            indices.append(IndexSnapshot(
                symbol=symbol,
                short_name=short_name,
                price=price,
                change=change,
                change_percent=change_percent,
                day_high=_number(info.day_high),
                day_low=_number(info.day_low),
            ))

        if not indices:
            raise QuoteUnavailable("market summary", "no index prices returned")
        return indices

    def _fetch_search(self, query: str) -> List[SearchResult]:
        try:
            found = yf.Search(query, max_results=SEARCH_LIMIT).quotes
        except Exception as e:
            raise QuoteUnavailable(f"search {query!r}", e) from e

        results = []
        for item in found or []:
            symbol = item.get("symbol")
            if not symbol:
                continue
            results.append(SearchResult(
                symbol=symbol,
                name=item.get("longname") or item.get("shortname") or symbol,
            ))
        return results


def frame_to_points(hist: pd.DataFrame) -> List[PricePoint]:
    """Convert a yfinance history frame into price points."""
    hist = hist.dropna(subset=["Close"])

    points = []
    for idx, row in hist.iterrows():
        # idx is a pandas Timestamp
        volume = _number(row["Volume"]) if "Volume" in hist.columns else None
        points.append(PricePoint(
            ts=idx.to_pydatetime(),
            price=float(row["Close"]),
            volume=int(volume) if volume is not None else None,
        ))
    return points
