"""yfapi.net (Yahoo Finance REST) market data adapter."""
import logging
from datetime import datetime
from typing import Dict, List, Optional

import requests

from stocktracker.adapters.base import QuoteSource
from stocktracker.core.errors import QuoteUnavailable
from stocktracker.core.models import IndexSnapshot, PricePoint, QuoteSnapshot, SearchResult, Series

logger = logging.getLogger(__name__)

YFAPI_BASE_URL = "https://yfapi.net"


def _raw(value) -> Optional[float]:
    """Numbers come either bare or wrapped as {"raw": 1.0, "fmt": "1.00"}."""
    if isinstance(value, dict):
        value = value.get("raw")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


class YahooApiQuoteSource(QuoteSource):
    """Market data from the yfapi.net REST API, authenticated with x-api-key."""

    name = "yfapi"

    def __init__(
        self,
        api_key: str,
        base_url: str = YFAPI_BASE_URL,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "x-api-key": api_key,
            "Content-Type": "application/json",
        })

    def _get(self, path: str, params: Dict, what: str) -> Dict:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as e:
            raise QuoteUnavailable(what, e) from e

    def _fetch_quotes(self, symbols: List[str]) -> List[QuoteSnapshot]:
        """
        Fetch real-time quotes for a list of symbols in one request.

        Args:
            symbols: Stock tickers

        Returns:
            Snapshots for the symbols the API returned a price for
        """
        what = ",".join(symbols)
        data = self._get(
            "/v6/finance/quote",
            {"region": "US", "lang": "en", "symbols": what},
            what,
        )

        try:
            result = data["quoteResponse"]["result"]
        except (KeyError, TypeError) as e:
            raise QuoteUnavailable(what, f"unexpected response: {e}") from e

        snapshots = []
        for item in result or []:
            price = _raw(item.get("regularMarketPrice"))
            if not item.get("symbol") or price is None:
                continue

            volume = _raw(item.get("regularMarketVolume"))
            snapshots.append(QuoteSnapshot(
                symbol=item["symbol"],
                price=price,
                change=_raw(item.get("regularMarketChange")) or 0.0,
                change_percent=_raw(item.get("regularMarketChangePercent")) or 0.0,
                volume=int(volume) if volume is not None else None,
                day_high=_raw(item.get("regularMarketDayHigh")),
                day_low=_raw(item.get("regularMarketDayLow")),
                day_open=_raw(item.get("regularMarketOpen")),
                name=item.get("shortName") or item.get("longName"),
            ))

        return snapshots

    def _fetch_history(self, symbol: str, period: str, interval: str) -> Series:
        """
        Fetch historical chart data for a symbol.

        Args:
            symbol: Stock ticker
            period: Time range (1d, 5d, 1mo, 3mo, 6mo, 1y, 5y, max)
            interval: Data interval (1m, 5m, 15m, 1d, 1wk, 1mo)

        Returns:
            Series of closing prices, points without a close dropped
        """
        data = self._get(
            f"/v8/finance/chart/{symbol}",
            {"range": period, "interval": interval, "includePrePost": "true"},
            symbol,
        )

        try:
            chart = data["chart"]["result"][0]
            timestamps = chart["timestamp"]
            quote = chart["indicators"]["quote"][0]
            closes = quote["close"]
            volumes = quote.get("volume") or [None] * len(timestamps)
        except (KeyError, IndexError, TypeError) as e:
            raise QuoteUnavailable(symbol, f"unexpected chart response: {e}") from e

        points = []
        for ts, close, volume in zip(timestamps, closes, volumes):
            if close is None:
                continue
            points.append(PricePoint(
                ts=datetime.fromtimestamp(ts),
                price=float(close),
                volume=int(volume) if volume is not None else None,
            ))

        return Series(symbol=symbol, period=period, interval=interval, points=points)

    def _fetch_market_summary(self) -> List[IndexSnapshot]:
        data = self._get(
            "/v6/finance/quote/marketSummary",
            {"lang": "en", "region": "US"},
            "market summary",
        )

        try:
            result = data["marketSummaryResponse"]["result"]
        except (KeyError, TypeError) as e:
            raise QuoteUnavailable("market summary", f"unexpected response: {e}") from e

        return [
            IndexSnapshot(
                symbol=item.get("symbol", ""),
                short_name=item.get("shortName", ""),
                price=_raw(item.get("regularMarketPrice")),
                change=_raw(item.get("regularMarketChange")) or 0.0,
                change_percent=_raw(item.get("regularMarketChangePercent")) or 0.0,
                day_high=_raw(item.get("regularMarketDayHigh")),
                day_low=_raw(item.get("regularMarketDayLow")),
            )
            for item in result or []
        ]

    def _fetch_search(self, query: str) -> List[SearchResult]:
        what = f"search {query!r}"
        data = self._get(
            "/v6/finance/autocomplete",
            {"region": "US", "lang": "en", "query": query},
            what,
        )

        try:
            result = data["ResultSet"]["Result"]
        except (KeyError, TypeError) as e:
            raise QuoteUnavailable(what, f"unexpected response: {e}") from e

        return [
            SearchResult(symbol=item["symbol"], name=item.get("name") or item["symbol"])
            for item in result or []
            if item.get("symbol")
        ]
