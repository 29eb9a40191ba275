"""Locally generated market data used when a vendor call fails."""
import math
import random
from datetime import datetime, timedelta
from typing import List, Optional

from stocktracker.core.models import IndexSnapshot, PricePoint, QuoteSnapshot, SearchResult, Series

MAJOR_INDICES = [
    ("^GSPC", "S&P 500"),
    ("^DJI", "Dow 30"),
    ("^IXIC", "Nasdaq"),
    ("^RUT", "Russell 2000"),
    ("^VIX", "VIX"),
]

# Offline search catalogue
KNOWN_SYMBOLS = {
    "AAPL": "Apple Inc.",
    "MSFT": "Microsoft Corporation",
    "GOOGL": "Alphabet Inc.",
    "AMZN": "Amazon.com, Inc.",
    "META": "Meta Platforms, Inc.",
    "NVDA": "NVIDIA Corporation",
    "TSLA": "Tesla, Inc.",
    "BRK-B": "Berkshire Hathaway Inc.",
    "JPM": "JPMorgan Chase & Co.",
    "V": "Visa Inc.",
    "JNJ": "Johnson & Johnson",
    "WMT": "Walmart Inc.",
    "PG": "The Procter & Gamble Company",
    "DIS": "The Walt Disney Company",
    "NFLX": "Netflix, Inc.",
    "KO": "The Coca-Cola Company",
    "INTC": "Intel Corporation",
    "AMD": "Advanced Micro Devices, Inc.",
    "SPY": "SPDR S&P 500 ETF Trust",
    "QQQ": "Invesco QQQ Trust",
}

PERIOD_DAYS = {
    "1d": 1,
    "5d": 5,
    "1mo": 30,
    "6mo": 180,
    "1y": 365,
    "5y": 365 * 5,
}

MAX_POINTS = 100


def quotes(symbols: List[str]) -> List[QuoteSnapshot]:
    """No snapshots: holdings keep their stored price."""
    return []


def _point_count(days: int, interval: str) -> int:
    points = days
    if interval in ("1m", "5m", "15m"):
        points = days * 24 * 4
    elif interval == "1h":
        points = days * 24
    elif interval == "1wk":
        points = math.ceil(days / 7)
    elif interval == "1mo":
        points = math.ceil(days / 30)
    return min(points, MAX_POINTS)


def history(
    symbol: str,
    period: str,
    interval: str,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> Series:
    """Random walk with a slight up or down trend, ending at ``now``."""
    rng = rng or random.Random()
    now = now or datetime.now()

    days = PERIOD_DAYS.get(period, 30)
    points = _point_count(days, interval)
    step = timedelta(days=days) / points

    price = 100 + rng.random() * 100
    trend = 1 if rng.random() > 0.5 else -1

    data = []
    for i in range(points):
        price = max(price + (rng.random() * 2 - 0.9) * trend, 1)
        data.append(PricePoint(
            ts=now - (points - i) * step,
            price=round(price, 2),
            volume=math.floor(rng.random() * 1_000_000) + 500_000,
        ))

    return Series(symbol=symbol, period=period, interval=interval, points=data, is_placeholder=True)


def market_summary() -> List[IndexSnapshot]:
    return [
        IndexSnapshot(symbol=symbol, short_name=short_name, is_placeholder=True)
        for symbol, short_name in MAJOR_INDICES
    ]


def search(query: str) -> List[SearchResult]:
    needle = query.strip().lower()
    if not needle:
        return []
    by_symbol = [s for s in KNOWN_SYMBOLS if s.lower().startswith(needle)]
    by_name = [s for s, name in KNOWN_SYMBOLS.items() if needle in name.lower() and s not in by_symbol]
    return [SearchResult(symbol=s, name=KNOWN_SYMBOLS[s]) for s in by_symbol + by_name]
