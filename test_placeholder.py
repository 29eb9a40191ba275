"""Tests for offline placeholder market data."""
import random
from datetime import datetime

import pytest

from stocktracker.adapters import placeholder
from stocktracker.adapters.base import summarize_series
from stocktracker.core.models import PricePoint, Series

NOW = datetime(2024, 10, 8, 16, 0)


@pytest.mark.parametrize("period, interval, expected", [
    ("1d", "5m", 96),
    ("5d", "15m", 100),
    ("1d", "1h", 24),
    ("1mo", "1d", 30),
    ("6mo", "1d", 100),
    ("1y", "1wk", 53),
    ("1mo", "1mo", 1),
    ("max", "1d", 30),
])
def test_history_point_counts(period, interval, expected):
    series = placeholder.history("AAPL", period, interval, rng=random.Random(7), now=NOW)

    assert len(series.points) == expected


def test_history_shape():
    series = placeholder.history("AAPL", "1mo", "1d", rng=random.Random(42), now=NOW)

    assert series.is_placeholder is True
    assert series.symbol == "AAPL"
    timestamps = [p.ts for p in series.points]
    assert timestamps == sorted(timestamps)
    assert timestamps[-1] < NOW
    assert all(p.price >= 1 for p in series.points)
    assert all(500_000 <= p.volume < 1_500_000 for p in series.points)


def test_history_is_reproducible_with_seed():
    first = placeholder.history("X", "5d", "1d", rng=random.Random(1), now=NOW)
    second = placeholder.history("X", "5d", "1d", rng=random.Random(1), now=NOW)

    assert first == second


def test_placeholder_quotes_are_empty():
    assert placeholder.quotes(["AAPL"]) == []


def test_market_summary():
    indices = placeholder.market_summary()

    assert [i.symbol for i in indices] == ["^GSPC", "^DJI", "^IXIC", "^RUT", "^VIX"]
    assert all(i.price is None and i.is_placeholder for i in indices)


def test_search_matches_symbol_prefix_then_name():
    results = placeholder.search("am")

    assert [r.symbol for r in results][:2] == ["AMZN", "AMD"]
    assert [r.symbol for r in placeholder.search("micro")] == ["MSFT", "AMD"]
    assert placeholder.search("  ") == []


def make_series(*prices):
    return Series(
        symbol="X",
        period="5d",
        interval="1d",
        points=[PricePoint(ts=datetime(2024, 10, i + 1), price=p) for i, p in enumerate(prices)],
    )


def test_summarize_series():
    summary = summarize_series(make_series(100.0, 90.0, 125.0))

    assert summary.open == 100.0
    assert summary.close == 125.0
    assert summary.change_percent == pytest.approx(25)


@pytest.mark.parametrize("prices, expected_open", [((), None), ((5.0,), 5.0), ((0.0, 5.0), 0.0)])
def test_summarize_series_without_change(prices, expected_open):
    summary = summarize_series(make_series(*prices))

    assert summary.open == expected_open
    assert summary.change_percent is None
