"""Tests for the command line and its table rendering."""
from datetime import datetime

import pytest
from click.testing import CliRunner

from stocktracker import main, ui
from stocktracker.adapters import placeholder
from stocktracker.core.models import (
    BestAndWorst,
    Holding,
    IndexSnapshot,
    PortfolioMetrics,
    PricePoint,
    QuoteSnapshot,
    SearchResult,
    Series,
)


class FakeSource:
    def get_quotes(self, symbols):
        return [QuoteSnapshot(symbol=s, price=200.0, change=2.0, change_percent=1.0, volume=2_500_000) for s in symbols]

    def get_market_summary(self):
        return [IndexSnapshot(symbol="^DJI", short_name="Dow 30", price=42000.0, day_low=41800.0, day_high=42100.0)]

    def search(self, query):
        return [SearchResult(symbol="AAPL", name="Apple Inc.")] if query == "apple" else []

    def get_history(self, symbol, period, interval):
        points = [PricePoint(ts=datetime(2024, 10, d), price=p) for d, p in ((1, 100.0), (2, 110.0))]
        return Series(symbol=symbol, period=period, interval=interval, points=points)


@pytest.fixture
def run(tmp_path, monkeypatch):
    monkeypatch.setattr(main, "build_quote_source", lambda settings: FakeSource())
    runner = CliRunner()
    db = str(tmp_path / "portfolio.duckdb")

    def invoke(*args):
        return runner.invoke(main.cli, ["--db", db, "--log-level", "WARNING", *args])

    return invoke


def test_add_show_and_merge(run):
    assert run("add", "AAPL", "Apple Inc.", "10", "150").exit_code == 0
    result = run("add", "AAPL", "Apple Inc.", "10", "170")
    assert result.exit_code == 0
    assert "20 shares" in result.output
    assert "$3,200.00" in result.output

    result = run("show")
    assert result.exit_code == 0
    assert "Total Value:      $3,000.00" in result.output
    assert "Best Performer:  AAPL" in result.output
    assert "Top Holdings" in result.output


def test_show_empty_portfolio(run):
    result = run("show")

    assert result.exit_code == 0
    assert "No stocks in your portfolio" in result.output


def test_invalid_add_exits_with_error(run):
    result = run("add", "AAPL", "Apple Inc.", "0", "150")

    assert result.exit_code == 1
    assert "Invalid holding" in result.output
    assert "No stocks" in run("show").output


def test_set_price_and_remove(run):
    run("add", "MSFT", "Microsoft", "2", "400")

    result = run("set-price", "MSFT", "440")
    assert result.exit_code == 0
    assert "+10.00%" in result.output

    assert "not in the portfolio" in run("set-price", "NOPE", "1").output
    assert "No holding with id" in run("remove", "missing").output


def test_refresh_uses_quote_source(run):
    assert "No holdings found" in run("refresh").output

    run("add", "AAPL", "Apple Inc.", "1", "100")
    result = run("refresh")

    assert result.exit_code == 0
    assert "Refreshed 1 of 1" in result.output
    assert "$200.00" in run("show").output


def test_refresh_without_live_data(run, monkeypatch):
    offline = FakeSource()
    offline.get_quotes = lambda symbols: []
    monkeypatch.setattr(main, "build_quote_source", lambda settings: offline)
    run("add", "AAPL", "Apple Inc.", "1", "100")

    result = run("refresh")

    assert result.exit_code == 0
    assert "No live market data available" in result.output
    assert "Last updated" not in run("show").output


def test_market_search_quote_history(run):
    assert "Dow 30" in run("market").output
    assert "Apple Inc." in run("search", "apple").output
    assert "No matches" in run("search", "zzz").output
    assert "Volume:   2.50M" in run("quote", "AAPL").output

    result = run("history", "AAPL", "--period", "5d")
    assert "Change: 10.00%" in result.output


def test_format_large_number():
    assert ui.format_large_number(None) == "N/A"
    assert ui.format_large_number(1_234) == "1.23K"
    assert ui.format_large_number(2_500_000_000_000) == "2.50T"
    assert ui.format_large_number(999) == "999"


def test_holdings_frame_sorted_by_value():
    from stocktracker.core.portfolio import holding_performance

    holdings = [
        Holding(id="1", symbol="A", name="A", shares=1, total_cost=10, price=10),
        Holding(id="2", symbol="B", name="B", shares=5, total_cost=50, price=10),
    ]

    frame = ui.holdings_frame(holding_performance(holdings), by_value=True)

    assert list(frame["Symbol"]) == ["B", "A"]
    assert list(frame["Allocation (%)"]) == ["83.33", "16.67"]
    assert list(frame["Last Updated"]) == ["N/A", "N/A"]


def test_summary_text_and_placeholder_history():
    metrics = PortfolioMetrics(total_value=0, total_cost=0, total_gain=0, total_gain_percent=0)
    assert "No stocks" in ui.summary_text(metrics, BestAndWorst(best=None, worst=None))

    text = ui.history_text(placeholder.history("AAPL", "1mo", "1d"))
    assert "placeholder data" in text
