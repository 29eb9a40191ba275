"""Tests for the in-memory portfolio state container."""
import logging
from datetime import datetime

import pytest

from stocktracker.core.errors import PersistenceFailure, ValidationError
from stocktracker.core.models import Holding, QuoteSnapshot
from stocktracker.core.store import HoldingStore
from stocktracker.core.tracker import PortfolioTracker


class MemoryStore:
    def __init__(self, holdings=None, fail_saves=False):
        self.holdings = list(holdings or [])
        self.saved = []
        self.fail_saves = fail_saves
        self.settings = {}

    def load(self):
        return list(self.holdings)

    def save(self, holdings):
        if self.fail_saves:
            raise PersistenceFailure("disk full")
        self.saved.append(list(holdings))

    def get_setting(self, key):
        return self.settings.get(key)

    def set_setting(self, key, value):
        self.settings[key] = value


def make_holding(symbol, shares=1.0, price=10.0):
    return Holding(
        id=f"id-{symbol}",
        symbol=symbol,
        name=f"{symbol} Corp",
        shares=shares,
        total_cost=shares * price,
        price=price,
        last_updated=datetime(2024, 10, 8, 15, 0),
    )


def test_loads_holdings_from_store():
    tracker = PortfolioTracker(MemoryStore([make_holding("A"), make_holding("B")]))

    assert tracker.symbols() == ["A", "B"]


def test_add_persists_and_merges():
    store = MemoryStore()
    tracker = PortfolioTracker(store)

    first = tracker.add_holding("AAPL", "Apple Inc.", 10, 150)
    merged = tracker.add_holding("AAPL", "Apple Inc.", 10, 170)

    assert merged.id == first.id
    assert merged.shares == 20
    assert merged.total_cost == pytest.approx(3200)
    assert len(store.saved) == 2
    assert store.saved[-1] == tracker.holdings


def test_invalid_add_leaves_state_alone():
    store = MemoryStore([make_holding("A")])
    tracker = PortfolioTracker(store)

    with pytest.raises(ValidationError):
        tracker.add_holding("B", "Bee", 0, 10)

    assert tracker.symbols() == ["A"]
    assert store.saved == []


def test_save_failure_is_logged_and_memory_keeps_new_state(caplog):
    tracker = PortfolioTracker(MemoryStore(fail_saves=True))

    with caplog.at_level(logging.ERROR, logger="stocktracker.core.tracker"):
        tracker.add_holding("AAPL", "Apple Inc.", 1, 100)

    assert tracker.symbols() == ["AAPL"]
    assert "not saved" in caplog.text


def test_update_price_and_unknown_symbol():
    store = MemoryStore([make_holding("A", price=100)])
    tracker = PortfolioTracker(store)

    assert tracker.update_price("NOPE", 5) is None
    assert store.saved == []

    updated = tracker.update_price("A", 90)
    assert updated.price == 90
    assert updated.price_change == pytest.approx(-10)
    assert len(store.saved) == 1


def test_remove_holding():
    store = MemoryStore([make_holding("A"), make_holding("B")])
    tracker = PortfolioTracker(store)

    assert tracker.remove_holding("missing") is False
    assert tracker.remove_holding("id-A") is True
    assert tracker.symbols() == ["B"]
    assert store.saved == [tracker.holdings]


def test_apply_quotes_for_current_symbols():
    store = MemoryStore([make_holding("A", shares=2, price=100), make_holding("B", price=10)])
    tracker = PortfolioTracker(store)

    applied = tracker.apply_quotes([QuoteSnapshot(symbol="A", price=110)], ["B", "A"])

    assert applied is True
    assert tracker.holdings[0].price == 110
    assert tracker.holdings[1].price == 10
    assert set(tracker.quotes) == {"A"}
    assert tracker.metrics().total_value == pytest.approx(230)
    assert len(store.saved) == 1


def test_unusable_quote_keeps_valuing_at_stored_price():
    tracker = PortfolioTracker(MemoryStore([make_holding("A", shares=10, price=100)]))

    assert tracker.apply_quotes([QuoteSnapshot(symbol="A", price=0.0)], ["A"]) is True

    assert tracker.holdings[0].price == 100
    assert tracker.quotes == {}
    assert tracker.metrics().total_value == pytest.approx(1000)


def test_stale_quotes_are_discarded():
    store = MemoryStore([make_holding("A", price=100)])
    tracker = PortfolioTracker(store)
    requested = tracker.symbols()

    tracker.add_holding("B", "Bee", 1, 5)
    applied = tracker.apply_quotes([QuoteSnapshot(symbol="A", price=1)], requested)

    assert applied is False
    assert tracker.holdings[0].price == 100
    assert tracker.quotes == {}


def test_read_views():
    tracker = PortfolioTracker(MemoryStore([
        make_holding("A", shares=1, price=10),
        make_holding("B", shares=3, price=10),
    ]))
    tracker.update_price("A", 20)

    assert tracker.best_and_worst().best.symbol == "A"
    assert [h.symbol for h in tracker.top_holdings(1)] == ["B"]
    assert tracker.allocations() == {"A": pytest.approx(40), "B": pytest.approx(60)}
    assert [r.holding.symbol for r in tracker.performance()] == ["A", "B"]


def test_changes_survive_restart(tmp_path):
    db = tmp_path / "portfolio.duckdb"

    with HoldingStore(db) as store:
        tracker = PortfolioTracker(store)
        holding = tracker.add_holding("MSFT", "Microsoft", 3, 300)
        tracker.add_holding("AAPL", "Apple", 1, 150)
        tracker.remove_holding(tracker.holdings[1].id)

    with HoldingStore(db) as store:
        reloaded = PortfolioTracker(store)

    assert [h.id for h in reloaded.holdings] == [holding.id]
    assert reloaded.metrics().total_cost == pytest.approx(900)
