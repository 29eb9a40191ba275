"""In-memory portfolio state backed by a HoldingStore."""
import logging
import threading
from typing import Dict, Iterable, List, Optional

from stocktracker.core import portfolio
from stocktracker.core.errors import PersistenceFailure
from stocktracker.core.models import (
    BestAndWorst,
    Holding,
    HoldingInput,
    HoldingPerformance,
    PortfolioMetrics,
    QuoteSnapshot,
)
from stocktracker.core.store import HoldingStore

logger = logging.getLogger(__name__)


class PortfolioTracker:
    """
    Owns the holdings list and the latest quote map.

    Mutations go through the pure functions in ``portfolio``, replace the list
    and persist it. Scheduler jobs run on worker threads, so list replacement
    is serialized with a lock; readers work on the list they grabbed.
    """

    def __init__(self, store: HoldingStore):
        self.store = store
        self._lock = threading.Lock()
        self._holdings: List[Holding] = store.load()
        self._quotes: Dict[str, QuoteSnapshot] = {}

    @property
    def holdings(self) -> List[Holding]:
        return list(self._holdings)

    @property
    def quotes(self) -> Dict[str, QuoteSnapshot]:
        return dict(self._quotes)

    def symbols(self) -> List[str]:
        return [h.symbol for h in self._holdings]

    def _commit(self, holdings: List[Holding]) -> None:
        # Caller holds the lock
        self._holdings = holdings
        try:
            self.store.save(holdings)
        except PersistenceFailure as e:
            logger.error("Holdings changed in memory but were not saved: %s", e)

    def add_holding(self, symbol: str, name: str, shares: float, price: float) -> Holding:
        """Add a buy, merging into an existing holding with the same symbol."""
        with self._lock:
            updated = portfolio.add_or_merge_holding(
                self._holdings,
                HoldingInput(symbol=symbol, name=name, shares=shares, price=price),
            )
            self._commit(updated)

        holding = next(h for h in updated if h.symbol == symbol.strip())
        logger.info("Added %s shares of %s (now %s shares)", shares, holding.symbol, holding.shares)
        return holding

    def update_price(self, symbol: str, price: float) -> Optional[Holding]:
        """Set a manual price. Returns the updated holding, None for unknown symbols."""
        with self._lock:
            updated = portfolio.update_holding_price(self._holdings, symbol, price)
            if updated == self._holdings:
                return None
            self._commit(updated)

        logger.info("Updated %s price to %s", symbol, price)
        return next(h for h in updated if h.symbol == symbol)

    def remove_holding(self, holding_id: str) -> bool:
        with self._lock:
            updated = portfolio.remove_holding(self._holdings, holding_id)
            if len(updated) == len(self._holdings):
                return False
            self._commit(updated)

        logger.info("Removed holding %s", holding_id)
        return True

    def apply_quotes(self, snapshots: Iterable[QuoteSnapshot], requested_symbols: Iterable[str]) -> bool:
        """
        Store a quote response fetched for ``requested_symbols``.

        The response is dropped when the holdings changed while it was in
        flight, so an old fetch cannot overwrite newer data.
        """
        snapshots = list(snapshots)
        with self._lock:
            if set(requested_symbols) != {h.symbol for h in self._holdings}:
                logger.debug("Discarding stale quotes for %s", sorted(set(requested_symbols)))
                return False

            # Unusable prices fall back to the stored price
            self._quotes = {s.symbol: s for s in snapshots if portfolio.usable_price(s.price)}
            self._commit(portfolio.apply_quotes(self._holdings, self._quotes))

        logger.debug("Applied %d quotes", len(snapshots))
        return True

    def metrics(self) -> PortfolioMetrics:
        return portfolio.compute_metrics(self._holdings, self._quotes)

    def best_and_worst(self) -> BestAndWorst:
        return portfolio.find_best_and_worst(self._holdings, self._quotes)

    def top_holdings(self, limit: int = portfolio.DEFAULT_TOP_LIMIT) -> List[Holding]:
        return portfolio.top_holdings_by_value(self._holdings, self._quotes, limit)

    def allocations(self) -> Dict[str, float]:
        return portfolio.allocation_percentages(self._holdings, self._quotes)

    def performance(self) -> List[HoldingPerformance]:
        return portfolio.holding_performance(self._holdings, self._quotes)
