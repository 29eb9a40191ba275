"""Portfolio valuation, ranking and holdings mutation.

Every function here is pure: inputs are treated as a frozen snapshot and a new
value is returned. Holdings are never mutated in place, so a refresh running
on a scheduler thread can safely compute over a list the caller replaces.
"""
import math
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence

from stocktracker.core.errors import ValidationError
from stocktracker.core.models import (
    BestAndWorst,
    Holding,
    HoldingGain,
    HoldingInput,
    HoldingPerformance,
    PortfolioMetrics,
    QuoteSnapshot,
)

Quotes = Mapping[str, QuoteSnapshot]

DEFAULT_TOP_LIMIT = 5


def effective_price(holding: Holding, quotes: Optional[Quotes] = None) -> float:
    """Live quote price when one exists, else the holding's stored price."""
    if quotes:
        snapshot = quotes.get(holding.symbol)
        if snapshot is not None and snapshot.price is not None:
            return snapshot.price
    return holding.price


def market_value(holding: Holding, quotes: Optional[Quotes] = None) -> float:
    return effective_price(holding, quotes) * holding.shares


def _percent_of(part: float, whole: float) -> float:
    # Zero denominators are a defined empty state, not an error
    if not whole:
        return 0.0
    return part / whole * 100


def compute_metrics(holdings: Sequence[Holding], quotes: Optional[Quotes] = None) -> PortfolioMetrics:
    """
    Calculate portfolio-wide totals.

    An empty portfolio yields all zeros, which callers treat as the canonical
    empty state.
    """
    total_value = sum(market_value(h, quotes) for h in holdings)
    total_cost = sum(h.total_cost for h in holdings)
    total_gain = total_value - total_cost

    return PortfolioMetrics(
        total_value=total_value,
        total_cost=total_cost,
        total_gain=total_gain,
        total_gain_percent=_percent_of(total_gain, total_cost) if total_cost > 0 else 0.0,
        holding_count=len(holdings),
    )


def per_holding_gain(holding: Holding, price: float) -> HoldingGain:
    gain = price * holding.shares - holding.total_cost
    return HoldingGain(gain=gain, gain_percent=_percent_of(gain, holding.total_cost))


def find_best_and_worst(holdings: Sequence[Holding], quotes: Optional[Quotes] = None) -> BestAndWorst:
    """
    Select the holdings with the highest and lowest gain percent.

    Ties go to the first holding in input order. With no holdings both sides
    are None.
    """
    best: Optional[Holding] = None
    worst: Optional[Holding] = None
    best_pct: Optional[float] = None
    worst_pct: Optional[float] = None

    for holding in holdings:
        pct = per_holding_gain(holding, effective_price(holding, quotes)).gain_percent

        if best_pct is None or pct > best_pct:
            best, best_pct = holding, pct
        if worst_pct is None or pct < worst_pct:
            worst, worst_pct = holding, pct

    return BestAndWorst(best=best, worst=worst, best_gain_percent=best_pct, worst_gain_percent=worst_pct)


def _by_value(items, value) -> list:
    return sorted(items, key=value, reverse=True)


def top_holdings_by_value(
    holdings: Sequence[Holding],
    quotes: Optional[Quotes] = None,
    limit: Optional[int] = DEFAULT_TOP_LIMIT,
) -> List[Holding]:
    """Holdings sorted by market value, highest first, truncated to ``limit``.

    sorted() is stable with reverse=True, so equal values keep input order.
    """
    ranked = _by_value(holdings, lambda h: market_value(h, quotes))
    if limit is None:
        return ranked
    return ranked[:max(limit, 0)]


def allocation_percentages(holdings: Sequence[Holding], quotes: Optional[Quotes] = None) -> Dict[str, float]:
    """
    Share of total portfolio value per symbol, in percent.

    Entries are not renormalized: after rounding each one for display the sum
    may be slightly off 100.
    """
    values = {h.symbol: market_value(h, quotes) for h in holdings}
    total_value = sum(values.values())
    return {symbol: _percent_of(value, total_value) for symbol, value in values.items()}


def holding_performance(holdings: Sequence[Holding], quotes: Optional[Quotes] = None) -> List[HoldingPerformance]:
    """Per-holding rows (price, value, gain, allocation) in input order."""
    allocations = allocation_percentages(holdings, quotes)
    rows = []
    for holding in holdings:
        price = effective_price(holding, quotes)
        gain = per_holding_gain(holding, price)
        rows.append(HoldingPerformance(
            holding=holding,
            effective_price=price,
            market_value=price * holding.shares,
            gain=gain.gain,
            gain_percent=gain.gain_percent,
            allocation_percent=allocations.get(holding.symbol, 0.0),
        ))
    return rows


def performance_by_value(rows: Sequence[HoldingPerformance]) -> List[HoldingPerformance]:
    """Performance rows in the same order as top_holdings_by_value."""
    return _by_value(rows, lambda r: r.market_value)


def usable_price(price: Optional[float]) -> bool:
    """Whether a quoted price can replace a stored one."""
    return price is not None and math.isfinite(price) and price > 0


def _positive_number(field: str, value) -> float:
    if value is None or value == "":
        raise ValidationError(field, "is required")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(field, f"must be a number, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise ValidationError(field, f"must be positive, got {value!r}")
    return float(value)


def _required_text(field: str, value) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, "is required")
    return value.strip()


def validate_incoming(incoming: HoldingInput) -> HoldingInput:
    """Return a cleaned copy of ``incoming`` or raise ValidationError."""
    return HoldingInput(
        symbol=_required_text("symbol", incoming.symbol),
        name=_required_text("name", incoming.name),
        shares=_positive_number("shares", incoming.shares),
        price=_positive_number("price", incoming.price),
    )


def add_or_merge_holding(
    holdings: Sequence[Holding],
    incoming: HoldingInput,
    now: Optional[datetime] = None,
) -> List[Holding]:
    """
    Add a buy event to the portfolio.

    A new symbol is appended with a fresh id. An existing symbol is merged:
    shares and total cost accumulate (weighted-average cost basis) and the
    original id is kept.
    """
    incoming = validate_incoming(incoming)
    now = now or datetime.now()
    cost = incoming.price * incoming.shares

    for index, existing in enumerate(holdings):
        if existing.symbol == incoming.symbol:
            merged = replace(
                existing,
                shares=existing.shares + incoming.shares,
                total_cost=existing.total_cost + cost,
                last_updated=now,
            )
            return [*holdings[:index], merged, *holdings[index + 1:]]

    created = Holding(
        id=uuid.uuid4().hex,
        symbol=incoming.symbol,
        name=incoming.name,
        shares=incoming.shares,
        total_cost=cost,
        price=incoming.price,
        price_change=0.0,
        last_updated=now,
    )
    return [*holdings, created]


def _repriced(holding: Holding, new_price: float, now: datetime) -> Holding:
    previous = holding.price
    change = (new_price - previous) / previous * 100 if previous else 0.0
    return replace(holding, price=new_price, price_change=change, last_updated=now)


def update_holding_price(
    holdings: Sequence[Holding],
    symbol: str,
    new_price: float,
    now: Optional[datetime] = None,
) -> List[Holding]:
    """
    Set a new stored price for ``symbol``.

    Unknown symbols are a no-op whatever the price. Shares and total cost are
    never touched.
    """
    if not any(h.symbol == symbol for h in holdings):
        return list(holdings)
    new_price = _positive_number("price", new_price)
    now = now or datetime.now()
    return [_repriced(h, new_price, now) if h.symbol == symbol else h for h in holdings]


def apply_quotes(holdings: Sequence[Holding], quotes: Quotes, now: Optional[datetime] = None) -> List[Holding]:
    """Store live quote prices on the holdings they belong to.

    Holdings without a usable quote are returned unchanged.
    """
    now = now or datetime.now()
    updated = []
    for holding in holdings:
        snapshot = quotes.get(holding.symbol)
        price = snapshot.price if snapshot is not None else None
        if not usable_price(price):
            updated.append(holding)
        else:
            updated.append(_repriced(holding, price, now))
    return updated


def remove_holding(holdings: Sequence[Holding], holding_id: str) -> List[Holding]:
    return [h for h in holdings if h.id != holding_id]
