"""Data models for the application."""
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Holding:
    """A position in one security.

    ``symbol`` is the merge key, ``id`` is the removal key. They are kept apart
    on purpose: merging a second buy into a holding keeps its original ``id``.
    """
    id: str
    symbol: str
    name: str
    shares: float
    total_cost: float  # cumulative amount paid for the shares held
    price: float  # last known market price, used when no live quote exists
    price_change: float = 0.0  # percent vs the previous stored price
    last_updated: datetime | None = None


@dataclass
class HoldingInput:
    """A buy event as entered by the user, before it becomes a Holding."""
    symbol: str | None
    name: str | None
    shares: float | None
    price: float | None


@dataclass
class QuoteSnapshot:
    symbol: str
    price: float
    change: float = 0.0
    change_percent: float = 0.0
    volume: int | None = None
    day_high: float | None = None
    day_low: float | None = None
    day_open: float | None = None
    name: str | None = None


@dataclass
class IndexSnapshot:
    symbol: str
    short_name: str
    price: float | None = None
    change: float = 0.0
    change_percent: float = 0.0
    day_high: float | None = None
    day_low: float | None = None
    is_placeholder: bool = False


@dataclass
class PricePoint:
    ts: datetime
    price: float
    volume: int | None = None


@dataclass
class Series:
    """Historical price series for a symbol, oldest point first."""
    symbol: str
    period: str
    interval: str
    points: list[PricePoint] = field(default_factory=list)
    is_placeholder: bool = False


@dataclass
class SearchResult:
    symbol: str
    name: str


@dataclass
class PortfolioMetrics:
    total_value: float
    total_cost: float
    total_gain: float
    total_gain_percent: float
    holding_count: int = 0


@dataclass
class HoldingGain:
    gain: float
    gain_percent: float


@dataclass
class HoldingPerformance:
    """Computed row for a holding."""
    holding: Holding
    effective_price: float
    market_value: float
    gain: float
    gain_percent: float
    allocation_percent: float


@dataclass
class BestAndWorst:
    best: Holding | None
    worst: Holding | None
    best_gain_percent: float | None = None
    worst_gain_percent: float | None = None
