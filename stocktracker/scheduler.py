"""Background polling of market data."""
import logging
import threading
from datetime import datetime
from typing import Any, Callable, List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from stocktracker.adapters.base import QuoteSource
from stocktracker.config import Settings, get_settings
from stocktracker.core.models import IndexSnapshot, QuoteSnapshot
from stocktracker.core.tracker import PortfolioTracker

logger = logging.getLogger(__name__)

Listener = Callable[[str, Any], None]


class RefreshScheduler:
    """
    Polls a QuoteSource on fixed intervals and feeds the tracker.

    Jobs:
        portfolio_quotes  quotes for every held symbol, applied to the tracker
        market_summary    major index snapshots
        detail            one quote for the selected symbol
        watch             quotes for a caller-managed watch list

    Each finished cycle is reported to ``listener(event, payload)`` with the
    job id as the event name.
    """

    def __init__(
        self,
        tracker: PortfolioTracker,
        source: QuoteSource,
        settings: Optional[Settings] = None,
        listener: Optional[Listener] = None,
    ):
        self.tracker = tracker
        self.source = source
        self.settings = settings or get_settings()
        self.listener = listener
        self.scheduler: Optional[BackgroundScheduler] = None

        self.market_summary: List[IndexSnapshot] = []
        self.detail_quote: Optional[QuoteSnapshot] = None
        self.watch_quotes: List[QuoteSnapshot] = []

        self._state_lock = threading.Lock()
        self._watched: List[str] = []
        self._selected: Optional[str] = None

    def start(self) -> None:
        """Start polling. The portfolio refresh runs once immediately."""
        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        self.scheduler = BackgroundScheduler()
        jobs = [
            ("portfolio_quotes", "Portfolio quotes", self.refresh_portfolio,
             self.settings.portfolio_refresh_seconds, datetime.now()),
            ("market_summary", "Market summary", self.refresh_market,
             self.settings.market_refresh_seconds, datetime.now()),
            ("detail", "Selected symbol quote", self.refresh_detail,
             self.settings.detail_refresh_seconds, None),
            ("watch", "Watch list quotes", self.refresh_watch,
             self.settings.watch_refresh_seconds, None),
        ]
        for job_id, name, func, seconds, first_run in jobs:
            kwargs = {"next_run_time": first_run} if first_run else {}
            self.scheduler.add_job(
                func=self._guarded(job_id, func),
                trigger=IntervalTrigger(seconds=seconds),
                id=job_id,
                name=name,
                replace_existing=True,
                max_instances=1,
                coalesce=True,
                **kwargs,
            )
            logger.info("Scheduled %s every %ss", job_id, seconds)

        self.scheduler.start()
        logger.info("Refresh scheduler started")

    def stop(self) -> None:
        """Stop the scheduler and wait for running jobs."""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
            logger.info("Refresh scheduler stopped")

    @property
    def running(self) -> bool:
        return self.scheduler is not None

    def _guarded(self, job_id: str, func: Callable[[], bool]) -> Callable[[], None]:
        def run() -> None:
            try:
                func()
            except Exception as exc:
                logger.error("Refresh job %s failed: %s", job_id, exc, exc_info=True)
        return run

    def _notify(self, event: str, payload: Any) -> None:
        if self.listener is not None:
            self.listener(event, payload)

    # Watch list, the polling replacement for a realtime connection

    def watch(self, symbol: str) -> None:
        with self._state_lock:
            if symbol not in self._watched:
                self._watched.append(symbol)

    def unwatch(self, symbol: str) -> None:
        with self._state_lock:
            if symbol in self._watched:
                self._watched.remove(symbol)

    @property
    def watched(self) -> List[str]:
        return list(self._watched)

    def select(self, symbol: Optional[str]) -> None:
        """Pick the symbol the detail job polls. None stops detail polling."""
        with self._state_lock:
            self._selected = symbol
            self.detail_quote = None

    @property
    def selected(self) -> Optional[str]:
        return self._selected

    # Jobs, also callable directly for a one-off refresh

    def refresh_portfolio(self) -> bool:
        symbols = self.tracker.symbols()
        if not symbols:
            return False

        quotes = self.source.get_quotes(symbols)
        if not quotes:
            logger.warning("No live quotes for %d holdings, keeping stored prices", len(symbols))
            return False
        if not self.tracker.apply_quotes(quotes, symbols):
            return False

        self.tracker.store.set_setting("last_refresh", datetime.now().isoformat(timespec="seconds"))
        logger.info("Refreshed %d of %d holding prices", len(quotes), len(symbols))
        self._notify("portfolio_quotes", self.tracker.metrics())
        return True

    def refresh_market(self) -> bool:
        self.market_summary = self.source.get_market_summary()
        self._notify("market_summary", self.market_summary)
        return True

    def refresh_detail(self) -> bool:
        symbol = self._selected
        if symbol is None:
            return False

        quotes = self.source.get_quotes([symbol])
        with self._state_lock:
            # Selection changed while fetching
            if self._selected != symbol:
                return False
            self.detail_quote = next((q for q in quotes if q.symbol == symbol), None)

        self._notify("detail", self.detail_quote)
        return True

    def refresh_watch(self) -> bool:
        symbols = self.watched
        if not symbols:
            return False

        quotes = self.source.get_quotes(symbols)
        with self._state_lock:
            if self._watched != symbols:
                return False
            self.watch_quotes = quotes

        self._notify("watch", quotes)
        return True
