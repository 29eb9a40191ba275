"""Command line entry point for the stock portfolio tracker."""
import time

import click

from stocktracker import ui
from stocktracker.adapters.base import DEFAULT_INTERVAL, DEFAULT_PERIOD, QuoteSource
from stocktracker.adapters.quotes_yfapi import YahooApiQuoteSource
from stocktracker.adapters.quotes_yfinance import YFinanceQuoteSource
from stocktracker.config import Settings, get_settings
from stocktracker.core.errors import ValidationError
from stocktracker.core.store import HoldingStore
from stocktracker.core.tracker import PortfolioTracker
from stocktracker.logging_config import configure_logging
from stocktracker.scheduler import RefreshScheduler


def build_quote_source(settings: Settings) -> QuoteSource:
    if settings.quote_provider == "yfapi":
        return YahooApiQuoteSource(
            api_key=settings.yfapi_key,
            base_url=settings.yfapi_base_url,
            timeout=settings.request_timeout,
        )
    return YFinanceQuoteSource()


class AppContext:
    """Lazily built collaborators shared by the commands."""

    def __init__(self, settings: Settings, db_path: str | None):
        self.settings = settings
        self.store = HoldingStore(db_path or settings.db_path)
        self._tracker: PortfolioTracker | None = None
        self._source: QuoteSource | None = None

    @property
    def tracker(self) -> PortfolioTracker:
        if self._tracker is None:
            self._tracker = PortfolioTracker(self.store)
        return self._tracker

    @property
    def source(self) -> QuoteSource:
        if self._source is None:
            self._source = build_quote_source(self.settings)
        return self._source

    def scheduler(self, listener=None) -> RefreshScheduler:
        return RefreshScheduler(self.tracker, self.source, self.settings, listener)


pass_app = click.make_pass_decorator(AppContext)


@click.group()
@click.option("--db", "db_path", default=None, help="DuckDB file holding the portfolio.")
@click.option("--log-level", default=None, help="Logging level (default from settings).")
@click.pass_context
def cli(ctx: click.Context, db_path: str | None, log_level: str | None) -> None:
    """Track stock holdings, prices and portfolio performance."""
    settings = get_settings()
    configure_logging(log_level or settings.log_level)
    app = AppContext(settings, db_path)
    ctx.obj = app
    ctx.call_on_close(app.store.close)


@cli.command()
@click.argument("symbol")
@click.argument("name")
@click.argument("shares", type=float)
@click.argument("price", type=float)
@pass_app
def add(app: AppContext, symbol: str, name: str, shares: float, price: float) -> None:
    """Buy SHARES of SYMBOL at PRICE, merging into an existing holding."""
    try:
        holding = app.tracker.add_holding(symbol, name, shares, price)
    except ValidationError as e:
        raise click.ClickException(f"Invalid holding: {e}") from e

    click.echo(f"✓ {holding.symbol}: {holding.shares:g} shares, cost basis ${holding.total_cost:,.2f} (id {holding.id})")


@cli.command()
@click.argument("holding_id")
@pass_app
def remove(app: AppContext, holding_id: str) -> None:
    """Remove the holding with HOLDING_ID."""
    if app.tracker.remove_holding(holding_id):
        click.echo(f"✓ Removed holding {holding_id}")
    else:
        click.echo(f"No holding with id {holding_id}")


@cli.command("set-price")
@click.argument("symbol")
@click.argument("price", type=float)
@pass_app
def set_price(app: AppContext, symbol: str, price: float) -> None:
    """Manually set the stored price of SYMBOL."""
    try:
        holding = app.tracker.update_price(symbol, price)
    except ValidationError as e:
        raise click.ClickException(f"Please enter a valid price: {e}") from e

    if holding is None:
        click.echo(f"{symbol} is not in the portfolio")
    else:
        click.echo(f"✓ {holding.symbol} price ${holding.price:,.2f} ({holding.price_change:+.2f}%)")


@cli.command()
@click.option("--top", "top", default=5, show_default=True, help="Number of top holdings to list.")
@pass_app
def show(app: AppContext, top: int) -> None:
    """Show portfolio summary, top holdings and allocation."""
    tracker = app.tracker
    click.echo(ui.summary_text(tracker.metrics(), tracker.best_and_worst(), app.store.get_setting("last_refresh")))
    if not tracker.holdings:
        return

    click.echo("\nTop Holdings")
    click.echo(ui.top_holdings_frame(tracker.top_holdings(top), tracker.quotes).to_string(index=False))
    click.echo("\nPortfolio Allocation")
    click.echo(ui.holdings_frame(tracker.performance(), by_value=True).to_string(index=False))


@cli.command()
@pass_app
def refresh(app: AppContext) -> None:
    """Fetch quotes for all holdings once."""
    if not app.tracker.symbols():
        click.echo("No holdings found to refresh.")
        return

    if app.scheduler().refresh_portfolio():
        click.echo(f"✓ Refreshed {len(app.tracker.quotes)} of {len(app.tracker.symbols())} prices")
    else:
        click.echo("No live market data available, stored prices kept")


@cli.command()
@pass_app
def market(app: AppContext) -> None:
    """Show the major market indices."""
    click.echo(ui.market_frame(app.source.get_market_summary()).to_string(index=False))


@cli.command()
@click.argument("query")
@pass_app
def search(app: AppContext, query: str) -> None:
    """Search symbols by ticker or company name."""
    results = app.source.search(query)
    if not results:
        click.echo(f"No matches for {query!r}")
        return
    click.echo(ui.search_frame(results).to_string(index=False))


@cli.command()
@click.argument("symbol")
@pass_app
def quote(app: AppContext, symbol: str) -> None:
    """Show the live quote for SYMBOL."""
    quotes = app.source.get_quotes([symbol])
    if not quotes:
        raise click.ClickException(f"No data available for {symbol}")
    click.echo(ui.quote_text(quotes[0]))


@cli.command()
@click.argument("symbol")
@click.option("--period", default=DEFAULT_PERIOD, show_default=True, help="1d, 5d, 1mo, 6mo, 1y, 5y")
@click.option("--interval", default=DEFAULT_INTERVAL, show_default=True, help="5m, 15m, 1h, 1d, 1wk, 1mo")
@pass_app
def history(app: AppContext, symbol: str, period: str, interval: str) -> None:
    """Show historical prices for SYMBOL."""
    series = app.source.get_history(symbol, period, interval)
    click.echo(ui.history_text(series))
    click.echo(ui.history_frame(series).to_string(index=False))


@cli.command()
@click.option("--symbol", "symbols", multiple=True, help="Extra symbol to poll on the watch interval.")
@click.option("--detail", default=None, help="Symbol to poll on the detail interval.")
@pass_app
def watch(app: AppContext, symbols: tuple[str, ...], detail: str | None) -> None:
    """Poll prices until interrupted."""

    def on_update(event, payload):
        if event == "portfolio_quotes":
            click.echo(ui.summary_text(payload, app.tracker.best_and_worst()))
        elif event == "market_summary":
            click.echo(ui.market_frame(payload).to_string(index=False))
        elif event == "detail" and payload is not None:
            click.echo(ui.quote_text(payload))
        elif event == "watch":
            for q in payload:
                click.echo(f"{q.symbol}: ${q.price:,.2f} ({q.change_percent:+.2f}%)")

    scheduler = app.scheduler(on_update)
    for symbol in symbols:
        scheduler.watch(symbol)
    scheduler.select(detail)

    scheduler.start()
    click.echo("Watching prices, press Ctrl+C to stop")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        click.echo("\nStopping...")
    finally:
        scheduler.stop()


if __name__ == "__main__":
    cli()
