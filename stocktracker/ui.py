"""Text and table rendering of portfolio data for the command line."""
from typing import Dict, List, Optional

import pandas as pd

from stocktracker.adapters.base import summarize_series
from stocktracker.core.models import (
    BestAndWorst,
    Holding,
    HoldingPerformance,
    IndexSnapshot,
    PortfolioMetrics,
    QuoteSnapshot,
    SearchResult,
    Series,
)
from stocktracker.core.portfolio import effective_price, per_holding_gain, performance_by_value

HOLDING_COLUMNS = [
    "ID", "Symbol", "Name", "Shares", "Price ($)", "Market Value ($)", "Cost Basis ($)",
    "Gain/Loss ($)", "Gain/Loss (%)", "Allocation (%)", "Last Updated",
]


def format_large_number(number: Optional[float]) -> str:
    """1234567 -> '1.23M'."""
    if not number:
        return "N/A"

    for threshold, suffix in ((1e12, "T"), (1e9, "B"), (1e6, "M"), (1e3, "K")):
        if number >= threshold:
            return f"{number / threshold:.2f}{suffix}"
    return str(number)


def _money(value: Optional[float]) -> str:
    return f"{value:,.2f}" if value is not None else "N/A"


def summary_text(metrics: PortfolioMetrics, best_worst: BestAndWorst, last_refresh: Optional[str] = None) -> str:
    """Portfolio summary and performance highlights."""
    if metrics.holding_count == 0:
        return "No stocks in your portfolio. Add some stocks to get started!"

    lines = [
        "Portfolio Summary",
        f"  Total Value:      ${_money(metrics.total_value)}",
        f"  Total Cost Basis: ${_money(metrics.total_cost)}",
        f"  Total Gain/Loss:  ${_money(metrics.total_gain)} ({metrics.total_gain_percent:.2f}%)",
        f"  Number of Stocks: {metrics.holding_count}",
    ]
    if best_worst.best is not None:
        lines += [
            "",
            "Performance Highlights",
            f"  Best Performer:  {best_worst.best.symbol} {best_worst.best_gain_percent:+.2f}% ({best_worst.best.name})",
            f"  Worst Performer: {best_worst.worst.symbol} {best_worst.worst_gain_percent:+.2f}% ({best_worst.worst.name})",
        ]
    if last_refresh:
        lines += ["", f"Last updated: {last_refresh}"]
    return "\n".join(lines)


def holdings_frame(rows: List[HoldingPerformance], by_value: bool = False) -> pd.DataFrame:
    """Holdings table, in portfolio order or by market value."""
    if not rows:
        return pd.DataFrame(columns=HOLDING_COLUMNS)

    if by_value:
        rows = performance_by_value(rows)

    data = []
    for row in rows:
        h = row.holding
        data.append({
            "ID": h.id,
            "Symbol": h.symbol,
            "Name": h.name,
            "Shares": f"{h.shares:g}",
            "Price ($)": _money(row.effective_price),
            "Market Value ($)": _money(row.market_value),
            "Cost Basis ($)": _money(h.total_cost),
            "Gain/Loss ($)": _money(row.gain),
            "Gain/Loss (%)": f"{row.gain_percent:.2f}",
            "Allocation (%)": f"{row.allocation_percent:.2f}",
            "Last Updated": h.last_updated.strftime("%Y-%m-%d %H:%M:%S") if h.last_updated else "N/A",
        })

    return pd.DataFrame(data, columns=HOLDING_COLUMNS)


def top_holdings_frame(holdings: List[Holding], quotes: Dict[str, QuoteSnapshot]) -> pd.DataFrame:
    columns = ["Symbol", "Name", "Market Value ($)", "Price ($)", "Shares", "Gain/Loss (%)"]
    data = []
    for h in holdings:
        price = effective_price(h, quotes)
        data.append({
            "Symbol": h.symbol,
            "Name": h.name,
            "Market Value ($)": _money(price * h.shares),
            "Price ($)": _money(price),
            "Shares": f"{h.shares:g}",
            "Gain/Loss (%)": f"{per_holding_gain(h, price).gain_percent:.2f}",
        })
    return pd.DataFrame(data, columns=columns)


def market_frame(indices: List[IndexSnapshot]) -> pd.DataFrame:
    columns = ["Index", "Price", "Change", "Change (%)", "Day Range"]
    data = []
    for index in indices:
        low, high = _money(index.day_low), _money(index.day_high)
        data.append({
            "Index": index.short_name,
            "Price": _money(index.price),
            "Change": f"{index.change:.2f}",
            "Change (%)": f"{index.change_percent:.2f}",
            "Day Range": f"{low} - {high}",
        })
    return pd.DataFrame(data, columns=columns)


def quote_text(quote: QuoteSnapshot) -> str:
    return "\n".join([
        f"{quote.name or quote.symbol} ({quote.symbol})",
        f"  Price:    ${_money(quote.price)}  {quote.change:+.2f} ({quote.change_percent:+.2f}%)",
        f"  Open:     ${_money(quote.day_open)}",
        f"  Day High: ${_money(quote.day_high)}",
        f"  Day Low:  ${_money(quote.day_low)}",
        f"  Volume:   {format_large_number(quote.volume)}",
    ])


def search_frame(results: List[SearchResult]) -> pd.DataFrame:
    return pd.DataFrame([{"Symbol": r.symbol, "Name": r.name} for r in results], columns=["Symbol", "Name"])


def history_frame(series: Series) -> pd.DataFrame:
    return pd.DataFrame(
        [{"Date": p.ts, "Price": p.price, "Volume": p.volume} for p in series.points],
        columns=["Date", "Price", "Volume"],
    )


def history_text(series: Series) -> str:
    summary = summarize_series(series)
    change = f"{summary.change_percent:.2f}%" if summary.change_percent is not None else "N/A"
    title = f"{series.symbol} {series.period}/{series.interval}"
    if series.is_placeholder:
        title += " (placeholder data, market data unavailable)"
    return f"{title}\n  Open: ${_money(summary.open)}  Close: ${_money(summary.close)}  Change: {change}"
