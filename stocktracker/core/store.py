"""DuckDB-backed persistence of the holdings list."""
import logging
import math
import threading
from pathlib import Path
from typing import List, Sequence

import duckdb

from stocktracker.core.db import get_setting, init_db, set_setting
from stocktracker.core.errors import PersistenceFailure
from stocktracker.core.models import Holding

logger = logging.getLogger(__name__)

_COLUMNS = "position, id, symbol, name, shares, total_cost, price, price_change, last_updated"


class HoldingStore:
    """
    Durable storage for the holdings list.

    ``load`` never raises: a missing or unreadable database yields an empty
    portfolio. ``save`` rewrites the whole list in one transaction and raises
    PersistenceFailure when that fails.
    """

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = db_path
        self._conn: duckdb.DuckDBPyConnection | None = None
        self._lock = threading.Lock()

    def _connection(self) -> duckdb.DuckDBPyConnection:
        if self._conn is None:
            self._conn = init_db(self.db_path)
        return self._conn

    def load(self) -> List[Holding]:
        with self._lock:
            try:
                rows = self._connection().cursor().execute(
                    f"SELECT {_COLUMNS} FROM holdings ORDER BY position ASC"
                ).fetchall()
            except (duckdb.Error, OSError) as e:
                logger.warning("Could not load holdings, starting with an empty portfolio: %s", e)
                return []

        holdings = []
        seen = set()
        for row in rows:
            _, holding_id, symbol, name, shares, total_cost, price, price_change, last_updated = row

            if symbol in seen:
                logger.warning("Skipping duplicate stored holding for %s (id %s)", symbol, holding_id)
                continue
            if shares is None or not shares > 0 or total_cost is None or total_cost < 0:
                logger.warning("Skipping stored holding %s with shares=%s total_cost=%s", symbol, shares, total_cost)
                continue

            seen.add(symbol)
            holdings.append(Holding(
                id=holding_id,
                symbol=symbol,
                name=name,
                shares=float(shares),
                total_cost=float(total_cost),
                price=float(price),
                price_change=float(price_change) if price_change is not None and math.isfinite(price_change) else 0.0,
                last_updated=last_updated,
            ))

        logger.debug("Loaded %d holdings", len(holdings))
        return holdings

    def save(self, holdings: Sequence[Holding]) -> None:
        rows = [
            [position, h.id, h.symbol, h.name, h.shares, h.total_cost, h.price, h.price_change, h.last_updated]
            for position, h in enumerate(holdings)
        ]

        with self._lock:
            try:
                cursor = self._connection().cursor()
                cursor.begin()
            except (duckdb.Error, OSError) as e:
                raise PersistenceFailure(f"Could not open holdings database: {e}") from e

            try:
                cursor.execute("DELETE FROM holdings")
                if rows:
                    cursor.executemany(
                        f"INSERT INTO holdings ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                        rows,
                    )
                cursor.commit()
            except duckdb.Error as e:
                cursor.rollback()
                raise PersistenceFailure(f"Could not save {len(rows)} holdings: {e}") from e

        logger.debug("Saved %d holdings", len(rows))

    def get_setting(self, key: str) -> str | None:
        with self._lock:
            return get_setting(self._connection().cursor(), key)

    def set_setting(self, key: str, value: str) -> None:
        with self._lock:
            set_setting(self._connection().cursor(), key, value)

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
