"""DuckDB initialization and schema management."""
import duckdb
from pathlib import Path

SCHEMA_VERSION = "1"


def get_db_path(custom_path: str | Path | None = None) -> Path:
    """Get the database file path."""
    if custom_path:
        return Path(custom_path)
    return Path(__file__).parent.parent.parent / "data" / "portfolio.duckdb"


def init_db(db_path: str | Path | None = None) -> duckdb.DuckDBPyConnection:
    """Initialize database and create schema if needed."""
    path = get_db_path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = duckdb.connect(str(path))
    _create_schema(conn)
    return conn


def _create_schema(conn: duckdb.DuckDBPyConnection) -> None:
    """Create all tables if they don't exist."""

    # Settings table
    conn.execute("""
        CREATE TABLE IF NOT EXISTS settings (
            key VARCHAR PRIMARY KEY,
            value VARCHAR NOT NULL
        )
    """)

    conn.execute("""
        INSERT INTO settings (key, value)
        VALUES ('schema_version', ?)
        ON CONFLICT DO NOTHING
    """, [SCHEMA_VERSION])

    # Holdings table in portfolio order. Symbol uniqueness is checked on load,
    # the table is rewritten as a whole on every save
    conn.execute("""
        CREATE TABLE IF NOT EXISTS holdings (
            position INTEGER NOT NULL,
            id VARCHAR NOT NULL,
            symbol VARCHAR NOT NULL,
            name VARCHAR NOT NULL,
            shares DOUBLE NOT NULL,
            total_cost DOUBLE NOT NULL,
            price DOUBLE NOT NULL,
            price_change DOUBLE DEFAULT 0,
            last_updated TIMESTAMP
        )
    """)

    conn.commit()


def get_setting(conn: duckdb.DuckDBPyConnection, key: str) -> str | None:
    """Get a setting value by key."""
    result = conn.execute("SELECT value FROM settings WHERE key = ?", [key]).fetchone()
    return result[0] if result else None


def set_setting(conn: duckdb.DuckDBPyConnection, key: str, value: str) -> None:
    """Set a setting value."""
    conn.execute("""
        INSERT INTO settings (key, value) VALUES (?, ?)
        ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value
    """, [key, value])
    conn.commit()
