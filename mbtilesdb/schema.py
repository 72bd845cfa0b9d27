#!/usr/bin/env python3
"""Create the MBTiles tables, tune SQLite for bulk loads and manage the tile index.

* Tiles table with (zoom_level, tile_column, tile_row, tile_data)
* `metadata` table with (name TEXT PRIMARY KEY, value TEXT)
* The unique (zoom_level, tile_column, tile_row) index is created separately so
  that callers can build it after a bulk load instead of maintaining it on
  every insert.
"""

from __future__ import annotations

import sqlite3
from typing import List, Optional, Sequence

from .config import DEFAULT_TUNING, METADATA_COLUMNS, TILE_COLUMNS, TILE_INDEX_NAME, WriteTuning
from .errors import SchemaError, TuningError

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS tiles (
    zoom_level INTEGER,
    tile_column INTEGER,
    tile_row INTEGER,
    tile_data BLOB
);

CREATE TABLE IF NOT EXISTS metadata (
    name TEXT PRIMARY KEY,
    value TEXT
);
"""

EXPECTED_COLUMNS = {
    "tiles": TILE_COLUMNS,
    "metadata": METADATA_COLUMNS,
}


def _table_columns(conn: sqlite3.Connection, table: str) -> List[str]:
    return [row[1] for row in conn.execute(f"PRAGMA table_info({table})")]


def _check_compatible(conn: sqlite3.Connection) -> None:
    for table, expected in EXPECTED_COLUMNS.items():
        columns = _table_columns(conn, table)
        # PRAGMA table_info returns nothing for a missing table
        if columns and tuple(columns) != tuple(expected):
            raise SchemaError(
                f"existing table {table!r} has columns {columns}, "
                f"expected {list(expected)}"
            )


def setup_schema(conn: sqlite3.Connection) -> None:
    """Create the `tiles` and `metadata` tables if they do not exist yet.

    Safe to call repeatedly. Raises SchemaError when a table of the same name
    exists with a different layout, or when the file is not a usable database.
    """
    try:
        _check_compatible(conn)
        conn.executescript(SCHEMA_SQL)
        conn.commit()
    except sqlite3.Error as exc:
        raise SchemaError(f"failed to create MBTiles schema: {exc}") from exc


def tune_for_writes(
    conn: sqlite3.Connection,
    tuning: Optional[WriteTuning] = None,
    verbose: bool = False,
) -> List[TuningError]:
    """Apply bulk-load pragmas. Failures are reported and skipped, never raised.

    Returns the list of pragmas that could not be applied.
    """
    if tuning is None:
        tuning = DEFAULT_TUNING

    # journal_mode cannot change inside an open transaction
    conn.commit()

    failures: List[TuningError] = []
    for pragma, value in tuning.pragmas():
        try:
            row = conn.execute(f"PRAGMA {pragma}={value}").fetchone()
        except sqlite3.Error as exc:
            failures.append(TuningError(pragma, str(exc)))
            continue
        # journal_mode reports the mode actually in effect
        if pragma == "journal_mode" and row is not None and str(row[0]).lower() != value.lower():
            failures.append(TuningError(pragma, f"requested {value}, got {row[0]}"))

    if verbose:
        for failure in failures:
            print(f"Warning: could not apply tuning ({failure}); continuing")
    return failures


def add_index(conn: sqlite3.Connection) -> None:
    """Create the unique tile index if it is not present."""
    try:
        conn.execute(
            f"CREATE UNIQUE INDEX IF NOT EXISTS {TILE_INDEX_NAME} "
            "ON tiles (zoom_level, tile_column, tile_row)"
        )
        conn.commit()
    except sqlite3.Error as exc:
        # IntegrityError here means duplicate coordinates were loaded without the index
        raise SchemaError(f"failed to create {TILE_INDEX_NAME}: {exc}") from exc


def drop_index(conn: sqlite3.Connection) -> None:
    """Drop the unique tile index if it is present."""
    try:
        conn.execute(f"DROP INDEX IF EXISTS {TILE_INDEX_NAME}")
        conn.commit()
    except sqlite3.Error as exc:
        raise SchemaError(f"failed to drop {TILE_INDEX_NAME}: {exc}") from exc


def has_index(conn: sqlite3.Connection) -> bool:
    row = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'index' AND name = ?",
        (TILE_INDEX_NAME,),
    ).fetchone()
    return row is not None


def table_names(conn: sqlite3.Connection) -> Sequence[str]:
    return [
        name
        for (name,) in conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name"
        )
    ]


__all__ = [
    "SCHEMA_SQL",
    "setup_schema",
    "tune_for_writes",
    "add_index",
    "drop_index",
    "has_index",
    "table_names",
]
