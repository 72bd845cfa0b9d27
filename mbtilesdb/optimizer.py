"""Post-load maintenance for MBTiles containers."""

from __future__ import annotations

import sqlite3
import time


def vacuum_analyze(conn: sqlite3.Connection, verbose: bool = False) -> None:
    """Reclaim free pages and refresh query-planner statistics.

    Has no effect on the stored tiles or metadata. Run it once, after the tile
    index exists, for it to be of any use to readers.
    """
    # VACUUM refuses to run inside a transaction
    conn.commit()
    start = time.time()
    conn.execute("VACUUM")
    conn.execute("ANALYZE")
    conn.commit()
    if verbose:
        print(f"VACUUM + ANALYZE finished in {time.time() - start:.1f}s")


__all__ = ["vacuum_analyze"]
