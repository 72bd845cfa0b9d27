#!/usr/bin/env python3
"""Batched tile writer for MBTiles (SQLite) containers.

Tiles are buffered and inserted with one multi-row INSERT per batch. SQLite
bounds the number of bound parameters per statement and every tile row uses
four of them, so a batch holds ``MAX_SQL_PARAMETERS // 4`` tiles.

Each batch is committed on its own. A failed batch is raised as WriteError and
the writer refuses further tiles. Batches committed before it stay in the file;
with the rollback journal disabled by `tune_for_writes`, rows of the failed
batch itself may remain as well.

Typical use::

    with db.new_batched_tile_writer() as writer:
        for coord, data in tiles:
            writer.write(coord, data)
"""

from __future__ import annotations

import sqlite3
import warnings
from typing import Dict, Iterable, List, Optional, Tuple

from .config import MAX_SQL_PARAMETERS, TILE_COLUMNS, batch_capacity
from .errors import WriteError
from .tile_coord import TileCoord, TileEntry

TileRow = Tuple[int, int, int, bytes]


def _insert_sql(rows: int) -> str:
    placeholders = "(" + ", ".join("?" * len(TILE_COLUMNS)) + ")"
    return (
        f"INSERT INTO tiles ({', '.join(TILE_COLUMNS)}) VALUES "
        + ", ".join([placeholders] * rows)
    )


class BatchedTileWriter:
    def __init__(
        self,
        conn: sqlite3.Connection,
        max_parameters: int = MAX_SQL_PARAMETERS,
        verbose: bool = False,
        progress_interval: int = 100_000,
    ) -> None:
        self.conn = conn
        self.capacity = batch_capacity(max_parameters)
        self.verbose = verbose
        self.progress_interval = progress_interval

        self._batch: List[TileRow] = []
        self._statements: Dict[int, str] = {}
        self._written = 0
        self._closed = False
        self._error: Optional[BaseException] = None

    @property
    def written(self) -> int:
        """Number of tiles committed so far."""
        return self._written

    @property
    def pending(self) -> int:
        """Number of accepted tiles not yet flushed."""
        return len(self._batch)

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_usable(self) -> None:
        if self._error is not None:
            raise WriteError(f"writer failed earlier and cannot accept tiles: {self._error}")
        if self._closed:
            raise WriteError("writer is closed")

    def write(self, tile: TileCoord, data: bytes) -> None:
        """Accept one tile; flushes automatically once the batch is full."""
        self._check_usable()
        # copy now: a caller reusing its buffer must not change what gets stored
        self._batch.append((tile.z, tile.x, tile.to_storage_row(), bytes(data)))
        if len(self._batch) >= self.capacity:
            self.flush()

    def write_entry(self, entry: TileEntry) -> None:
        self.write(entry.tile, entry.data)

    def write_all(self, tiles: Iterable[Tuple[TileCoord, bytes]]) -> int:
        """Write every (coord, data) pair from an iterable; returns how many were accepted."""
        count = 0
        for tile, data in tiles:
            self.write(tile, data)
            count += 1
        return count

    def flush(self) -> None:
        """Insert and commit the buffered tiles. Flushing an empty buffer does nothing."""
        self._check_usable()
        if not self._batch:
            return

        rows = len(self._batch)
        sql = self._statements.get(rows)
        if sql is None:
            sql = self._statements[rows] = _insert_sql(rows)
        params = [value for row in self._batch for value in row]

        try:
            self.conn.execute(sql, params)
            self.conn.commit()
        except sqlite3.Error as exc:
            self._error = exc
            try:
                self.conn.rollback()
            except sqlite3.Error:
                # report the insert error, not the rollback one
                pass
            raise WriteError(f"failed to write batch of {rows} tiles: {exc}") from exc

        previous = self._written
        self._written += rows
        self._batch.clear()

        if self.verbose and self.progress_interval:
            if self._written // self.progress_interval > previous // self.progress_interval:
                print(f"  Wrote {self._written:,} tiles...")

    def close(self) -> None:
        """Flush the final partial batch. Idempotent; flush errors propagate."""
        if self._closed:
            return
        try:
            if self._error is None:
                self.flush()
        finally:
            self._closed = True
        if self.verbose:
            print(f"Tile writer closed: {self._written:,} tiles written")

    def __enter__(self) -> "BatchedTileWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self) -> None:
        # a writer dropped without close() silently loses its buffered tiles
        if not getattr(self, "_closed", True) and getattr(self, "_batch", None):
            warnings.warn(
                f"BatchedTileWriter garbage-collected with {len(self._batch)} unflushed "
                "tiles; call close() or use it as a context manager",
                ResourceWarning,
                source=self,
            )


__all__ = ["BatchedTileWriter"]
