#!/usr/bin/env python3
"""Write-side settings for MBTiles containers.

The defaults favour bulk-insert throughput over crash safety: no fsync, no
rollback journal, an exclusive lock and a large page cache. A container tuned
this way must be closed (or re-tuned) before other processes read it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

# SQLITE_MAX_VARIABLE_NUMBER on builds older than 3.32; newer builds allow
# more, but 999 is the value every build accepts.
MAX_SQL_PARAMETERS = 999

# One row of the tiles table: zoom_level, tile_column, tile_row, tile_data
TILE_COLUMNS = ("zoom_level", "tile_column", "tile_row", "tile_data")
METADATA_COLUMNS = ("name", "value")

TILE_INDEX_NAME = "tile_index"


@dataclass(frozen=True)
class WriteTuning:
    """Pragmas applied by :func:`mbtilesdb.schema.tune_for_writes`."""

    synchronous: str = "OFF"
    journal_mode: str = "OFF"
    locking_mode: str = "EXCLUSIVE"
    cache_size: int = 1_000_000
    temp_store: str = "MEMORY"

    def pragmas(self) -> List[Tuple[str, str]]:
        """Return (pragma, value) pairs in the order they are applied."""
        return [
            ("synchronous", self.synchronous),
            ("journal_mode", self.journal_mode),
            ("locking_mode", self.locking_mode),
            ("cache_size", str(int(self.cache_size))),
            ("temp_store", self.temp_store),
        ]


DEFAULT_TUNING = WriteTuning()


def batch_capacity(max_parameters: int = MAX_SQL_PARAMETERS) -> int:
    """Number of tile rows that fit in one INSERT statement."""
    capacity = max_parameters // len(TILE_COLUMNS)
    if capacity < 1:
        raise ValueError(
            f"max_parameters={max_parameters} cannot hold a single tile row "
            f"({len(TILE_COLUMNS)} parameters)"
        )
    return capacity


__all__ = [
    "MAX_SQL_PARAMETERS",
    "TILE_COLUMNS",
    "METADATA_COLUMNS",
    "TILE_INDEX_NAME",
    "WriteTuning",
    "DEFAULT_TUNING",
    "batch_capacity",
]
