#!/usr/bin/env python3
"""An open MBTiles container: schema, tuning, tile writer and metadata.

Typical bulk load::

    with Mbtiles.new_write_to_file_database(path, overwrite=True) as db:
        db.setup_schema().tune_for_writes()
        with db.new_batched_tile_writer() as writer:
            for coord, data in tiles:
                writer.write(coord, data)
        db.add_index().vacuum_analyze()
        db.metadata().set_name("basemap").set_format("pbf")
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Iterator, List, Optional, Union

from . import optimizer, schema
from .config import MAX_SQL_PARAMETERS, WriteTuning
from .errors import SchemaError, TuningError
from .mbtiles_writer import BatchedTileWriter
from .metadata import MetadataStore
from .tile_coord import TileCoord, TileEntry


class Mbtiles:
    def __init__(self, conn: sqlite3.Connection, path: Optional[Path] = None, verbose: bool = False) -> None:
        self.conn = conn
        self.path = path
        self.verbose = verbose
        self.tuning_failures: List[TuningError] = []

    @classmethod
    def new_in_memory_database(cls, verbose: bool = False) -> "Mbtiles":
        return cls(sqlite3.connect(":memory:"), verbose=verbose)

    @classmethod
    def new_write_to_file_database(
        cls,
        path: Union[str, Path],
        overwrite: bool = False,
        verbose: bool = False,
    ) -> "Mbtiles":
        """Open (or create) an MBTiles file. With `overwrite`, an existing file is removed first."""
        path = Path(path)
        if path.exists() and overwrite:
            if verbose:
                print(f"Removing existing output file: {path}")
            path.unlink()
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = sqlite3.connect(str(path))
        except sqlite3.Error as exc:
            raise SchemaError(f"cannot open {path}: {exc}") from exc
        return cls(conn, path=path, verbose=verbose)

    def connection(self) -> sqlite3.Connection:
        return self.conn

    def setup_schema(self) -> "Mbtiles":
        schema.setup_schema(self.conn)
        return self

    def tune_for_writes(self, tuning: Optional[WriteTuning] = None) -> "Mbtiles":
        self.tuning_failures = schema.tune_for_writes(self.conn, tuning, verbose=self.verbose)
        return self

    def add_index(self) -> "Mbtiles":
        schema.add_index(self.conn)
        return self

    def drop_index(self) -> "Mbtiles":
        schema.drop_index(self.conn)
        return self

    def vacuum_analyze(self) -> "Mbtiles":
        optimizer.vacuum_analyze(self.conn, verbose=self.verbose)
        return self

    def new_batched_tile_writer(self, max_parameters: int = MAX_SQL_PARAMETERS) -> BatchedTileWriter:
        return BatchedTileWriter(self.conn, max_parameters=max_parameters, verbose=self.verbose)

    def metadata(self) -> MetadataStore:
        return MetadataStore(self.conn, verbose=self.verbose)

    def iter_tiles(self) -> Iterator[TileEntry]:
        """Yield every stored tile with its row converted back to XYZ."""
        cur = self.conn.execute("SELECT zoom_level, tile_column, tile_row, tile_data FROM tiles")
        for z, x, tile_row, data in cur:
            yield TileEntry(TileCoord.from_storage_row(x, tile_row, z), data)

    def tile_count(self) -> int:
        return self.conn.execute("SELECT COUNT(*) FROM tiles").fetchone()[0]

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "Mbtiles":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["Mbtiles"]
