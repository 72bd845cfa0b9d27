#!/usr/bin/env python3
"""Tile addresses and the XYZ <-> MBTiles (TMS) row convention.

Tiles are addressed in XYZ order everywhere in this package: ``y`` counts rows
from the top of the map. MBTiles stores ``tile_row`` counted from the bottom,
so the row is flipped exactly once when crossing the storage boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field

MAX_ZOOM = 30


def flip_row(row: int, zoom: int) -> int:
    """Convert between XYZ ``y`` and TMS ``tile_row`` (the mapping is its own inverse)."""
    return (1 << zoom) - 1 - row


@dataclass(frozen=True, order=True)
class TileCoord:
    """An immutable tile address; equality and ordering compare (x, y, z)."""

    x: int
    y: int
    z: int

    @classmethod
    def of_xyz(cls, x: int, y: int, z: int) -> "TileCoord":
        if x < 0 or y < 0 or z < 0:
            raise ValueError(f"tile coordinates must be non-negative, got x={x} y={y} z={z}")
        return cls(int(x), int(y), int(z))

    @classmethod
    def from_storage_row(cls, column: int, row: int, zoom: int) -> "TileCoord":
        """Rebuild a coordinate from the ``tile_column``/``tile_row``/``zoom_level`` columns.

        Stored values are returned as found, even when the row is out of range.
        """
        return cls(int(column), flip_row(int(row), int(zoom)), int(zoom))

    def to_storage_row(self) -> int:
        """The ``tile_row`` value persisted for this tile."""
        return flip_row(self.y, self.z)

    def __str__(self) -> str:
        return f"{self.z}/{self.x}/{self.y}"


@dataclass(frozen=True)
class TileEntry:
    """A tile coordinate and its encoded payload, compared by both."""

    tile: TileCoord
    data: bytes = field(repr=False)

    def __post_init__(self) -> None:
        # bytearray / memoryview / sqlite blobs all normalise to immutable bytes
        if not isinstance(self.data, bytes):
            object.__setattr__(self, "data", bytes(self.data))


__all__ = ["MAX_ZOOM", "flip_row", "TileCoord", "TileEntry"]
