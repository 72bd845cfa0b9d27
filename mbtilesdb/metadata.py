#!/usr/bin/env python3
"""Typed access to the MBTiles `metadata` table.

Every setter performs exactly one upsert into `metadata(name, value)`; values
are always stored as text. Numbers in `bounds` and `center` are written with at
most five decimals and no trailing zeros, e.g. ``-180,-85.05113,180,85.05113``.
"""

from __future__ import annotations

import sqlite3
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Callable, Dict, Optional

from .geo import LngLatBounds, zoom_from_lnglat_bounds
from .vector_layers import MetadataJson

LAYER_TYPES = ("baselayer", "overlay")
DECIMAL_PLACES = 5


def format_decimal(value: float, places: int = DECIMAL_PLACES) -> str:
    """Format a number with at most `places` decimals, dropping trailing zeros.

    Rounds half to even on the shortest decimal form of the float, so
    ``format_decimal(0.000015)`` is ``"0.00002"`` and ``format_decimal(0.000025)``
    is ``"0.00002"``.
    """
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_EVEN)
    if rounded.is_zero():
        # no "-0" for values that round to zero from below
        return "0"
    return format(rounded.normalize(), "f")


class MetadataStore:
    """Key/value view over the `metadata` table of an open container."""

    def __init__(self, conn: sqlite3.Connection, verbose: bool = False) -> None:
        self.conn = conn
        self.verbose = verbose

    def set_metadata(self, name: str, value) -> "MetadataStore":
        """Upsert one entry; the value is stored as its text form."""
        if value is None:
            raise ValueError(f"metadata {name!r} must have a value")
        text = value if isinstance(value, str) else str(value)
        self.conn.execute(
            "INSERT OR REPLACE INTO metadata (name, value) VALUES (?, ?)",
            (name, text),
        )
        self.conn.commit()
        if self.verbose:
            print(f"metadata {name} = {text}")
        return self

    def set_name(self, value: str) -> "MetadataStore":
        return self.set_metadata("name", value)

    def set_format(self, value: str) -> "MetadataStore":
        return self.set_metadata("format", value)

    def set_attribution(self, value: str) -> "MetadataStore":
        return self.set_metadata("attribution", value)

    def set_description(self, value: str) -> "MetadataStore":
        return self.set_metadata("description", value)

    def set_version(self, value: str) -> "MetadataStore":
        return self.set_metadata("version", value)

    def set_minzoom(self, value: int) -> "MetadataStore":
        return self.set_metadata("minzoom", str(int(value)))

    def set_maxzoom(self, value: int) -> "MetadataStore":
        return self.set_metadata("maxzoom", str(int(value)))

    def set_type(self, value: str) -> "MetadataStore":
        if value not in LAYER_TYPES:
            raise ValueError(f"type must be one of {LAYER_TYPES}, got {value!r}")
        return self.set_metadata("type", value)

    def set_type_is_baselayer(self) -> "MetadataStore":
        return self.set_type("baselayer")

    def set_type_is_overlay(self) -> "MetadataStore":
        return self.set_type("overlay")

    def set_bounds(self, west: float, south: float, east: float, north: float) -> "MetadataStore":
        value = ",".join(format_decimal(v) for v in (west, south, east, north))
        return self.set_metadata("bounds", value)

    def set_center(self, lon: float, lat: float, zoom: float) -> "MetadataStore":
        value = f"{format_decimal(lon)},{format_decimal(lat)},{int(zoom)}"
        return self.set_metadata("center", value)

    def set_bounds_and_center(
        self,
        west: float,
        south: float,
        east: float,
        north: float,
        zoom_for_bounds: Callable[[LngLatBounds], int] = zoom_from_lnglat_bounds,
    ) -> "MetadataStore":
        """Write `bounds` and a `center` derived from the box.

        The center is the midpoint of the box; its zoom is the coarsest level
        at which a single tile is no larger than the box.
        """
        zoom = zoom_for_bounds((west, south, east, north))
        self.set_bounds(west, south, east, north)
        return self.set_center((west + east) / 2, (south + north) / 2, zoom)

    def set_json(self, value: MetadataJson) -> "MetadataStore":
        # encode first so a malformed descriptor never leaves a partial value behind
        return self.set_metadata("json", value.to_json())

    def get(self, name: str) -> Optional[str]:
        row = self.conn.execute("SELECT value FROM metadata WHERE name = ?", (name,)).fetchone()
        return None if row is None else row[0]

    def get_all(self) -> Dict[str, str]:
        """All entries ordered by name."""
        return dict(self.conn.execute("SELECT name, value FROM metadata ORDER BY name"))


__all__ = ["LAYER_TYPES", "DECIMAL_PLACES", "format_decimal", "MetadataStore"]
