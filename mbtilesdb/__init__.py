"""MBTiles container writer.

Keep this module minimal: the public entry point is
:class:`mbtilesdb.mbtiles.Mbtiles`, imported here for convenience.
"""

from .mbtiles import Mbtiles
from .tile_coord import TileCoord, TileEntry

__all__ = ["Mbtiles", "TileCoord", "TileEntry"]
