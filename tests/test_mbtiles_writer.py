import gc
import warnings

import pytest

from mbtilesdb import Mbtiles, TileCoord, TileEntry
from mbtilesdb.config import MAX_SQL_PARAMETERS
from mbtilesdb.errors import WriteError

BATCH = MAX_SQL_PARAMETERS // 4


def _payload(i: int, how_many: int) -> bytes:
    return i.to_bytes(4, "little") + how_many.to_bytes(4, "little")


def _write_tiles(how_many: int, defer_index_creation: bool, optimize: bool):
    with Mbtiles.new_in_memory_database() as db:
        db.setup_schema().tune_for_writes()
        if not defer_index_creation:
            db.add_index()

        expected = set()
        with db.new_batched_tile_writer() as writer:
            for i in range(how_many):
                entry = TileEntry(TileCoord.of_xyz(i, i, 14), _payload(i, how_many))
                writer.write(entry.tile, entry.data)
                expected.add(entry)

        if defer_index_creation:
            db.add_index()
        if optimize:
            db.vacuum_analyze()

        actual = set(db.iter_tiles())
        assert db.tile_count() == how_many
        assert actual == expected


def test_batch_capacity_is_bounded_by_parameter_limit():
    with Mbtiles.new_in_memory_database() as db:
        db.setup_schema()
        assert db.new_batched_tile_writer().capacity == BATCH == 249
        assert db.new_batched_tile_writer(max_parameters=8).capacity == 2
        with pytest.raises(ValueError):
            db.new_batched_tile_writer(max_parameters=3)


@pytest.mark.parametrize("how_many", [0, 1, BATCH - 1, BATCH, BATCH + 1, 2 * BATCH, 2 * BATCH + 1])
def test_write_tiles_different_size(how_many):
    _write_tiles(how_many, defer_index_creation=False, optimize=False)


@pytest.mark.parametrize("how_many", [0, 10, BATCH + 1])
def test_defer_index_creation(how_many):
    _write_tiles(how_many, defer_index_creation=True, optimize=False)


def test_vacuum_analyze():
    _write_tiles(10, defer_index_creation=False, optimize=True)


def test_stored_rows_are_flipped():
    with Mbtiles.new_in_memory_database() as db:
        db.setup_schema()
        with db.new_batched_tile_writer() as writer:
            writer.write(TileCoord.of_xyz(10, 12, 5), b"x")
        rows = db.connection().execute(
            "SELECT zoom_level, tile_column, tile_row, tile_data FROM tiles"
        ).fetchall()
        assert rows == [(5, 10, (1 << 5) - 1 - 12, b"x")]


def test_batches_are_committed_as_they_fill():
    with Mbtiles.new_in_memory_database() as db:
        db.setup_schema()
        writer = db.new_batched_tile_writer(max_parameters=8)
        for i in range(5):
            writer.write(TileCoord.of_xyz(i, 0, 3), b"t")
        assert writer.written == 4
        assert writer.pending == 1
        assert db.tile_count() == 4
        writer.close()
        assert writer.written == 5
        assert db.tile_count() == 5


def test_write_all_and_write_entry():
    tiles = [(TileCoord.of_xyz(x, 1, 2), bytes([x])) for x in range(4)]
    with Mbtiles.new_in_memory_database() as db:
        db.setup_schema()
        with db.new_batched_tile_writer(max_parameters=12) as writer:
            assert writer.write_all(tiles) == 4
            writer.write_entry(TileEntry(TileCoord.of_xyz(0, 0, 0), b"root"))
        assert set(db.iter_tiles()) == {TileEntry(c, d) for c, d in tiles} | {
            TileEntry(TileCoord.of_xyz(0, 0, 0), b"root")
        }


def test_close_is_idempotent_and_final():
    with Mbtiles.new_in_memory_database() as db:
        db.setup_schema()
        writer = db.new_batched_tile_writer()
        writer.close()
        writer.close()
        assert writer.closed
        with pytest.raises(WriteError):
            writer.write(TileCoord.of_xyz(0, 0, 0), b"x")


def test_duplicate_coordinates_without_index_keep_both_rows():
    coord = TileCoord.of_xyz(1, 1, 1)
    with Mbtiles.new_in_memory_database() as db:
        db.setup_schema()
        with db.new_batched_tile_writer() as writer:
            writer.write(coord, b"first")
            writer.write(coord, b"second")
        assert db.tile_count() == 2
        assert sorted(e.data for e in db.iter_tiles()) == [b"first", b"second"]


def test_duplicate_coordinates_with_index_raise_on_close():
    coord = TileCoord.of_xyz(1, 1, 1)
    with Mbtiles.new_in_memory_database() as db:
        db.setup_schema().add_index()
        with pytest.raises(WriteError):
            with db.new_batched_tile_writer() as writer:
                writer.write(coord, b"first")
                writer.write(coord, b"second")
        # the failed writer refuses further work
        with pytest.raises(WriteError):
            writer.write(TileCoord.of_xyz(0, 0, 1), b"x")
        assert db.tile_count() == 0


def test_failed_batch_keeps_earlier_batches():
    with Mbtiles.new_in_memory_database() as db:
        db.setup_schema().add_index()
        writer = db.new_batched_tile_writer(max_parameters=8)
        writer.write(TileCoord.of_xyz(0, 0, 1), b"a")
        writer.write(TileCoord.of_xyz(1, 0, 1), b"b")
        assert writer.written == 2

        writer.write(TileCoord.of_xyz(0, 0, 1), b"dup")
        with pytest.raises(WriteError, match="batch of 2 tiles"):
            writer.write(TileCoord.of_xyz(1, 1, 1), b"c")
        with pytest.raises(WriteError):
            writer.flush()
        writer.close()

        assert set(db.iter_tiles()) == {
            TileEntry(TileCoord.of_xyz(0, 0, 1), b"a"),
            TileEntry(TileCoord.of_xyz(1, 0, 1), b"b"),
        }


def test_unclosed_writer_with_pending_tiles_is_flagged():
    with Mbtiles.new_in_memory_database() as db:
        db.setup_schema()
        writer = db.new_batched_tile_writer()
        writer.write(TileCoord.of_xyz(0, 0, 0), b"lost")
        with pytest.warns(ResourceWarning, match="unflushed"):
            del writer
            gc.collect()


def test_closed_writer_is_not_flagged():
    with Mbtiles.new_in_memory_database() as db:
        db.setup_schema()
        writer = db.new_batched_tile_writer()
        writer.write(TileCoord.of_xyz(0, 0, 0), b"kept")
        writer.close()
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            del writer
            gc.collect()
        assert not [w for w in caught if "BatchedTileWriter" in str(w.message)]


def test_verbose_progress(capsys):
    with Mbtiles.new_in_memory_database(verbose=True) as db:
        db.setup_schema()
        writer = db.new_batched_tile_writer(max_parameters=8)
        writer.progress_interval = 2
        for i in range(4):
            writer.write(TileCoord.of_xyz(i, 0, 2), b"v")
        writer.close()
    out = capsys.readouterr().out
    assert "Wrote 2 tiles" in out
    assert "Wrote 4 tiles" in out
    assert "4 tiles written" in out


def test_payload_is_copied_when_written():
    coord = TileCoord.of_xyz(1, 2, 3)
    buf = bytearray(b"AAAA")
    with Mbtiles.new_in_memory_database() as db:
        db.setup_schema()
        with db.new_batched_tile_writer() as writer:
            writer.write(coord, buf)
            buf[:] = b"BBBB"
            # the caller may resize its buffer while the tile is still pending
            buf.clear()
            writer.write(TileCoord.of_xyz(0, 0, 3), buf)
        assert set(db.iter_tiles()) == {
            TileEntry(coord, b"AAAA"),
            TileEntry(TileCoord.of_xyz(0, 0, 3), b""),
        }
