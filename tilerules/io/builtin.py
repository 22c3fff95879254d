# tilerules/io/builtin.py
# Built-in reference dungeon tileset
# Layers are [z0, z1, z2]; each z layer lists rows y0 (floor), y1 (middle), y2 (ceiling) over x

from __future__ import annotations

from tilerules.op.tiles import TilePrototype, tile_from_layers

Y_TURNS = ("ry", "ry+ry", "ry+ry+ry")

# (name, layers, tile_id, transforms, meta)
_TILES = (
    ("empty", (
        ("000", "000", "000"),
        ("000", "000", "000"),
        ("000", "000", "000"),
    ), 0, (), None),
    ("floor_and_ceiling", (
        ("111", "000", "111"),
        ("111", "000", "111"),
        ("111", "000", "111"),
    ), 1, (), None),
    ("solid", (
        ("111", "111", "111"),
        ("111", "111", "111"),
        ("111", "111", "111"),
    ), 1, (), None),
    # East-west tunnel
    ("corridor", (
        ("111", "111", "111"),
        ("111", "000", "111"),
        ("111", "111", "111"),
    ), 0, Y_TURNS, None),
    ("corner", (
        ("111", "111", "111"),
        ("111", "100", "111"),
        ("111", "101", "111"),
    ), 0, Y_TURNS, None),
    ("inverted_corner", (
        ("111", "111", "111"),
        ("111", "100", "111"),
        ("111", "000", "111"),
    ), 0, Y_TURNS, None),
    ("stair_south", (
        ("111", "111", "111"),
        ("111", "020", "010"),
        ("111", "000", "000"),
    ), 31, (), {"role": "stair", "axis": "z", "dir": 1}),
    ("stair_north", (
        ("111", "000", "000"),
        ("111", "020", "010"),
        ("111", "111", "111"),
    ), 32, (), {"role": "stair", "axis": "z", "dir": -1}),
    ("stair_east", (
        ("111", "100", "100"),
        ("111", "120", "110"),
        ("111", "100", "100"),
    ), 33, (), {"role": "stair", "axis": "x", "dir": 1}),
    ("stair_west", (
        ("111", "001", "001"),
        ("111", "021", "011"),
        ("111", "001", "001"),
    ), 34, (), {"role": "stair", "axis": "x", "dir": -1}),
    ("dead_end", (
        ("111", "111", "111"),
        ("111", "001", "111"),
        ("111", "111", "111"),
    ), 0, Y_TURNS, None),
    ("t_junction", (
        ("111", "111", "111"),
        ("111", "000", "111"),
        ("111", "101", "111"),
    ), 0, Y_TURNS, None),
    ("cross", (
        ("111", "101", "111"),
        ("111", "000", "111"),
        ("111", "101", "111"),
    ), 0, (), None),
    # Solid floor, open middle and head height: forward clear volume for stairs
    ("landing", (
        ("111", "000", "000"),
        ("111", "000", "000"),
        ("111", "000", "000"),
    ), 50, Y_TURNS, {"role": "landing"}),
)

TILE_NAMES = tuple(name for name, *_ in _TILES)


def builtin_tileset() -> list[TilePrototype]:
    """
    Fresh copy of the reference tileset, transforms left unexpanded.

    Pass the result through expand_transforms() to materialize rotations.
    """
    return [
        tile_from_layers(layers, tile_id, transforms=transforms, meta=meta)
        for _, layers, tile_id, transforms, meta in _TILES
    ]
