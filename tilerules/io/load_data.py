# tilerules/io/load_data.py
# Tileset JSON loader

from __future__ import annotations
import json
from typing import Any

from tilerules.op.tiles import TilePrototype, make_catalogue


def load_tileset(path: str) -> list[TilePrototype]:
    """
    Load a tile catalogue from a JSON file.

    Expected format (either form):
    {"tiles": [{"voxels": [...] | "layers": [...], "meta": {...},
                "tileId": 3, "transforms": ["ry", ...]}, ...]}
    or a bare list of tile objects.

    Tile entries are not validated here; malformed voxels are skipped
    (with a warning) when rules are synthesized.

    Args:
        path: path to tileset JSON file

    Returns:
        list of prototypes in file order
    """
    with open(path, "r") as f:
        data: Any = json.load(f)
    tiles = data.get("tiles", []) if isinstance(data, dict) else data
    return make_catalogue(tiles)
