# tilerules/io/save.py
# JSON writers for rule sets and receipts

from __future__ import annotations
import json
import os
from typing import Any, Iterable

from tilerules.op.tiles import TilePrototype


def write_json(path: str, obj: Any) -> None:
    """
    Write object as JSON to file.

    Creates parent directories if needed.
    Uses compact JSON (no whitespace) so identical rule sets give identical files.
    """
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w") as f:
        json.dump(obj, f, separators=(",", ":"))


def write_jsonl(path: str, records: Iterable[Any]) -> None:
    """Write objects as JSONL (one JSON object per line); used for receipts."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w") as f:
        for record in records:
            f.write(json.dumps(record, separators=(",", ":")) + "\n")


def tile_record(tile: TilePrototype) -> dict[str, Any]:
    """Serializable form of one prototype, readable by load_tileset."""
    voxels = tile.voxels
    if hasattr(voxels, "tolist"):
        voxels = voxels.tolist()
    record: dict[str, Any] = {"voxels": voxels}
    if tile.meta.to_mapping():
        record["meta"] = tile.meta.to_mapping()
    if tile.tile_id is not None:
        record["tileId"] = tile.tile_id
    if tile.transforms:
        record["transforms"] = list(tile.transforms)
    return record


def write_tileset(path: str, tiles: Iterable[TilePrototype]) -> None:
    write_json(path, {"tiles": [tile_record(t) for t in tiles]})
