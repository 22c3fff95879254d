# tilerules/op/tiles.py
# Tile prototypes, metadata and selection weights
# Prototypes are read-only inputs; nothing in the rule pipeline mutates them

from __future__ import annotations
import math
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Mapping, Optional, Sequence

import numpy as np

from .voxels import layers_to_voxels, normalize_voxels, has_full_floor

ROLE_STAIR = "stair"
ROLE_LANDING = "landing"

DEFAULT_WEIGHT = 1.0


@dataclass(frozen=True)
class TileMeta:
    """
    Optional tile descriptor.

    Contract:
    - role: semantic role ("stair", "landing", "corridor", ...)
    - axis/dir: stair orientation, axis in {"x", "z"}, dir in {+1, -1}
    - weight: selection weight as authored (validated by tile_weight)
    - solid_floor: explicit override of the floor test; None = derive from voxels
    - landing: marks a structural landing independently of role
    """
    role: Optional[str] = None
    axis: Optional[str] = None
    dir: Optional[int] = None
    weight: Any = None
    solid_floor: Optional[bool] = None
    landing: bool = False

    @classmethod
    def from_mapping(cls, m: Any) -> "TileMeta":
        """
        Build from a plain dict; accepts the camelCase `solidFloor` alias.

        Anything that is not a mapping gives the empty meta. Fields of the
        wrong type are dropped: role/axis must be strings, dir a non-bool int.
        """
        if not isinstance(m, Mapping) or not m:
            return cls()
        role, axis, d = m.get("role"), m.get("axis"), m.get("dir")
        solid = m.get("solid_floor", m.get("solidFloor"))
        return cls(
            role=role if isinstance(role, str) else None,
            axis=axis if isinstance(axis, str) else None,
            dir=d if isinstance(d, int) and not isinstance(d, bool) else None,
            weight=m.get("weight"),
            solid_floor=solid if isinstance(solid, bool) else None,
            landing=m.get("landing") is True,
        )

    def to_mapping(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.role is not None:
            out["role"] = self.role
        if self.axis is not None:
            out["axis"] = self.axis
        if self.dir is not None:
            out["dir"] = self.dir
        if self.weight is not None:
            out["weight"] = self.weight
        if self.solid_floor is not None:
            out["solidFloor"] = self.solid_floor
        if self.landing:
            out["landing"] = True
        return out


@dataclass(frozen=True)
class TilePrototype:
    """
    One placeable 3x3x3 building block.

    `voxels` is kept exactly as supplied (nested, flat-27 or layer strings);
    normalization happens per synthesis call so malformed tiles degrade
    instead of failing at load time.
    """
    voxels: Any
    meta: TileMeta = field(default_factory=TileMeta)
    tile_id: Optional[int] = None
    transforms: tuple[str, ...] = ()

    @property
    def is_stair(self) -> bool:
        return self.meta.role == ROLE_STAIR

    @property
    def is_landing(self) -> bool:
        return self.meta.role == ROLE_LANDING or self.meta.landing

    @property
    def is_directional_stair(self) -> bool:
        return self.is_stair and self.meta.axis in ("x", "z") and self.meta.dir in (1, -1)


def tile_weight(meta: TileMeta) -> float:
    """
    Selection weight for one tile.

    meta.weight when it is a finite, non-negative real number (bools
    excluded); DEFAULT_WEIGHT otherwise.
    """
    w = meta.weight
    if isinstance(w, bool) or not isinstance(w, Real):
        return DEFAULT_WEIGHT
    w = float(w)
    if not math.isfinite(w) or w < 0:
        return DEFAULT_WEIGHT
    return w


def has_solid_floor(tile: TilePrototype, vox: Optional[np.ndarray] = None) -> bool:
    """
    Floor test used by vertical support.

    meta.solid_floor wins when set; otherwise all nine cells of the bottom
    layer must be SOLID. Tiles with malformed voxels have no floor.
    """
    if tile.meta.solid_floor is not None:
        return tile.meta.solid_floor
    if vox is None:
        vox, _ = normalize_voxels(tile.voxels)
    return has_full_floor(vox)


def as_prototype(obj: Any) -> TilePrototype:
    """
    Coerce a catalogue entry to a TilePrototype.

    Accepts TilePrototype instances and dicts with "voxels" (any form) or
    "layers", optional "meta", "tileId"/"tile_id" and "transforms".
    Anything else becomes a voxel-less prototype, which synthesis skips.
    """
    if isinstance(obj, TilePrototype):
        return obj
    if not isinstance(obj, Mapping):
        return TilePrototype(voxels=None)
    voxels = obj.get("voxels")
    if voxels is None:
        voxels = obj.get("layers")
    tile_id = obj.get("tile_id", obj.get("tileId"))
    return TilePrototype(
        voxels=voxels,
        meta=TileMeta.from_mapping(obj.get("meta")),
        tile_id=tile_id,
        transforms=_transforms(obj.get("transforms")),
    )


def _transforms(raw: Any) -> tuple[str, ...]:
    """Descriptor strings from a raw "transforms" value; other entries dropped."""
    if isinstance(raw, str):
        return (raw,)
    if not isinstance(raw, (list, tuple)):
        return ()
    return tuple(t for t in raw if isinstance(t, str))


def meta_problem(obj: Any) -> Optional[str]:
    """Reason a raw catalogue entry's meta is unusable, or None if it is fine."""
    if not isinstance(obj, Mapping):
        return None
    meta = obj.get("meta")
    if meta is None or isinstance(meta, Mapping):
        return None
    return f"meta is not a mapping: {type(meta).__name__}"


def make_catalogue(entries: Sequence[Any]) -> list[TilePrototype]:
    return [as_prototype(e) for e in entries]


def tile_from_layers(
    layers: Sequence[Sequence[str]],
    tile_id: Optional[int] = None,
    *,
    transforms: Sequence[str] = (),
    meta: Optional[Mapping[str, Any]] = None,
) -> TilePrototype:
    """
    Author a prototype from 3 z-layers of 3 strings each.

    Raises:
        ValueError: if the layers are malformed (authoring is fail-fast)
    """
    vox = layers_to_voxels(layers)
    return TilePrototype(
        voxels=vox.tolist(),
        meta=TileMeta.from_mapping(meta),
        tile_id=tile_id,
        transforms=tuple(transforms),
    )
