# tilerules/op/rotate.py
# Quarter-turn rotations about the vertical (y) axis
# Materializes "ry"-style transform descriptors into explicit prototypes

from __future__ import annotations
import logging
from dataclasses import replace
from typing import List, Optional, Sequence

import numpy as np

from .hash import hash_voxels
from .tiles import TileMeta, TilePrototype
from .voxels import normalize_voxels

logger = logging.getLogger(__name__)

# Turn ids (frozen): 0=identity, 1=R90, 2=R180, 3=R270, clockwise seen from above
# with north (z=0) at the top and east (x=2) on the right.
TURNS = (0, 1, 2, 3)

# Inverse map for quarter turns
INVERSE_TURN = {0: 0, 1: 3, 2: 2, 3: 1}

# Transform token for one clockwise quarter turn about y
RY = "ry"


def apply_turn(vox: np.ndarray, turn: int) -> np.ndarray:
    """
    Rotate a (3, 3, 3) [z][y][x] voxel cube about the vertical axis.

    Note: numpy's rot90(k=1) is 90° counterclockwise in the (z, x) plane.
    For clockwise (R90), use rot90(k=3).

    Args:
        vox: voxel cube
        turn: turn identifier (0-3)

    Returns:
        Rotated copy

    Raises:
        ValueError: if turn not in {0..3}
    """
    if turn not in TURNS:
        raise ValueError(f"Invalid turn {turn}, must be in {TURNS}")
    if turn == 0:
        return vox.copy()
    return np.ascontiguousarray(np.rot90(vox, k=(4 - turn) % 4, axes=(0, 2)))


def rotate_meta(meta: TileMeta, turn: int) -> TileMeta:
    """
    Rotate a stair's travel direction along with its geometry.

    One clockwise turn maps south→west, west→north, north→east, east→south:
    (z, d) → (x, -d) and (x, d) → (z, d).
    """
    if meta.axis not in ("x", "z") or meta.dir not in (1, -1):
        return meta
    axis, d = meta.axis, meta.dir
    for _ in range(turn % 4):
        axis, d = ("x", -d) if axis == "z" else ("z", d)
    return replace(meta, axis=axis, dir=d)


def parse_transform(descriptor: str) -> Optional[int]:
    """
    Parse "ry", "ry+ry", ... into a turn id.

    Returns None for descriptors containing tokens other than "ry"
    (rx/rz tilt the tile off its floor and have no meaning here).
    """
    tokens = [t.strip() for t in descriptor.split("+") if t.strip()]
    if any(t != RY for t in tokens):
        return None
    return len(tokens) % 4


def expand_transforms(catalogue: Sequence[TilePrototype]) -> List[TilePrototype]:
    """
    Expand each prototype's transforms into explicit rotated prototypes.

    Contract:
    - Output order: each source prototype, then its variants in descriptor order
    - Variants identical to an earlier variant of the same source (same
      voxel hash and stair orientation) are dropped, e.g. a symmetric cross
    - Tiles with malformed voxels or unsupported descriptors are passed
      through without variants, with a warning
    - Emitted prototypes carry no transforms, so expansion is idempotent

    Args:
        catalogue: source prototypes

    Returns:
        list of prototypes with rotations materialized
    """
    out: List[TilePrototype] = []
    for index, proto in enumerate(catalogue):
        base = replace(proto, transforms=())
        out.append(base)
        if not proto.transforms:
            continue

        vox, reason = normalize_voxels(proto.voxels)
        if vox is None:
            logger.warning("Tile %d: cannot expand transforms (%s)", index, reason)
            continue

        seen = {(hash_voxels(vox), proto.meta.axis, proto.meta.dir)}
        for descriptor in proto.transforms:
            turn = parse_transform(descriptor)
            if turn is None:
                logger.warning("Tile %d: unsupported transform %r skipped", index, descriptor)
                continue
            rotated = apply_turn(vox, turn)
            meta = rotate_meta(proto.meta, turn)
            key = (hash_voxels(rotated), meta.axis, meta.dir)
            if key in seen:
                continue
            seen.add(key)
            out.append(replace(base, voxels=rotated.tolist(), meta=meta))
    return out
