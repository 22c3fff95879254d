# tilerules/op/voxels.py
# Voxel cell codes and canonical 3x3x3 normalization
# All tile geometry reaches the rule builders through normalize_voxels

from __future__ import annotations
import numpy as np
from numbers import Integral, Real
from typing import Any, Optional, Tuple

# Cell codes (frozen; the solver-side tilesets are authored against these)
EMPTY = 0
SOLID = 1
STAIR = 2
CODES = (EMPTY, SOLID, STAIR)

# Passable cells: walkable air or a stair step
PASSABLE = (EMPTY, STAIR)

# Layer indices along y (vertical)
FLOOR = 0
MID = 1
CEILING = 2

SIZE = 3
CELLS = SIZE * SIZE * SIZE  # 27


def flat_index(z: int, y: int, x: int) -> int:
    """Row-major index of cell [z][y][x] in the flattened 27-cell form."""
    return z * 9 + y * 3 + x


def _cell_code(v: Any) -> Optional[int]:
    """
    Coerce one cell to a voxel code, or None if it is not one.

    Accepts ints (numpy ints included), integral floats and the single
    characters '0', '1', '2'. Booleans are rejected.
    """
    if isinstance(v, (bool, np.bool_)):
        return None
    if isinstance(v, str):
        if len(v) == 1 and v.isdigit():
            v = int(v)
        else:
            return None
    elif isinstance(v, Integral):
        v = int(v)
    elif isinstance(v, Real):
        f = float(v)
        if not f.is_integer():
            return None
        v = int(f)
    else:
        return None
    return v if v in CODES else None


def _is_scalar(v: Any) -> bool:
    return not isinstance(v, (list, tuple, str, np.ndarray))


def normalize_voxels(raw: Any) -> Tuple[Optional[np.ndarray], Optional[str]]:
    """
    Normalize a tile's voxels to a (3, 3, 3) int8 array addressed [z][y][x].

    Accepted forms:
    - nested 3x3x3 sequence of codes
    - flat 27-element sequence, reshaped with index = z*9 + y*3 + x
    - 3 layers of 3 strings such as "010" (layers[z][y] is a row over x)
    - numpy arrays of either shape

    Never raises. Malformed geometry (wrong length, missing cells,
    non-numeric or unknown codes) returns (None, reason).

    Args:
        raw: voxel data in any accepted form

    Returns:
        (voxels, None) on success, (None, reason) otherwise
    """
    if raw is None:
        return None, "no voxels"

    if isinstance(raw, np.ndarray):
        raw = raw.tolist()

    if not isinstance(raw, (list, tuple)) or len(raw) == 0:
        return None, f"unrecognized voxels format ({type(raw).__name__})"

    if all(_is_scalar(v) for v in raw):
        if len(raw) != CELLS:
            return None, f"flat voxels array with wrong length: {len(raw)}"
        flat = list(raw)
    elif len(raw) == SIZE:
        flat = []
        for z, layer in enumerate(raw):
            if isinstance(layer, np.ndarray):
                layer = layer.tolist()
            if not isinstance(layer, (list, tuple)) or len(layer) != SIZE:
                return None, f"layer z={z} must have 3 rows"
            for y, row in enumerate(layer):
                if isinstance(row, str):
                    row = list(row)
                elif isinstance(row, np.ndarray):
                    row = row.tolist()
                if not isinstance(row, (list, tuple)) or len(row) != SIZE:
                    return None, f"missing voxel row at [{z}][{y}]"
                flat.extend(row)
    else:
        return None, f"unrecognized voxels format (outer length {len(raw)})"

    codes = []
    for i, v in enumerate(flat):
        code = _cell_code(v)
        if code is None:
            z, rem = divmod(i, 9)
            y, x = divmod(rem, 3)
            return None, f"invalid voxel {v!r} at [{z}][{y}][{x}]"
        codes.append(code)

    return np.array(codes, dtype=np.int8).reshape(SIZE, SIZE, SIZE), None


def layers_to_voxels(layers: Any) -> np.ndarray:
    """
    Strict layer-string parser for authoring tiles.

    Unlike normalize_voxels this fails fast: tilesets written by hand
    should surface typos immediately.

    Raises:
        ValueError: on any shape or character error
    """
    if not isinstance(layers, (list, tuple)) or len(layers) != SIZE:
        raise ValueError("Expected exactly 3 z-layers")
    for z, layer in enumerate(layers):
        if not isinstance(layer, (list, tuple)) or len(layer) != SIZE:
            raise ValueError(f"Layer z={z} must have 3 rows")
        for y, row in enumerate(layer):
            if len(row) != SIZE:
                raise ValueError(f"Row length must be 3 (z={z}, y={y})")
            for x, ch in enumerate(row):
                if _cell_code(ch) is None:
                    raise ValueError(f"Invalid voxel char {ch!r} at ({x},{y},{z})")
    vox, reason = normalize_voxels(layers)
    if vox is None:
        raise ValueError(reason)
    return vox


def has_full_floor(vox: Optional[np.ndarray]) -> bool:
    """True iff all nine cells of the bottom layer (y=0) are SOLID."""
    if vox is None:
        return False
    return bool(np.all(vox[:, FLOOR, :] == SOLID))
