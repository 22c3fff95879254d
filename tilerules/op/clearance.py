# tilerules/op/clearance.py
# Face clearance heuristics for stair connections
# Judges whether a neighbour's face is open enough for a stair to run into it

from __future__ import annotations
import logging
from typing import Callable, Dict, Optional, Protocol, Tuple, Union

import numpy as np

from .voxels import CEILING, EMPTY, MID

logger = logging.getLogger(__name__)


class ClearanceHeuristic(Protocol):
    """A pure predicate over a normalized voxel cube and a face name."""

    def __call__(self, vox: np.ndarray, face: str) -> bool: ...


# Boundary slice of each face as (z index, x index) selectors on a [z][y][x] cube
_FACE_SLICE: Dict[str, Tuple[object, object]] = {
    "north": (0, slice(None)),
    "south": (2, slice(None)),
    "east": (slice(None), 2),
    "west": (slice(None), 0),
}

# Head-height (y=2) centre cell of each boundary slice, as (z, x)
_FACE_HEAD: Dict[str, Tuple[int, int]] = {
    "north": (0, 1),
    "south": (2, 1),
    "east": (1, 2),
    "west": (1, 0),
}


def middle_face_open(vox: np.ndarray, face: str) -> bool:
    """
    True iff the three middle-height (y=1) cells of `face` are all EMPTY.

    Unknown face names impose no constraint (True).
    """
    sel = _FACE_SLICE.get(face)
    if sel is None:
        return True
    zs, xs = sel
    return bool(np.all(vox[zs, MID, xs] == EMPTY))


def clear_volume_open(vox: np.ndarray, face: str) -> bool:
    """
    middle_face_open plus headroom: the y=2 centre cell of the boundary
    slice must also be EMPTY.
    """
    if not middle_face_open(vox, face):
        return False
    head = _FACE_HEAD.get(face)
    if head is None:
        return True
    z, x = head
    return bool(vox[z, CEILING, x] == EMPTY)


HEURISTICS: Dict[str, ClearanceHeuristic] = {
    "clear_volume": clear_volume_open,
    "middle_face": middle_face_open,
}

DEFAULT_FORWARD = "clear_volume"
DEFAULT_BACKWARD = "middle_face"

HeuristicSpec = Union[str, Callable[[np.ndarray, str], bool], None]


def resolve_heuristic(spec: HeuristicSpec, default: str) -> ClearanceHeuristic:
    """
    Look up a heuristic by name, or pass a callable through.

    None selects `default`. Unknown names fall back to `default` with a
    warning rather than failing the synthesis run.
    """
    if spec is None:
        return HEURISTICS[default]
    if callable(spec):
        return spec
    found = HEURISTICS.get(spec) if isinstance(spec, str) else None
    if found is None:
        logger.warning("Unknown clearance heuristic %r, falling back to %r", spec, default)
        return HEURISTICS[default]
    return found


def heuristic_name(h: ClearanceHeuristic) -> str:
    """Registry name of a heuristic, or its qualified name for custom callables."""
    for name, fn in HEURISTICS.items():
        if fn is h:
            return name
    return getattr(h, "__qualname__", None) or type(h).__name__


# Stair travel → (face of the forward neighbour, face of the backward neighbour)
# A stair travelling south (+z) has its forward neighbour on its south side; that
# neighbour touches it with its north face.
STAIR_FACES: Dict[Tuple[str, int], Tuple[str, str]] = {
    ("z", 1): ("north", "south"),
    ("z", -1): ("south", "north"),
    ("x", 1): ("west", "east"),
    ("x", -1): ("east", "west"),
}


def stair_faces(axis: Optional[str], direction: Optional[int]) -> Optional[Tuple[str, str]]:
    return STAIR_FACES.get((axis, direction))
