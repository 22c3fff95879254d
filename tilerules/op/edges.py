# tilerules/op/edges.py
# Edge signatures of the four horizontal faces + passability matching
# Sampling rule (frozen): middle layer y=1; north = row z=0, south = row z=2,
# east = column x=2 over z, west = column x=0 over z

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from .voxels import MID, PASSABLE

Signature = Tuple[int, ...]

FACES = ("north", "south", "east", "west")


@dataclass(frozen=True)
class EdgeSignature:
    """
    Passability samples of one tile's four horizontal faces.

    Each face is an ordered tuple of cell codes. Tuples (not arrays) so
    signatures are hashable and compare by value.
    """
    north: Signature
    south: Signature
    east: Signature
    west: Signature

    def face(self, name: str) -> Signature:
        return getattr(self, name)


def extract_edges(vox: Optional[np.ndarray]) -> Optional[EdgeSignature]:
    """
    Extract the four face signatures from a normalized (3, 3, 3) cube.

    Returns None for missing or wrongly shaped voxels ("no signature").
    """
    if vox is None or getattr(vox, "shape", None) != (3, 3, 3):
        return None
    middle = vox[:, MID, :]  # rows z, columns x
    return EdgeSignature(
        north=tuple(int(v) for v in middle[0, :]),
        south=tuple(int(v) for v in middle[2, :]),
        east=tuple(int(v) for v in middle[:, 2]),
        west=tuple(int(v) for v in middle[:, 0]),
    )


def passability(sig: Sequence[int]) -> np.ndarray:
    """Boolean mask: True where the cell is EMPTY or STAIR."""
    return np.isin(np.asarray(sig, dtype=np.int64), PASSABLE)


def edges_compatible(edge1: Sequence[int], edge2: Sequence[int]) -> bool:
    """
    Check whether two facing edges may touch.

    Contract:
    - Unequal length → incompatible (never raises)
    - At every position both sides agree on passable vs not:
      wall faces wall, opening faces opening
    - Symmetric: edges_compatible(x, y) == edges_compatible(y, x)
    """
    if len(edge1) != len(edge2):
        return False
    return bool(np.array_equal(passability(edge1), passability(edge2)))
