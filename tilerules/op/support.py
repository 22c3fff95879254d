# tilerules/op/support.py
# Vertical support: may one tile rest directly on top of another?

from __future__ import annotations
from collections import Counter
from typing import Optional, Sequence

import numpy as np

from .tiles import TilePrototype, has_solid_floor


class VerticalSupport:
    """
    Stacking policy over one catalogue.

    Policy, in order:
    1. both stairs and stair-on-stair disabled → reject
    2. upper has no solid floor and lower is neither stair nor landing → reject
       (no ordinary tile floats over open space)
    3. accept

    Every call counts toward `vertical_total`; accepted calls also count
    toward `vertical_allowed`, whichever branch decided.
    """

    def __init__(
        self,
        tiles: Sequence[TilePrototype],
        voxels: Sequence[Optional[np.ndarray]],
        *,
        stair_on_stair: bool = True,
    ):
        self.tiles = tiles
        self.stair_on_stair = stair_on_stair
        # Floor test is per tile; computed once per catalogue
        self._floor = [has_solid_floor(t, v) for t, v in zip(tiles, voxels)]

    def has_floor(self, index: int) -> bool:
        return self._floor[index]

    def is_support(self, index: int) -> bool:
        lower = self.tiles[index]
        return lower.is_stair or lower.is_landing

    def can_stack(self, upper: int, lower: int, tally: Optional[Counter] = None) -> bool:
        """
        Decide whether tile `upper` may sit directly on tile `lower`.

        Args:
            upper: catalogue index of the tile on top
            lower: catalogue index of the tile below
            tally: per-pair counter receiving vertical_total / vertical_allowed

        Returns:
            True if the stacking is legal
        """
        if tally is not None:
            tally["vertical_total"] += 1

        if (
            self.tiles[upper].is_stair
            and self.tiles[lower].is_stair
            and not self.stair_on_stair
        ):
            return False
        if not self.has_floor(upper) and not self.is_support(lower):
            return False

        if tally is not None:
            tally["vertical_allowed"] += 1
        return True
