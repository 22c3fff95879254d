# tilerules/op/assemble.py
# Pairwise rule assembly: two interchangeable strategies behind RuleAssembler
# Iterates every ordered pair (a, b), a == b included, and emits raw rules

"""
Rule conventions (frozen):

Dimension tokens are the solver's alphabet, kept byte-for-byte:
    east-west X → "y", vertical Y → "x", north-south Z → "z"

Horizontal: (X, a, b) means b sits on the east (+x) side of a, i.e. a's east
edge touches b's west edge. (Z, a, b) means b sits on the south (+z) side of
a, a's south edge touching b's north edge.

Vertical: (Y, a, b) means a rests directly on top of b, decided by
can_stack(upper=a, lower=b).
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

import numpy as np

from .clearance import (
    DEFAULT_BACKWARD,
    DEFAULT_FORWARD,
    ClearanceHeuristic,
    heuristic_name,
    resolve_heuristic,
    stair_faces,
)
from .edges import EdgeSignature, edges_compatible, extract_edges
from .options import DEFAULT_STRATEGY, SynthesisOptions
from .receipts import TALLY_KEYS
from .support import VerticalSupport
from .tiles import TilePrototype, make_catalogue, meta_problem, tile_weight
from .voxels import normalize_voxels

logger = logging.getLogger(__name__)

Rule = Tuple[str, int, int]

DIM_TOKENS = {"X": "y", "Y": "x", "Z": "z"}
AXIS_OF_TOKEN = {token: axis for axis, token in DIM_TOKENS.items()}

# Axis → (face of the tile on the negative side, face of the tile on the positive side)
FACING = {"X": ("east", "west"), "Z": ("south", "north")}

# Stair meta axis → rule axis
STAIR_AXIS = {"x": "X", "z": "Z"}
PERPENDICULAR = {"X": "Z", "Z": "X"}


@dataclass(frozen=True)
class Catalogue:
    """
    Per-call prepared view of the prototypes.

    voxels[i] / edges[i] are None for tiles that failed shape validation (edges[i]
    also for a non-mapping meta);
    skipped lists (index, reason) for those tiles.
    """
    tiles: Tuple[TilePrototype, ...]
    voxels: Tuple[Optional[np.ndarray], ...]
    edges: Tuple[Optional[EdgeSignature], ...]
    skipped: Tuple[Tuple[int, str], ...]

    def __len__(self) -> int:
        return len(self.tiles)


def prepare_catalogue(prototypes: Sequence[Any]) -> Catalogue:
    """
    Normalize voxels and extract edge signatures once per synthesis call.

    Never raises: tiles without a signature are recorded in `skipped` and
    logged, and take part in vertical rules only. A tile whose meta is not
    a mapping is skipped the same way.
    """
    prototypes = list(prototypes)
    tiles = tuple(make_catalogue(prototypes))
    voxels: List[Optional[np.ndarray]] = []
    edges: List[Optional[EdgeSignature]] = []
    skipped: List[Tuple[int, str]] = []
    for index, (raw, tile) in enumerate(zip(prototypes, tiles)):
        vox, reason = normalize_voxels(tile.voxels)
        sig = extract_edges(vox)
        problem = meta_problem(raw)
        if problem is not None:
            sig, reason = None, problem
        if sig is None:
            reason = reason or "no edge signature"
            logger.warning(
                "Tile %d (tileId: %s) skipped for horizontal rules: %s",
                index, tile.tile_id, reason,
            )
            skipped.append((index, reason))
        voxels.append(vox)
        edges.append(sig)
    return Catalogue(tiles, tuple(voxels), tuple(edges), tuple(skipped))


@dataclass
class Assembly:
    """Raw (pre-dedup) assembler output."""
    raw_rules: List[Rule]
    weights: List[float]
    tally: Counter


def facing_match(axis: str, lead: EdgeSignature, trail: EdgeSignature) -> bool:
    """True if `trail` may sit on the positive side of `lead` along `axis`."""
    lead_face, trail_face = FACING[axis]
    return edges_compatible(lead.face(lead_face), trail.face(trail_face))


class RuleAssembler(ABC):
    """
    Shared pair loop: stair isolation, signature gating, vertical support.

    Strategies supply horizontal_rules(); everything else is common so both
    honour the same output contract.
    """

    name: str = ""

    def assemble(self, cat: Catalogue, options: SynthesisOptions) -> Assembly:
        """
        Evaluate all n² ordered pairs.

        Each pair writes only to its own tally; tallies are summed at the
        end so no counter outlives the call.
        """
        support = VerticalSupport(cat.tiles, cat.voxels, stair_on_stair=options.stair_on_stair)
        rules: List[Rule] = []
        tally: Counter = Counter({k: 0 for k in TALLY_KEYS})
        n = len(cat)
        for a in range(n):
            for b in range(n):
                pair_rules, pair_tally = self.evaluate_pair(cat, a, b, options, support)
                rules.extend(pair_rules)
                tally.update(pair_tally)
        weights = [tile_weight(t.meta) for t in cat.tiles]
        return Assembly(raw_rules=rules, weights=weights, tally=tally)

    def evaluate_pair(
        self,
        cat: Catalogue,
        a: int,
        b: int,
        options: SynthesisOptions,
        support: VerticalSupport,
    ) -> Tuple[List[Rule], Counter]:
        tally: Counter = Counter(total_pairs=1)
        rules: List[Rule] = []
        A, B = cat.tiles[a], cat.tiles[b]

        if options.isolate_stairs and A.is_stair and B.is_stair:
            tally["horizontal_pruned"] += 1
        elif cat.edges[a] is None or cat.edges[b] is None:
            tally["edge_skipped"] += 1
        else:
            rules.extend(self.horizontal_rules(cat, a, b, tally))

        if support.can_stack(a, b, tally):
            rules.append((DIM_TOKENS["Y"], a, b))
        return rules, tally

    @abstractmethod
    def horizontal_rules(self, cat: Catalogue, a: int, b: int, tally: Counter) -> List[Rule]:
        """X/Z rules for one ordered pair whose tiles both have signatures."""

    def describe(self) -> Tuple[Tuple[str, str], ...]:
        """Heuristic names recorded in the receipt."""
        return ()


class EdgePatternAssembler(RuleAssembler):
    """
    Strict edge matching: (X, a, b) iff a.east ~ b.west, (Z, a, b) iff
    a.south ~ b.north. Stairs get no special treatment beyond isolation.
    """

    name = "edge_pattern"

    def horizontal_rules(self, cat: Catalogue, a: int, b: int, tally: Counter) -> List[Rule]:
        ea, eb = cat.edges[a], cat.edges[b]
        rules: List[Rule] = []
        for axis in ("X", "Z"):
            if facing_match(axis, ea, eb):
                rules.append((DIM_TOKENS[axis], a, b))
            else:
                tally["edge_incompatible"] += 1
        return rules


class HeuristicAssembler(RuleAssembler):
    """
    Edge matching for ordinary tiles, clearance heuristics for stairs.

    - neither tile a directional stair: both orderings of each axis from
      edge compatibility
    - a is a directional stair: along its axis the forward heuristic gates
      the rule toward its travel, the backward heuristic the rule behind it;
      the perpendicular axis uses edge compatibility
    - only b is a directional stair: nothing here, the mirrored pair (b, a)
      emits those rules
    """

    name = "heuristic"

    def __init__(
        self,
        forward: Optional[ClearanceHeuristic] = None,
        backward: Optional[ClearanceHeuristic] = None,
    ):
        self.forward = forward or resolve_heuristic(None, DEFAULT_FORWARD)
        self.backward = backward or resolve_heuristic(None, DEFAULT_BACKWARD)

    def describe(self) -> Tuple[Tuple[str, str], ...]:
        return (("forward", heuristic_name(self.forward)), ("backward", heuristic_name(self.backward)))

    def horizontal_rules(self, cat: Catalogue, a: int, b: int, tally: Counter) -> List[Rule]:
        A, B = cat.tiles[a], cat.tiles[b]
        if A.is_directional_stair:
            return self._stair_rules(cat, a, b, tally)
        if B.is_directional_stair:
            return []
        rules: List[Rule] = []
        for axis in ("X", "Z"):
            rules.extend(self._edge_rules(axis, cat, a, b, tally))
        return rules

    def _edge_rules(self, axis: str, cat: Catalogue, a: int, b: int, tally: Counter) -> List[Rule]:
        """Both orderings along one axis from edge compatibility."""
        ea, eb = cat.edges[a], cat.edges[b]
        token = DIM_TOKENS[axis]
        rules: List[Rule] = []
        for lead, trail, first, second in ((ea, eb, a, b), (eb, ea, b, a)):
            if facing_match(axis, lead, trail):
                rules.append((token, first, second))
            else:
                tally["edge_incompatible"] += 1
        return rules

    def _stair_rules(self, cat: Catalogue, a: int, b: int, tally: Counter) -> List[Rule]:
        stair = cat.tiles[a].meta
        axis = STAIR_AXIS[stair.axis]
        token = DIM_TOKENS[axis]
        forward_face, backward_face = stair_faces(stair.axis, stair.dir)
        vb = cat.voxels[b]

        # Travelling toward +axis puts the forward neighbour on the positive side
        ahead = (token, a, b) if stair.dir == 1 else (token, b, a)
        behind = (token, b, a) if stair.dir == 1 else (token, a, b)

        rules: List[Rule] = []
        if self.forward(vb, forward_face):
            rules.append(ahead)
        else:
            tally["forward_rejected"] += 1
        if self.backward(vb, backward_face):
            rules.append(behind)
        else:
            tally["backward_rejected"] += 1

        rules.extend(self._edge_rules(PERPENDICULAR[axis], cat, a, b, tally))
        return rules


ASSEMBLERS: Dict[str, Type[RuleAssembler]] = {
    HeuristicAssembler.name: HeuristicAssembler,
    EdgePatternAssembler.name: EdgePatternAssembler,
}


def get_assembler(options: SynthesisOptions) -> RuleAssembler:
    """
    Instantiate the strategy named by options.strategy.

    Unknown names fall back to the default strategy with a warning.
    """
    name = options.strategy
    if name not in ASSEMBLERS:
        logger.warning("Unknown rule assembler %r, falling back to %r", name, DEFAULT_STRATEGY)
        name = DEFAULT_STRATEGY
    if name == HeuristicAssembler.name:
        return HeuristicAssembler(
            forward=resolve_heuristic(options.forward_heuristic, DEFAULT_FORWARD),
            backward=resolve_heuristic(options.backward_heuristic, DEFAULT_BACKWARD),
        )
    return ASSEMBLERS[name]()
