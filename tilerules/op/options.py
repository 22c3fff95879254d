# tilerules/op/options.py
# Synthesis configuration

from __future__ import annotations
import logging
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional, Union

from .clearance import DEFAULT_BACKWARD, DEFAULT_FORWARD, HeuristicSpec

logger = logging.getLogger(__name__)

DEFAULT_STRATEGY = "heuristic"

# camelCase spellings used by tileset configuration files
_ALIASES = {
    "isolateStairs": "isolate_stairs",
    "forwardHeuristic": "forward_heuristic",
    "backwardHeuristic": "backward_heuristic",
    "stairOnStair": "stair_on_stair",
}

# Fields whose value must have this type; anything else keeps the default
_TYPES = {
    "strategy": str,
    "isolate_stairs": bool,
    "stair_on_stair": bool,
}


@dataclass(frozen=True)
class SynthesisOptions:
    """
    Contract:
    - strategy: assembler name, "heuristic" or "edge_pattern"
    - isolate_stairs: suppress horizontal stair-to-stair rules
    - forward_heuristic / backward_heuristic: heuristic names or callables
      judging a neighbour's face toward / against a stair's travel
    - stair_on_stair: allow a stair to rest directly on another stair
      (permissive by default)
    """
    strategy: str = DEFAULT_STRATEGY
    isolate_stairs: bool = True
    forward_heuristic: HeuristicSpec = DEFAULT_FORWARD
    backward_heuristic: HeuristicSpec = DEFAULT_BACKWARD
    stair_on_stair: bool = True

    @classmethod
    def from_mapping(cls, m: Mapping[str, Any]) -> "SynthesisOptions":
        """
        Build from a dict; unknown keys are ignored, None keeps the default.

        Boolean and strategy fields are not coerced: a value of the wrong
        type (e.g. the string "false") keeps the default with a warning.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in m.items():
            name = _ALIASES.get(key, key)
            if name not in known or value is None:
                continue
            expected = _TYPES.get(name)
            if expected is not None and not isinstance(value, expected):
                logger.warning(
                    "Option %r expects %s, got %r; keeping default", key, expected.__name__, value,
                )
                continue
            kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def coerce(
        cls, options: Optional[Union["SynthesisOptions", Mapping[str, Any]]]
    ) -> "SynthesisOptions":
        if options is None:
            return cls()
        if isinstance(options, SynthesisOptions):
            return options
        return cls.from_mapping(options)
