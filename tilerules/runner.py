#!/usr/bin/env python3
# tilerules/runner.py
# Rule synthesis end-to-end + determinism harness

"""
Frozen order (no reordering):
prepare (normalize → edges) → assemble (pairs → raw rules, weights) → dedup → receipt

Determinism: run twice on the same catalogue and options, compare the
rules hash, weights hash and the full diagnostics digest.
"""

from __future__ import annotations
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Mapping, Sequence, Tuple, Union

from tilerules.op.assemble import AXIS_OF_TOKEN, get_assembler, prepare_catalogue
from tilerules.op.dedup import Rule, deduplicate_rules
from tilerules.op.hash import hash_rules, hash_weights
from tilerules.op.options import SynthesisOptions
from tilerules.op.receipts import Diagnostics, RunRc, aggregate, env_fingerprint, table_hash

logger = logging.getLogger(__name__)

OptionsLike = Union[SynthesisOptions, Mapping[str, Any], None]


@dataclass(frozen=True)
class RuleSet:
    """
    Output handed to the WFC solver.

    Contract:
    - rules: deduplicated (token, a, b) triples in first-seen order
    - weights: one non-negative number per tile index
    - diagnostics: receipt for this call (inspection only)
    """
    rules: Tuple[Rule, ...]
    weights: Tuple[float, ...]
    diagnostics: Diagnostics


def synthesize(prototypes: Sequence[Any], options: OptionsLike = None) -> RuleSet:
    """
    Build the adjacency rule set for a tile catalogue.

    Never raises for malformed tiles; the worst outcome is a sparse rule set.

    Args:
        prototypes: TilePrototype instances or tile dicts, in catalogue order
        options: SynthesisOptions, a dict of options, or None for defaults

    Returns:
        RuleSet with rules, weights and diagnostics
    """
    opts = SynthesisOptions.coerce(options)
    cat = prepare_catalogue(prototypes)
    assembler = get_assembler(opts)
    assembly = assembler.assemble(cat, opts)

    rules, removed = deduplicate_rules(assembly.raw_rules)
    axis_counts = Counter(AXIS_OF_TOKEN[token] for token, _, _ in rules)

    diagnostics = Diagnostics.build(
        strategy=assembler.name,
        tally=assembly.tally,
        axis_counts=axis_counts,
        original_rules=len(assembly.raw_rules),
        deduplicated_rules=len(rules),
        skipped_tiles=cat.skipped,
        rules_hash=hash_rules(rules),
        weights_hash=hash_weights(assembly.weights),
        heuristics=assembler.describe(),
    )
    logger.debug(
        "Synthesized %d rules (%d raw, %d removed) for %d tiles with %s",
        len(rules), len(assembly.raw_rules), removed, len(cat), assembler.name,
    )
    return RuleSet(rules=tuple(rules), weights=tuple(assembly.weights), diagnostics=diagnostics)


def run_twice(
    prototypes: Sequence[Any],
    options: OptionsLike = None,
) -> Tuple[RuleSet, RunRc]:
    """
    Synthesize twice and compare the results field for field.

    Returns:
        (first_ruleset, run_rc) where run_rc.deterministic reports agreement
    """
    first = synthesize(prototypes, options)
    second = synthesize(prototypes, options)

    sections = {"first": first.diagnostics, "second": second.diagnostics}
    hashes = {k: d.digest() for k, d in sections.items()}
    deterministic = (
        first.rules == second.rules
        and first.weights == second.weights
        and first.diagnostics == second.diagnostics
    )
    if not deterministic:
        logger.warning(
            "Non-deterministic synthesis: rules %s vs %s",
            first.diagnostics.rules_hash, second.diagnostics.rules_hash,
        )

    run_rc = RunRc(
        env=env_fingerprint(),
        sections=sections,
        hashes=hashes,
        table_hash=table_hash(hashes),
        deterministic=deterministic,
    )
    return first, run_rc


def ruleset_record(ruleset: RuleSet) -> dict[str, Any]:
    """JSON-ready form: rules as [token, a, b] arrays, weights, diagnostics."""
    return {
        "rules": [list(r) for r in ruleset.rules],
        "weights": list(ruleset.weights),
        "diagnostics": aggregate(ruleset.diagnostics),
    }
