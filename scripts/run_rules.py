#!/usr/bin/env python3
# scripts/run_rules.py
# Rule synthesis harness: build rules for a tileset, write rules + receipts

from __future__ import annotations
import argparse
import logging
import os
import sys

from tilerules.io.builtin import builtin_tileset
from tilerules.io.load_data import load_tileset
from tilerules.io.save import write_json, write_jsonl
from tilerules.op.options import SynthesisOptions
from tilerules.op.receipts import aggregate
from tilerules.op.rotate import expand_transforms
from tilerules.runner import ruleset_record, run_twice, synthesize


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Synthesize WFC adjacency rules for a tileset")
    parser.add_argument("--tileset", help="tileset JSON (default: built-in reference tileset)")
    parser.add_argument("--strategy", default="heuristic", help="heuristic | edge_pattern")
    parser.add_argument("--forward", default=None, help="forward clearance heuristic name")
    parser.add_argument("--backward", default=None, help="backward clearance heuristic name")
    parser.add_argument("--no-isolate-stairs", action="store_true",
                        help="allow horizontal stair-to-stair rules")
    parser.add_argument("--forbid-stair-on-stair", action="store_true",
                        help="reject a stair resting directly on a stair")
    parser.add_argument("--expand", action="store_true",
                        help="materialize 'ry' transforms into explicit prototypes")
    parser.add_argument("--out", default="out", help="output directory")
    parser.add_argument("--check-determinism", action="store_true",
                        help="run twice and fail if results differ")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """
    Usage:
        python -m scripts.run_rules [--tileset tiles.json] [--expand] [--out out]

    Exit codes:
        0: rules written
        1: determinism check failed
    """
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    tiles = load_tileset(args.tileset) if args.tileset else builtin_tileset()
    if args.expand:
        tiles = expand_transforms(tiles)

    # None keeps the default heuristic
    options = SynthesisOptions.from_mapping({
        "strategy": args.strategy,
        "isolate_stairs": not args.no_isolate_stairs,
        "forward_heuristic": args.forward,
        "backward_heuristic": args.backward,
        "stair_on_stair": not args.forbid_stair_on_stair,
    })

    print(f"Synthesizing rules for {len(tiles)} tiles ({options.strategy})")

    if args.check_determinism:
        ruleset, run_rc = run_twice(tiles, options)
        receipts = [aggregate(run_rc)]
    else:
        ruleset = synthesize(tiles, options)
        receipts = [aggregate(ruleset.diagnostics)]

    write_json(os.path.join(args.out, "rules.json"), ruleset_record(ruleset))
    write_jsonl(os.path.join(args.out, "receipts.jsonl"), receipts)

    d = ruleset.diagnostics
    print(f"  rules: {d.deduplicated_rules} (raw {d.original_rules}, removed {d.rules_removed})")
    print(f"  per axis: X={d.x_rules} Y={d.y_rules} Z={d.z_rules}")
    print(f"  stair pruned={d.horizontal_pruned} forward_rejected={d.forward_rejected} "
          f"backward_rejected={d.backward_rejected}")
    if d.skipped_tiles:
        print(f"  skipped tiles: {[i for i, _ in d.skipped_tiles]}")
    print(f"  rules_hash: {d.rules_hash}")

    if args.check_determinism:
        if not run_rc.deterministic:
            print("✗ NONDETERMINISTIC: runs differ")
            return 1
        print(f"✓ DETERMINISTIC (table_hash {run_rc.table_hash[:16]})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
