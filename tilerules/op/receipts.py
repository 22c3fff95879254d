# tilerules/op/receipts.py
# Receipts: synthesis diagnostics, environment fingerprint, run container
# Receipts are values built once at the end of a call, never shared counters

from __future__ import annotations
import json
import platform
import sys
from collections import Counter
from dataclasses import asdict, dataclass
from importlib.metadata import PackageNotFoundError, version
from typing import Any, Mapping, Optional

from .hash import hash_bytes

# Counter names tallied per pair by the assemblers
TALLY_KEYS = (
    "total_pairs",
    "horizontal_pruned",
    "forward_rejected",
    "backward_rejected",
    "edge_incompatible",
    "edge_skipped",
    "vertical_total",
    "vertical_allowed",
)


@dataclass
class EnvRc:
    """
    Environment fingerprint.

    Recorded next to the rule hashes so a determinism mismatch can be told
    apart from an interpreter or library change.
    """
    platform: str
    endian: str
    py_version: str
    blake3_version: str
    numpy_version: str
    build_flags_hash: str


def env_fingerprint() -> EnvRc:
    """Capture environment fingerprint for determinism checking."""
    import numpy as np
    try:
        b3v = version("blake3")
    except PackageNotFoundError:
        b3v = "unknown"

    build_info = {
        "py_version": sys.version,
        "implementation": platform.python_implementation(),
        "version_info": list(sys.version_info),
    }
    flags = hash_bytes(json.dumps(build_info, sort_keys=True).encode())

    return EnvRc(
        platform=platform.platform(),
        endian=sys.byteorder,
        py_version=platform.python_version(),
        blake3_version=b3v,
        numpy_version=np.__version__,
        build_flags_hash=flags,
    )


@dataclass(frozen=True)
class Diagnostics:
    """
    Synthesis receipt for one call.

    Contract:
    - total_pairs: ordered pairs examined (n², a == b included)
    - x_rules / y_rules / z_rules: rules per axis in the final (deduplicated) set
    - horizontal_pruned: pairs denied X/Z rules by stair isolation
    - forward_rejected / backward_rejected: failed stair clearance checks
    - edge_incompatible: facing edges that failed the passability match
    - edge_skipped: pairs with no horizontal evaluation (a tile had no signature)
    - vertical_total / vertical_allowed: can_stack calls and acceptances
    - original_rules / deduplicated_rules / rules_removed: dedup accounting
    - skipped_tiles: ((index, reason), ...) for tiles without a signature or usable meta
    - rules_hash / weights_hash: BLAKE3 over the canonical output bytes
    """
    strategy: str
    total_pairs: int
    x_rules: int
    y_rules: int
    z_rules: int
    horizontal_pruned: int
    forward_rejected: int
    backward_rejected: int
    edge_incompatible: int
    edge_skipped: int
    vertical_total: int
    vertical_allowed: int
    original_rules: int
    deduplicated_rules: int
    rules_removed: int
    skipped_tiles: tuple[tuple[int, str], ...] = ()
    rules_hash: str = ""
    weights_hash: str = ""
    heuristics: tuple[tuple[str, str], ...] = ()

    @classmethod
    def build(
        cls,
        *,
        strategy: str,
        tally: Mapping[str, int],
        axis_counts: Mapping[str, int],
        original_rules: int,
        deduplicated_rules: int,
        skipped_tiles: tuple[tuple[int, str], ...],
        rules_hash: str,
        weights_hash: str,
        heuristics: tuple[tuple[str, str], ...] = (),
    ) -> "Diagnostics":
        t = Counter(tally)
        return cls(
            strategy=strategy,
            total_pairs=t["total_pairs"],
            x_rules=axis_counts.get("X", 0),
            y_rules=axis_counts.get("Y", 0),
            z_rules=axis_counts.get("Z", 0),
            horizontal_pruned=t["horizontal_pruned"],
            forward_rejected=t["forward_rejected"],
            backward_rejected=t["backward_rejected"],
            edge_incompatible=t["edge_incompatible"],
            edge_skipped=t["edge_skipped"],
            vertical_total=t["vertical_total"],
            vertical_allowed=t["vertical_allowed"],
            original_rules=original_rules,
            deduplicated_rules=deduplicated_rules,
            rules_removed=original_rules - deduplicated_rules,
            skipped_tiles=skipped_tiles,
            rules_hash=rules_hash,
            weights_hash=weights_hash,
            heuristics=heuristics,
        )

    def digest(self) -> str:
        """BLAKE3 over the canonical JSON form; equal receipts digest equal."""
        payload = json.dumps(aggregate(self), sort_keys=True, separators=(",", ":"))
        return hash_bytes(payload.encode())


@dataclass
class RunRc:
    """
    Root receipt for one determinism-checked synthesis.

    Contract:
    - env: environment fingerprint
    - sections: {"first": Diagnostics, "second": Diagnostics}
    - hashes: per-section digest
    - table_hash: BLAKE3(concat(sorted(section_key + ':' + hash)))
    - deterministic: both runs agreed on rules, weights and diagnostics
    """
    env: EnvRc
    sections: dict[str, Any]
    hashes: dict[str, str]
    table_hash: str
    deterministic: bool
    notes: Optional[dict[str, Any]] = None


def table_hash(hashes: Mapping[str, str]) -> str:
    joined = "".join(f"{k}:{hashes[k]}" for k in sorted(hashes))
    return hash_bytes(joined.encode())


def aggregate(run: Any) -> Any:
    """
    Convert nested receipts (dataclasses or dicts) to JSON-serializable data.

    Tuples become lists, so (token, a, b) rules serialize as JSON arrays.
    """
    def to_plain(x: Any) -> Any:
        if hasattr(x, "__dataclass_fields__"):
            return {k: to_plain(v) for k, v in asdict(x).items()}
        if isinstance(x, dict):
            return {k: to_plain(v) for k, v in x.items()}
        if isinstance(x, (list, tuple)):
            return [to_plain(v) for v in x]
        return x

    return to_plain(run)
