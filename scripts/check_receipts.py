#!/usr/bin/env python3
# scripts/check_receipts.py
# Receipt differ: compare two synthesis receipt files

from __future__ import annotations
import json
import sys

# Fields whose mismatch means the solver would see a different rule graph
HASH_FIELDS = ("rules_hash", "weights_hash")


def load_jsonl(path: str) -> list[dict]:
    with open(path) as f:
        return [json.loads(line) for line in f if line.strip()]


def deep_diff(a, b, path: str = "") -> list[str]:
    """
    Recursively list differences between two decoded receipts.

    Dicts are compared by key, lists element by element.
    """
    if isinstance(a, dict) and isinstance(b, dict):
        diffs = []
        only_a = sorted(set(a) - set(b))
        only_b = sorted(set(b) - set(a))
        if only_a:
            diffs.append(f"{path}: keys only in A: {only_a}")
        if only_b:
            diffs.append(f"{path}: keys only in B: {only_b}")
        for key in sorted(set(a) & set(b)):
            diffs.extend(deep_diff(a[key], b[key], f"{path}.{key}" if path else key))
        return diffs
    if isinstance(a, list) and isinstance(b, list):
        if len(a) != len(b):
            return [f"{path}: length {len(a)} != {len(b)}"]
        diffs = []
        for i, (va, vb) in enumerate(zip(a, b)):
            diffs.extend(deep_diff(va, vb, f"{path}[{i}]"))
        return diffs
    return [] if a == b else [f"{path}: {a!r} != {b!r}"]


def hash_mismatches(diffs: list[str]) -> list[str]:
    return [d for d in diffs if any(f"{h}:" in d for h in HASH_FIELDS)]


def main() -> None:
    """
    Usage:
        python -m scripts.check_receipts <file1.jsonl> <file2.jsonl>

    Exit codes:
        0: receipts match
        1: receipts differ
    """
    if len(sys.argv) != 3:
        print("Usage: python -m scripts.check_receipts <file1.jsonl> <file2.jsonl>")
        sys.exit(1)

    file_a, file_b = sys.argv[1], sys.argv[2]
    print("Comparing receipts:")
    print(f"  A: {file_a}")
    print(f"  B: {file_b}")

    records_a = load_jsonl(file_a)
    records_b = load_jsonl(file_b)

    if len(records_a) != len(records_b):
        print(f"✗ RECEIPTS_DIFFER: record count mismatch ({len(records_a)} vs {len(records_b)})")
        sys.exit(1)

    all_match = True
    for i, (rec_a, rec_b) in enumerate(zip(records_a, records_b)):
        diffs = deep_diff(rec_a, rec_b, f"record[{i}]")
        if not diffs:
            continue
        all_match = False
        critical = hash_mismatches(diffs)
        print(f"\n✗ Differences in record {i}" + (" (rule graph changed)" if critical else ""))
        for diff in diffs[:10]:
            print(f"  {diff}")
        if len(diffs) > 10:
            print(f"  ... and {len(diffs) - 10} more differences")

    if all_match:
        print(f"✓ RECEIPTS_MATCH ({len(records_a)} records)")
        return

    print("\n✗ RECEIPTS_DIFFER")
    sys.exit(1)


if __name__ == "__main__":
    main()
