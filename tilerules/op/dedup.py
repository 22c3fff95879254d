# tilerules/op/dedup.py
# Rule deduplication (first-seen order, idempotent)

from __future__ import annotations
from typing import Iterable, List, Tuple

Rule = Tuple[str, int, int]


def rule_key(rule: Rule) -> Rule:
    """Canonical identity of a rule: the (token, a, b) triple itself."""
    token, a, b = rule
    return (token, int(a), int(b))


def deduplicate_rules(rules: Iterable[Rule]) -> Tuple[List[Rule], int]:
    """
    Remove duplicate rules, keeping the first occurrence of each triple.

    Contract:
    - Output order is first-seen order of the input
    - Idempotent: deduplicate_rules(out)[1] == 0

    Args:
        rules: raw (token, a, b) rules, possibly repeated

    Returns:
        (unique_rules, removed_count)
    """
    seen: set[Rule] = set()
    out: List[Rule] = []
    total = 0
    for rule in rules:
        total += 1
        key = rule_key(rule)
        if key in seen:
            continue
        seen.add(key)
        out.append(key)
    return out, total - len(out)
