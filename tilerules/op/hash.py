# tilerules/op/hash.py
# BLAKE3 hashing helpers for voxels, rule sets and weights

from __future__ import annotations
from typing import Iterable, Sequence, Tuple

from blake3 import blake3
import numpy as np

from .bytes import frame_rules, frame_weights, to_bytes_voxels


def hash_bytes(b: bytes) -> str:
    """
    Hash bytes with BLAKE3, return hex digest.

    Args:
        b: bytes to hash

    Returns:
        str: hex digest (64 hex chars = 256 bits)
    """
    return blake3(b).hexdigest()


def hash_voxels(V: np.ndarray) -> str:
    """BLAKE3 of the uint8 row-major serialization of a voxel cube."""
    return hash_bytes(to_bytes_voxels(V))


def hash_rules(rules: Sequence[Tuple[str, int, int]]) -> str:
    """BLAKE3 of the framed, order-preserving rule list."""
    return hash_bytes(frame_rules(rules))


def hash_weights(weights: Iterable[float]) -> str:
    return hash_bytes(frame_weights(weights))
