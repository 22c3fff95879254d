# tilerules/op/bytes.py
# Canonical encodings (uint8 voxels, LEB128 varints, framed rule lists)
# Every hash in the receipts is taken over these bytes

from __future__ import annotations
from typing import Iterable, Sequence, Tuple

import numpy as np


def to_bytes_voxels(V: np.ndarray) -> bytes:
    """
    Encode a voxel cube as uint8 row-major bytes ([z][y][x], C order).

    Raises:
        TypeError: if V is not integer dtype
    """
    if V.dtype.kind not in "iu":
        raise TypeError("Voxels must be integer dtype")
    return V.astype(np.uint8, copy=False).tobytes(order="C")


def varu(n: int) -> bytes:
    """
    Encode unsigned integer as LEB128 varint.

    Args:
        n: unsigned integer (must be >= 0)

    Returns:
        bytes: LEB128 varint

    Raises:
        ValueError: if n < 0
        OverflowError: if n too large for LEB128
    """
    if n < 0:
        raise ValueError("varu expects unsigned (n >= 0)")

    if n >= (1 << 63):
        raise OverflowError(f"Integer {n} too large for safe LEB128 encoding")

    out = bytearray()
    while True:
        byte = n & 0x7F
        n >>= 7
        if n:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            break
    return bytes(out)


def unvaru(b: bytes) -> tuple[int, bytes]:
    """
    Decode LEB128 varint from bytes.

    Synthesis never decodes; this and unframe_rules exist so the canonical
    framing can be round-trip checked against the encoders.

    Returns:
        (value, remaining_bytes): decoded value and unconsumed bytes
    """
    result = 0
    shift = 0
    i = 0

    while i < len(b):
        byte = b[i]
        i += 1
        result |= (byte & 0x7F) << shift
        if not (byte & 0x80):
            return result, b[i:]
        shift += 7

    raise ValueError("Incomplete LEB128 varint")


def frame_rules(rules: Sequence[Tuple[str, int, int]]) -> bytes:
    """
    Frame a rule list as <count><rule1>...<rulek>.

    Each rule is <len(token)><token utf-8><a><b>, integers as LEB128.
    Order is preserved: two rule lists hash equal only if they list the
    same rules in the same order.
    """
    out = bytearray()
    out += varu(len(rules))
    for token, a, b in rules:
        tb = token.encode("utf-8")
        out += varu(len(tb))
        out += tb
        out += varu(a)
        out += varu(b)
    return bytes(out)


def unframe_rules(b: bytes) -> list[tuple[str, int, int]]:
    """Inverse of frame_rules, used for round-trip checks of the framing."""
    count, rest = unvaru(b)
    rules = []
    for _ in range(count):
        n, rest = unvaru(rest)
        token = rest[:n].decode("utf-8")
        rest = rest[n:]
        a, rest = unvaru(rest)
        c, rest = unvaru(rest)
        rules.append((token, a, c))
    return rules


def frame_weights(weights: Iterable[float]) -> bytes:
    """Frame weights as <count> followed by float64 little-endian values."""
    w = np.asarray(list(weights), dtype="<f8")
    return varu(len(w)) + w.tobytes(order="C")
