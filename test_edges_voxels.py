#!/usr/bin/env python3
"""
Voxel normalization + edge signature tests

Tests:
1. Nested, flat-27 and layer-string forms normalize to the same cube
2. Flat form uses index = z*9 + y*3 + x
3. Malformed voxels yield (None, reason), never raise
4. Face sampling rule on the middle layer
5. Compatibility: wall faces wall, opening faces opening, STAIR is passable
6. Compatibility is symmetric; unequal lengths are incompatible
7. Strict layer authoring raises on typos
"""

import itertools

import numpy as np
import pytest

from tilerules.op.edges import EdgeSignature, edges_compatible, extract_edges
from tilerules.op.voxels import (
    EMPTY, SOLID, STAIR, flat_index, has_full_floor, layers_to_voxels, normalize_voxels,
)

# North-south tunnel: solid floor and ceiling, middle open along z
NS_CORRIDOR = (
    ("111", "101", "111"),
    ("111", "101", "111"),
    ("111", "101", "111"),
)


def test_forms_agree():
    """Test nested, flat and layer-string forms give the same cube."""
    print("Testing voxel forms...")

    from_layers, reason = normalize_voxels(NS_CORRIDOR)
    assert reason is None, f"Layer form rejected: {reason}"
    assert from_layers.shape == (3, 3, 3)
    assert from_layers.dtype == np.int8

    nested = from_layers.tolist()
    flat = [c for layer in nested for row in layer for c in row]
    from_nested, _ = normalize_voxels(nested)
    from_flat, _ = normalize_voxels(flat)
    from_array, _ = normalize_voxels(np.array(nested))

    assert np.array_equal(from_layers, from_nested)
    assert np.array_equal(from_layers, from_flat)
    assert np.array_equal(from_layers, from_array)

    print("  ✓ All forms agree")


def test_flat_row_major_index():
    """Test flat reshape uses index = z*9 + y*3 + x."""
    print("Testing flat index order...")

    flat = [EMPTY] * 27
    flat[flat_index(2, 1, 0)] = SOLID
    flat[flat_index(0, 2, 1)] = STAIR
    vox, reason = normalize_voxels(flat)

    assert reason is None
    assert vox[2, 1, 0] == SOLID, "Cell [2][1][0] should be SOLID"
    assert vox[0, 2, 1] == STAIR, "Cell [0][2][1] should be STAIR"
    assert int(vox.sum()) == SOLID + STAIR

    print("  ✓ Row-major flat index works")


def test_malformed_voxels():
    """Test malformed geometry degrades to (None, reason)."""
    print("Testing malformed voxels...")

    cases = [
        None,
        [1] * 26,                                   # wrong flat length
        [[[0, 0, 0], [0, 0, 0]]] * 3,               # missing row
        [[[0, 0], [0, 0, 0], [0, 0, 0]]] * 3,       # short row
        [[[0, "x", 0]] * 3] * 3,                    # non-numeric
        [[[0, 7, 0]] * 3] * 3,                      # unknown code
        [[[0, 0.5, 0]] * 3] * 3,                    # non-integral
        [[[True, 0, 0]] * 3] * 3,                   # bool is not a code
        "111111111",
        42,
    ]
    for raw in cases:
        vox, reason = normalize_voxels(raw)
        assert vox is None, f"Expected rejection for {raw!r}"
        assert isinstance(reason, str) and reason, "Rejection must carry a reason"
        assert extract_edges(vox) is None

    print("  ✓ Malformed voxels rejected without raising")


def test_face_sampling():
    """Test north/south rows and east/west columns of the middle layer."""
    print("Testing face sampling...")

    vox = np.zeros((3, 3, 3), dtype=np.int8)
    # middle layer, rows z, columns x
    vox[:, 1, :] = np.array([
        [1, 2, 0],
        [0, 1, 1],
        [2, 0, 1],
    ])
    sig = extract_edges(vox)

    assert sig == EdgeSignature(
        north=(1, 2, 0),
        south=(2, 0, 1),
        east=(0, 1, 1),
        west=(1, 0, 2),
    ), f"Unexpected signature {sig}"
    assert sig.face("east") == (0, 1, 1)

    corridor, _ = normalize_voxels(NS_CORRIDOR)
    c = extract_edges(corridor)
    assert c.north == c.south == (1, 0, 1)
    assert c.east == c.west == (1, 1, 1)

    print("  ✓ Face sampling rule holds")


def test_compatibility_rules():
    """Test passability matching."""
    print("Testing compatibility...")

    assert edges_compatible((1, 1, 1), (1, 1, 1)), "Wall must face wall"
    assert edges_compatible((1, 0, 1), (1, 0, 1)), "Opening must face opening"
    assert edges_compatible((1, 0, 1), (1, 2, 1)), "STAIR counts as passable"
    assert not edges_compatible((1, 0, 1), (1, 1, 1)), "Opening cannot face wall"
    assert not edges_compatible((0, 0, 0), (0, 0, 1))
    assert not edges_compatible((0, 0, 0), (0, 0)), "Unequal lengths are incompatible"
    assert not edges_compatible((), (0,))

    print("  ✓ Compatibility rules hold")


def test_compatibility_symmetric():
    """Test compatible(x, y) == compatible(y, x) for all length-3 signatures."""
    print("Testing symmetry...")

    sigs = list(itertools.product((EMPTY, SOLID, STAIR), repeat=3))
    for x in sigs:
        for y in sigs:
            assert edges_compatible(x, y) == edges_compatible(y, x), f"Asymmetric on {x}, {y}"

    print(f"  ✓ Symmetric over {len(sigs) ** 2} pairs")


def test_floor_detection():
    """Test full-floor detection on the bottom layer."""
    print("Testing floor detection...")

    corridor, _ = normalize_voxels(NS_CORRIDOR)
    assert has_full_floor(corridor)

    holed = corridor.copy()
    holed[1, 0, 1] = EMPTY
    assert not has_full_floor(holed)
    assert not has_full_floor(None)

    print("  ✓ Floor detection works")


def test_layers_authoring_fails_fast():
    """Test strict layer parser raises on typos."""
    print("Testing strict layer authoring...")

    vox = layers_to_voxels(NS_CORRIDOR)
    assert vox.shape == (3, 3, 3)

    with pytest.raises(ValueError):
        layers_to_voxels(NS_CORRIDOR[:2])
    with pytest.raises(ValueError):
        layers_to_voxels((("111", "1x1", "111"),) * 3)
    with pytest.raises(ValueError):
        layers_to_voxels((("111", "10", "111"),) * 3)

    print("  ✓ Strict authoring raises ValueError")


def run_tests():
    """Run all voxel/edge tests."""
    print("\n" + "=" * 60)
    print("Voxel + Edge Signature Tests")
    print("=" * 60 + "\n")

    test_forms_agree()
    test_flat_row_major_index()
    test_malformed_voxels()
    test_face_sampling()
    test_compatibility_rules()
    test_compatibility_symmetric()
    test_floor_detection()
    test_layers_authoring_fails_fast()

    print("\n" + "=" * 60)
    print("✓ All voxel/edge tests passed")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    run_tests()
