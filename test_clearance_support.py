#!/usr/bin/env python3
"""
Clearance heuristics + vertical support tests

Tests:
1. middle_face_open checks the three y=1 cells of each face
2. clear_volume_open additionally needs the y=2 centre of the boundary slice
3. Heuristic registry: names, callables, unknown-name fallback
4. Stair travel → (forward face, backward face) mapping
5. can_stack policy order and counters
6. meta.solid_floor overrides the voxel floor test
"""

from collections import Counter

import numpy as np

from tilerules.op.clearance import (
    clear_volume_open, heuristic_name, middle_face_open, resolve_heuristic, stair_faces,
)
from tilerules.op.support import VerticalSupport
from tilerules.op.tiles import TileMeta, TilePrototype
from tilerules.op.voxels import EMPTY, SOLID, normalize_voxels

SOLID_CUBE = [[[1] * 3] * 3] * 3
OPEN_ROOM = (("111", "000", "000"),) * 3
FLOORLESS = (("000", "000", "111"),) * 3


def _solid():
    return np.ones((3, 3, 3), dtype=np.int8)


def test_middle_face_open():
    """Test each face reads its own middle row."""
    print("Testing middle_face_open...")

    expected_cells = {
        "north": [(0, 0), (0, 1), (0, 2)],
        "south": [(2, 0), (2, 1), (2, 2)],
        "east": [(0, 2), (1, 2), (2, 2)],
        "west": [(0, 0), (1, 0), (2, 0)],
    }
    for face, cells in expected_cells.items():
        vox = _solid()
        assert not middle_face_open(vox, face), f"{face}: solid face must be closed"
        for z, x in cells:
            vox[z, 1, x] = EMPTY
        assert middle_face_open(vox, face), f"{face}: opened row must be open"

        # One cell of the row walled again closes it
        z, x = cells[1]
        vox[z, 1, x] = SOLID
        assert not middle_face_open(vox, face), f"{face}: partial row must be closed"

    print("  ✓ middle_face_open reads the y=1 row of each face")


def test_clear_volume_open():
    """Test headroom cell on top of the middle row."""
    print("Testing clear_volume_open...")

    head_cells = {"north": (0, 1), "south": (2, 1), "east": (1, 2), "west": (1, 0)}
    for face, (hz, hx) in head_cells.items():
        vox = _solid()
        vox[:, 1, :] = EMPTY  # whole middle layer open
        assert middle_face_open(vox, face)
        assert not clear_volume_open(vox, face), f"{face}: no headroom yet"
        vox[hz, 2, hx] = EMPTY
        assert clear_volume_open(vox, face), f"{face}: headroom cell opened"

    # Headroom alone is not enough
    vox = _solid()
    vox[0, 2, 1] = EMPTY
    assert not clear_volume_open(vox, "north")

    print("  ✓ clear_volume_open requires middle row and headroom")


def test_heuristic_registry():
    """Test name lookup, callables and fallback."""
    print("Testing heuristic registry...")

    assert resolve_heuristic("clear_volume", "middle_face") is clear_volume_open
    assert resolve_heuristic("middle_face", "clear_volume") is middle_face_open
    assert resolve_heuristic(None, "middle_face") is middle_face_open

    def always_open(vox, face):
        return True

    assert resolve_heuristic(always_open, "clear_volume") is always_open
    assert heuristic_name(always_open).endswith("always_open")

    # Unknown names fall back to the default rather than failing
    assert resolve_heuristic("headroom_v2", "middle_face") is middle_face_open
    assert resolve_heuristic(17, "clear_volume") is clear_volume_open
    assert heuristic_name(clear_volume_open) == "clear_volume"

    print("  ✓ Registry resolves and falls back")


def test_stair_faces():
    """Test forward/backward neighbour faces per travel direction."""
    print("Testing stair face mapping...")

    assert stair_faces("z", 1) == ("north", "south")
    assert stair_faces("z", -1) == ("south", "north")
    assert stair_faces("x", 1) == ("west", "east")
    assert stair_faces("x", -1) == ("east", "west")
    assert stair_faces("y", 1) is None
    assert stair_faces(None, None) is None

    print("  ✓ Stair face mapping works")


def _support(tiles, **kwargs):
    voxels = [normalize_voxels(t.voxels)[0] for t in tiles]
    return VerticalSupport(tiles, voxels, **kwargs)


def test_can_stack_policy():
    """Test stacking policy and its counters."""
    print("Testing can_stack policy...")

    tiles = [
        TilePrototype(voxels=OPEN_ROOM),                                      # 0 floor
        TilePrototype(voxels=FLOORLESS),                                      # 1 no floor
        TilePrototype(voxels=OPEN_ROOM, meta=TileMeta(role="stair", axis="z", dir=1)),  # 2
        TilePrototype(voxels=OPEN_ROOM, meta=TileMeta(role="landing")),       # 3
        TilePrototype(voxels=OPEN_ROOM, meta=TileMeta(landing=True)),         # 4
        TilePrototype(voxels=OPEN_ROOM, meta=TileMeta(role="stair")),         # 5
    ]
    support = _support(tiles)
    tally = Counter()

    assert support.can_stack(0, 1, tally), "Floored tile may sit on anything"
    assert not support.can_stack(1, 0, tally), "Floorless tile cannot float over a plain tile"
    assert support.can_stack(1, 2, tally), "Stair below supports a floorless tile"
    assert support.can_stack(1, 3, tally), "Landing role supports"
    assert support.can_stack(1, 4, tally), "Landing flag supports"
    assert support.can_stack(2, 5, tally), "Stair on stair permitted by default"

    assert tally["vertical_total"] == 6, f"Every call counts, got {tally['vertical_total']}"
    assert tally["vertical_allowed"] == 5

    strict = _support(tiles, stair_on_stair=False)
    tally = Counter()
    assert not strict.can_stack(2, 5, tally), "Stair on stair rejected when disabled"
    assert not strict.can_stack(5, 2, tally)
    assert strict.can_stack(0, 2, tally)
    assert tally == Counter(vertical_total=3, vertical_allowed=1)

    print("  ✓ can_stack policy and counters hold")


def test_solid_floor_override():
    """Test meta.solid_floor beats the voxel floor test."""
    print("Testing solid_floor override...")

    tiles = [
        TilePrototype(voxels=FLOORLESS, meta=TileMeta(solid_floor=True)),    # 0 claims floor
        TilePrototype(voxels=OPEN_ROOM, meta=TileMeta(solid_floor=False)),   # 1 denies floor
        TilePrototype(voxels=SOLID_CUBE),                                    # 2 plain
        TilePrototype(voxels=[0] * 5, meta=TileMeta.from_mapping({"solidFloor": True})),  # 3 malformed
        TilePrototype(voxels=[0] * 5),                                       # 4 malformed
    ]
    support = _support(tiles)

    assert support.can_stack(0, 2)
    assert not support.can_stack(1, 2)
    assert support.can_stack(3, 2), "camelCase override applies even to malformed voxels"
    assert not support.can_stack(4, 2), "Malformed voxels have no floor"
    assert support.can_stack(2, 4), "Malformed tile can still be the lower tile"

    print("  ✓ solid_floor override works")


def run_tests():
    """Run all clearance/support tests."""
    print("\n" + "=" * 60)
    print("Clearance + Vertical Support Tests")
    print("=" * 60 + "\n")

    test_middle_face_open()
    test_clear_volume_open()
    test_heuristic_registry()
    test_stair_faces()
    test_can_stack_policy()
    test_solid_floor_override()

    print("\n" + "=" * 60)
    print("✓ All clearance/support tests passed")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    run_tests()
