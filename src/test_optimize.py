import pytest

from alignment import align_pedigree
from models import Slot, SlotKind
from optimize import refine_positions

SPOUSE = SlotKind.SPOUSE


def test_child_centred_under_parents():
    pos = refine_positions(
        [[Slot(0, SPOUSE), Slot(1)], [Slot(2)]],
        [[0, 0], [1]],
        [[1, 0], [0]],
    )

    assert pos[0] == pytest.approx([0.0, 1.0], abs=1e-4)
    assert pos[1] == pytest.approx([0.5], abs=1e-4)


def test_parents_centred_over_sibship():
    pos = refine_positions(
        [[Slot(0, SPOUSE), Slot(1)], [Slot(2), Slot(3), Slot(4)]],
        [[0, 0], [1, 1, 1]],
        [[1, 0], [0, 0, 0]],
    )

    assert pos[0] == pytest.approx([0.5, 1.5], abs=1e-4)
    assert pos[1] == pytest.approx([0.0, 1.0, 2.0], abs=1e-4)


def test_empty_rows():
    assert refine_positions([[]], [[]], [[]]) == [[]]


def test_rows_keep_order_and_spacing(two_family_ped):
    layout = align_pedigree(two_family_ped)

    for row in layout.pos:
        assert min(row) >= -1e-6
        for a, b in zip(row, row[1:]):
            assert b - a >= 1 - 1e-5


def test_wide_rows_widen_the_bound():
    row = [Slot(i) for i in range(12)]
    pos = refine_positions([row, [Slot(12)]], [[0] * 12, [0]], [[0] * 12, [0]], width=5.0)

    assert pos[0][-1] - pos[0][0] >= 11 - 1e-5
