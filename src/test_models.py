import pytest

from models import (
    ArcPath,
    DuplicateArc,
    Layout,
    LineSegment,
    PedigreeConnectors,
    Point,
    Sex,
    Slot,
    SlotKind,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("male", Sex.MALE),
        ("M", Sex.MALE),
        (" Female ", Sex.FEMALE),
        ("f", Sex.FEMALE),
        (None, Sex.UNKNOWN),
        ("other", Sex.UNKNOWN),
        (Sex.FEMALE, Sex.FEMALE),
    ],
)
def test_sex_parse(value, expected):
    assert Sex.parse(value) is expected


def test_slot_kind_and_repr():
    assert Slot(3, SlotKind.SPOUSE).is_spouse
    assert not Slot(3).is_spouse
    assert repr(Slot(3, SlotKind.SPOUSE)) == "3+"
    assert Slot(3) != Slot(3, SlotKind.SPOUSE)


def test_layout_occurrences_are_row_major():
    layout = Layout(
        slots=((Slot(0, SlotKind.SPOUSE), Slot(1)), (Slot(2), Slot(0))),
        pos=((0.0, 1.0), (0.0, 1.0)),
        fam=((0, 0), (0, 0)),
        spouse=((1, 0), (0, 0)),
    )

    assert layout.depth == 2
    assert layout.n == (2, 2)
    assert layout.nid == ((0, 1), (2, 0))
    assert layout.occurrences(0) == [(0, 0), (1, 1)]
    assert layout.occurrences(9) == []


def test_geometry_transform():
    assert Point(1.0, 2.0).transformed(10, 100, 5, -50) == Point(15.0, 150.0)
    assert LineSegment(0.0, 1.0, 2.0, 1.0).transformed(2, 3, 1, 0) == LineSegment(1.0, 3.0, 5.0, 3.0)


def test_connector_count():
    arc = DuplicateArc(ArcPath((Point(0, 0), Point(1, 0))), person_index=0)
    assert len(PedigreeConnectors()) == 0
    assert len(PedigreeConnectors(duplicate_arcs=(arc, arc))) == 2
