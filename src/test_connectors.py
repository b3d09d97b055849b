import pytest

from connectors import ARC_SAMPLES, compute_connectors
from models import Layout, LineSegment, Point, ScalingParams, Slot, SlotKind

SPOUSE = SlotKind.SPOUSE
SCALING = ScalingParams(box_width=0.5, box_height=0.5, leg_height=0.25)


def nuclear_layout(marker=1, kid_pos=(0.5,), parent_pos=(0.0, 1.0), twins=None):
    kids = tuple(Slot(2 + k) for k in range(len(kid_pos)))
    return Layout(
        slots=((Slot(0, SPOUSE), Slot(1)), kids),
        pos=(parent_pos, kid_pos),
        fam=((0, 0), (1,) * len(kids)),
        spouse=((marker, 0), (0,) * len(kids)),
        twins=twins,
    )


def test_spouse_line():
    connectors = compute_connectors(nuclear_layout(), SCALING)

    (line,) = connectors.spouse_lines
    assert line.segment == LineSegment(0.25, 0.25, 0.75, 0.25)
    assert (line.left, line.right) == (0, 1)
    assert not line.double
    assert line.double_segment is None


def test_consanguineous_marriage_gets_double_line():
    (line,) = compute_connectors(nuclear_layout(marker=2), SCALING).spouse_lines

    assert line.double
    assert line.double_segment.y1 == pytest.approx(0.3)
    assert (line.double_segment.x1, line.double_segment.x2) == (0.25, 0.75)


def test_single_child_connector():
    connectors = compute_connectors(nuclear_layout(), SCALING)

    (family,) = connectors.parent_child_lines
    assert family.children == (2,)
    assert family.uplines == (LineSegment(0.5, 1, 0.5, 0.75),)
    assert family.sibling_bar == LineSegment(0.5, 0.75, 0.5, 0.75)
    assert len(family.parent_link) == 3
    assert (family.parent_link[0].x1, family.parent_link[0].y1) == (0.5, 0.75)
    assert (family.parent_link[-1].x2, family.parent_link[-1].y2) == (0.5, 0.25)
    assert family.parent_link[0].y2 == pytest.approx(0.6)
    assert family.parent_link[-1].y1 == pytest.approx(0.4)


def test_diagonal_parent_link():
    family = compute_connectors(nuclear_layout(), SCALING, branch=0).parent_child_lines[0]

    assert family.parent_link == (LineSegment(0.5, 0.75, 0.5, 0.25),)


def test_parent_link_clamped_near_wide_sibling_bar():
    layout = nuclear_layout(kid_pos=(0.0, 1.0, 2.0), parent_pos=(3.0, 4.0))

    family = compute_connectors(layout, SCALING, pconnect=0.5).parent_child_lines[0]

    assert family.sibling_bar == LineSegment(0.0, 0.75, 2.0, 0.75)
    assert family.parent_link[0].x1 == 1.5
    assert family.parent_link[-1].x2 == 3.5


def test_mz_twins_share_a_drop_point():
    layout = nuclear_layout(kid_pos=(0.0, 1.0), twins=((0, 0), (1, 0)))

    connectors = compute_connectors(layout, SCALING)

    family = connectors.parent_child_lines[0]
    assert [u.x2 for u in family.uplines] == [0.5, 0.5]
    (twin,) = connectors.twin_indicators
    assert twin.code == 1
    assert twin.segment == LineSegment(0.25, 0.875, 0.75, 0.875)


@pytest.mark.parametrize(
    "code, label, has_segment",
    [(2, None, False), (3, Point(0.5, 0.875), False)],
)
def test_other_twin_codes(code, label, has_segment):
    layout = nuclear_layout(kid_pos=(0.0, 1.0), twins=((0, 0), (code, 0)))

    (twin,) = compute_connectors(layout, SCALING).twin_indicators

    assert twin.code == code
    assert twin.label == label
    assert (twin.segment is not None) == has_segment


def test_duplicate_arc_between_occurrences():
    layout = Layout(
        slots=((Slot(0), Slot(1, SPOUSE), Slot(0)),),
        pos=((3.0, 1.0, 0.0),),
        fam=((0, 0, 0),),
        spouse=((0, 1, 0),),
    )

    (arc,) = compute_connectors(layout, SCALING).duplicate_arcs

    points = arc.path.points
    assert arc.person_index == 0
    assert arc.path.dashed
    assert len(points) == ARC_SAMPLES
    # Sorted by x, dipping half a row at the midpoint
    assert points[0] == Point(0.0, 0.0)
    assert points[-1] == Point(3.0, 0.0)
    assert points[7] == Point(1.5, -0.5)


def test_three_occurrences_give_two_arcs():
    layout = Layout(
        slots=((Slot(0), Slot(1), Slot(0), Slot(2), Slot(0)),),
        pos=((0.0, 1.0, 2.0, 3.0, 4.0),),
        fam=((0,) * 5,),
        spouse=((0,) * 5,),
    )

    arcs = compute_connectors(layout, SCALING).duplicate_arcs

    assert [a.person_index for a in arcs] == [0, 0]
    assert [(a.path.points[0].x, a.path.points[-1].x) for a in arcs] == [(0.0, 2.0), (2.0, 4.0)]


def test_single_person_has_no_connectors():
    layout = Layout(slots=((Slot(0),),), pos=((0.0,),), fam=((0,),), spouse=((0,),))

    assert len(compute_connectors(layout, SCALING)) == 0
