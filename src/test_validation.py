import pytest

from conftest import make_ped
from models import Hints, PedigreeInput, Relation, SpouseHint
from validation import PedigreeError, StructuralError, validate_pedigree


def test_validate_accepts_valid_input(nuclear_ped):
    validate_pedigree(nuclear_ped, level=[0, 0, 1], hints=Hints(order=(1, 2, 3)))


def test_errors_are_value_errors():
    assert issubclass(StructuralError, PedigreeError)
    assert issubclass(PedigreeError, ValueError)


@pytest.mark.parametrize(
    "father, mother, message_part",
    [
        ([-1, -1, 5], [-1, -1, 1], "father index"),
        ([-1, -1, 0], [-1, -1, -1], "one parent"),
        ([-1, -1, 2], [-1, -1, 1], "own parent"),
    ],
)
def test_bad_parent_indices(father, mother, message_part):
    ped = make_ped(["m", "f", None], father, mother)

    with pytest.raises(StructuralError) as exc:
        validate_pedigree(ped)

    assert message_part in str(exc.value)


def test_mismatched_lengths():
    ped = PedigreeInput(id=("a", "b"), sex=(), father_index=(-1, -1), mother_index=(-1, -1))

    with pytest.raises(StructuralError) as exc:
        validate_pedigree(ped)

    assert "sex" in str(exc.value)


@pytest.mark.parametrize(
    "relation, message_part",
    [
        (Relation(0, 7), "relation index"),
        (Relation(0, 1, code=9), "relation code"),
        (Relation(1, 1), "themselves"),
    ],
)
def test_bad_relations(relation, message_part):
    ped = make_ped(["m", "f"], [-1, -1], [-1, -1], [relation])

    with pytest.raises(StructuralError) as exc:
        validate_pedigree(ped)

    assert message_part in str(exc.value)


def test_cycle_is_fatal():
    ped = make_ped(["m", "f", "m"], [2, -1, 0], [1, -1, 1], ids=["a", "b", "c"])

    with pytest.raises(StructuralError) as exc:
        validate_pedigree(ped)

    assert "Cycle detected in parent-child relationships" in str(exc.value)


@pytest.mark.parametrize(
    "level, message_part",
    [
        ([0, 0], "level has 2 entries"),
        ([0, 0, -1], "negative"),
        ([0, 1, 1], "not below both parents"),
    ],
)
def test_bad_levels(nuclear_ped, level, message_part):
    with pytest.raises(StructuralError) as exc:
        validate_pedigree(nuclear_ped, level=level)

    assert message_part in str(exc.value)


@pytest.mark.parametrize(
    "hints, message_part",
    [
        (Hints(order=(1, 2)), "hint order"),
        (Hints(spouse=(SpouseHint(0, 8),)), "spouse hint index"),
        (Hints(spouse=(SpouseHint(0, 1, anchor=3),)), "anchor"),
    ],
)
def test_bad_hints(nuclear_ped, hints, message_part):
    with pytest.raises(StructuralError) as exc:
        validate_pedigree(nuclear_ped, hints=hints)

    assert message_part in str(exc.value)
