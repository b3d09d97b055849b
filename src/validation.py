"""Structural validation for indexed pedigree input."""

from collections.abc import Sequence

from graph import build_graph, find_parent_cycle
from models import Hints, PedigreeInput, RelationCode


class PedigreeError(ValueError):
    """Base class for pedigree layout failures."""


class StructuralError(PedigreeError):
    """The input cannot be laid out: bad indices, cycles, or malformed hints."""


class LayoutError(PedigreeError):
    """The layout computation itself failed."""


def _check_index(value: int, n: int, what: str, allow_missing: bool = False) -> None:
    if allow_missing and value == -1:
        return
    if not isinstance(value, int) or not 0 <= value < n:
        raise StructuralError(f"{what} {value!r} is out of range for {n} people")


def validate_pedigree(
    ped: PedigreeInput,
    level: Sequence[int] | None = None,
    hints: Hints | None = None,
) -> None:
    """
    Validate indexed pedigree input before layout:
    - Parallel sequences of equal length
    - Parent and relation indices in range
    - Everyone has 0 or 2 parents
    - No cycles in parent-child relationships
    - Levels (when given) put every child below both parents
    - Hints (when given) are well formed

    Raises StructuralError on the first problem found.
    """
    n = len(ped.id)
    for name in ("sex", "father_index", "mother_index"):
        if len(getattr(ped, name)) != n:
            raise StructuralError(f"{name} has {len(getattr(ped, name))} entries, expected {n}")

    for i in range(n):
        dad, mom = ped.father_index[i], ped.mother_index[i]
        _check_index(dad, n, f"father index of person {i}", allow_missing=True)
        _check_index(mom, n, f"mother index of person {i}", allow_missing=True)
        if (dad == -1) != (mom == -1):
            raise StructuralError(
                f"Person {ped.id[i]!r} has one parent; everyone must have 0 or 2 parents"
            )
        if i in (dad, mom):
            raise StructuralError(f"Person {ped.id[i]!r} is their own parent")

    for rel in ped.relation:
        _check_index(rel.id1, n, "relation index")
        _check_index(rel.id2, n, "relation index")
        if rel.code not in tuple(RelationCode):
            raise StructuralError(f"Unknown relation code {rel.code!r}")
        if rel.id1 == rel.id2:
            raise StructuralError(f"Relation links person {ped.id[rel.id1]!r} to themselves")

    cycle = find_parent_cycle(build_graph(ped))
    if cycle is not None:
        names = [ped.id[i] for i in cycle]
        raise StructuralError(f"Cycle detected in parent-child relationships: {names}")

    if level is not None:
        if len(level) != n:
            raise StructuralError(f"level has {len(level)} entries, expected {n}")
        if any(lev < 0 for lev in level):
            raise StructuralError("Generation levels must not be negative")
        for i in range(n):
            dad, mom = ped.father_index[i], ped.mother_index[i]
            if dad >= 0 and not level[i] > max(level[dad], level[mom]):
                raise StructuralError(f"Person {ped.id[i]!r} is not below both parents")

    if hints is not None:
        if hints.order is not None and len(hints.order) != n:
            raise StructuralError(f"hint order has {len(hints.order)} entries, expected {n}")
        for sp in hints.spouse:
            _check_index(sp.left_index, n, "spouse hint index")
            _check_index(sp.right_index, n, "spouse hint index")
            if sp.anchor not in (0, 1, 2):
                raise StructuralError(f"Spouse hint anchor must be 0, 1 or 2, not {sp.anchor!r}")
