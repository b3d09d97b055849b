"""Data classes for pedigree input, layout and connector geometry."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum


# ============================================================================
# Family graph (adapter input)
# ============================================================================


class Sex(str, Enum):
    MALE = "male"
    FEMALE = "female"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value) -> "Sex":
        """Map free-form input ("male", "F", None, ...) onto a Sex."""
        if isinstance(value, Sex):
            return value
        if value is None:
            return cls.UNKNOWN
        text = str(value).strip().lower()
        if text in ("male", "m"):
            return cls.MALE
        if text in ("female", "f"):
            return cls.FEMALE
        return cls.UNKNOWN


class RelationshipType(str, Enum):
    PARENT = "parent"
    PARTNER = "partner"
    EX_PARTNER = "ex-partner"


@dataclass(frozen=True)
class Person:
    id: str
    sex: Sex | str | None = None
    is_ego: bool = False


@dataclass(frozen=True)
class Edge:
    source: str  # parent for PARENT edges
    target: str  # child for PARENT edges
    relationship: RelationshipType | str


# ============================================================================
# Indexed input (alignment engine input)
# ============================================================================


class RelationCode(IntEnum):
    MZ_TWIN = 1
    DZ_TWIN = 2
    UNKNOWN_TWIN = 3
    SPOUSE = 4


@dataclass(frozen=True)
class Relation:
    id1: int
    id2: int
    code: int = RelationCode.SPOUSE


@dataclass(frozen=True)
class PedigreeInput:
    id: tuple[str, ...]
    sex: tuple[Sex, ...]
    father_index: tuple[int, ...]  # -1 means no father
    mother_index: tuple[int, ...]  # -1 means no mother
    relation: tuple[Relation, ...] = ()

    def __len__(self) -> int:
        return len(self.id)


@dataclass(frozen=True)
class SpouseHint:
    left_index: int
    right_index: int
    anchor: int = 0  # 0 free, 1 left partner's family, 2 right partner's family


@dataclass(frozen=True)
class Hints:
    order: tuple[float, ...] | None = None
    spouse: tuple[SpouseHint, ...] = ()


@dataclass(frozen=True)
class IndexedInput:
    input: PedigreeInput
    index_to_id: tuple[str, ...]
    id_to_index: dict[str, int]
    ex_partner_pairs: frozenset[tuple[int, int]] = frozenset()
    warnings: tuple[str, ...] = ()


# ============================================================================
# Layout (alignment engine output)
# ============================================================================


class SlotKind(Enum):
    OCCUPANT = "occupant"
    SPOUSE = "spouse"  # joined by a marriage line to the slot on its right


@dataclass(frozen=True)
class Slot:
    person: int
    kind: SlotKind = SlotKind.OCCUPANT

    @property
    def is_spouse(self) -> bool:
        return self.kind is SlotKind.SPOUSE

    def __repr__(self) -> str:
        return f"{self.person}{'+' if self.is_spouse else ''}"


@dataclass(frozen=True)
class Layout:
    """
    Rows of slots, one row per generation (row 0 is the topmost).

    fam[i][j] is a 1-based pointer to the left column of the parent pair in
    row i - 1 (0 when the slot has no parents drawn). spouse[i][j] is 1 when a
    marriage line joins column j to j + 1, 2 when that marriage is between
    blood relatives. twins[i][j] holds a twin code linking column j to the
    next sibling, or is None when no twins are recorded.
    """

    slots: tuple[tuple[Slot, ...], ...]
    pos: tuple[tuple[float, ...], ...]
    fam: tuple[tuple[int, ...], ...]
    spouse: tuple[tuple[int, ...], ...]
    twins: tuple[tuple[int, ...], ...] | None = None

    @property
    def depth(self) -> int:
        return len(self.slots)

    @property
    def n(self) -> tuple[int, ...]:
        return tuple(len(row) for row in self.slots)

    @property
    def nid(self) -> tuple[tuple[int, ...], ...]:
        return tuple(tuple(slot.person for slot in row) for row in self.slots)

    def occurrences(self, person: int) -> list[tuple[int, int]]:
        """Return every (row, column) holding `person`, in row-major order."""
        return [
            (i, j)
            for i, row in enumerate(self.slots)
            for j, slot in enumerate(row)
            if slot.person == person
        ]


# ============================================================================
# Connector geometry
# ============================================================================


@dataclass(frozen=True)
class ScalingParams:
    box_width: float
    box_height: float
    leg_height: float = 0.25


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def transformed(self, sx: float, sy: float, dx: float, dy: float) -> "Point":
        return Point(self.x * sx + dx, self.y * sy + dy)


@dataclass(frozen=True)
class LineSegment:
    x1: float
    y1: float
    x2: float
    y2: float

    def transformed(self, sx: float, sy: float, dx: float, dy: float) -> "LineSegment":
        return LineSegment(
            self.x1 * sx + dx,
            self.y1 * sy + dy,
            self.x2 * sx + dx,
            self.y2 * sy + dy,
        )


@dataclass(frozen=True)
class ArcPath:
    points: tuple[Point, ...]
    dashed: bool = True


@dataclass(frozen=True)
class SpouseConnector:
    segment: LineSegment
    left: int
    right: int
    double: bool = False
    double_segment: LineSegment | None = None


@dataclass(frozen=True)
class ParentChildConnector:
    uplines: tuple[LineSegment, ...]
    sibling_bar: LineSegment
    parent_link: tuple[LineSegment, ...]
    children: tuple[int, ...] = ()


@dataclass(frozen=True)
class TwinIndicator:
    code: int
    segment: LineSegment | None = None
    label: Point | None = None


@dataclass(frozen=True)
class DuplicateArc:
    path: ArcPath
    person_index: int


@dataclass(frozen=True)
class PedigreeConnectors:
    spouse_lines: tuple[SpouseConnector, ...] = ()
    parent_child_lines: tuple[ParentChildConnector, ...] = ()
    twin_indicators: tuple[TwinIndicator, ...] = ()
    duplicate_arcs: tuple[DuplicateArc, ...] = ()

    def __len__(self) -> int:
        return (
            len(self.spouse_lines)
            + len(self.parent_child_lines)
            + len(self.twin_indicators)
            + len(self.duplicate_arcs)
        )


@dataclass(frozen=True)
class ConnectorRenderData:
    connectors: PedigreeConnectors
    ex_partner_pairs: frozenset[tuple[str, str]] = field(default_factory=frozenset)
