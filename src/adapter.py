"""
Conversion between the family graph and the alignment engine.

Persons and typed edges go in as string ids; the engine works on dense
integer indices. On the way out, slot-unit layout and connector geometry are
scaled to pixels and shifted so the drawing starts at the origin.
"""

import logging
from collections.abc import Iterable
from dataclasses import replace

from config import LayoutConfig, get_config
from connectors import compute_connectors
from models import (
    ConnectorRenderData,
    Edge,
    IndexedInput,
    Layout,
    PedigreeConnectors,
    PedigreeInput,
    Person,
    Point,
    Relation,
    RelationCode,
    RelationshipType,
    ScalingParams,
    Sex,
)
from validation import StructuralError, validate_pedigree

logger = logging.getLogger(__name__)


def _relationship(edge: Edge) -> RelationshipType | None:
    try:
        return RelationshipType(edge.relationship)
    except ValueError:
        return None


# ============================================================================
# Build input
# ============================================================================


def to_indexed_input(persons: Iterable[Person], edges: Iterable[Edge]) -> IndexedInput:
    """
    Convert persons and typed edges into indexed pedigree input.

    Indices follow first-seen order of `persons`. A parent edge fills the
    father slot for a male parent and the mother slot otherwise. Anyone left
    with a single parent has both cleared and is treated as a founder; that
    is reported as a warning, never an error.

    Raises:
        StructuralError: The parent edges form a cycle
    """
    index_to_id: list[str] = []
    id_to_index: dict[str, int] = {}
    sexes: list[Sex] = []
    warnings: list[str] = []

    def warn(message: str) -> None:
        logger.warning(message)
        warnings.append(message)

    for person in persons:
        if person.id in id_to_index:
            warn(f'Person "{person.id}" is listed more than once; keeping the first entry')
            continue
        id_to_index[person.id] = len(index_to_id)
        index_to_id.append(person.id)
        sexes.append(Sex.parse(person.sex))

    n = len(index_to_id)
    father = [-1] * n
    mother = [-1] * n
    relations: list[Relation] = []
    ex_partner_pairs: set[tuple[int, int]] = set()

    edges = list(edges)

    # Build parent indices
    for edge in edges:
        if _relationship(edge) is not RelationshipType.PARENT:
            continue
        parent = id_to_index.get(edge.source)
        child = id_to_index.get(edge.target)
        if parent is None or child is None:
            warn(f"Parent edge {edge.source} -> {edge.target} names an unknown person; skipped")
            continue

        primary, secondary = (father, mother) if sexes[parent] is Sex.MALE else (mother, father)
        if primary[child] in (-1, parent):
            primary[child] = parent
        elif secondary[child] == -1:
            # Two parents of the same sex
            secondary[child] = parent
        elif parent not in (father[child], mother[child]):
            warn(f'Person "{edge.target}" has more than two parents; ignoring "{edge.source}"')

    # Enforce the 0-or-2 parent rule
    for i in range(n):
        if (father[i] == -1) != (mother[i] == -1):
            warn(f'Person "{index_to_id[i]}" has only one parent; treating as founder')
            father[i] = -1
            mother[i] = -1

    # Build spouse relations from partner and ex-partner edges
    for edge in edges:
        kind = _relationship(edge)
        if kind is None:
            warn(f"Edge {edge.source} -> {edge.target} has unknown type {edge.relationship!r}; skipped")
            continue
        if kind is RelationshipType.PARENT:
            continue
        i1 = id_to_index.get(edge.source)
        i2 = id_to_index.get(edge.target)
        if i1 is None or i2 is None:
            warn(f"Partner edge {edge.source} -- {edge.target} names an unknown person; skipped")
            continue
        relations.append(Relation(i1, i2, RelationCode.SPOUSE))
        if kind is RelationshipType.EX_PARTNER:
            ex_partner_pairs.add((min(i1, i2), max(i1, i2)))

    ped = PedigreeInput(
        id=tuple(index_to_id),
        sex=tuple(sexes),
        father_index=tuple(father),
        mother_index=tuple(mother),
        relation=tuple(relations),
    )
    validate_pedigree(ped)

    logger.debug("Indexed %d people, %d spouse relations", n, len(relations))
    return IndexedInput(
        input=ped,
        index_to_id=tuple(index_to_id),
        id_to_index=id_to_index,
        ex_partner_pairs=frozenset(ex_partner_pairs),
        warnings=tuple(warnings),
    )


# ============================================================================
# Project
# ============================================================================


def normalization_shift(layout: Layout, config: LayoutConfig | None = None) -> tuple[float, float]:
    """
    Pixel shift that puts the first appearance of every person at x >= 0, y >= 0.

    Computed once from the raw slot positions; positions and connectors both
    subtract it so they stay aligned with each other.
    """
    config = config or get_config()
    seen: set[int] = set()
    min_x = min_y = None
    for gen, row in enumerate(layout.slots):
        for col, slot in enumerate(row):
            if slot.person in seen:
                continue
            seen.add(slot.person)
            x = layout.pos[gen][col] * config.sibling_spacing
            y = gen * config.row_height
            min_x = x if min_x is None else min(min_x, x)
            min_y = y if min_y is None else min(min_y, y)
    if min_x is None:
        return 0.0, 0.0
    return min_x, min_y


def layout_to_positions(
    layout: Layout, index_to_id: Iterable[str], config: LayoutConfig | None = None
) -> dict[str, Point]:
    """
    Convert a layout into pixel positions keyed by person id.

    Only the first appearance of a person is recorded; later appearances are
    joined to it by duplicate arcs. Positions are shifted so the smallest x
    and the smallest y are both 0.

    Raises:
        StructuralError: A slot holds a person index with no id
    """
    config = config or get_config()
    index_to_id = list(index_to_id)
    shift_x, shift_y = normalization_shift(layout, config)

    positions: dict[str, Point] = {}
    for gen, row in enumerate(layout.slots):
        for col, slot in enumerate(row):
            if not 0 <= slot.person < len(index_to_id):
                raise StructuralError(
                    f"Layout slot ({gen}, {col}) holds person {slot.person}, "
                    f"but only {len(index_to_id)} ids were given"
                )
            node_id = index_to_id[slot.person]
            if node_id in positions:
                continue
            positions[node_id] = Point(
                layout.pos[gen][col] * config.sibling_spacing - shift_x,
                gen * config.row_height - shift_y,
            )
    return positions


def _project(connectors: PedigreeConnectors, sx: float, sy: float, dx: float, dy: float) -> PedigreeConnectors:
    def seg(s):
        return s.transformed(sx, sy, dx, dy) if s is not None else None

    return PedigreeConnectors(
        spouse_lines=tuple(
            replace(sp, segment=seg(sp.segment), double_segment=seg(sp.double_segment))
            for sp in connectors.spouse_lines
        ),
        parent_child_lines=tuple(
            replace(
                pc,
                uplines=tuple(seg(u) for u in pc.uplines),
                sibling_bar=seg(pc.sibling_bar),
                parent_link=tuple(seg(p) for p in pc.parent_link),
            )
            for pc in connectors.parent_child_lines
        ),
        twin_indicators=tuple(
            replace(
                ti,
                segment=seg(ti.segment),
                label=ti.label.transformed(sx, sy, dx, dy) if ti.label is not None else None,
            )
            for ti in connectors.twin_indicators
        ),
        duplicate_arcs=tuple(
            replace(
                da,
                path=replace(da.path, points=tuple(p.transformed(sx, sy, dx, dy) for p in da.path.points)),
            )
            for da in connectors.duplicate_arcs
        ),
    )


def to_connector_geometry(
    layout: Layout, edges: Iterable[Edge], config: LayoutConfig | None = None
) -> ConnectorRenderData:
    """
    Compute connector geometry in the same pixel space as layout_to_positions.

    Connector endpoints land on the centre of each node's container, i.e. the
    node's position plus half of `node_container_width`.
    """
    config = config or get_config()
    sx, sy = config.sibling_spacing, config.row_height
    scaling = ScalingParams(
        box_width=config.node_width / sx,
        box_height=config.node_height / sy,
        leg_height=config.leg_height,
    )
    connectors = compute_connectors(
        layout, scaling, branch=config.branch_style, pconnect=config.pconnect
    )

    shift_x, shift_y = normalization_shift(layout, config)
    projected = _project(connectors, sx, sy, config.node_container_width / 2 - shift_x, -shift_y)

    ex_partner_pairs = frozenset(
        tuple(sorted((edge.source, edge.target)))
        for edge in edges
        if _relationship(edge) is RelationshipType.EX_PARTNER
    )
    return ConnectorRenderData(connectors=projected, ex_partner_pairs=ex_partner_pairs)
