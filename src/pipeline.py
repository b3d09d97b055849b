"""
1) Convert persons and typed edges into indexed pedigree input.
    - Clear one-parent links and record a warning for each.
2) Align the pedigree into generation rows.
3) Project slot positions to pixels, normalized to the origin.
4) Compute connector geometry in the same pixel space.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from adapter import layout_to_positions, to_connector_geometry, to_indexed_input
from alignment import align_pedigree
from config import LayoutConfig, get_config
from models import ConnectorRenderData, Edge, Layout, Person, Point

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FamilyTreeLayout:
    positions: dict[str, Point]
    connectors: ConnectorRenderData
    layout: Layout
    index_to_id: tuple[str, ...]
    warnings: tuple[str, ...] = ()
    ego: str | None = None  # id of the first person flagged is_ego, for the renderer


def layout_family_tree(
    persons: Iterable[Person],
    edges: Iterable[Edge],
    config: LayoutConfig | None = None,
) -> FamilyTreeLayout:
    """
    Lay out a family graph for drawing.

    Raises:
        StructuralError: The graph cannot be laid out (e.g. cyclic parentage)
        LayoutError: Position refinement failed
    """
    config = config or get_config()
    persons = list(persons)
    edges = list(edges)

    logger.info("Building pedigree input...")
    indexed = to_indexed_input(persons, edges)
    logger.debug(
        "  %d people, %d edges, %d warnings",
        len(indexed.index_to_id),
        len(edges),
        len(indexed.warnings),
    )

    logger.info("Aligning pedigree...")
    # to_indexed_input has already validated the input
    layout = align_pedigree(indexed.input, config=config, validate=False)
    logger.debug("  %d rows, slots per row %s", layout.depth, list(layout.n))

    logger.info("Projecting positions and connectors...")
    positions = layout_to_positions(layout, indexed.index_to_id, config)
    connectors = to_connector_geometry(layout, edges, config)
    logger.debug("  %d positions, %d connectors", len(positions), len(connectors.connectors))

    return FamilyTreeLayout(
        positions=positions,
        connectors=connectors,
        layout=layout,
        index_to_id=indexed.index_to_id,
        warnings=indexed.warnings,
        ego=next((p.id for p in persons if p.is_ego), None),
    )
