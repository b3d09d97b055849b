"""
Connector geometry for drawing a laid-out pedigree.

Works in slot units (one unit per column, one per generation row) and emits
plain line segments and polylines; scaling to pixels is the adapter's job.
"""

from statistics import fmean

from models import (
    ArcPath,
    DuplicateArc,
    Layout,
    LineSegment,
    ParentChildConnector,
    PedigreeConnectors,
    Point,
    RelationCode,
    ScalingParams,
    SpouseConnector,
    TwinIndicator,
)

ARC_SAMPLES = 15


def _spouse_lines(layout: Layout, scaling: ScalingParams) -> list[SpouseConnector]:
    boxw, boxh = scaling.box_width, scaling.box_height
    lines = []
    for i, row in enumerate(layout.spouse):
        tempy = i + boxh / 2
        for j, marker in enumerate(row):
            if marker <= 0:
                continue
            segment = LineSegment(
                layout.pos[i][j] + boxw / 2,
                tempy,
                layout.pos[i][j + 1] - boxw / 2,
                tempy,
            )
            double = marker == 2
            lines.append(
                SpouseConnector(
                    segment=segment,
                    left=layout.slots[i][j].person,
                    right=layout.slots[i][j + 1].person,
                    double=double,
                    double_segment=(
                        LineSegment(segment.x1, tempy + boxh / 10, segment.x2, tempy + boxh / 10)
                        if double
                        else None
                    ),
                )
            )
    return lines


def _drop_targets(layout: Layout, i: int, who: list[int]) -> list[float]:
    """x where each child's upline meets the sibling bar; twins share one."""
    xs = [layout.pos[i][j] for j in who]
    if layout.twins is None:
        return xs

    # 5 sibs with the middle 3 triplets gives groups 1,2,2,2,3
    groups = []
    group = 0
    for k, j in enumerate(who):
        twin_to_left = layout.twins[i][who[k - 1]] if k > 0 else 0
        if twin_to_left == 0:
            group += 1
        groups.append(group)

    means = {g: fmean(x for x, gg in zip(xs, groups) if gg == g) for g in set(groups)}
    return [means[g] for g in groups]


def _twin_indicators(
    layout: Layout, i: int, who: list[int], target: list[float], legh: float
) -> list[TwinIndicator]:
    indicators = []
    for k, j in enumerate(who):
        code = layout.twins[i][j]
        if code == 0:
            continue
        if code == RelationCode.DZ_TWIN or k + 1 >= len(who):
            indicators.append(TwinIndicator(code=int(code)))
            continue
        temp1 = (layout.pos[i][j] + target[k]) / 2
        temp2 = (layout.pos[i][who[k + 1]] + target[k]) / 2
        y = i - legh / 2
        if code == RelationCode.MZ_TWIN:
            indicators.append(TwinIndicator(code=1, segment=LineSegment(temp1, y, temp2, y)))
        elif code == RelationCode.UNKNOWN_TWIN:
            indicators.append(TwinIndicator(code=3, label=Point((temp1 + temp2) / 2, y)))
    return indicators


def _parent_link(x1: float, y1: float, x2: float, y2: float, branch: float) -> tuple[LineSegment, ...]:
    if branch == 0:
        return (LineSegment(x1, y1, x2, y2),)
    ydelta = (y2 - y1) * branch / 2
    return (
        LineSegment(x1, y1, x1, y1 + ydelta),
        LineSegment(x1, y1 + ydelta, x2, y2 - ydelta),
        LineSegment(x2, y2 - ydelta, x2, y2),
    )


def _duplicate_arcs(layout: Layout) -> list[DuplicateArc]:
    arcs = []
    seen = dict.fromkeys(slot.person for row in layout.slots for slot in row)
    for person in seen:
        spots = sorted(
            (Point(layout.pos[i][j], float(i)) for i, j in layout.occurrences(person)),
            key=lambda p: p.x,
        )
        for p1, p2 in zip(spots, spots[1:]):
            points = []
            for k in range(ARC_SAMPLES):
                t = k / (ARC_SAMPLES - 1)
                seq = k - (ARC_SAMPLES - 1) // 2
                points.append(
                    Point(
                        p1.x + t * (p2.x - p1.x),
                        p1.y + t * (p2.y - p1.y) + seq * seq / 98 - 0.5,
                    )
                )
            arcs.append(DuplicateArc(path=ArcPath(tuple(points), dashed=True), person_index=person))
    return arcs


def compute_connectors(
    layout: Layout,
    scaling: ScalingParams,
    branch: float = 0.6,
    pconnect: float = 0.5,
) -> PedigreeConnectors:
    """
    Compute the lines needed to draw a pedigree layout.

    Args:
        layout: Output of align_pedigree
        scaling: Node box size and upline length, in slot units
        branch: 0 for a diagonal parent link, otherwise the fraction of the
            vertical gap spent on the two vertical legs of a right-angle link
        pconnect: How far from either end of the sibling bar the parent
            link may attach

    Returns:
        Spouse lines, parent-child connectors, twin indicators and arcs
        linking repeated appearances of the same person
    """
    boxh, legh = scaling.box_height, scaling.leg_height
    parent_child: list[ParentChildConnector] = []
    twin_indicators: list[TwinIndicator] = []

    for i in range(1, layout.depth):
        for family in dict.fromkeys(f for f in layout.fam[i] if f > 0):
            parentx = (layout.pos[i - 1][family - 1] + layout.pos[i - 1][family]) / 2
            who = [j for j, f in enumerate(layout.fam[i]) if f == family]
            target = _drop_targets(layout, i, who)

            uplines = tuple(
                LineSegment(layout.pos[i][j], i, target[k], i - legh) for k, j in enumerate(who)
            )
            if layout.twins is not None:
                twin_indicators.extend(_twin_indicators(layout, i, who, target, legh))

            lo, hi = min(target), max(target)
            sibling_bar = LineSegment(lo, i - legh, hi, i - legh)

            # Keep the parent link attached near the bar when the bar is wide
            if hi - lo < 2 * pconnect:
                x1 = (lo + hi) / 2
            else:
                x1 = max(lo + pconnect, min(hi - pconnect, parentx))

            parent_child.append(
                ParentChildConnector(
                    uplines=uplines,
                    sibling_bar=sibling_bar,
                    parent_link=_parent_link(x1, i - legh, parentx, i - 1 + boxh / 2, branch),
                    children=tuple(layout.slots[i][j].person for j in who),
                )
            )

    return PedigreeConnectors(
        spouse_lines=tuple(_spouse_lines(layout, scaling)),
        parent_child_lines=tuple(parent_child),
        twin_indicators=tuple(twin_indicators),
        duplicate_arcs=tuple(_duplicate_arcs(layout)),
    )
