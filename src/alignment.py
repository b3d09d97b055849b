"""
Pedigree alignment: assign every person a row and a column position.

Follows the kinship2 align.pedigree algorithm. A person is laid out together
with their spouses and every descendant of each marriage as one block of
rows; blocks are then merged left to right.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from statistics import fmean
from typing import NamedTuple

from config import LayoutConfig, get_config
from graph import build_graph, generation_levels, get_parent_graph, share_ancestor
from models import Hints, Layout, PedigreeInput, RelationCode, Sex, Slot, SlotKind
from optimize import refine_positions
from validation import StructuralError, validate_pedigree

logger = logging.getLogger(__name__)


class SpouseEntry(NamedTuple):
    male: int  # male-side partner (or the right partner when neither is male)
    other: int
    side: int  # 0 undecided, 1 male-side partner on the left, 2 on the right
    anchor: int  # 0 free, otherwise the side whose family anchors the marriage


@dataclass
class _Block:
    """A partially laid out set of rows; rows grow as blocks are merged."""

    slots: list[list[Slot]]
    pos: list[list[float]]
    fam: list[list[int]]

    @classmethod
    def empty(cls, rows: int) -> "_Block":
        return cls(
            [[] for _ in range(rows)],
            [[] for _ in range(rows)],
            [[] for _ in range(rows)],
        )

    def set_row(self, row: int, slots: list[Slot], pos: list[float]) -> None:
        self.slots[row] = list(slots)
        self.pos[row] = list(pos)
        self.fam[row] = [0] * len(slots)

    def shift_rows(self, start: int, amount: float) -> None:
        for row in range(start, len(self.pos)):
            self.pos[row] = [p + amount for p in self.pos[row]]

    def people(self) -> set[int]:
        return {slot.person for row in self.slots for slot in row}


@dataclass(frozen=True)
class _Context:
    dad: tuple[int, ...]
    mom: tuple[int, ...]
    level: tuple[int, ...]
    order: tuple[float, ...]
    packed: bool
    rows: int
    max_depth: int
    kids: dict[tuple[int, int], tuple[int, ...]]

    def children_of(self, a: int, b: int) -> list[int]:
        return sorted(set(self.kids.get((a, b), ()) + self.kids.get((b, a), ())))


# ============================================================================
# Block merging (alignped3)
# ============================================================================


def merge_blocks(left: _Block, right: _Block, packed: bool, space: float = 1.0) -> _Block:
    """
    Merge two blocks by appending each row of `right` after the same row of `left`.

    When a row of `left` ends with a plain slot for the same person that starts
    the row of `right`, the two collapse into a single slot. Family pointers of
    `right` are renumbered to the merged column indices.

    Args:
        left: Block that keeps its columns
        right: Block appended to the right
        packed: Pack each row independently (True) or slide `right` as a whole
        space: Minimum gap between the two blocks

    Returns:
        A new merged block; neither input is modified
    """
    rows = len(left.slots)
    slots = [list(row) for row in left.slots]
    pos = [list(row) for row in left.pos]
    fam = [list(row) for row in left.fam]
    fam2 = [list(row) for row in right.fam]

    slide = 0.0
    if not packed:
        # One slide for every row, large enough that no row overlaps
        for i in range(rows):
            if left.slots[i] and right.slots[i]:
                temp = left.pos[i][-1] - right.pos[i][0]
                if left.slots[i][-1] != right.slots[i][0]:
                    temp += space
                slide = max(slide, temp)

    for i in range(rows):
        row2 = right.slots[i]
        if not row2:
            continue
        n1 = len(slots[i])

        overlap = 0
        if n1 and slots[i][-1].kind is SlotKind.OCCUPANT and slots[i][-1].person == row2[0].person:
            overlap = 1
            left_fam = fam[i][-1]
            fam[i][-1] = max(left_fam, fam2[i][0])
            slots[i][-1] = row2[0]  # keeps a spouse marker from the right
            if not packed and fam2[i][0] > 0:
                if left_fam > 0:
                    pos[i][-1] = (right.pos[i][0] + pos[i][-1] + slide) / 2
                else:
                    pos[i][-1] = right.pos[i][0] + slide

        if packed:
            slide = 0.0 if n1 == 0 else pos[i][n1 - 1] + space - overlap

        for j in range(overlap, len(row2)):
            slots[i].append(row2[j])
            fam[i].append(fam2[i][j])
            pos[i].append(right.pos[i][j] + slide)

        # Renumber the pointers of any children (look ahead)
        if i + 1 < rows:
            offset = n1 - overlap
            fam2[i + 1] = [f + offset if f else 0 for f in fam2[i + 1]]

    return _Block(slots, pos, fam)


# ============================================================================
# Recursive layout (alignped1 / alignped2)
# ============================================================================


def _split_spouses(
    x: int, ctx: _Context, spouselist: list[SpouseEntry]
) -> tuple[list[int], list[int], list[SpouseEntry]]:
    """Pick x's spouses and sort them into left and right of x."""
    if any(entry.male == x for entry in spouselist):
        sex = 1
        rows = [
            k
            for k, e in enumerate(spouselist)
            if e.male == x and (e.anchor == e.side or e.anchor == 0)
        ]
        spouse = [spouselist[k].other for k in rows]
    else:
        sex = 2
        rows = [
            k
            for k, e in enumerate(spouselist)
            if e.other == x and (e.anchor != e.side or e.anchor == 0)
        ]
        spouse = [spouselist[k].male for k in rows]

    # Marriages that cross levels are laid out from the deeper partner
    keep = [k for k, s in enumerate(spouse) if ctx.level[s] <= ctx.level[x]]
    rows = [rows[k] for k in keep]
    spouse = [spouse[k] for k in keep]

    lspouse: list[int] = []
    rspouse: list[int] = []
    undecided: list[int] = []
    for k, s in zip(rows, spouse):
        side = spouselist[k].side
        if side == 3 - sex:
            lspouse.append(s)
        elif side == sex:
            rspouse.append(s)
        else:
            undecided.append(s)

    if undecided:
        nleft = (len(rows) + (sex == 2)) // 2 - len(lspouse)
        if nleft > 0:
            lspouse.extend(undecided[:nleft])
            undecided = undecided[nleft:]
        rspouse = undecided + rspouse

    consumed = set(rows)
    remaining = [e for k, e in enumerate(spouselist) if k not in consumed]
    return lspouse, rspouse, remaining


def align_person(
    x: int, ctx: _Context, spouselist: list[SpouseEntry], depth: int = 0
) -> tuple[_Block, list[SpouseEntry]]:
    """
    Lay out person `x`, their spouses, and all descendants of each marriage.

    Returns the block and the spouse list with the marriages used here removed.
    """
    if depth > ctx.max_depth:
        raise StructuralError(
            f"Recursion passed {ctx.max_depth} generations at person {x}; "
            "the pedigree is probably cyclic"
        )

    lev = ctx.level[x]
    lspouse, rspouse, spouselist = _split_spouses(x, ctx, spouselist)
    nspouse = len(lspouse) + len(rspouse)

    members = lspouse + [x] + rspouse
    row = [
        Slot(p, SlotKind.SPOUSE if j < nspouse else SlotKind.OCCUPANT)
        for j, p in enumerate(members)
    ]
    pos = [float(j) for j in range(nspouse + 1)]

    result: _Block | None = None
    for i, ispouse in enumerate(lspouse + rspouse):
        children = ctx.children_of(x, ispouse)
        if not children:
            continue

        kids, spouselist = align_siblings(children, ctx, spouselist, depth + 1)

        # Set the parentage for the kids
        nxt = lev + 1
        if nxt < ctx.rows:
            indx = [j for j, slot in enumerate(kids.slots[nxt]) if slot.person in children]
            for j in indx:
                kids.fam[nxt][j] = i + 1

            if not ctx.packed and indx:
                # Line the kids up below the parents
                kidmean = fmean(kids.pos[nxt][j] for j in indx)
                parmean = (pos[i] + pos[i + 1]) / 2
                if kidmean > parmean:
                    for j in range(i, nspouse + 1):
                        pos[j] += kidmean - parmean
                else:
                    kids.shift_rows(nxt, parmean - kidmean)

        result = kids if result is None else merge_blocks(result, kids, ctx.packed)

    if result is None:
        result = _Block.empty(ctx.rows)
    result.set_row(lev, row, pos)
    return result, spouselist


def align_siblings(
    children: Sequence[int], ctx: _Context, spouselist: list[SpouseEntry], depth: int = 0
) -> tuple[_Block, list[SpouseEntry]]:
    """Lay out a sibship left to right in hint order, each with their descendants."""
    ordered = sorted(children, key=lambda c: ctx.order[c])
    block, spouselist = align_person(ordered[0], ctx, spouselist, depth)

    for child in ordered[1:]:
        block2, spouselist = align_person(child, ctx, spouselist, depth)
        lev = ctx.level[child]
        # A lone child already placed by an earlier sibling's subtree stays put
        already_placed = any(slot.person == child for slot in block.slots[lev])
        if len(block2.slots[lev]) > 1 or not already_placed:
            block = merge_blocks(block, block2, ctx.packed)

    return block, spouselist


# ============================================================================
# Entry point (align.pedigree)
# ============================================================================


def build_spouselist(ped: PedigreeInput, hints: Hints | None = None) -> list[SpouseEntry]:
    """Collect marriages from hints, spouse relations and parent pairs, deduplicated."""
    entries: list[SpouseEntry] = []

    if hints is not None:
        for sp in hints.spouse:
            left_is_male = ped.sex[sp.left_index] is Sex.MALE
            if left_is_male:
                entries.append(SpouseEntry(sp.left_index, sp.right_index, 1, sp.anchor))
            else:
                entries.append(SpouseEntry(sp.right_index, sp.left_index, 2, sp.anchor))

    for rel in ped.relation:
        if rel.code == RelationCode.SPOUSE:
            if ped.sex[rel.id1] is Sex.MALE:
                entries.append(SpouseEntry(rel.id1, rel.id2, 0, 0))
            else:
                entries.append(SpouseEntry(rel.id2, rel.id1, 0, 0))

    for dad, mom in zip(ped.father_index, ped.mother_index):
        if dad >= 0 and mom >= 0:
            entries.append(SpouseEntry(dad, mom, 0, 0))

    # Keyed on the unordered pair: without a male partner the two entries
    # for one couple can disagree on which member comes first
    seen: set[frozenset[int]] = set()
    spouselist: list[SpouseEntry] = []
    for entry in entries:
        key = frozenset((entry.male, entry.other))
        if key not in seen:
            seen.add(key)
            spouselist.append(entry)
    return spouselist


def find_founders(
    spouselist: Sequence[SpouseEntry], dad: Sequence[int], order: Sequence[float]
) -> list[int]:
    """
    Pick the people the layout starts from: one partner of every marriage
    between two parentless people, preferring anyone married more than once.
    """
    founding = [e for e in spouselist if dad[e.male] == -1 and dad[e.other] == -1]

    def duplicated(people: list[int]) -> list[int]:
        seen: set[int] = set()
        dups = []
        for p in people:
            if p in seen:
                dups.append(p)
            seen.add(p)
        return dups

    dup_mom = duplicated([e.other for e in founding])
    dup_dad = duplicated([e.male for e in founding])
    dup_all = set(dup_mom) | set(dup_dad)
    found_mom = [e.other for e in founding if e.male not in dup_all and e.other not in dup_all]

    founders = list(dict.fromkeys(dup_mom + dup_dad + found_mom))
    return sorted(founders, key=lambda f: order[f])


def _spouse_matrix(ped: PedigreeInput, slots: list[list[Slot]]) -> list[list[int]]:
    parent_graph = get_parent_graph(build_graph(ped))
    spouse = []
    for row in slots:
        srow = []
        for j, slot in enumerate(row):
            if slot.is_spouse and j + 1 < len(row):
                related = share_ancestor(parent_graph, slot.person, row[j + 1].person)
                srow.append(2 if related else 1)
            else:
                srow.append(0)
        spouse.append(srow)
    return spouse


def _twin_matrix(
    ped: PedigreeInput, slots: list[list[Slot]], fam: list[list[int]]
) -> list[list[int]] | None:
    twin_relations = [r for r in ped.relation if r.code < RelationCode.SPOUSE]
    if not twin_relations:
        return None

    def first_parented(person: int) -> tuple[int, int] | None:
        for i, row in enumerate(slots):
            for j, slot in enumerate(row):
                if slot.person == person and fam[i][j] > 0:
                    return (i, j)
        return None

    twins = [[0] * len(row) for row in slots]
    for rel in twin_relations:
        p1, p2 = first_parented(rel.id1), first_parented(rel.id2)
        if p1 is not None and p2 is not None:
            i, j = min(p1, p2)
            twins[i][j] = int(rel.code)
    return twins


def align_pedigree(
    ped: PedigreeInput,
    level: Sequence[int] | None = None,
    hints: Hints | None = None,
    config: LayoutConfig | None = None,
    validate: bool = True,
) -> Layout:
    """
    Compute the row-and-column layout of a pedigree.

    Args:
        ped: Indexed pedigree input (0 or 2 parents per person)
        level: Generation row per person; derived from parentage when omitted
        hints: Sibling order and spouse placement hints
        config: Layout options; the process-wide default when omitted
        validate: Check the input first; pass False only for input that
            already went through validate_pedigree

    Returns:
        The layout, one row per generation

    Raises:
        StructuralError: The input is malformed or cyclic
    """
    config = config or get_config()
    if validate:
        validate_pedigree(ped, level, hints)

    n = len(ped)
    if n == 0:
        return Layout(slots=(), pos=(), fam=(), spouse=(), twins=None)

    level = tuple(level) if level is not None else tuple(generation_levels(ped))
    if hints is not None and hints.order is not None:
        order = tuple(hints.order)
    else:
        order = tuple(range(1, n + 1))

    kids: dict[tuple[int, int], list[int]] = {}
    for child, (dad, mom) in enumerate(zip(ped.father_index, ped.mother_index)):
        if dad >= 0:
            kids.setdefault((dad, mom), []).append(child)

    rows = max(level) + 1
    ctx = _Context(
        dad=ped.father_index,
        mom=ped.mother_index,
        level=level,
        order=order,
        packed=config.packed,
        rows=rows,
        max_depth=rows + 1,
        kids={pair: tuple(children) for pair, children in kids.items()},
    )

    spouselist = build_spouselist(ped, hints)
    founders = find_founders(spouselist, ped.father_index, order)
    logger.debug("Laying out %d people from %d founders", n, len(founders))

    block: _Block | None = None
    for founder in founders:
        block2, spouselist = align_person(founder, ctx, spouselist)
        block = block2 if block is None else merge_blocks(block, block2, config.packed)

    # Anyone not reached from a founder marriage still gets a slot
    placed = block.people() if block is not None else set()
    for person in sorted(set(range(n)) - placed, key=lambda p: (order[p], p)):
        if person in placed:
            continue
        block2, spouselist = align_person(person, ctx, spouselist)
        placed |= block2.people()
        block = block2 if block is None else merge_blocks(block, block2, config.packed)

    spouse = _spouse_matrix(ped, block.slots)
    twins = _twin_matrix(ped, block.slots, block.fam)

    pos = block.pos
    if config.align and len(set(level)) > 1:
        pos = refine_positions(
            block.slots,
            block.fam,
            spouse,
            width=config.width,
            penalties=config.align_penalties,
        )

    logger.debug("Layout rows: %s", [len(row) for row in block.slots])
    return Layout(
        slots=tuple(tuple(row) for row in block.slots),
        pos=tuple(tuple(float(p) for p in row) for row in pos),
        fam=tuple(tuple(row) for row in block.fam),
        spouse=tuple(tuple(row) for row in spouse),
        twins=tuple(tuple(row) for row in twins) if twins is not None else None,
    )
