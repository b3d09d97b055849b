"""Quadratic-programming refinement of slot positions (kinship2 alignped4)."""

import logging
import math
from collections.abc import Sequence

import numpy as np
from scipy.optimize import minimize

from models import Slot
from validation import LayoutError

logger = logging.getLogger(__name__)

_CONSTRAINT_TOL = 1e-6


def _penalty_matrix(
    ids: list[list[int]],
    fam: Sequence[Sequence[int]],
    spouse: Sequence[Sequence[int]],
    total: int,
    penalties: tuple[float, float],
) -> np.ndarray:
    kid_power, spouse_weight = penalties
    rows: list[np.ndarray] = []

    # Penalties to keep spouses close
    for lev, srow in enumerate(spouse):
        for j, marker in enumerate(srow):
            if marker > 0 and j + 1 < len(srow):
                row = np.zeros(total)
                row[ids[lev][j]] = math.sqrt(spouse_weight)
                row[ids[lev][j + 1]] = -math.sqrt(spouse_weight)
                rows.append(row)

    # Penalties to keep kids close to their parents
    for lev in range(1, len(fam)):
        for family in dict.fromkeys(f for f in fam[lev] if f > 0):
            who = [j for j, f in enumerate(fam[lev]) if f == family]
            weight = math.sqrt(len(who) ** -kid_power)
            for j in who:
                row = np.zeros(total)
                row[ids[lev][j]] = -weight
                row[ids[lev - 1][family - 1]] += weight / 2
                row[ids[lev - 1][family]] += weight / 2
                rows.append(row)

    # Pin the first slot of the widest row so the solution is unique
    widths = [len(r) for r in ids]
    anchor = np.zeros(total)
    anchor[ids[widths.index(max(widths))][0]] = 1e-5
    rows.append(anchor)

    return np.vstack(rows)


def _constraint_matrix(ids: list[list[int]], total: int, width: float) -> tuple[np.ndarray, np.ndarray]:
    cmat: list[np.ndarray] = []
    dvec: list[float] = []
    for row_ids in ids:
        if not row_ids:
            continue
        # Neighbours at least one unit apart
        for a, b in zip(row_ids, row_ids[1:]):
            row = np.zeros(total)
            row[a], row[b] = -1.0, 1.0
            cmat.append(row)
            dvec.append(1.0)
        # First slot at or right of 0
        row = np.zeros(total)
        row[row_ids[0]] = 1.0
        cmat.append(row)
        dvec.append(0.0)
        # Last slot at or left of width - 1
        row = np.zeros(total)
        row[row_ids[-1]] = -1.0
        cmat.append(row)
        dvec.append(1.0 - width)
    return np.vstack(cmat), np.asarray(dvec)


def refine_positions(
    slots: Sequence[Sequence[Slot]],
    fam: Sequence[Sequence[int]],
    spouse: Sequence[Sequence[int]],
    width: float = 10.0,
    penalties: tuple[float, float] = (1.5, 2.0),
) -> list[list[float]]:
    """
    Find x positions that keep spouses together and children under their parents.

    Minimizes a sum of squared penalties subject to every row keeping its
    order with neighbours at least one unit apart, inside [0, width - 1].

    Args:
        slots: Layout rows
        fam: Family pointers, parallel to slots
        spouse: Marriage markers, parallel to slots
        width: Maximum layout width; widened to fit the longest row
        penalties: (sibship size exponent, spouse weight)

    Returns:
        New positions, parallel to slots

    Raises:
        LayoutError: The solver ended on an infeasible point
    """
    row_lengths = [len(row) for row in slots]
    total = sum(row_lengths)
    if total == 0:
        return [[] for _ in slots]

    # Number the slots sequentially
    ids: list[list[int]] = []
    start = 0
    for length in row_lengths:
        ids.append(list(range(start, start + length)))
        start += length

    width = max(width, max(row_lengths) + 0.01)
    pmat = _penalty_matrix(ids, fam, spouse, total, penalties)
    cmat, dvec = _constraint_matrix(ids, total, width)
    hessian = pmat.T @ pmat + 1e-8 * np.eye(total)

    x0 = np.concatenate([np.arange(length, dtype=float) for length in row_lengths])
    fit = minimize(
        lambda x: 0.5 * x @ hessian @ x,
        x0,
        jac=lambda x: hessian @ x,
        method="SLSQP",
        constraints=[{"type": "ineq", "fun": lambda x: cmat @ x - dvec, "jac": lambda x: cmat}],
        options={"ftol": 1e-12, "maxiter": 1000},
    )

    slack = cmat @ fit.x - dvec
    if not fit.success:
        if slack.min() < -_CONSTRAINT_TOL:
            raise LayoutError(f"Position refinement failed: {fit.message}")
        logger.warning("Position refinement stopped early (%s); using last feasible point", fit.message)

    solution = np.round(fit.x, 6) + 0.0  # drop negative zeros
    return [[float(solution[k]) for k in row_ids] for row_ids in ids]
