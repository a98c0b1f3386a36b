from __future__ import annotations

"""
HiGHS adapter (via `scipy.optimize.linprog`).

Project policy
--------------
The assembled program is solved ONLY via HiGHS. The adapter converts ranged rows to
the `A_ub x <= b_ub`, `A_eq x == b_eq` form expected by `linprog`, calls the solver once
and maps its status:

- 0 optimal            -> LPSolution
- 2 infeasible         -> InfeasibleModel
- 3 unbounded          -> UnboundedModel
- 1 limit / 4 numerics -> SolverFailure

HiGHS presolve can stop at "infeasible or unbounded" without deciding which. In that
case the program is solved once more with presolve disabled so that the simplex run
settles the status. No other retry is made.

Dual sign convention
--------------------
`row_duals[r]` is d(objective)/d(rhs of row r). For a ranged row only the active side
contributes, so the value is well defined whichever side binds.
"""

import dataclasses
import logging
import math
from dataclasses import dataclass

import numpy as np
import scipy.sparse as sp
from scipy.optimize import linprog

from dc_scopf.config import DEFAULT_HIGHS, HiGHSConfig
from dc_scopf.errors import (
    STATUS_OPTIMAL,
    InfeasibleModel,
    SolverFailure,
    UnboundedModel,
)

from .container import LinearProgram

logger = logging.getLogger(__name__)

_LINPROG_OPTIMAL = 0
_LINPROG_LIMIT = 1
_LINPROG_INFEASIBLE = 2
_LINPROG_UNBOUNDED = 3


@dataclass(frozen=True)
class LPSolution:
    """Primal/dual solution of an optimally solved LinearProgram."""

    status: str
    objective: float
    x: np.ndarray  # aligned with lp.col_names
    row_duals: np.ndarray  # aligned with lp.row_names
    message: str
    iterations: int


@dataclass(frozen=True)
class _StandardForm:
    A_ub: object | None
    b_ub: np.ndarray | None
    A_eq: object | None
    b_eq: np.ndarray | None
    eq_rows: np.ndarray
    hi_rows: np.ndarray
    lo_rows: np.ndarray


def _to_standard_form(lp: LinearProgram) -> _StandardForm:
    """Split ranged rows into linprog equality/inequality blocks."""
    eq = lp.equality_mask
    if np.any(eq & ~np.isfinite(lp.row_lower)):
        bad = [lp.row_names[i] for i in np.flatnonzero(eq & ~np.isfinite(lp.row_lower))]
        raise ValueError(f"Equality rows with infinite right-hand side: {bad[:5]}")

    eq_rows = np.flatnonzero(eq)
    hi_rows = np.flatnonzero(~eq & np.isfinite(lp.row_upper))
    lo_rows = np.flatnonzero(~eq & np.isfinite(lp.row_lower))

    A = lp.A
    A_eq = A[eq_rows] if eq_rows.size else None
    b_eq = lp.row_lower[eq_rows] if eq_rows.size else None

    if hi_rows.size or lo_rows.size:
        A_ub = sp.vstack([A[hi_rows], -A[lo_rows]], format="csr")
        b_ub = np.concatenate([lp.row_upper[hi_rows], -lp.row_lower[lo_rows]])
    else:
        A_ub, b_ub = None, None

    return _StandardForm(
        A_ub=A_ub,
        b_ub=b_ub,
        A_eq=A_eq,
        b_eq=b_eq,
        eq_rows=eq_rows,
        hi_rows=hi_rows,
        lo_rows=lo_rows,
    )


def _bounds(lp: LinearProgram) -> list[tuple[float | None, float | None]]:
    return [
        (
            None if math.isinf(lo) else float(lo),
            None if math.isinf(hi) else float(hi),
        )
        for lo, hi in zip(lp.col_lower.tolist(), lp.col_upper.tolist())
    ]


def _marginals(res, attr: str, n: int) -> np.ndarray:
    block = getattr(res, attr, None)
    m = getattr(block, "marginals", None)
    if m is None:
        return np.zeros(n, dtype=float)
    return np.asarray(m, dtype=float).reshape(-1)


def _row_duals(lp: LinearProgram, sf: _StandardForm, res) -> np.ndarray:
    duals = np.zeros(lp.n_rows, dtype=float)
    if sf.eq_rows.size:
        duals[sf.eq_rows] = _marginals(res, "eqlin", sf.eq_rows.size)
    n_hi, n_lo = int(sf.hi_rows.size), int(sf.lo_rows.size)
    if n_hi or n_lo:
        m = _marginals(res, "ineqlin", n_hi + n_lo)
        # Lower-side rows were negated; d obj / d lower = -marginal.
        np.add.at(duals, sf.hi_rows, m[:n_hi])
        np.add.at(duals, sf.lo_rows, -m[n_hi:])
    return duals


def _is_ambiguous(res) -> bool:
    msg = str(getattr(res, "message", "")).lower()
    return int(res.status) not in (
        _LINPROG_OPTIMAL,
        _LINPROG_INFEASIBLE,
        _LINPROG_UNBOUNDED,
    ) and ("infeasible" in msg and "unbounded" in msg)


def _call_linprog(lp: LinearProgram, sf: _StandardForm, highs: HiGHSConfig):
    try:
        return linprog(
            c=lp.cost,
            A_ub=sf.A_ub,
            b_ub=sf.b_ub,
            A_eq=sf.A_eq,
            b_eq=sf.b_eq,
            bounds=_bounds(lp),
            method=str(highs.method),
            options=highs.solver_options(),
        )
    except Exception as e:  # noqa: BLE001 - any solver-side exception is a SolverFailure
        logger.exception("HiGHS call failed")
        raise SolverFailure(f"HiGHS call failed: {e}", solver_message=str(e)) from e


def solve_linear_program(
    lp: LinearProgram, *, highs: HiGHSConfig = DEFAULT_HIGHS
) -> LPSolution:
    """
    Solve `lp` with HiGHS.

    Parameters
    ----------
    lp:
        Frozen linear program.
    highs:
        Solver options.

    Returns
    -------
    LPSolution
        Only returned for optimal outcomes.

    Raises
    ------
    InfeasibleModel, UnboundedModel, SolverFailure
        Non-optimal solver outcomes, with the solver message attached.
    """
    sf = _to_standard_form(lp)
    logger.debug(
        "HiGHS input: n_cols=%d eq_rows=%d ub_rows=%d method=%s presolve=%s",
        lp.n_cols,
        int(sf.eq_rows.size),
        int(sf.hi_rows.size + sf.lo_rows.size),
        highs.method,
        highs.presolve,
    )

    res = _call_linprog(lp, sf, highs)
    if _is_ambiguous(res) and highs.presolve:
        logger.info(
            "HiGHS reported '%s'; re-solving once with presolve disabled.", res.message
        )
        res = _call_linprog(lp, sf, dataclasses.replace(highs, presolve=False))

    status = int(res.status)
    message = str(getattr(res, "message", ""))

    if status == _LINPROG_INFEASIBLE:
        raise InfeasibleModel("Model is infeasible.", solver_message=message)
    if status == _LINPROG_UNBOUNDED:
        raise UnboundedModel("Model is unbounded.", solver_message=message)
    if status == _LINPROG_LIMIT:
        raise SolverFailure("HiGHS stopped at an iteration/time limit.", solver_message=message)
    if status != _LINPROG_OPTIMAL or getattr(res, "x", None) is None:
        raise SolverFailure(f"HiGHS did not return a solution (status={status}).", solver_message=message)

    sol = LPSolution(
        status=STATUS_OPTIMAL,
        objective=float(res.fun),
        x=np.asarray(res.x, dtype=float),
        row_duals=_row_duals(lp, sf, res),
        message=message,
        iterations=int(getattr(res, "nit", 0) or 0),
    )
    logger.info(
        "HiGHS optimal: objective=%.6g iterations=%d", sol.objective, sol.iterations
    )
    return sol
