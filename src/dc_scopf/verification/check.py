from __future__ import annotations

"""
Post-solve verification against the network data.

Why this module exists
----------------------
The solver only guarantees feasibility of the rows it was given. This module
recomputes every physical property from the Network (demands, susceptances, limits,
bounds, participation factors) and the mapped SCOPFResult, independently of the LP
rows. A bug in assembly (a missing branch term, a wrong sign, a dropped response row)
therefore shows up as a failed check rather than as a silently wrong dispatch.

Omega consistency
-----------------
No row pins omega to the failed unit's output. Summing the balance rows of a generator
outage scenario cancels all flow terms, which leaves

    sum_{surviving} (pg[g] + alpha_g * omega) = total demand = sum_{all} pg[g]

so omega * sum(alpha) = pg[failed] must hold at any feasible point. The check makes
that implicit definition visible.
"""

import logging
import math

from dc_scopf.assembly.builder import SCOPFModel
from dc_scopf.assembly.scenarios import BRANCH, GENERATOR
from dc_scopf.results import SCOPFResult, ScenarioResult

from .types import (
    CHECK_FAIL,
    CHECK_OK,
    REASON_BALANCE,
    REASON_FAILED_UNIT_DISPATCHED,
    REASON_GEN_BOUNDS,
    REASON_LINE_LIMIT,
    REASON_OMEGA,
    REASON_RESPONSE,
    ScenarioCheck,
    SolutionCheck,
)

logger = logging.getLogger(__name__)


def _balance_residual(model: SCOPFModel, sr: ScenarioResult) -> float:
    net = model.network
    injection = {bus: -net.demand(bus) for bus in net.bus_ids}
    for gid, p in sr.dispatch.items():
        injection[gid.bus] += p
    for bid, f in sr.flows.items():
        injection[bid.from_bus] -= f
        injection[bid.to_bus] += f
    return max((abs(v) for v in injection.values()), default=0.0)


def _line_violation(model: SCOPFModel, sr: ScenarioResult) -> float:
    worst = 0.0
    for bid, f in sr.flows.items():
        br = model.network.branch(bid)
        worst = max(worst, float(br.lower_mw) - f, f - float(br.upper_mw))
    return worst


def _gen_bound_violation(model: SCOPFModel, sr: ScenarioResult) -> float:
    worst = 0.0
    for gid, p in sr.dispatch.items():
        g = model.network.generator(gid)
        worst = max(worst, float(g.pg_min) - p, p - float(g.pg_max))
    return worst


def _check_scenario(
    model: SCOPFModel, result: SCOPFResult, sr: ScenarioResult, *, tol_mw: float
) -> ScenarioCheck:
    net = model.network
    base = result.base.dispatch
    reasons: list[str] = []

    balance = _balance_residual(model, sr)
    line = _line_violation(model, sr)
    bounds = _gen_bound_violation(model, sr)

    response = 0.0
    omega_mismatch = None

    if sr.kind == BRANCH:
        response = max(
            (abs(p - base[gid]) for gid, p in sr.dispatch.items()), default=0.0
        )
    elif sr.kind == GENERATOR:
        failed = sr.key
        omega = float(sr.omega) if sr.omega is not None else 0.0
        response = max(
            (
                abs(p - base[gid] - net.generator(gid).alpha * omega)
                for gid, p in sr.dispatch.items()
            ),
            default=0.0,
        )
        if failed in sr.dispatch:
            reasons.append(REASON_FAILED_UNIT_DISPATCHED)

        alpha_sum = sum(net.generator(gid).alpha for gid in sr.dispatch)
        if alpha_sum != 0.0:
            omega_mismatch = abs(omega * alpha_sum - base[failed])

    if balance > tol_mw:
        reasons.append(REASON_BALANCE)
    if line > tol_mw:
        reasons.append(REASON_LINE_LIMIT)
    if bounds > tol_mw:
        reasons.append(REASON_GEN_BOUNDS)
    if response > tol_mw:
        reasons.append(REASON_RESPONSE)
    if omega_mismatch is not None and omega_mismatch > tol_mw:
        reasons.append(REASON_OMEGA)

    return ScenarioCheck(
        label=sr.label,
        kind=sr.kind,
        status=CHECK_FAIL if reasons else CHECK_OK,
        max_balance_residual_mw=float(balance),
        max_line_violation_mw=float(max(line, 0.0)),
        max_gen_bound_violation_mw=float(max(bounds, 0.0)),
        max_response_residual_mw=float(response),
        omega_mismatch_mw=None if omega_mismatch is None else float(omega_mismatch),
        reasons=tuple(reasons),
    )


def verify_solution(
    model: SCOPFModel, result: SCOPFResult, *, tol_mw: float = 1e-6
) -> SolutionCheck:
    """
    Verify balance, limits, bounds and generator response for every scenario.

    Parameters
    ----------
    model:
        The model that produced `result`.
    result:
        Mapped solver result.
    tol_mw:
        Absolute tolerance in MW for all residuals and violations.

    Returns
    -------
    SolutionCheck
    """
    tol = float(tol_mw)
    if not math.isfinite(tol) or tol < 0.0:
        raise ValueError(f"tol_mw must be finite and >= 0; got {tol_mw!r}")

    all_results = (
        [result.base]
        + list(result.branch_scenarios.values())
        + list(result.generator_scenarios.values())
    )
    checks = tuple(
        _check_scenario(model, result, sr, tol_mw=tol) for sr in all_results
    )

    status = CHECK_FAIL if any(c.status != CHECK_OK for c in checks) else CHECK_OK
    out = SolutionCheck(status=status, tol_mw=tol, scenarios=checks)

    if out.ok:
        logger.info("Solution verified: %d scenarios within %.3g MW", len(checks), tol)
    else:
        for c in out.failed_scenarios():
            logger.warning("Scenario %s failed verification: %s", c.label, c.reasons)
    return out
