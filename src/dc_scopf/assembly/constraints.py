from __future__ import annotations

"""
Per-scenario constraint generation.

For a scenario s with in-service branch set L_s and online generator set G_s:

Power balance (one equality per bus i):
    sum_{g in G_s at i} pg_s[g]
      - sum_{l=(i,j) in L_s} b_l (theta_s[i] - theta_s[j])
      - sum_{l=(j,i) in L_s} b_l (theta_s[i] - theta_s[j])  = demand[i]

Line limit (one ranged row per l=(i,j) in L_s with a finite side):
    lower_l <= b_l (theta_s[i] - theta_s[j]) <= upper_l

Generator response:
    branch outage:     pg_bc[s,g] - pg[g] = 0                       for every g
    generator outage:  pg_gc[s,g] - pg[g] - alpha_g * omega[s] = 0  for g in G_s

The failed branch of a branch outage appears in none of the rows of its scenario.
Each function only reads the network and column maps, so scenarios can be built
concurrently once all columns have been allocated.
"""

import logging
import math

from dc_scopf.lp.container import RowBlock
from dc_scopf.network.model import Network

from .scenarios import BASE, BRANCH, GENERATOR, ScenarioColumns

logger = logging.getLogger(__name__)


def power_balance_rows(network: Network, cols: ScenarioColumns) -> RowBlock:
    """DC power balance equality at every bus of one scenario."""
    sc = cols.scenario
    failed = sc.failed_branch
    block = RowBlock()

    for bus in network.bus_ids:
        terms: list[tuple[int, float]] = []

        for gid in network.generators_at_bus[bus]:
            col = cols.generation.get(gid)
            if col is not None:
                terms.append((col, 1.0))

        th_i = cols.angle[bus]
        for bid in network.branches_at_bus[bus]:
            if bid == failed:
                continue
            b = network.branch(bid).susceptance
            other = bid.to_bus if bid.from_bus == bus else bid.from_bus
            terms.append((th_i, -b))
            terms.append((cols.angle[other], b))

        d = network.demand(bus)
        block.add_row(f"balance[{sc.label},{bus}]", terms, lower=d, upper=d)

    return block


def line_limit_rows(network: Network, cols: ScenarioColumns) -> RowBlock:
    """Flow limit rows for every in-service branch of one scenario."""
    sc = cols.scenario
    block = RowBlock()

    for bid in sc.in_service_branches:
        br = network.branch(bid)
        lo, hi = float(br.lower_mw), float(br.upper_mw)
        if math.isinf(lo) and math.isinf(hi) and lo < 0 < hi:
            continue
        b = br.susceptance
        block.add_row(
            f"flow[{sc.label},{bid}]",
            ((cols.angle[bid.from_bus], b), (cols.angle[bid.to_bus], -b)),
            lower=lo,
            upper=hi,
        )

    return block


def generator_response_rows(
    network: Network, cols: ScenarioColumns, base: ScenarioColumns
) -> RowBlock:
    """Rows linking contingency-scenario generation to base-case generation."""
    sc = cols.scenario
    block = RowBlock()

    if sc.kind == BASE:
        return block

    if sc.kind == BRANCH:
        for gid, col in cols.generation.items():
            block.add_row(
                f"response[{sc.label},{gid}]",
                ((col, 1.0), (base.generation[gid], -1.0)),
                lower=0.0,
                upper=0.0,
            )
        return block

    if sc.kind == GENERATOR:
        if cols.omega is None:
            raise ValueError(f"Scenario {sc.label} has no omega column")
        for gid, col in cols.generation.items():
            alpha = float(network.generator(gid).alpha)
            block.add_row(
                f"response[{sc.label},{gid}]",
                ((col, 1.0), (base.generation[gid], -1.0), (cols.omega, -alpha)),
                lower=0.0,
                upper=0.0,
            )
        return block

    raise ValueError(f"Unknown scenario kind: {sc.kind!r}")


def scenario_rows(
    network: Network, cols: ScenarioColumns, base: ScenarioColumns
) -> list[RowBlock]:
    """All row blocks of one scenario, in fixed order (balance, limits, response)."""
    blocks = [
        power_balance_rows(network, cols),
        line_limit_rows(network, cols),
        generator_response_rows(network, cols, base),
    ]
    logger.debug(
        "Scenario %s: %d balance, %d limit, %d response rows",
        cols.label,
        blocks[0].n_rows,
        blocks[1].n_rows,
        blocks[2].n_rows,
    )
    return blocks
