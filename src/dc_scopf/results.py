from __future__ import annotations

"""
Mapping of an LP solution back to named SCOPF quantities.

Units
-----
- dispatch / flows: MW
- angles: deg
- prices: $/MWh (dual of the bus power-balance row, d cost / d demand)
- omega: MW-equivalent lost-generation variable of a generator outage
"""

import logging
from dataclasses import dataclass

from dc_scopf.assembly.builder import SCOPFModel
from dc_scopf.assembly.scenarios import GENERATOR, ScenarioColumns
from dc_scopf.lp.highs import LPSolution
from dc_scopf.network.elements import BranchId, GeneratorId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScenarioResult:
    kind: str
    label: str
    key: BranchId | GeneratorId | None

    dispatch: dict[GeneratorId, float]  # online generators only
    angles: dict[int, float]
    flows: dict[BranchId, float]  # in-service branches only
    prices: dict[int, float]
    omega: float | None = None


@dataclass(frozen=True)
class SCOPFResult:
    status: str
    total_cost: float
    base: ScenarioResult
    branch_scenarios: dict[BranchId, ScenarioResult]
    generator_scenarios: dict[GeneratorId, ScenarioResult]

    @property
    def dispatch(self) -> dict[GeneratorId, float]:
        """Base-case dispatch (the preventive decision)."""
        return self.base.dispatch


def _scenario_result(
    model: SCOPFModel, cols: ScenarioColumns, sol: LPSolution
) -> ScenarioResult:
    net = model.network
    sc = cols.scenario
    x = sol.x

    angles = {bus: float(x[c]) for bus, c in cols.angle.items()}
    dispatch = {gid: float(x[c]) for gid, c in cols.generation.items()}
    flows = {
        bid: float(
            net.branch(bid).susceptance
            * (angles[bid.from_bus] - angles[bid.to_bus])
        )
        for bid in sc.in_service_branches
    }

    lp = model.lp
    prices = {
        bus: float(sol.row_duals[lp.row(f"balance[{sc.label},{bus}]")])
        for bus in net.bus_ids
    }

    omega = None
    if sc.kind == GENERATOR and cols.omega is not None:
        omega = float(x[cols.omega])

    return ScenarioResult(
        kind=sc.kind,
        label=sc.label,
        key=sc.key,
        dispatch=dispatch,
        angles=angles,
        flows=flows,
        prices=prices,
        omega=omega,
    )


def map_solution(model: SCOPFModel, sol: LPSolution) -> SCOPFResult:
    """Turn an optimal LPSolution into per-scenario named results."""
    if sol.x.shape != (model.lp.n_cols,):
        raise ValueError(
            f"Solution has {sol.x.shape} entries; model has {model.lp.n_cols} columns"
        )

    base = _scenario_result(model, model.base, sol)
    branch = {
        key: _scenario_result(model, cols, sol)
        for key, cols in model.branch_columns.items()
    }
    gen = {
        key: _scenario_result(model, cols, sol)
        for key, cols in model.generator_columns.items()
    }

    res = SCOPFResult(
        status=sol.status,
        total_cost=float(sol.objective),
        base=base,
        branch_scenarios=branch,
        generator_scenarios=gen,
    )
    logger.debug(
        "Mapped solution: total_cost=%.6g base_dispatch=%s",
        res.total_cost,
        {str(k): round(v, 6) for k, v in base.dispatch.items()},
    )
    return res
