from __future__ import annotations

"""
SCOPF model assembly.

Build order
-----------
1) enumerate the scenario arena (base, branch outages, generator outages)
2) allocate every scenario's columns, serially, so column positions do not depend on
   threading
3) build each scenario's row blocks; this loop is optionally run on a thread pool
4) append row blocks in scenario order and set the objective

Step 3 only reads the network and the (already final) column maps. Results are
collected with `Executor.map`, which preserves input order, so a parallel build
produces exactly the same LinearProgram as a serial one.
"""

import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from types import MappingProxyType

from dc_scopf.config import DEFAULT_ASSEMBLY, AssemblyConfig
from dc_scopf.contingency.expander import ContingencySet
from dc_scopf.lp.container import LinearProgram, LinearProgramBuilder, RowBlock
from dc_scopf.network.elements import BranchId, GeneratorId
from dc_scopf.network.model import Network

from .constraints import scenario_rows
from .objective import apply_generation_cost
from .scenarios import (
    BRANCH,
    GENERATOR,
    ScenarioColumns,
    allocate_columns,
    enumerate_scenarios,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SCOPFModel:
    """Assembled SCOPF program plus the maps needed to read its solution."""

    network: Network
    contingencies: ContingencySet
    scenarios: tuple[ScenarioColumns, ...]
    lp: LinearProgram

    branch_columns: Mapping[BranchId, ScenarioColumns]
    generator_columns: Mapping[GeneratorId, ScenarioColumns]

    @property
    def base(self) -> ScenarioColumns:
        return self.scenarios[0]


def _build_rows(
    network: Network,
    columns: tuple[ScenarioColumns, ...],
    base: ScenarioColumns,
    *,
    workers: int,
) -> list[list[RowBlock]]:
    if workers <= 1 or len(columns) <= 1:
        return [scenario_rows(network, c, base) for c in columns]

    logger.debug("Building %d scenario row sets on %d threads", len(columns), workers)
    with ThreadPoolExecutor(max_workers=int(workers)) as executor:
        return list(executor.map(lambda c: scenario_rows(network, c, base), columns))


def build_scopf_model(
    network: Network,
    contingencies: ContingencySet,
    *,
    assembly: AssemblyConfig = DEFAULT_ASSEMBLY,
) -> SCOPFModel:
    """
    Assemble the complete preventive DC-SCOPF linear program.

    Parameters
    ----------
    network:
        Validated network snapshot.
    contingencies:
        Output of `expand_contingencies` for the same network.
    assembly:
        Assembly options (thread count, reference angle handling).

    Returns
    -------
    SCOPFModel
        Frozen model with the LP and per-scenario column maps.
    """
    if int(assembly.workers) < 1:
        raise ValueError(f"assembly.workers must be >= 1; got {assembly.workers}")

    builder = LinearProgramBuilder()
    scenarios = enumerate_scenarios(network, contingencies)

    columns = tuple(
        allocate_columns(
            builder,
            network,
            sc,
            fix_reference_angle=bool(assembly.fix_reference_angle),
        )
        for sc in scenarios
    )
    base = columns[0]

    for blocks in _build_rows(network, columns, base, workers=int(assembly.workers)):
        for block in blocks:
            builder.add_rows(block)

    apply_generation_cost(builder, network, base)
    lp = builder.build()

    model = SCOPFModel(
        network=network,
        contingencies=contingencies,
        scenarios=columns,
        lp=lp,
        branch_columns=MappingProxyType(
            {c.scenario.key: c for c in columns if c.scenario.kind == BRANCH}
        ),
        generator_columns=MappingProxyType(
            {c.scenario.key: c for c in columns if c.scenario.kind == GENERATOR}
        ),
    )
    logger.info(
        "SCOPF model: %d scenarios (%d branch, %d generator), %d columns, %d rows",
        len(columns),
        len(model.branch_columns),
        len(model.generator_columns),
        lp.n_cols,
        lp.n_rows,
    )
    return model
