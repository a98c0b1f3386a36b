from __future__ import annotations

"""
High-level workflows (library API).

Public API
----------
- prepare_model(...): validate contingencies and assemble the LP without solving
- solve_scopf(...): end-to-end expand -> assemble -> solve (HiGHS) -> map

Validation is all-or-nothing: `build_network` (called by the user) and
`expand_contingencies` (called here) raise `ValidationError` before any column or
row exists, so the solver never sees a partial model.
"""

import logging
from collections.abc import Iterable
from typing import Any

from dc_scopf.assembly.builder import SCOPFModel, build_scopf_model
from dc_scopf.config import DEFAULT_CONFIG, SCOPFConfig
from dc_scopf.contingency.expander import expand_contingencies
from dc_scopf.lp.highs import solve_linear_program
from dc_scopf.network.model import Network
from dc_scopf.results import SCOPFResult, map_solution
from dc_scopf.utils import log_stage

logger = logging.getLogger(__name__)


def prepare_model(
    network: Network,
    branch_outages: Iterable[Any] = (),
    generator_outages: Iterable[Any] = (),
    *,
    config: SCOPFConfig = DEFAULT_CONFIG,
) -> SCOPFModel:
    """
    Expand the contingency list and assemble the SCOPF program.

    Returns
    -------
    SCOPFModel
        Assembled model; rebuilding from identical inputs yields an identical LP.
    """
    with log_stage(logger, "Expand contingencies"):
        contingencies = expand_contingencies(
            network, branch_outages=branch_outages, generator_outages=generator_outages
        )

    with log_stage(logger, "Assemble SCOPF LP"):
        model = build_scopf_model(network, contingencies, assembly=config.assembly)

    return model


def solve_model(model: SCOPFModel, *, config: SCOPFConfig = DEFAULT_CONFIG) -> SCOPFResult:
    """Solve an assembled model and map the solution to named quantities."""
    with log_stage(logger, "Solve LP (HiGHS)"):
        sol = solve_linear_program(model.lp, highs=config.highs)

    with log_stage(logger, "Map results"):
        result = map_solution(model, sol)

    logger.info(
        "SCOPF solved: total_cost=%.6g, %d branch and %d generator scenarios",
        result.total_cost,
        len(result.branch_scenarios),
        len(result.generator_scenarios),
    )
    return result


def solve_scopf(
    network: Network,
    branch_outages: Iterable[Any] = (),
    generator_outages: Iterable[Any] = (),
    *,
    config: SCOPFConfig = DEFAULT_CONFIG,
) -> SCOPFResult:
    """
    Build and solve the preventive DC-SCOPF for `network`.

    Parameters
    ----------
    network:
        Validated network (see `dc_scopf.network.build_network`).
    branch_outages, generator_outages:
        Contingency references; duplicates collapse.
    config:
        Solver and assembly options.

    Returns
    -------
    SCOPFResult

    Raises
    ------
    ValidationError
        A contingency references a non-existent element.
    InfeasibleModel, UnboundedModel, SolverFailure
        Non-optimal solver outcome, surfaced without further diagnosis.
    """
    model = prepare_model(
        network,
        branch_outages=branch_outages,
        generator_outages=generator_outages,
        config=config,
    )
    return solve_model(model, config=config)
