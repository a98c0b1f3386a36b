from __future__ import annotations

import logging

from dc_scopf.lp.container import LinearProgramBuilder
from dc_scopf.network.model import Network

from .scenarios import BASE, ScenarioColumns

logger = logging.getLogger(__name__)


def apply_generation_cost(
    builder: LinearProgramBuilder, network: Network, base: ScenarioColumns
) -> None:
    """
    Set the objective: minimize sum_g cost[g] * pg[g] over base-case generation.

    Contingency generation columns keep zero cost; they are tied to the base case by
    the response rows instead.
    """
    if base.scenario.kind != BASE:
        raise ValueError("Generation cost applies to base-case columns only.")
    for gid, col in base.generation.items():
        builder.set_cost(col, network.generator(gid).cost)
    logger.debug("Objective: %d cost terms", len(base.generation))
