from __future__ import annotations

"""
Scenario arena and per-scenario column allocation.

Every scenario (base case, each branch outage, each generator outage) owns one
contiguous range of LP columns:

- theta[<label>,<bus>]         angle per bus (deg), free; reference bus fixed at 0
- pg / pg_bc / pg_gc[<label>,<gen>]
                               generation per online unit, bounded by [pg_min, pg_max]
- omega[<label>]               lost-generation variable (generator outages only), free

Scenarios reference the shared Network by id; no network data is duplicated.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from dc_scopf.contingency.expander import ContingencySet
from dc_scopf.lp.container import LinearProgramBuilder
from dc_scopf.network.elements import BranchId, GeneratorId
from dc_scopf.network.model import Network

logger = logging.getLogger(__name__)

BASE = "base"
BRANCH = "branch"
GENERATOR = "generator"

_GEN_PREFIX = {BASE: "pg", BRANCH: "pg_bc", GENERATOR: "pg_gc"}


@dataclass(frozen=True)
class Scenario:
    kind: str  # BASE | BRANCH | GENERATOR
    key: BranchId | GeneratorId | None
    label: str
    in_service_branches: tuple[BranchId, ...]
    online_generators: tuple[GeneratorId, ...]

    @property
    def failed_branch(self) -> BranchId | None:
        return self.key if self.kind == BRANCH else None  # type: ignore[return-value]


@dataclass(frozen=True)
class ScenarioColumns:
    """Column positions owned by one scenario."""

    scenario: Scenario
    angle: Mapping[int, int]
    generation: Mapping[GeneratorId, int]
    omega: int | None
    col_start: int
    col_end: int  # exclusive

    @property
    def label(self) -> str:
        return self.scenario.label

    @property
    def n_cols(self) -> int:
        return int(self.col_end - self.col_start)


def scenario_label(kind: str, key: BranchId | GeneratorId | None) -> str:
    if kind == BASE:
        return "base"
    if kind == BRANCH:
        return f"br:{key}"
    if kind == GENERATOR:
        return f"gen:{key}"
    raise ValueError(f"Unknown scenario kind: {kind!r}")


def enumerate_scenarios(
    network: Network, contingencies: ContingencySet
) -> tuple[Scenario, ...]:
    """Return the scenario arena in order: base, branch outages, generator outages."""
    all_branches = network.branch_ids
    all_gens = network.generator_ids

    out: list[Scenario] = [
        Scenario(
            kind=BASE,
            key=None,
            label=scenario_label(BASE, None),
            in_service_branches=all_branches,
            online_generators=all_gens,
        )
    ]
    for key, bsc in contingencies.branch_scenarios.items():
        out.append(
            Scenario(
                kind=BRANCH,
                key=key,
                label=scenario_label(BRANCH, key),
                in_service_branches=bsc.in_service,
                online_generators=all_gens,
            )
        )
    for key, gsc in contingencies.generator_scenarios.items():
        out.append(
            Scenario(
                kind=GENERATOR,
                key=key,
                label=scenario_label(GENERATOR, key),
                in_service_branches=all_branches,
                online_generators=gsc.surviving,
            )
        )
    return tuple(out)


def allocate_columns(
    builder: LinearProgramBuilder,
    network: Network,
    scenario: Scenario,
    *,
    fix_reference_angle: bool = True,
) -> ScenarioColumns:
    """Register the angle, generation and omega columns of one scenario."""
    start = builder.n_cols
    label = scenario.label

    angle: dict[int, int] = {}
    for bus in network.bus_ids:
        if fix_reference_angle and bus == network.reference_bus:
            lo, hi = 0.0, 0.0
        else:
            lo, hi = -math.inf, math.inf
        angle[bus] = builder.add_column(f"theta[{label},{bus}]", lower=lo, upper=hi)

    prefix = _GEN_PREFIX[scenario.kind]
    generation: dict[GeneratorId, int] = {}
    for gid in scenario.online_generators:
        g = network.generator(gid)
        generation[gid] = builder.add_column(
            f"{prefix}[{label},{gid}]", lower=g.pg_min, upper=g.pg_max
        )

    omega = None
    if scenario.kind == GENERATOR:
        omega = builder.add_column(f"omega[{label}]")

    cols = ScenarioColumns(
        scenario=scenario,
        angle=MappingProxyType(angle),
        generation=MappingProxyType(generation),
        omega=omega,
        col_start=start,
        col_end=builder.n_cols,
    )
    logger.debug("Scenario %s: columns [%d, %d)", label, cols.col_start, cols.col_end)
    return cols
