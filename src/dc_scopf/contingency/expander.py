from __future__ import annotations

"""
N-1 contingency expansion.

A raw contingency list (branch references and generator references, possibly with
duplicates, in any order) is turned into two disjoint, key-ordered scenario maps.
Ordering by key makes the scenario arena, and therefore the LP column/row layout,
independent of the input order.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from dc_scopf.errors import ValidationError
from dc_scopf.network.elements import Branch, BranchId, Generator, GeneratorId
from dc_scopf.network.model import Network

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BranchContingency:
    branch: BranchId


@dataclass(frozen=True)
class GeneratorContingency:
    generator: GeneratorId


@dataclass(frozen=True)
class BranchScenario:
    """Outage of `failed`; every other branch stays in service."""

    failed: BranchId
    in_service: tuple[BranchId, ...]


@dataclass(frozen=True)
class GeneratorScenario:
    """Outage of `failed`; `surviving` respond through their participation factors."""

    failed: GeneratorId
    surviving: tuple[GeneratorId, ...]

    @property
    def is_degenerate(self) -> bool:
        """True when no generator is left to pick up the lost output."""
        return len(self.surviving) == 0


@dataclass(frozen=True)
class ContingencySet:
    branch_scenarios: Mapping[BranchId, BranchScenario]
    generator_scenarios: Mapping[GeneratorId, GeneratorScenario]

    @property
    def n_scenarios(self) -> int:
        """Number of contingency scenarios (base case excluded)."""
        return int(len(self.branch_scenarios) + len(self.generator_scenarios))

    @property
    def is_empty(self) -> bool:
        return self.n_scenarios == 0


def _branch_ref(item: Any) -> BranchId:
    if isinstance(item, BranchContingency):
        item = item.branch
    elif isinstance(item, Branch):
        return item.id
    try:
        f, t, k = item
        return BranchId(int(f), int(t), int(k))
    except (TypeError, ValueError) as e:
        raise ValidationError(
            f"Branch contingency must reference (from, to, parallel); got {item!r}"
        ) from e


def _generator_ref(item: Any) -> GeneratorId:
    if isinstance(item, GeneratorContingency):
        item = item.generator
    elif isinstance(item, Generator):
        return item.id
    try:
        b, u = item
        return GeneratorId(int(b), int(u))
    except (TypeError, ValueError) as e:
        raise ValidationError(
            f"Generator contingency must reference (bus, unit); got {item!r}"
        ) from e


def expand_contingencies(
    network: Network,
    branch_outages: Iterable[Any] = (),
    generator_outages: Iterable[Any] = (),
) -> ContingencySet:
    """
    Expand raw contingency references into branch and generator scenario sets.

    Parameters
    ----------
    network:
        Validated network snapshot.
    branch_outages:
        BranchId / (from, to, parallel) tuples / Branch / BranchContingency items.
    generator_outages:
        GeneratorId / (bus, unit) tuples / Generator / GeneratorContingency items.

    Returns
    -------
    ContingencySet
        Scenario maps ordered by key. Duplicates are collapsed.

    Raises
    ------
    ValidationError
        If a reference does not exist in the network.
    """
    branch_keys: set[BranchId] = set()
    for item in branch_outages:
        key = _branch_ref(item)
        if key not in network.branch_pos:
            raise ValidationError(f"Branch contingency references unknown branch {key}.")
        branch_keys.add(key)

    gen_keys: set[GeneratorId] = set()
    for item in generator_outages:
        key = _generator_ref(item)
        if key not in network.generator_pos:
            raise ValidationError(
                f"Generator contingency references unknown generator {key}."
            )
        gen_keys.add(key)

    all_branches = network.branch_ids
    branch_scenarios = {
        key: BranchScenario(
            failed=key, in_service=tuple(b for b in all_branches if b != key)
        )
        for key in sorted(branch_keys)
    }

    all_gens = network.generator_ids
    generator_scenarios: dict[GeneratorId, GeneratorScenario] = {}
    for key in sorted(gen_keys):
        sc = GeneratorScenario(
            failed=key, surviving=tuple(g for g in all_gens if g != key)
        )
        if sc.is_degenerate:
            logger.warning(
                "Generator contingency %s removes the only generator; "
                "no unit can respond in that scenario.",
                key,
            )
        generator_scenarios[key] = sc

    out = ContingencySet(
        branch_scenarios=MappingProxyType(branch_scenarios),
        generator_scenarios=MappingProxyType(generator_scenarios),
    )
    logger.debug(
        "Contingencies expanded: %d branch, %d generator",
        len(branch_scenarios),
        len(generator_scenarios),
    )
    return out
