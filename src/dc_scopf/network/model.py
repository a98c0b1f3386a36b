from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

import numpy as np

from dc_scopf.errors import ValidationError

from .elements import Branch, BranchId, Bus, Generator, GeneratorId

logger = logging.getLogger(__name__)

_X_EPS = 1e-12


@dataclass(frozen=True)
class Network:
    """
    Immutable DC network snapshot for one model build.

    Notes
    -----
    - buses, branches and generators are sorted by id to keep deterministic ordering
      (column and row order of the LP follows these tuples).
    - Lookup maps are read-only views built once by `build_network`.
    - Scenarios never copy this object; they reference elements by id.
    """

    buses: tuple[Bus, ...]
    branches: tuple[Branch, ...]
    generators: tuple[Generator, ...]
    reference_bus: int

    bus_pos: Mapping[int, int]
    branch_pos: Mapping[BranchId, int]
    generator_pos: Mapping[GeneratorId, int]

    branches_at_bus: Mapping[int, tuple[BranchId, ...]]
    generators_at_bus: Mapping[int, tuple[GeneratorId, ...]]

    @property
    def n_bus(self) -> int:
        return int(len(self.buses))

    @property
    def n_branch(self) -> int:
        return int(len(self.branches))

    @property
    def n_generator(self) -> int:
        return int(len(self.generators))

    @property
    def bus_ids(self) -> tuple[int, ...]:
        return tuple(b.id for b in self.buses)

    @property
    def branch_ids(self) -> tuple[BranchId, ...]:
        return tuple(br.id for br in self.branches)

    @property
    def generator_ids(self) -> tuple[GeneratorId, ...]:
        return tuple(g.id for g in self.generators)

    @property
    def total_demand_mw(self) -> float:
        return float(sum(b.demand_mw for b in self.buses))

    def demand(self, bus_id: int) -> float:
        return float(self.buses[self.bus_pos[int(bus_id)]].demand_mw)

    def branch(self, branch_id: Sequence[int]) -> Branch:
        return self.branches[self.branch_pos[BranchId(*branch_id)]]

    def generator(self, generator_id: Sequence[int]) -> Generator:
        return self.generators[self.generator_pos[GeneratorId(*generator_id)]]

    def susceptances(self) -> np.ndarray:
        """Branch susceptances (MW/deg) aligned with `branches` ordering."""
        return np.asarray([br.susceptance for br in self.branches], dtype=float)


def _as_int(value: Any, what: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{what} must be an integer; got {value!r}") from e


def _as_float(value: Any, what: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{what} must be a number; got {value!r}") from e


def _bus_ids_from_input(buses: int | Iterable[int]) -> list[int]:
    if isinstance(buses, (int, np.integer)):
        n = int(buses)
        if n <= 0:
            raise ValidationError(f"Number of buses must be positive; got {n}")
        return list(range(1, n + 1))

    ids = [_as_int(b, "Bus id") for b in buses]
    if not ids:
        raise ValidationError("Network must contain at least one bus.")
    seen: set[int] = set()
    dups: list[int] = []
    for b in ids:
        if b in seen:
            dups.append(b)
        seen.add(b)
    if dups:
        raise ValidationError(f"Duplicate bus identifiers: {sorted(set(dups))}")
    return sorted(ids)


def _coerce_branch(item: Any) -> Branch:
    if isinstance(item, Branch):
        item = (
            item.from_bus,
            item.to_bus,
            item.parallel,
            item.reactance,
            item.lower_mw,
            item.upper_mw,
        )
    try:
        f, t, k, x, lo, hi = item
    except (TypeError, ValueError) as e:
        raise ValidationError(
            "Branch records must be Branch instances or "
            f"(from, to, parallel, reactance, lower, upper); got {item!r}"
        ) from e
    return Branch(
        from_bus=_as_int(f, "Branch from_bus"),
        to_bus=_as_int(t, "Branch to_bus"),
        parallel=_as_int(k, "Branch parallel index"),
        reactance=_as_float(x, f"Branch {f}-{t}-{k} reactance"),
        lower_mw=_as_float(lo, f"Branch {f}-{t}-{k} lower limit"),
        upper_mw=_as_float(hi, f"Branch {f}-{t}-{k} upper limit"),
    )


def _coerce_generator(item: Any) -> Generator:
    if isinstance(item, Generator):
        item = (item.bus, item.unit, item.pg_min, item.pg_max, item.cost, item.alpha)
    try:
        b, u, pmin, pmax, cost, alpha = item
    except (TypeError, ValueError) as e:
        raise ValidationError(
            "Generator records must be Generator instances or "
            f"(bus, unit, pg_min, pg_max, cost, alpha); got {item!r}"
        ) from e
    return Generator(
        bus=_as_int(b, "Generator bus"),
        unit=_as_int(u, "Generator unit"),
        pg_min=_as_float(pmin, f"Generator {b}-{u} pg_min"),
        pg_max=_as_float(pmax, f"Generator {b}-{u} pg_max"),
        cost=_as_float(cost, f"Generator {b}-{u} cost"),
        alpha=_as_float(alpha, f"Generator {b}-{u} alpha"),
    )


def _validate_branch(br: Branch, bus_set: set[int]) -> None:
    bid = br.id
    for end in (bid.from_bus, bid.to_bus):
        if end not in bus_set:
            raise ValidationError(f"Branch {bid}: endpoint bus {end} does not exist.")
    if bid.from_bus == bid.to_bus:
        raise ValidationError(f"Branch {bid}: from_bus and to_bus must differ.")

    x = br.reactance
    if not math.isfinite(x) or abs(x) <= _X_EPS:
        raise ValidationError(
            f"Branch {bid}: reactance must be finite and non-zero; got {x!r}"
        )

    # Infinite limits mean "unbounded" on their own side only.
    lo, hi = br.lower_mw, br.upper_mw
    if math.isnan(lo) or math.isnan(hi):
        raise ValidationError(f"Branch {bid}: flow limits must not be NaN.")
    if lo == math.inf or hi == -math.inf:
        raise ValidationError(
            f"Branch {bid}: limits [{lo}, {hi}] admit no finite flow."
        )
    if lo > hi:
        raise ValidationError(
            f"Branch {bid}: lower limit {lo} exceeds upper limit {hi}."
        )


def _validate_generator(g: Generator, bus_set: set[int]) -> None:
    gid = g.id
    if gid.bus not in bus_set:
        raise ValidationError(f"Generator {gid}: bus {gid.bus} does not exist.")

    pmin, pmax = g.pg_min, g.pg_max
    if math.isnan(pmin) or math.isnan(pmax):
        raise ValidationError(f"Generator {gid}: output bounds must not be NaN.")
    if pmin == math.inf or pmax == -math.inf:
        raise ValidationError(
            f"Generator {gid}: bounds [{pmin}, {pmax}] admit no finite output."
        )
    if pmin > pmax:
        raise ValidationError(
            f"Generator {gid}: pg_min={pmin} exceeds pg_max={pmax}."
        )
    if not math.isfinite(g.cost):
        raise ValidationError(f"Generator {gid}: cost must be finite; got {g.cost!r}")
    if not math.isfinite(g.alpha):
        raise ValidationError(
            f"Generator {gid}: participation factor must be finite; got {g.alpha!r}"
        )


def build_network(
    buses: int | Iterable[int],
    branches: Iterable[Any],
    generators: Iterable[Any],
    demand: Mapping[int, float] | None = None,
    *,
    reference_bus: int | None = None,
) -> Network:
    """
    Validate raw topology/element data and build an immutable Network.

    Parameters
    ----------
    buses:
        Either a bus count n (ids 1..n) or an explicit iterable of unique bus ids.
    branches:
        Branch instances or (from, to, parallel, reactance, lower, upper) sequences.
    generators:
        Generator instances or (bus, unit, pg_min, pg_max, cost, alpha) sequences.
    demand:
        Mapping bus -> MW. Buses not listed have zero demand.
    reference_bus:
        Bus whose angle is the reference (default: smallest bus id).

    Returns
    -------
    Network
        Immutable snapshot; elements sorted by id.

    Raises
    ------
    ValidationError
        On any malformed input. Nothing is built when this is raised.
    """
    bus_ids = _bus_ids_from_input(buses)
    bus_set = set(bus_ids)

    demand_map: dict[int, float] = {}
    for b, p in dict(demand or {}).items():
        bi = _as_int(b, "Demand bus id")
        if bi not in bus_set:
            raise ValidationError(f"Demand given for unknown bus {bi}.")
        pf = _as_float(p, f"Demand at bus {bi}")
        if not math.isfinite(pf):
            raise ValidationError(f"Demand at bus {bi} must be finite; got {p!r}")
        demand_map[bi] = pf

    branch_list = [_coerce_branch(x) for x in branches]
    branch_ids_seen: set[BranchId] = set()
    for br in branch_list:
        _validate_branch(br, bus_set)
        if br.id in branch_ids_seen:
            raise ValidationError(f"Duplicate branch identifier {br.id}.")
        branch_ids_seen.add(br.id)

    gen_list = [_coerce_generator(x) for x in generators]
    gen_ids_seen: set[GeneratorId] = set()
    for g in gen_list:
        _validate_generator(g, bus_set)
        if g.id in gen_ids_seen:
            raise ValidationError(f"Duplicate generator identifier {g.id}.")
        gen_ids_seen.add(g.id)

    ref = (
        bus_ids[0]
        if reference_bus is None
        else _as_int(reference_bus, "Reference bus")
    )
    if ref not in bus_set:
        raise ValidationError(f"Reference bus {ref} does not exist.")

    bus_tuple = tuple(Bus(id=b, demand_mw=demand_map.get(b, 0.0)) for b in bus_ids)
    branch_tuple = tuple(sorted(branch_list, key=lambda br: br.id))
    gen_tuple = tuple(sorted(gen_list, key=lambda g: g.id))

    branches_at: dict[int, list[BranchId]] = {b: [] for b in bus_ids}
    for br in branch_tuple:
        branches_at[br.id.from_bus].append(br.id)
        branches_at[br.id.to_bus].append(br.id)

    gens_at: dict[int, list[GeneratorId]] = {b: [] for b in bus_ids}
    for g in gen_tuple:
        gens_at[g.id.bus].append(g.id)

    net = Network(
        buses=bus_tuple,
        branches=branch_tuple,
        generators=gen_tuple,
        reference_bus=ref,
        bus_pos=MappingProxyType({b.id: i for i, b in enumerate(bus_tuple)}),
        branch_pos=MappingProxyType({br.id: i for i, br in enumerate(branch_tuple)}),
        generator_pos=MappingProxyType({g.id: i for i, g in enumerate(gen_tuple)}),
        branches_at_bus=MappingProxyType(
            {b: tuple(v) for b, v in branches_at.items()}
        ),
        generators_at_bus=MappingProxyType(
            {b: tuple(v) for b, v in gens_at.items()}
        ),
    )

    logger.debug(
        "Network built: n_bus=%d n_branch=%d n_gen=%d total_demand=%.6g MW ref_bus=%d",
        net.n_bus,
        net.n_branch,
        net.n_generator,
        net.total_demand_mw,
        net.reference_bus,
    )
    return net
