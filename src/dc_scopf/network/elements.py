from __future__ import annotations

"""
Typed network element records.

Units
-----
- angle: degrees
- reactance: deg/MW
- susceptance: MW/deg (= 1 / reactance)
- power / flow / limits: MW
- cost: $/MWh
"""

from dataclasses import dataclass
from typing import NamedTuple


class BranchId(NamedTuple):
    """Branch identifier triplet; flow is measured from `from_bus` to `to_bus`."""

    from_bus: int
    to_bus: int
    parallel: int

    def __str__(self) -> str:
        return f"{self.from_bus}-{self.to_bus}-{self.parallel}"


class GeneratorId(NamedTuple):
    bus: int
    unit: int

    def __str__(self) -> str:
        return f"{self.bus}-{self.unit}"


@dataclass(frozen=True)
class Bus:
    id: int
    demand_mw: float = 0.0


@dataclass(frozen=True)
class Branch:
    """
    Series branch of the DC network.

    Notes
    -----
    - reactance may be negative (series compensation) but never ~0.
    - lower_mw / upper_mw may be -inf / +inf to leave that side unconstrained.
    """

    from_bus: int
    to_bus: int
    parallel: int
    reactance: float
    lower_mw: float
    upper_mw: float

    @property
    def id(self) -> BranchId:
        return BranchId(int(self.from_bus), int(self.to_bus), int(self.parallel))

    @property
    def susceptance(self) -> float:
        """DC branch coefficient b = 1/x in MW/deg."""
        return 1.0 / float(self.reactance)


@dataclass(frozen=True)
class Generator:
    """
    Dispatchable unit.

    alpha is the participation factor used only in generator-outage scenarios:
    a surviving unit moves by alpha * omega, where omega is the lost generation variable
    of that scenario.
    """

    bus: int
    unit: int
    pg_min: float
    pg_max: float
    cost: float
    alpha: float = 0.0

    @property
    def id(self) -> GeneratorId:
        return GeneratorId(int(self.bus), int(self.unit))
