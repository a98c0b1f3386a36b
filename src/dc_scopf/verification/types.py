from __future__ import annotations

"""
Typed post-solve verification results.

Goals
-----
- Component-level numbers + explicit reasons list (no status string concatenation)
- Deterministic, JSON-friendly structures (dataclasses)

Overall status semantics
------------------------
- CHECK_FAIL if any scenario fails
- CHECK_OK otherwise
"""

from dataclasses import asdict, dataclass
from typing import Any

CHECK_OK = "CHECK_OK"
CHECK_FAIL = "CHECK_FAIL"

# ---------- Reasons ----------
REASON_BALANCE = "balance_residual"
REASON_LINE_LIMIT = "line_limit_violation"
REASON_GEN_BOUNDS = "generator_bound_violation"
REASON_RESPONSE = "response_residual"
REASON_OMEGA = "omega_mismatch"
REASON_FAILED_UNIT_DISPATCHED = "failed_unit_dispatched"


@dataclass(frozen=True)
class ScenarioCheck:
    """
    Re-evaluated physics of one scenario.

    Fields
    ------
    omega_mismatch_mw:
        |omega * sum(alpha of surviving units) - pg[failed]| for generator outages;
        None for base/branch scenarios or when no surviving unit has alpha != 0.
    """

    label: str
    kind: str
    status: str

    max_balance_residual_mw: float
    max_line_violation_mw: float
    max_gen_bound_violation_mw: float
    max_response_residual_mw: float
    omega_mismatch_mw: float | None

    reasons: tuple[str, ...] = ()


@dataclass(frozen=True)
class SolutionCheck:
    status: str
    tol_mw: float
    scenarios: tuple[ScenarioCheck, ...]

    @property
    def ok(self) -> bool:
        return self.status == CHECK_OK

    def failed_scenarios(self) -> tuple[ScenarioCheck, ...]:
        return tuple(s for s in self.scenarios if s.status != CHECK_OK)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
