"""
dc_scopf package.

The repository uses a `src/` layout. Library code lives under `src/dc_scopf`.

Public API
----------
- `build_network`: validate raw topology/element data into an immutable Network.
- `expand_contingencies`: N-1 branch/generator outage scenarios.
- `prepare_model`: assemble the preventive DC-SCOPF linear program.
- `solve_scopf`: end-to-end pipeline (validate -> assemble -> HiGHS -> named results).
"""

from __future__ import annotations

from .assembly import SCOPFModel, build_scopf_model
from .contingency import expand_contingencies
from .errors import (
    InfeasibleModel,
    SCOPFError,
    SolverFailure,
    UnboundedModel,
    ValidationError,
)
from .network import Branch, BranchId, Bus, Generator, GeneratorId, Network, build_network
from .results import SCOPFResult, ScenarioResult
from .workflows import prepare_model, solve_model, solve_scopf

__all__ = [
    "__version__",
    "Branch",
    "BranchId",
    "Bus",
    "Generator",
    "GeneratorId",
    "InfeasibleModel",
    "Network",
    "SCOPFError",
    "SCOPFModel",
    "SCOPFResult",
    "ScenarioResult",
    "SolverFailure",
    "UnboundedModel",
    "ValidationError",
    "build_network",
    "build_scopf_model",
    "expand_contingencies",
    "prepare_model",
    "solve_model",
    "solve_scopf",
]

__version__ = "0.1.0"
