"""
Model assembly: scenario arena, constraint generation and objective.
"""

from __future__ import annotations

from .builder import SCOPFModel, build_scopf_model
from .constraints import (
    generator_response_rows,
    line_limit_rows,
    power_balance_rows,
    scenario_rows,
)
from .objective import apply_generation_cost
from .scenarios import (
    BASE,
    BRANCH,
    GENERATOR,
    Scenario,
    ScenarioColumns,
    allocate_columns,
    enumerate_scenarios,
)

__all__ = [
    "BASE",
    "BRANCH",
    "GENERATOR",
    "SCOPFModel",
    "Scenario",
    "ScenarioColumns",
    "allocate_columns",
    "apply_generation_cost",
    "build_scopf_model",
    "enumerate_scenarios",
    "generator_response_rows",
    "line_limit_rows",
    "power_balance_rows",
    "scenario_rows",
]
