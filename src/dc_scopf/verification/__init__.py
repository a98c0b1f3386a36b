"""
Post-solve verification of SCOPF results against the network data.
"""

from __future__ import annotations

from .check import verify_solution
from .types import CHECK_FAIL, CHECK_OK, ScenarioCheck, SolutionCheck

__all__ = [
    "CHECK_FAIL",
    "CHECK_OK",
    "ScenarioCheck",
    "SolutionCheck",
    "verify_solution",
]
