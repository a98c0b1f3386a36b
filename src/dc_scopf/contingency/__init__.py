"""
Contingency expansion (N-1 branch and generator outages).
"""

from __future__ import annotations

from .expander import (
    BranchContingency,
    BranchScenario,
    ContingencySet,
    GeneratorContingency,
    GeneratorScenario,
    expand_contingencies,
)

__all__ = [
    "BranchContingency",
    "BranchScenario",
    "ContingencySet",
    "GeneratorContingency",
    "GeneratorScenario",
    "expand_contingencies",
]
