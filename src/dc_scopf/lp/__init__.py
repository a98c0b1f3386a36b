"""
LP container and solver adapter.

Project policy
--------------
The assembled program is solved ONLY via HiGHS (through scipy.optimize.linprog).
"""

from __future__ import annotations

from .container import LinearProgram, LinearProgramBuilder, RowBlock
from .highs import LPSolution, solve_linear_program

__all__ = [
    "LPSolution",
    "LinearProgram",
    "LinearProgramBuilder",
    "RowBlock",
    "solve_linear_program",
]
