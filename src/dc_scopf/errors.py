from __future__ import annotations

"""
Error taxonomy and run status labels.

Two families are kept apart on purpose:

- `ValidationError`: the input network / contingency list is malformed. Raised before
  any column or row is assembled, so no partial model ever reaches the solver.
- `SolveError` subclasses: the assembled LP was handed to HiGHS and the solver reported
  a non-optimal outcome. The status is surfaced verbatim, no relaxation or diagnosis
  is attempted.
"""

STATUS_OPTIMAL = "optimal"
STATUS_INFEASIBLE = "infeasible"
STATUS_UNBOUNDED = "unbounded"
STATUS_SOLVER_ERROR = "solver_error"
STATUS_INVALID_INPUT = "invalid_input"


class SCOPFError(Exception):
    """Base class for all errors raised by this package."""

    status: str = STATUS_SOLVER_ERROR


class ValidationError(SCOPFError, ValueError):
    """Malformed topology, element data or contingency reference."""

    status = STATUS_INVALID_INPUT


class SolveError(SCOPFError):
    """
    The LP solver finished without an optimal solution.

    Attributes
    ----------
    solver_message:
        Solver-provided message (HiGHS status text), kept for logs.
    """

    def __init__(self, message: str = "", *, solver_message: str = "") -> None:
        super().__init__(message or solver_message or self.status)
        self.solver_message = str(solver_message)


class InfeasibleModel(SolveError):
    status = STATUS_INFEASIBLE


class UnboundedModel(SolveError):
    status = STATUS_UNBOUNDED


class SolverFailure(SolveError):
    """Solver crash, iteration/time limit or numerical trouble."""

    status = STATUS_SOLVER_ERROR
