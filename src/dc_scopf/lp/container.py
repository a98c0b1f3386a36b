from __future__ import annotations

"""
Solver-agnostic LP container.

Representation
--------------
    minimize    c^T x
    subject to  row_lower <= A x <= row_upper
                col_lower <= x   <= col_upper

Equality rows have row_lower == row_upper. Infinite bounds are +/-inf.

Columns and rows are named so that results can be mapped back without relying on
positional conventions outside this module. The builder is mutable only while a
model is being assembled; `LinearProgramBuilder.build()` returns a frozen
`LinearProgram` with numpy arrays and a CSR matrix.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

import numpy as np
import scipy.sparse as sp

logger = logging.getLogger(__name__)


@dataclass
class RowBlock:
    """
    Accumulator for a group of rows built independently of other groups.

    Row indices in `rows` are local to the block (0..n_rows-1); they are shifted when
    the block is appended to a builder.
    """

    names: list[str] = field(default_factory=list)
    lower: list[float] = field(default_factory=list)
    upper: list[float] = field(default_factory=list)

    rows: list[int] = field(default_factory=list)
    cols: list[int] = field(default_factory=list)
    vals: list[float] = field(default_factory=list)

    @property
    def n_rows(self) -> int:
        return int(len(self.names))

    def add_row(
        self,
        name: str,
        terms: Mapping[int, float] | Iterable[tuple[int, float]],
        *,
        lower: float,
        upper: float,
    ) -> None:
        """
        Append one row.

        Duplicate columns in `terms` are summed; exact zero coefficients are dropped;
        coefficients are stored in ascending column order.
        """
        lo, hi = float(lower), float(upper)
        if math.isnan(lo) or math.isnan(hi) or lo > hi:
            raise ValueError(f"Row {name!r}: invalid bounds [{lo}, {hi}]")

        items = terms.items() if isinstance(terms, Mapping) else terms
        merged: dict[int, float] = {}
        for col, coef in items:
            merged[int(col)] = merged.get(int(col), 0.0) + float(coef)

        r = len(self.names)
        self.names.append(str(name))
        self.lower.append(lo)
        self.upper.append(hi)
        for col in sorted(merged):
            v = merged[col]
            if v == 0.0:
                continue
            self.rows.append(r)
            self.cols.append(col)
            self.vals.append(v)


@dataclass(frozen=True)
class LinearProgram:
    """Frozen LP in ranged-row form (see module docstring)."""

    col_names: tuple[str, ...]
    col_lower: np.ndarray
    col_upper: np.ndarray
    cost: np.ndarray

    row_names: tuple[str, ...]
    row_lower: np.ndarray
    row_upper: np.ndarray

    A: Any  # scipy.sparse.csr_matrix (n_rows x n_cols)

    col_index: Mapping[str, int]
    row_index: Mapping[str, int]

    @property
    def n_cols(self) -> int:
        return int(len(self.col_names))

    @property
    def n_rows(self) -> int:
        return int(len(self.row_names))

    @property
    def equality_mask(self) -> np.ndarray:
        return np.asarray(self.row_lower == self.row_upper, dtype=bool)

    def column(self, name: str) -> int:
        """Column position of `name` (KeyError if unknown)."""
        return int(self.col_index[name])

    def row(self, name: str) -> int:
        """Row position of `name` (KeyError if unknown)."""
        return int(self.row_index[name])

    def row_coefficients(self, name: str) -> dict[str, float]:
        """Non-zero coefficients of a row keyed by column name (diagnostics/tests)."""
        r = self.row(name)
        start, end = int(self.A.indptr[r]), int(self.A.indptr[r + 1])
        return {
            self.col_names[int(c)]: float(v)
            for c, v in zip(self.A.indices[start:end], self.A.data[start:end])
        }


class LinearProgramBuilder:
    """Column/row registry used while assembling a model."""

    def __init__(self) -> None:
        self._col_names: list[str] = []
        self._col_lower: list[float] = []
        self._col_upper: list[float] = []
        self._cost: list[float] = []
        self._col_index: dict[str, int] = {}

        self._blocks: list[RowBlock] = []
        self._row_names: set[str] = set()

    @property
    def n_cols(self) -> int:
        return int(len(self._col_names))

    @property
    def n_rows(self) -> int:
        return int(len(self._row_names))

    def add_column(
        self,
        name: str,
        *,
        lower: float = -math.inf,
        upper: float = math.inf,
        cost: float = 0.0,
    ) -> int:
        """Register a column and return its position."""
        if name in self._col_index:
            raise ValueError(f"Duplicate column name {name!r}")
        lo, hi = float(lower), float(upper)
        if math.isnan(lo) or math.isnan(hi) or lo > hi:
            raise ValueError(f"Column {name!r}: invalid bounds [{lo}, {hi}]")
        pos = len(self._col_names)
        self._col_names.append(str(name))
        self._col_lower.append(lo)
        self._col_upper.append(hi)
        self._cost.append(float(cost))
        self._col_index[str(name)] = pos
        return pos

    def set_cost(self, col: int, cost: float) -> None:
        self._cost[int(col)] = float(cost)

    def add_rows(self, block: RowBlock) -> None:
        """Append a block of rows; row names must be unique across the model."""
        for name in block.names:
            if name in self._row_names:
                raise ValueError(f"Duplicate row name {name!r}")
            self._row_names.add(name)
        n = self.n_cols
        for c in block.cols:
            if not 0 <= c < n:
                raise ValueError(f"Row block references unknown column position {c}")
        self._blocks.append(block)

    def build(self) -> LinearProgram:
        """Freeze the registered columns and rows into a LinearProgram."""
        row_names: list[str] = []
        row_lower: list[float] = []
        row_upper: list[float] = []
        rows: list[int] = []
        cols: list[int] = []
        vals: list[float] = []

        offset = 0
        for block in self._blocks:
            row_names.extend(block.names)
            row_lower.extend(block.lower)
            row_upper.extend(block.upper)
            rows.extend(r + offset for r in block.rows)
            cols.extend(block.cols)
            vals.extend(block.vals)
            offset += block.n_rows

        A = sp.csr_matrix(
            (
                np.asarray(vals, dtype=float),
                (np.asarray(rows, dtype=int), np.asarray(cols, dtype=int)),
            ),
            shape=(offset, self.n_cols),
        )
        A.sort_indices()

        lp = LinearProgram(
            col_names=tuple(self._col_names),
            col_lower=np.asarray(self._col_lower, dtype=float),
            col_upper=np.asarray(self._col_upper, dtype=float),
            cost=np.asarray(self._cost, dtype=float),
            row_names=tuple(row_names),
            row_lower=np.asarray(row_lower, dtype=float),
            row_upper=np.asarray(row_upper, dtype=float),
            A=A,
            col_index=MappingProxyType(dict(self._col_index)),
            row_index=MappingProxyType({n: i for i, n in enumerate(row_names)}),
        )
        logger.debug(
            "LP built: %d columns, %d rows (%d equalities), nnz=%d",
            lp.n_cols,
            lp.n_rows,
            int(np.count_nonzero(lp.equality_mask)),
            int(A.nnz),
        )
        return lp
