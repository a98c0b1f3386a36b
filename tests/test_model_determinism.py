from __future__ import annotations

import pytest

from dc_scopf.assembly import build_scopf_model
from dc_scopf.config import AssemblyConfig
from dc_scopf.contingency import expand_contingencies
from dc_scopf.network import build_network

_BRANCHES = [
    (1, 2, 1, 0.1, -60.0, 60.0),
    (2, 3, 1, 0.1, -60.0, 60.0),
    (1, 3, 1, 0.1, -100.0, 100.0),
    (3, 4, 1, 0.05, -80.0, 80.0),
    (2, 4, 1, 0.2, -40.0, 40.0),
]
_GENERATORS = [
    (1, 1, 0.0, 200.0, 10.0, 0.4),
    (1, 2, 0.0, 50.0, 12.0, 0.1),
    (3, 1, 0.0, 200.0, 30.0, 0.5),
]


def _build(branches, generators, branch_outages, gen_outages, *, workers=1):
    net = build_network(4, branches, generators, demand={3: 60.0, 4: 40.0})
    cs = expand_contingencies(
        net, branch_outages=branch_outages, generator_outages=gen_outages
    )
    return build_scopf_model(net, cs, assembly=AssemblyConfig(workers=workers)).lp


def _assert_same_lp(a, b):
    assert a.col_names == b.col_names
    assert a.row_names == b.row_names
    assert a.col_lower.tolist() == b.col_lower.tolist()
    assert a.col_upper.tolist() == b.col_upper.tolist()
    assert a.cost.tolist() == b.cost.tolist()
    assert a.row_lower.tolist() == b.row_lower.tolist()
    assert a.row_upper.tolist() == b.row_upper.tolist()
    assert a.A.shape == b.A.shape
    assert (a.A != b.A).nnz == 0


def test_rebuild_yields_identical_lp():
    args = (_BRANCHES, _GENERATORS, [(1, 3, 1), (3, 4, 1)], [(3, 1)])
    _assert_same_lp(_build(*args), _build(*args))


def test_input_order_does_not_change_lp():
    a = _build(_BRANCHES, _GENERATORS, [(1, 3, 1), (3, 4, 1)], [(3, 1), (1, 1)])
    b = _build(
        list(reversed(_BRANCHES)),
        list(reversed(_GENERATORS)),
        [(3, 4, 1), (1, 3, 1), (3, 4, 1)],
        [(1, 1), (3, 1)],
    )
    _assert_same_lp(a, b)


@pytest.mark.parametrize("workers", [2, 4])
def test_parallel_assembly_matches_serial(workers):
    args = (
        _BRANCHES,
        _GENERATORS,
        [(1, 2, 1), (1, 3, 1), (3, 4, 1), (2, 4, 1)],
        [(1, 1), (1, 2), (3, 1)],
    )
    _assert_same_lp(_build(*args), _build(*args, workers=workers))


def test_invalid_worker_count_is_rejected():
    with pytest.raises(ValueError):
        _build(_BRANCHES, _GENERATORS, [], [], workers=0)
