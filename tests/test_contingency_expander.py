from __future__ import annotations

import pytest

from dc_scopf.contingency import (
    BranchContingency,
    GeneratorContingency,
    expand_contingencies,
)
from dc_scopf.errors import ValidationError
from dc_scopf.network import BranchId, GeneratorId, build_network


def _triangle():
    return build_network(
        3,
        [
            (1, 2, 1, 0.1, -60.0, 60.0),
            (2, 3, 1, 0.1, -60.0, 60.0),
            (1, 3, 1, 0.1, -100.0, 100.0),
            (1, 3, 2, 0.2, -100.0, 100.0),
        ],
        [
            (1, 1, 0.0, 200.0, 10.0, 0.5),
            (3, 1, 0.0, 200.0, 30.0, 0.5),
        ],
        demand={3: 100.0},
    )


def test_duplicates_collapse_and_keys_are_sorted():
    net = _triangle()
    cs = expand_contingencies(
        net,
        branch_outages=[(2, 3, 1), (1, 2, 1), BranchContingency(BranchId(2, 3, 1))],
        generator_outages=[(3, 1), GeneratorContingency(GeneratorId(3, 1)), (1, 1)],
    )

    assert list(cs.branch_scenarios) == [BranchId(1, 2, 1), BranchId(2, 3, 1)]
    assert list(cs.generator_scenarios) == [GeneratorId(1, 1), GeneratorId(3, 1)]
    assert cs.n_scenarios == 4


def test_branch_scenario_removes_only_the_failed_branch():
    net = _triangle()
    cs = expand_contingencies(net, branch_outages=[(1, 3, 1)])

    sc = cs.branch_scenarios[BranchId(1, 3, 1)]
    assert sc.failed == BranchId(1, 3, 1)
    assert BranchId(1, 3, 1) not in sc.in_service
    # the parallel circuit stays in service
    assert BranchId(1, 3, 2) in sc.in_service
    assert len(sc.in_service) == net.n_branch - 1


def test_generator_scenario_surviving_set():
    net = _triangle()
    cs = expand_contingencies(net, generator_outages=[net.generator((1, 1))])

    sc = cs.generator_scenarios[GeneratorId(1, 1)]
    assert sc.surviving == (GeneratorId(3, 1),)
    assert not sc.is_degenerate


def test_sole_generator_outage_is_degenerate_but_kept():
    net = build_network(
        2,
        [(1, 2, 1, 0.1, -100.0, 100.0)],
        [(1, 1, 0.0, 200.0, 10.0, 1.0)],
        demand={2: 50.0},
    )
    cs = expand_contingencies(net, generator_outages=[(1, 1)])

    sc = cs.generator_scenarios[GeneratorId(1, 1)]
    assert sc.surviving == ()
    assert sc.is_degenerate


def test_no_contingencies_gives_empty_set():
    cs = expand_contingencies(_triangle())
    assert cs.is_empty
    assert cs.n_scenarios == 0


@pytest.mark.parametrize(
    "branches, generators",
    [
        ([(1, 2, 9)], []),
        ([(3, 2, 1)], []),
        ([], [(2, 1)]),
        ([], [(1, 2)]),
        ([(1, 2)], []),
        ([("a", 2, 1)], []),
        ([BranchContingency(("x", 2, 1))], []),
        ([], [(1, "u")]),
        ([], [GeneratorContingency((None, 1))]),
    ],
)
def test_unknown_references_are_rejected(branches, generators):
    with pytest.raises(ValidationError):
        expand_contingencies(
            _triangle(), branch_outages=branches, generator_outages=generators
        )
