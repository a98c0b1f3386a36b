from __future__ import annotations

import dataclasses

import pytest

pytest.importorskip("scipy")

from dc_scopf.network import BranchId, GeneratorId, build_network
from dc_scopf.verification import CHECK_FAIL, CHECK_OK, verify_solution
from dc_scopf.verification.types import (
    REASON_BALANCE,
    REASON_FAILED_UNIT_DISPATCHED,
    REASON_LINE_LIMIT,
    REASON_OMEGA,
    REASON_RESPONSE,
)
from dc_scopf.workflows import prepare_model, solve_model


@pytest.fixture(scope="module")
def solved():
    net = build_network(
        3,
        [
            (1, 2, 1, 0.1, -60.0, 60.0),
            (2, 3, 1, 0.1, -60.0, 60.0),
            (1, 3, 1, 0.1, -100.0, 100.0),
        ],
        [
            (1, 1, 0.0, 200.0, 10.0, 0.5),
            (3, 1, 0.0, 200.0, 30.0, 0.5),
        ],
        demand={3: 100.0},
    )
    model = prepare_model(net, branch_outages=[(1, 3, 1)], generator_outages=[(3, 1)])
    return model, solve_model(model)


def _replace_branch_scenario(res, key, **changes):
    sc = dataclasses.replace(res.branch_scenarios[key], **changes)
    return dataclasses.replace(res, branch_scenarios={**res.branch_scenarios, key: sc})


def _replace_generator_scenario(res, key, **changes):
    sc = dataclasses.replace(res.generator_scenarios[key], **changes)
    return dataclasses.replace(
        res, generator_scenarios={**res.generator_scenarios, key: sc}
    )


def test_solved_model_passes_all_checks(solved):
    model, res = solved
    check = verify_solution(model, res)

    assert check.status == CHECK_OK
    assert [c.label for c in check.scenarios] == ["base", "br:1-3-1", "gen:3-1"]
    assert all(c.max_balance_residual_mw < 1e-6 for c in check.scenarios)

    d = check.to_dict()
    assert d["status"] == CHECK_OK
    assert len(d["scenarios"]) == 3


def test_shifted_branch_scenario_dispatch_is_flagged(solved):
    model, res = solved
    key = BranchId(1, 3, 1)
    dispatch = dict(res.branch_scenarios[key].dispatch)
    dispatch[GeneratorId(1, 1)] += 5.0

    check = verify_solution(model, _replace_branch_scenario(res, key, dispatch=dispatch))

    assert check.status == CHECK_FAIL
    (bad,) = check.failed_scenarios()
    assert bad.label == "br:1-3-1"
    assert REASON_RESPONSE in bad.reasons
    assert REASON_BALANCE in bad.reasons
    assert bad.max_response_residual_mw == pytest.approx(5.0)


def test_overloaded_flow_is_flagged(solved):
    model, res = solved
    key = BranchId(1, 3, 1)
    flows = dict(res.branch_scenarios[key].flows)
    flows[BranchId(1, 2, 1)] = 75.0

    check = verify_solution(model, _replace_branch_scenario(res, key, flows=flows))
    (bad,) = check.failed_scenarios()

    assert REASON_LINE_LIMIT in bad.reasons
    assert bad.max_line_violation_mw == pytest.approx(15.0)


def test_wrong_omega_and_dispatched_failed_unit_are_flagged(solved):
    model, res = solved
    key = GeneratorId(3, 1)
    sc = res.generator_scenarios[key]
    dispatch = {**sc.dispatch, key: 1.0}

    check = verify_solution(
        model,
        _replace_generator_scenario(res, key, dispatch=dispatch, omega=sc.omega + 10.0),
    )
    (bad,) = check.failed_scenarios()

    assert bad.kind == "generator"
    assert REASON_FAILED_UNIT_DISPATCHED in bad.reasons
    assert REASON_OMEGA in bad.reasons


def test_tolerance_must_be_non_negative(solved):
    model, res = solved
    with pytest.raises(ValueError):
        verify_solution(model, res, tol_mw=-1.0)
