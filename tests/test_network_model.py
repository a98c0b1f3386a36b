from __future__ import annotations

import dataclasses
import math

import pytest

from dc_scopf.errors import ValidationError
from dc_scopf.network import Branch, BranchId, Generator, GeneratorId, build_network


def _two_bus(**overrides):
    kwargs = dict(
        buses=2,
        branches=[(1, 2, 1, 0.1, -100.0, 100.0)],
        generators=[(1, 1, 0.0, 200.0, 10.0, 1.0)],
        demand={2: 50.0},
    )
    kwargs.update(overrides)
    return build_network(**kwargs)


def test_build_network_defaults_and_susceptance():
    net = _two_bus()

    assert net.bus_ids == (1, 2)
    assert net.reference_bus == 1
    assert net.demand(1) == 0.0
    assert net.demand(2) == 50.0
    assert net.total_demand_mw == pytest.approx(50.0)

    br = net.branch((1, 2, 1))
    assert br.id == BranchId(1, 2, 1)
    assert br.susceptance == pytest.approx(10.0)
    assert net.susceptances().tolist() == pytest.approx([10.0])

    assert net.generators_at_bus[1] == (GeneratorId(1, 1),)
    assert net.generators_at_bus[2] == ()
    assert net.branches_at_bus[2] == (BranchId(1, 2, 1),)


def test_build_network_accepts_records_and_explicit_ids_in_any_order():
    net = build_network(
        [30, 10, 20],
        [
            Branch(20, 30, 1, 0.2, -50.0, 50.0),
            Branch(10, 20, 1, 0.1, -math.inf, math.inf),
        ],
        [Generator(20, 1, 0.0, 10.0, 5.0, 0.0), Generator(10, 2, 0.0, 10.0, 4.0)],
        reference_bus=20,
    )

    assert net.bus_ids == (10, 20, 30)
    assert net.branch_ids == (BranchId(10, 20, 1), BranchId(20, 30, 1))
    assert net.generator_ids == (GeneratorId(10, 2), GeneratorId(20, 1))
    assert net.reference_bus == 20
    assert net.generator((10, 2)).alpha == 0.0


def test_network_is_immutable():
    net = _two_bus()

    with pytest.raises(dataclasses.FrozenInstanceError):
        net.reference_bus = 2  # type: ignore[misc]
    with pytest.raises(TypeError):
        net.bus_pos[3] = 2  # type: ignore[index]


def test_negative_reactance_is_accepted():
    net = _two_bus(branches=[(1, 2, 1, -0.5, -100.0, 100.0)])
    assert net.branch((1, 2, 1)).susceptance == pytest.approx(-2.0)


@pytest.mark.parametrize(
    "overrides",
    [
        {"branches": [(1, 2, 1, 0.0, -100.0, 100.0)]},
        {"branches": [(1, 2, 1, float("nan"), -100.0, 100.0)]},
        {"branches": [(1, 3, 1, 0.1, -100.0, 100.0)]},
        {"branches": [(1, 1, 1, 0.1, -100.0, 100.0)]},
        {"branches": [(1, 2, 1, 0.1, 10.0, -10.0)]},
        {"branches": [(1, 2, 1, 0.1, -1.0, 1.0), (1, 2, 1, 0.2, -1.0, 1.0)]},
        {"branches": [(1, 2, 0.1)]},
        {"generators": [(1, 1, 300.0, 200.0, 10.0, 1.0)]},
        {"generators": [(5, 1, 0.0, 200.0, 10.0, 1.0)]},
        {"generators": [(1, 1, 0.0, 1.0, 1.0, 1.0), (1, 1, 0.0, 2.0, 1.0, 1.0)]},
        {"generators": [(1, 1, 0.0, 200.0, float("inf"), 1.0)]},
        {"generators": [(1, 1, math.inf, math.inf, 10.0, 1.0)]},
        {"generators": [(1, 1, -math.inf, -math.inf, 10.0, 1.0)]},
        {"branches": [(1, 2, 1, 0.1, math.inf, math.inf)]},
        {"branches": [(1, 2, 1, 0.1, -math.inf, -math.inf)]},
        {"demand": {7: 10.0}},
        {"buses": [1, 2, 2]},
        {"buses": 0},
        {"reference_bus": 9},
    ],
)
def test_validation_rejects_malformed_input(overrides):
    with pytest.raises(ValidationError):
        _two_bus(**overrides)


def test_validation_error_is_a_value_error():
    with pytest.raises(ValueError, match="reactance"):
        _two_bus(branches=[(1, 2, 1, 0.0, -100.0, 100.0)])


def test_one_sided_infinite_limits_are_accepted():
    net = _two_bus(
        branches=[(1, 2, 1, 0.1, -math.inf, 100.0)],
        generators=[(1, 1, -math.inf, 200.0, 10.0, 1.0)],
    )
    assert net.branch((1, 2, 1)).lower_mw == -math.inf
    assert net.generator((1, 1)).pg_min == -math.inf


@pytest.mark.parametrize(
    "overrides",
    [
        {"branches": [(1, 2, 1, "abc", -1.0, 1.0)]},
        {"branches": [("one", 2, 1, 0.1, -1.0, 1.0)]},
        {"branches": [Branch(1, 2, 1, 0.1, None, 1.0)]},  # type: ignore[arg-type]
        {"generators": [(1, 1, 0.0, "lots", 10.0, 1.0)]},
        {"generators": [(1, None, 0.0, 200.0, 10.0, 1.0)]},
        {"demand": {2: "fifty"}},
        {"demand": {"two": 50.0}},
        {"buses": [1, "b"]},
        {"reference_bus": "first"},
    ],
)
def test_non_numeric_fields_raise_validation_error(overrides):
    with pytest.raises(ValidationError) as ei:
        _two_bus(**overrides)
    assert ei.value.status == "invalid_input"
