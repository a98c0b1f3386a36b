from __future__ import annotations

from pathlib import Path

import pytest

pytest.importorskip("omegaconf")

from omegaconf import OmegaConf

from dc_scopf.config import (
    DEFAULT_CONFIG,
    DEFAULT_LOGGING,
    load_project_config,
    logging_config_from_cfg,
    scopf_config_from_cfg,
)


def test_load_project_config_supports_extends(tmp_path: Path) -> None:
    """
    Ensure minimal `extends:` inheritance works and is resolved relative to the child file.
    """
    base = tmp_path / "base.yaml"
    base.write_text(
        "\n".join(
            [
                "solver:",
                "  presolve: true",
                "assembly:",
                "  workers: 1",
                "",
            ]
        ),
        encoding="utf-8",
    )

    child_dir = tmp_path / "child"
    child_dir.mkdir(parents=True, exist_ok=True)

    child = child_dir / "child.yaml"
    child.write_text(
        "\n".join(
            [
                "extends: ../base.yaml",
                "assembly:",
                "  workers: 4",
                "",
            ]
        ),
        encoding="utf-8",
    )

    cfg = load_project_config(child, allow_missing=False)

    assert cfg is not None
    assert "extends" not in cfg
    assert bool(cfg["solver"]["presolve"]) is True
    assert int(cfg["assembly"]["workers"]) == 4


def test_cyclic_extends_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "a.yaml").write_text("extends: b.yaml\nx: 1\n", encoding="utf-8")
    (tmp_path / "b.yaml").write_text("extends: a.yaml\ny: 2\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Cyclic"):
        load_project_config(tmp_path / "a.yaml", allow_missing=False)


def test_missing_config_falls_back_to_defaults(tmp_path: Path) -> None:
    cfg = load_project_config(tmp_path / "nope.yaml")
    assert cfg is None
    assert scopf_config_from_cfg(cfg) is DEFAULT_CONFIG
    assert logging_config_from_cfg(cfg) is DEFAULT_LOGGING

    with pytest.raises(FileNotFoundError):
        load_project_config(tmp_path / "nope.yaml", allow_missing=False)


def test_scopf_config_from_cfg_overrides_and_defaults() -> None:
    cfg = OmegaConf.create(
        {
            "solver": {"method": "highs-ds", "time_limit": 30, "presolve": False},
            "assembly": {"workers": 3},
            "logging": {"run_dir_mode": "overwrite"},
        }
    )

    sc = scopf_config_from_cfg(cfg)
    assert sc.highs.method == "highs-ds"
    assert sc.highs.presolve is False
    assert sc.highs.time_limit == 30.0
    assert sc.highs.primal_feasibility_tolerance == pytest.approx(1e-9)
    assert sc.assembly.workers == 3
    assert sc.assembly.fix_reference_angle is True

    opts = sc.highs.solver_options()
    assert opts["time_limit"] == 30.0
    assert "time_limit" not in DEFAULT_CONFIG.highs.solver_options()

    lc = logging_config_from_cfg(cfg)
    assert lc.run_dir_mode == "overwrite"
    assert lc.runs_dir == DEFAULT_LOGGING.runs_dir


def test_repo_config_matches_code_defaults() -> None:
    cfg = load_project_config(
        Path(__file__).resolve().parents[1] / "conf" / "config.yaml",
        allow_missing=False,
    )
    assert scopf_config_from_cfg(cfg) == DEFAULT_CONFIG
    assert logging_config_from_cfg(cfg) == DEFAULT_LOGGING


def test_non_positive_workers_rejected() -> None:
    with pytest.raises(ValueError, match="workers"):
        scopf_config_from_cfg(OmegaConf.create({"assembly": {"workers": 0}}))


def test_extends_list_merges_parents_in_order(tmp_path: Path) -> None:
    (tmp_path / "solver.yaml").write_text(
        "solver:\n  method: highs-ipm\n  disp: true\n", encoding="utf-8"
    )
    (tmp_path / "fast.yaml").write_text(
        "solver:\n  method: highs-ds\n", encoding="utf-8"
    )
    run = tmp_path / "run.yaml"
    run.write_text(
        "extends: [solver.yaml, fast.yaml]\nassembly:\n  workers: 2\n", encoding="utf-8"
    )

    sc = scopf_config_from_cfg(load_project_config(run, allow_missing=False))
    assert sc.highs.method == "highs-ds"
    assert sc.highs.disp is True
    assert sc.assembly.workers == 2
