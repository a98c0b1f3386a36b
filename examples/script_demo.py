import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running the example without installing the package:
# `python examples/script_demo.py [conf/config.yaml]`
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
_SRC_DIR = _PROJECT_ROOT / "src"
if _SRC_DIR.is_dir():
    sys.path.insert(0, str(_SRC_DIR))

from dc_scopf.config import (
    load_project_config,
    logging_config_from_cfg,
    scopf_config_from_cfg,
)
from dc_scopf.network import build_network
from dc_scopf.utils import log_stage, setup_logging
from dc_scopf.verification import verify_solution
from dc_scopf.workflows import prepare_model, solve_model

logger = logging.getLogger("dc_scopf.examples.demo")


def _triangle_network():
    """
    3-bus meshed system.

    Bus 1 has a cheap unit, bus 3 an expensive one and all the load. Without
    contingencies the cheap unit serves everything; the outage of branch 1-3 forces all
    power through 1-2-3 (limit 60 MW), so the preventive dispatch caps bus 1 at 60 MW.
    """
    branches = [
        (1, 2, 1, 0.1, -60.0, 60.0),
        (2, 3, 1, 0.1, -60.0, 60.0),
        (1, 3, 1, 0.1, -100.0, 100.0),
    ]
    generators = [
        (1, 1, 0.0, 200.0, 10.0, 0.5),
        (3, 1, 0.0, 200.0, 30.0, 0.5),
    ]
    return build_network(3, branches, generators, demand={3: 100.0})


def _result_to_json(result) -> dict[str, Any]:
    def scenario(sr) -> dict[str, Any]:
        return {
            "kind": sr.kind,
            "dispatch_mw": {str(k): v for k, v in sr.dispatch.items()},
            "angles_deg": {str(k): v for k, v in sr.angles.items()},
            "flows_mw": {str(k): v for k, v in sr.flows.items()},
            "prices": {str(k): v for k, v in sr.prices.items()},
            "omega": sr.omega,
        }

    return {
        "status": result.status,
        "total_cost": result.total_cost,
        "base": scenario(result.base),
        "branch_scenarios": {
            str(k): scenario(v) for k, v in result.branch_scenarios.items()
        },
        "generator_scenarios": {
            str(k): scenario(v) for k, v in result.generator_scenarios.items()
        },
    }


def main(config_path: str = "conf/config.yaml") -> None:
    cfg = load_project_config(config_path, allow_missing=True)
    run_dir = setup_logging(logging_config_from_cfg(cfg))
    scopf_cfg = scopf_config_from_cfg(cfg)

    with log_stage(logger, "Build network"):
        net = _triangle_network()

    model = prepare_model(
        net,
        branch_outages=[(1, 3, 1)],
        generator_outages=[(3, 1)],
        config=scopf_cfg,
    )
    result = solve_model(model, config=scopf_cfg)

    check = verify_solution(model, result)
    logger.info("Verification status: %s", check.status)

    results_path = Path(run_dir) / "results.json"
    payload = {"result": _result_to_json(result), "verification": check.to_dict()}
    with open(results_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=4, ensure_ascii=False)

    logger.info("Done. Results written to: %s", results_path)


if __name__ == "__main__":
    main(*sys.argv[1:2])
