from __future__ import annotations

"""
Central configuration for the project.

Why this module exists
----------------------
Solver options, assembly options and logging defaults are consumed by the workflow,
the example script and the tests. Keeping them in one place means that
"defaults in code" and "defaults in conf/config.yaml" cannot drift apart silently.

YAML config loading
-------------------
The project uses OmegaConf YAML files under `conf/`. We support a minimal
composition mechanism instead of the full Hydra runtime:

A file may name one or more parents in a top-level `extends:` key (paths relative to
the file itself). Parents are merged first, in the listed order, and the file's own
keys are merged last.

Numerical note (HiGHS)
----------------------
SCOPF programs repeat the network once per contingency, so balance rows share the same
coefficients many times. Tight feasibility tolerances keep the per-scenario balance
residuals well below the MW-level tolerance used by `dc_scopf.verification`.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from omegaconf import OmegaConf

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoggingConfig:
    """
    Logging- and run-directory-related defaults for scripts.

    Run directory mode
    ------------------
    - run_dir_mode="timestamp": create a new unique folder per run (default).
    - run_dir_mode="overwrite": reuse `runs_dir/run_name` (delete/recreate folder).
    """

    runs_dir: str = "runs"
    level_console: str = "INFO"
    level_file: str = "DEBUG"

    run_dir_mode: str = "timestamp"  # "timestamp" | "overwrite"
    run_name: str = "latest"  # used only when run_dir_mode="overwrite"


@dataclass(frozen=True)
class HiGHSConfig:
    """
    HiGHS options for `scipy.optimize.linprog`.

    Notes
    -----
    - method selects the HiGHS algorithm: "highs" (automatic), "highs-ds" (dual simplex)
      or "highs-ipm" (interior point).
    - time_limit=None means no limit. The solve call itself cannot be cancelled; a caller
      that needs a hard deadline must wrap it.
    """

    method: str = "highs"
    presolve: bool = True
    time_limit: float | None = None

    primal_feasibility_tolerance: float = 1e-9
    dual_feasibility_tolerance: float = 1e-9

    disp: bool = False

    def solver_options(self) -> dict[str, Any]:
        """
        Return solver options in the format accepted by `linprog(method="highs*")`.

        Returns
        -------
        dict[str, Any]
            Options dict; `time_limit` is omitted when unset.
        """
        opts: dict[str, Any] = {
            "presolve": bool(self.presolve),
            "primal_feasibility_tolerance": float(self.primal_feasibility_tolerance),
            "dual_feasibility_tolerance": float(self.dual_feasibility_tolerance),
            "disp": bool(self.disp),
        }
        if self.time_limit is not None:
            opts["time_limit"] = float(self.time_limit)
        return opts


@dataclass(frozen=True)
class AssemblyConfig:
    """
    Model assembly options.

    workers
    -------
    Number of threads used to build per-scenario constraint blocks. 1 builds serially.
    Blocks are merged in scenario order, so the resulting LP does not depend on it.

    fix_reference_angle
    -------------------
    When True, the reference bus angle column is bounded to [0, 0] in every scenario.
    When False, all angle columns are free and the angles are only defined up to a
    constant per connected component.
    """

    workers: int = 1
    fix_reference_angle: bool = True


@dataclass(frozen=True)
class SCOPFConfig:
    """Top-level configuration consumed by `dc_scopf.workflows.solve_scopf`."""

    highs: HiGHSConfig = field(default_factory=HiGHSConfig)
    assembly: AssemblyConfig = field(default_factory=AssemblyConfig)


DEFAULT_LOGGING = LoggingConfig()
DEFAULT_HIGHS = HiGHSConfig()
DEFAULT_ASSEMBLY = AssemblyConfig()
DEFAULT_CONFIG = SCOPFConfig()


def _config_path(p: str | Path, *, relative_to: Path | None = None) -> Path:
    path = Path(p).expanduser()
    if not path.is_absolute():
        path = (relative_to or Path.cwd()) / path
    return path.resolve()


def _parents_of(cfg: Any) -> list[str]:
    """`extends` of one YAML file as a list of paths (a single string is allowed)."""
    parents = OmegaConf.select(cfg, "extends", default=None)
    if parents is None:
        return []
    if isinstance(parents, str):
        return [parents]
    if OmegaConf.is_list(parents):
        return [str(x) for x in parents]
    raise TypeError(f"extends must be a path or a list of paths; got {parents!r}")


def _compose(path: Path, chain: tuple[Path, ...]) -> Any:
    """Load `path`, then merge it over its `extends` parents (depth first, in order)."""
    if path in chain:
        cycle = " -> ".join(str(x) for x in (*chain, path))
        raise ValueError(f"Cyclic config extends detected: {cycle}")

    own = OmegaConf.load(str(path))
    if not OmegaConf.is_dict(own):
        raise ValueError(f"Config root must be a mapping: {path}")

    layers = []
    for parent in _parents_of(own):
        parent_path = _config_path(parent, relative_to=path.parent)
        if not parent_path.exists():
            raise FileNotFoundError(
                f"Extended config not found: {parent_path} (referenced from {path})"
            )
        layers.append(_compose(parent_path, (*chain, path)))

    own = OmegaConf.masked_copy(own, [k for k in own.keys() if k != "extends"])
    logger.debug("Loaded config %s on top of %d parent(s)", path, len(layers))
    return OmegaConf.merge(*layers, own)


def load_project_config(path: str | Path, *, allow_missing: bool = True) -> Any:
    """
    Load a YAML config, resolving `extends` inheritance.

    Parameters
    ----------
    path:
        YAML file; relative paths are taken from the current working directory.
    allow_missing:
        Return None instead of raising when `path` does not exist.

    Returns
    -------
    Any
        Merged DictConfig, or None for a missing file when allow_missing=True.

    Raises
    ------
    FileNotFoundError
        Missing file (allow_missing=False) or missing `extends` target.
    ValueError
        Cyclic `extends` chain or a non-mapping config root.
    """
    cfg_path = _config_path(path)
    if cfg_path.exists():
        return _compose(cfg_path, ())
    if not allow_missing:
        raise FileNotFoundError(str(cfg_path))
    logger.info("Config file not found, using built-in defaults: %s", cfg_path)
    return None


def _select(cfg: Any, key: str, default: Any) -> Any:
    value = OmegaConf.select(cfg, key, default=None)
    return default if value is None else value


def logging_config_from_cfg(cfg: Any) -> LoggingConfig:
    """Build LoggingConfig from `logging.*` keys of a loaded config (None -> defaults)."""
    if cfg is None:
        return DEFAULT_LOGGING
    d = DEFAULT_LOGGING
    return LoggingConfig(
        runs_dir=str(_select(cfg, "logging.runs_dir", d.runs_dir)),
        level_console=str(_select(cfg, "logging.level_console", d.level_console)),
        level_file=str(_select(cfg, "logging.level_file", d.level_file)),
        run_dir_mode=str(_select(cfg, "logging.run_dir_mode", d.run_dir_mode)),
        run_name=str(_select(cfg, "logging.run_name", d.run_name)),
    )


def scopf_config_from_cfg(cfg: Any) -> SCOPFConfig:
    """
    Build SCOPFConfig from `solver.*` and `assembly.*` keys of a loaded config.

    Missing keys (or cfg=None) fall back to the dataclass defaults.
    """
    if cfg is None:
        return DEFAULT_CONFIG

    h = DEFAULT_HIGHS
    time_limit = OmegaConf.select(cfg, "solver.time_limit", default=None)
    highs = HiGHSConfig(
        method=str(_select(cfg, "solver.method", h.method)),
        presolve=bool(_select(cfg, "solver.presolve", h.presolve)),
        time_limit=None if time_limit is None else float(time_limit),
        primal_feasibility_tolerance=float(
            _select(
                cfg,
                "solver.primal_feasibility_tolerance",
                h.primal_feasibility_tolerance,
            )
        ),
        dual_feasibility_tolerance=float(
            _select(
                cfg, "solver.dual_feasibility_tolerance", h.dual_feasibility_tolerance
            )
        ),
        disp=bool(_select(cfg, "solver.disp", h.disp)),
    )

    a = DEFAULT_ASSEMBLY
    workers = int(_select(cfg, "assembly.workers", a.workers))
    if workers < 1:
        raise ValueError(f"assembly.workers must be >= 1; got {workers}")
    assembly = AssemblyConfig(
        workers=workers,
        fix_reference_angle=bool(
            _select(cfg, "assembly.fix_reference_angle", a.fix_reference_angle)
        ),
    )
    return SCOPFConfig(highs=highs, assembly=assembly)
