from __future__ import annotations

"""
Project utilities.

Logging design (project-only)
-----------------------------
- All project loggers are under the "dc_scopf" namespace.
- Handlers are attached ONLY to the "dc_scopf" logger (not to root), so solver and
  third-party logs do not pollute outputs.
"""

import logging
import os
import shutil
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from dc_scopf.config import LoggingConfig

__all__ = ["log_stage", "setup_logging"]

_LOGGER_ROOT_NAME = "dc_scopf"


def _level(name: str) -> int:
    lvl = logging.getLevelName(str(name).upper())
    if not isinstance(lvl, int):
        raise ValueError(f"Invalid logging level: {name!r}")
    return lvl


def _reset_handlers(lg: logging.Logger) -> None:
    while lg.handlers:
        lg.handlers.pop().close()


def _fresh_run_dir(runs_dir: Path, stamp: str) -> Path:
    """Create `runs_dir/stamp`, falling back to `stamp_01`, `stamp_02`, ... when taken."""
    i = 0
    while True:
        candidate = runs_dir / (stamp if i == 0 else f"{stamp}_{i:02d}")
        try:
            candidate.mkdir(parents=True)
            return candidate
        except FileExistsError:
            i += 1


@contextmanager
def log_stage(stage_logger: logging.Logger, stage_name: str):
    """
    Bracket a workflow stage with START and END (or FAIL) log lines and its duration.

    Exceptions are logged with their type and re-raised unchanged.
    """
    t0 = time.perf_counter()
    stage_logger.info("==> [START] %s", stage_name)
    try:
        yield
    except Exception as e:
        stage_logger.error(
            "<!! [FAIL] %s after %.3f s: %s: %s",
            stage_name,
            time.perf_counter() - t0,
            type(e).__name__,
            e,
        )
        raise
    stage_logger.info("<== [END] %s (%.3f s)", stage_name, time.perf_counter() - t0)


def setup_logging(cfg: LoggingConfig) -> str:
    """
    Point the "dc_scopf" logger at a new run directory.

    The directory is `runs_dir/<timestamp>` (run_dir_mode="timestamp") or a wiped and
    recreated `runs_dir/run_name` (run_dir_mode="overwrite"). It receives `run.log` at
    `level_file`; the console gets `level_console`. Previous project handlers are closed.

    Returns
    -------
    str
        Absolute path of the run directory.
    """
    mode = str(cfg.run_dir_mode).strip().lower()
    if mode not in ("timestamp", "overwrite"):
        raise ValueError("run_dir_mode must be 'timestamp' or 'overwrite'.")

    runs_dir = Path(os.getcwd(), str(cfg.runs_dir)).resolve()
    if mode == "overwrite":
        run_dir = runs_dir / (str(cfg.run_name).strip() or "latest")
        shutil.rmtree(run_dir, ignore_errors=True)
        run_dir.mkdir(parents=True)
    else:
        run_dir = _fresh_run_dir(
            runs_dir, datetime.now().strftime("%Y-%m-%d_%H-%M-%S_%f")
        )

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    handlers = (
        (logging.FileHandler(run_dir / "run.log", encoding="utf-8"), cfg.level_file),
        (logging.StreamHandler(), cfg.level_console),
    )

    project_logger = logging.getLogger(_LOGGER_ROOT_NAME)
    _reset_handlers(project_logger)
    project_logger.setLevel(logging.DEBUG)
    project_logger.propagate = False
    for handler, level in handlers:
        handler.setLevel(_level(level))
        handler.setFormatter(fmt)
        project_logger.addHandler(handler)

    project_logger.info("Run directory: %s", run_dir)
    return str(run_dir)
