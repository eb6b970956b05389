"""
Run Metadata Logger
====================
Records what produced each audit run, so results can be traced back to the
code, configuration and solver that made them.

Usage:
    from ddaudit.meta_logger import setup_run

    run_id, output_dir = setup_run(cfg, solver_name="endplay")

    # Metadata lands in output_dir/meta/
"""
import json
import os
import platform
import subprocess
from datetime import datetime
from importlib import metadata
from typing import Dict, Optional, Tuple

import yaml
from omegaconf import DictConfig, OmegaConf


def _run_command(args, timeout: int = 5) -> Optional[str]:
    try:
        result = subprocess.run(args, capture_output=True, text=True, timeout=timeout)
    except (subprocess.TimeoutExpired, OSError):
        return None
    return result.stdout if result.returncode == 0 else None


def get_git_hash() -> str:
    """Current git commit hash (short), or "unknown"."""
    out = _run_command(["git", "rev-parse", "--short", "HEAD"])
    return out.strip() if out else "unknown"


def get_git_diff_status() -> str:
    """ "dirty", "clean" or "unknown"."""
    out = _run_command(["git", "status", "--porcelain"])
    if out is None:
        return "unknown"
    return "dirty" if out.strip() else "clean"


def get_pip_freeze() -> str:
    out = _run_command(["pip", "freeze"], timeout=30)
    return out if out is not None else "unavailable"


def get_package_version(name: str) -> str:
    try:
        return metadata.version(name)
    except metadata.PackageNotFoundError:
        return "not installed"


def generate_run_id(name: str = "dd_audit") -> str:
    """
    Generate a unique run ID.

    Format: YYYYMMDD_HHMMSS_<name>_<git_hash>
    Example: 20260301_143022_dd_audit_abc1234
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{timestamp}_{name}_{get_git_hash()}"


def setup_run(cfg, project_root: Optional[str] = None,
              solver_name: Optional[str] = None) -> Tuple[str, str]:
    """
    Create the run directory and save its metadata.

    Args:
        cfg: OmegaConf config (uses run.name, run.output_dir, run.overwrite)
        project_root: base for relative output dirs (defaults to cwd)
        solver_name: solver backend actually used, recorded in run.json

    Returns:
        Tuple of (run_id, output_dir)
    """
    if project_root is None:
        project_root = os.getcwd()

    run_cfg = cfg.get("run", {})
    run_id = run_cfg.get("run_id") or generate_run_id(run_cfg.get("name", "dd_audit"))
    output_dir = os.path.join(project_root, run_cfg.get("output_dir", "results"), run_id)

    if os.path.exists(output_dir) and not run_cfg.get("overwrite", False):
        raise FileExistsError(
            f"Output directory already exists: {output_dir}\n"
            "Set run.overwrite=true to allow overwriting."
        )
    os.makedirs(output_dir, exist_ok=True)

    save_run_metadata(cfg, output_dir, solver_name=solver_name)
    return run_id, output_dir


def save_run_metadata(cfg, output_dir: str, solver_name: Optional[str] = None) -> None:
    """
    Save run metadata to output_dir/meta/.

    Saves:
        - config.yaml: Full configuration
        - git.txt: Git commit hash and status
        - freeze.txt: pip freeze output (if repro.save_pip_freeze)
        - run.json: timestamp, platform, solver and analysis mode
    """
    meta_dir = os.path.join(output_dir, "meta")
    os.makedirs(meta_dir, exist_ok=True)

    config_path = os.path.join(meta_dir, "config.yaml")
    if isinstance(cfg, DictConfig):
        OmegaConf.save(cfg, config_path)
    else:
        with open(config_path, 'w') as f:
            yaml.safe_dump(dict(cfg), f)

    with open(os.path.join(meta_dir, "git.txt"), 'w') as f:
        f.write(f"commit: {get_git_hash()}\n")
        f.write(f"status: {get_git_diff_status()}\n")

    if cfg.get("repro", {}).get("save_pip_freeze", False):
        with open(os.path.join(meta_dir, "freeze.txt"), 'w') as f:
            f.write(get_pip_freeze())

    analysis = cfg.get("analysis", {})
    run_info: Dict = {
        "run_id": os.path.basename(output_dir),
        "timestamp": datetime.now().isoformat(),
        "platform": {
            "system": platform.system(),
            "release": platform.release(),
            "python_version": platform.python_version(),
            "machine": platform.machine(),
        },
        "solver": solver_name or analysis.get("solver", "endplay"),
        "endplay_version": get_package_version("endplay"),
        "mode": analysis.get("mode", "mid_trick"),
        "threads": analysis.get("threads"),
    }

    with open(os.path.join(meta_dir, "run.json"), 'w') as f:
        json.dump(run_info, f, indent=2)

    print(f"[OK] Metadata saved to: {meta_dir}")


def load_run_metadata(output_dir: str) -> dict:
    """Load run.json from a previous run ({} if absent)."""
    run_path = os.path.join(output_dir, "meta", "run.json")
    if os.path.exists(run_path):
        with open(run_path, 'r') as f:
            return json.load(f)
    return {}
