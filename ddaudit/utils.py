"""
Common Utilities
================
Config loading and filesystem helpers shared by the pipeline.
"""
import os
from typing import List, Optional

from omegaconf import DictConfig, OmegaConf


def get_project_root() -> str:
    """Get the project root directory (parent of the ddaudit package)."""
    return os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def get_default_config_path() -> str:
    return os.path.join(get_project_root(), "configs", "default_config.yaml")


def load_config(config_path: Optional[str] = None, overrides: Optional[List[str]] = None) -> DictConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file (defaults to configs/default_config.yaml)
        overrides: List of CLI overrides (e.g., ["analysis.threads=4"])

    Returns:
        OmegaConf DictConfig object
    """
    cfg = OmegaConf.load(config_path or get_default_config_path())

    if overrides:
        override_cfg = OmegaConf.from_dotlist(list(overrides))
        cfg = OmegaConf.merge(cfg, override_cfg)

    return cfg
