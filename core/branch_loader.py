"""
Branch loader for the canned responses bot.

Discovers feature branches (self-contained packages under branches/) and
manages their config.yml files, generated from each branch's DEFAULT_CONFIG.
"""

import copy
import yaml
import logging
import importlib
from pathlib import Path
from typing import Optional, Dict, Any, List

from constants import BRANCH_CONFIG_FILE

logger = logging.getLogger(__name__)


def merge_defaults(config: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fill keys missing from config with values from defaults, recursively.

    Values already present in config always win, including nested dicts.
    """
    merged = copy.deepcopy(config)
    for key, default_value in defaults.items():
        if key not in merged:
            merged[key] = copy.deepcopy(default_value)
        elif isinstance(merged[key], dict) and isinstance(default_value, dict):
            merged[key] = merge_defaults(merged[key], default_value)
    return merged


class BranchLoader:
    """Finds branches and keeps their configs in sync with their defaults."""

    def __init__(self, branches_dir: str = "branches", package: str = "branches"):
        self.branches_dir = Path(branches_dir)
        self.package = package

    def discover_branches(self) -> List[str]:
        """Return the names of all branch packages, sorted."""
        if not self.branches_dir.is_dir():
            logger.warning(f"Branches directory not found: {self.branches_dir}")
            return []

        branch_names = []
        for item in self.branches_dir.iterdir():
            # Skip private files/folders
            if item.name.startswith(("_", ".")):
                continue

            if item.is_dir() and (item / "__init__.py").exists():
                branch_names.append(item.name)
                logger.debug(f"Discovered branch: {item.name}")

        return sorted(branch_names)

    def get_config_path(self, branch_name: str) -> Path:
        return self.branches_dir / branch_name / BRANCH_CONFIG_FILE

    def get_load_path(self, branch_name: str) -> Optional[str]:
        """Import path for bot.load_extension, or None if the branch doesn't exist."""
        if not (self.branches_dir / branch_name).is_dir():
            return None
        return f"{self.package}.{branch_name}"

    def get_default_config(self, branch_name: str) -> Dict[str, Any]:
        """DEFAULT_CONFIG from the branch's branch.py, or a minimal config."""
        try:
            module = importlib.import_module(f"{self.package}.{branch_name}.branch")
            if hasattr(module, "DEFAULT_CONFIG"):
                logger.debug(f"Using branch-defined defaults for {branch_name}")
                return copy.deepcopy(module.DEFAULT_CONFIG)
        except ImportError as e:
            logger.debug(f"Could not load branch-defined defaults for {branch_name}: {e}")

        return {"enabled": True, "version": "1.0.0", "settings": {}}

    def load_config(self, branch_name: str) -> Dict[str, Any]:
        """
        Load config for a branch.

        A missing config.yml is generated from the branch defaults. An existing
        one gains any keys added to the defaults since it was written.
        """
        config_path = self.get_config_path(branch_name)
        defaults = self.get_default_config(branch_name)

        if not config_path.exists():
            self.save_config(branch_name, defaults)
            return defaults

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load config for {branch_name}: {e}")
            return defaults

        merged = merge_defaults(config, defaults)
        if merged != config:
            logger.info(f"Added new default settings to config for {branch_name}")
            self.save_config(branch_name, merged)

        logger.info(f"Loaded config for {branch_name}")
        return merged

    def save_config(self, branch_name: str, config: Dict[str, Any]):
        """Write config for a branch."""
        config_path = self.get_config_path(branch_name)
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
            logger.info(f"Saved config for {branch_name}")
        except OSError as e:
            logger.error(f"Failed to save config for {branch_name}: {e}")


# Global loader instance
_loader: Optional[BranchLoader] = None


def get_branch_loader(branches_dir: str = "branches") -> BranchLoader:
    """Get the global branch loader instance."""
    global _loader
    if _loader is None:
        _loader = BranchLoader(branches_dir)
    return _loader
