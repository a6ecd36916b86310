# stretchkit/config/loaders.py

"""
Functions for loading and merging stretchkit configuration from various sources.
"""

import os
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml
from pydantic import ValidationError

from .models import StretchkitConfig

logger = logging.getLogger(__name__)

# --- Constants ---
ENV_PREFIX = "STRETCHKIT_"
ENV_SECTION_SEPARATOR = "__"
USER_CONFIG_FILE = Path("~/.config/stretchkit/stretchkit.toml").expanduser()
PROJECT_CONFIG_FILE = Path("./stretchkit.toml")

# --- Helper Functions ---

def _load_toml_file(filepath: Path) -> Dict[str, Any]:
    """Loads a TOML file if it exists, returns empty dict otherwise."""
    if filepath.is_file():
        try:
            with open(filepath, 'r') as f:
                return toml.load(f)
        except toml.TomlDecodeError as e:
            logger.warning(f"Error decoding TOML file '{filepath}': {e}. Skipping.")
        except OSError as e:
            logger.warning(f"Could not read config file '{filepath}': {e}. Skipping.")
    return {}

def _deep_merge_dicts(base: Dict, update: Dict) -> Dict:
    """Recursively merges 'update' dict into 'base' dict."""
    merged = base.copy()
    for key, value in update.items():
        if isinstance(value, dict) and key in merged and isinstance(merged[key], dict):
            merged[key] = _deep_merge_dicts(merged[key], value)
        else:
            # Update takes precedence
            merged[key] = value
    return merged

def _parse_env_value(value: str) -> Any:
    """Converts an environment string to bool, int or float where possible."""
    if value.lower() in ('true', 'false'):
        return value.lower() == 'true'
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            pass
    return value

def _get_config_from_env() -> Dict[str, Any]:
    """
    Reads configuration settings from environment variables.

    STRETCHKIT_DEFAULTS__DEFAULT_SAMPLE_RATE=48000 becomes
    {'defaults': {'default_sample_rate': 48000}}.
    """
    env_config: Dict[str, Any] = {}
    for env_var, value in os.environ.items():
        if not env_var.startswith(ENV_PREFIX):
            continue
        keys = env_var[len(ENV_PREFIX):].lower().split(ENV_SECTION_SEPARATOR)
        if not all(keys):
            logger.debug(f"Ignoring malformed configuration variable: {env_var}")
            continue

        d = env_config
        for key in keys[:-1]:
            d = d.setdefault(key, {})
        d[keys[-1]] = _parse_env_value(value)
    return env_config

# --- Main Loading Function ---

def load_configuration(
    config_files: Optional[List[Path]] = None,
    disable_project_config: bool = False,
    disable_user_config: bool = False,
) -> StretchkitConfig:
    """
    Loads stretchkit configuration from defaults, files, and environment variables.

    Precedence (highest first):
    1. Environment Variables (STRETCHKIT_<SECTION>__<KEY>)
    2. User Config File (~/.config/stretchkit/stretchkit.toml)
    3. Project Config File (./stretchkit.toml)
    4. Explicitly passed config files (if any, earlier files win)
    5. Internal Defaults (from Pydantic models)

    Args:
        config_files: List of additional config file paths to load.
        disable_project_config: If True, ignores ./stretchkit.toml.
        disable_user_config: If True, ignores ~/.config/stretchkit/stretchkit.toml.

    Returns:
        A validated StretchkitConfig object. Falls back to defaults (with a
        warning) if the merged configuration does not validate.
    """
    merged_config_dict: Dict[str, Any] = {}

    if config_files:
        for file_path in reversed(config_files):
            merged_config_dict = _deep_merge_dicts(merged_config_dict, _load_toml_file(Path(file_path)))

    if not disable_project_config:
        logger.debug(f"Attempting to load project config: {PROJECT_CONFIG_FILE.resolve()}")
        project_cfg = _load_toml_file(PROJECT_CONFIG_FILE)
        if project_cfg:
            logger.info(f"Loaded project configuration from {PROJECT_CONFIG_FILE.resolve()}")
            merged_config_dict = _deep_merge_dicts(merged_config_dict, project_cfg)

    if not disable_user_config:
        logger.debug(f"Attempting to load user config: {USER_CONFIG_FILE}")
        user_cfg = _load_toml_file(USER_CONFIG_FILE)
        if user_cfg:
            logger.info(f"Loaded user configuration from {USER_CONFIG_FILE}")
            merged_config_dict = _deep_merge_dicts(merged_config_dict, user_cfg)

    env_cfg = _get_config_from_env()
    if env_cfg:
        logger.debug(f"Applying environment variable configuration: {env_cfg}")
        merged_config_dict = _deep_merge_dicts(merged_config_dict, env_cfg)

    try:
        final_config = StretchkitConfig(**merged_config_dict)
        logger.debug("Configuration loaded and validated successfully.")
        return final_config
    except ValidationError as e:
        logger.error(f"Configuration validation failed:\n{e}")
        logger.warning("Falling back to default configuration due to validation errors.")
        return StretchkitConfig()
