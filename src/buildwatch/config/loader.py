"""
Reading the TOML files behind the buildwatch configuration.

config.toml holds the watcher settings and a [paths] table naming the
profiles file; profiles.toml holds one [[profiles]] entry per build.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Parse one TOML file.

    Raises:
        FileNotFoundError: If the file does not exist
        OSError: If the file cannot be read
        tomllib.TOMLDecodeError: If the file is not valid TOML
    """
    if not file_path.exists():
        raise FileNotFoundError(f"{description} not found: {file_path}")

    logger.debug(f"Reading {description} {file_path}")
    with open(file_path, "rb") as f:
        return tomllib.load(f)


def load_main_config(config_path: Path) -> Dict[str, Any]:
    return load_toml_file(config_path, "main configuration file")


def load_profiles_config(profiles_path: Path) -> List[Dict[str, Any]]:
    """Return the [[profiles]] entries of a profiles file, empty if it has none."""
    return load_toml_file(profiles_path, "profiles file").get("profiles", [])


def get_config_paths(main_config_data: Dict[str, Any], config_dir: Path) -> Dict[str, Path]:
    """
    Resolve the files named in the [paths] table of config.toml.

    Relative paths are taken relative to ``config_dir``.

    Raises:
        KeyError: If ``profiles_config`` is not set
    """
    profiles_file = main_config_data.get("paths", {}).get("profiles_config")
    if not profiles_file:
        raise KeyError("Missing 'profiles_config' path in [paths] section of config.toml")
    return {"profiles": config_dir / profiles_file}
