"""
Process-wide access to the loaded buildwatch configuration.

The configuration is read from disk on first use and cached until the
configuration path changes or the cache is cleared explicitly.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.config import AppConfig
from ..validation import handle_config_error, ErrorSeverity
from .loader import load_main_config, load_profiles_config, get_config_paths
from .validators import validate_profiles_config, validate_watcher_settings

logger = logging.getLogger(__name__)

_CONFIG: Optional[AppConfig] = None

# conf/config.toml at the repository root unless the CLI passes --config.
_CONFIG_FILE_PATH = Path(__file__).parent.parent.parent.parent / "conf" / "config.toml"


def set_config_path(config_path: Path) -> None:
    """Point buildwatch at another config.toml; the next get_config() rereads it."""
    global _CONFIG_FILE_PATH
    _CONFIG_FILE_PATH = Path(config_path)
    clear_config_cache()
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    global _CONFIG
    _CONFIG = None


def _read_config(config_path: Path) -> AppConfig:
    """
    Read config.toml and the profiles file it names, and validate both.

    Raises:
        OSError: If a configuration file is missing or unreadable
        KeyError: If config.toml does not name a profiles file
        ValidationError: If a setting or profile is invalid
        tomllib.TOMLDecodeError: If a file is not valid TOML
    """
    main_config = load_main_config(config_path)
    paths = get_config_paths(main_config, config_path.parent)

    watcher = validate_watcher_settings(main_config.get("watcher", {}))
    profiles = validate_profiles_config(load_profiles_config(paths["profiles"]))

    logger.info(f"Loaded {len(profiles)} build profiles from {paths['profiles']}")
    return AppConfig(watcher=watcher, profiles=profiles)


def get_config() -> AppConfig:
    """
    Return the application configuration, reading it on first use.

    Errors are logged as critical and propagated; nothing is cached on failure.
    """
    global _CONFIG
    if _CONFIG is None:
        try:
            _CONFIG = _read_config(_CONFIG_FILE_PATH)
        except Exception as e:
            handle_config_error(
                error=e,
                context=f"loading {_CONFIG_FILE_PATH}",
                severity=ErrorSeverity.CRITICAL,
                logger=logger,
            )
    return _CONFIG
