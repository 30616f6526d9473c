"""
Configuration management for the buildwatch package.

Loading, validating and caching the buildwatch configuration held in
config.toml and the profiles file it references.
"""

# Main configuration interface
from .manager import (
    clear_config_cache,
    get_config,
    set_config_path,
)

# For advanced usage - direct access to loaders and validators
from .loader import (
    get_config_paths,
    load_main_config,
    load_profiles_config,
    load_toml_file,
)
from .validators import (
    validate_profile,
    validate_profiles_config,
    validate_watcher_settings,
)

__all__ = [
    # Main interface
    "get_config",
    "set_config_path",
    "clear_config_cache",
    # Advanced interface
    "load_toml_file",
    "load_main_config",
    "load_profiles_config",
    "get_config_paths",
    "validate_profile",
    "validate_profiles_config",
    "validate_watcher_settings",
]
