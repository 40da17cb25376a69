"""
contacts_cli.utils - Utility module

Common utilities including logging configuration and path resolution.
"""

from contacts_cli.utils.paths import (
    DEFAULT_CONFIG_DIR,
    DEFAULT_OUTPUT_DIR,
    resolve_config_dir,
    resolve_output_dir,
    safe_path_component,
)

__all__ = [
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_OUTPUT_DIR",
    "resolve_config_dir",
    "resolve_output_dir",
    "safe_path_component",
]
