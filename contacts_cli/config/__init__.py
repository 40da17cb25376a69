"""
contacts_cli.config - Configuration management module

Contains configuration loading, validation, and default settings.
"""

from contacts_cli.config.generator import generate_default_config, save_config_file
from contacts_cli.config.loader import (
    DEFAULTS,
    ConfigError,
    ConfigLoader,
    client_config_from_env,
    with_defaults,
)

__all__ = [
    "DEFAULTS",
    "ConfigError",
    "ConfigLoader",
    "client_config_from_env",
    "generate_default_config",
    "save_config_file",
    "with_defaults",
]
