"""
Configuration loader module for contacts-cli.

Provides YAML-based configuration file loading with support for:
- Loading configuration from default or custom paths
- Graceful handling of missing configuration files
- Validation of configuration keys, types and ranges
- Resolving the OAuth client configuration from the environment
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from contacts_cli.utils.paths import resolve_config_dir

# Default configuration file name
DEFAULT_CONFIG_FILE = "config.yaml"

# Environment variables holding the OAuth client, used when no
# credentials.json is present in the configuration directory
ENV_CLIENT_ID = "GCP_CLIENT_ID"
ENV_CLIENT_SECRET = "GCP_CLIENT_SECRET"

# Defaults applied by the CLI when a key is absent from the file
DEFAULTS: dict[str, Any] = {
    "verbose": False,
    "output_dir": None,
    "log_dir": None,
    "log_retention_count": 10,
    "batch_size": 25,
    "batch_delay": 5.0,
    "update_delay": 0.5,
    "contacts_page_size": 1000,
    "groups_page_size": 200,
    "api_max_retries": 5,
    "api_initial_retry_delay": 1.0,
    "api_max_retry_delay": 60.0,
    "auth_timeout": 10,
}

# Valid configuration keys and their expected types
VALID_KEYS: dict[str, type[Any] | tuple[type[Any], ...]] = {
    "verbose": bool,
    "output_dir": str,
    "log_dir": str,
    "log_retention_count": int,
    "batch_size": int,
    "batch_delay": (int, float),
    "update_delay": (int, float),
    "contacts_page_size": int,
    "groups_page_size": int,
    "api_max_retries": int,
    "api_initial_retry_delay": (int, float),
    "api_max_retry_delay": (int, float),
    "auth_timeout": int,
}

# People API limits
MAX_BATCH_SIZE = 200
MAX_PAGE_SIZE = 1000

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


class ConfigLoader:
    """
    YAML configuration file loader.

    Attributes:
        config_dir: Directory containing the configuration file
        config_file: Name of the configuration file

    Usage:
        loader = ConfigLoader()
        config = loader.load_and_validate()

        # Load from specific file
        config = loader.load_from_file("/path/to/config.yaml")
    """

    def __init__(
        self, config_dir: Path | None = None, config_file: str = DEFAULT_CONFIG_FILE
    ):
        """
        Initialize the configuration loader.

        Args:
            config_dir: Directory containing the configuration file.
                       Defaults to ~/.contacts-cli/ or $CONTACTS_CLI_CONFIG_DIR
            config_file: Name of the configuration file (default: config.yaml)
        """
        self.config_dir = resolve_config_dir(config_dir)
        self.config_file = config_file

    def _get_config_path(self) -> Path:
        return self.config_dir / self.config_file

    def load(self) -> dict[str, Any]:
        """
        Load configuration from the default configuration file.

        Returns:
            Dictionary containing configuration values, or empty dict if file
            doesn't exist

        Raises:
            ConfigError: If the configuration file exists but cannot be parsed
        """
        return self.load_from_file(self._get_config_path())

    def load_from_file(self, path: Path | str) -> dict[str, Any]:
        """
        Load configuration from a specific file.

        Returns an empty dict if the file doesn't exist, allowing
        graceful operation with CLI defaults.

        Args:
            path: Path to the configuration file

        Returns:
            Dictionary containing configuration values

        Raises:
            ConfigError: If the configuration file exists but cannot be parsed
        """
        path = Path(path)

        if not path.exists():
            logger.debug(f"Configuration file not found: {path}")
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML configuration file: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read configuration file: {e}") from e

        if config is None:
            logger.debug(f"Configuration file is empty: {path}")
            return {}

        if not isinstance(config, dict):
            raise ConfigError(
                f"Configuration file must contain a YAML dictionary, "
                f"got {type(config).__name__}"
            )

        logger.debug(f"Loaded configuration from {path}")
        return config

    def validate(self, config: dict[str, Any]) -> None:
        """
        Validate configuration structure and values.

        Unknown keys are logged and ignored.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ConfigError: If configuration is invalid
        """
        if not isinstance(config, dict):
            raise ConfigError(
                f"Configuration must be a dictionary, got {type(config).__name__}"
            )

        for key, value in config.items():
            if key not in VALID_KEYS:
                logger.warning(f"Ignoring unknown configuration key: {key}")
                continue

            expected_type = VALID_KEYS[key]
            # bool is an int subclass; reject it for numeric keys
            is_bool_for_number = isinstance(value, bool) and expected_type is not bool
            if not isinstance(value, expected_type) or is_bool_for_number:
                if isinstance(expected_type, tuple):
                    type_name = " or ".join(t.__name__ for t in expected_type)
                else:
                    type_name = expected_type.__name__
                raise ConfigError(
                    f"Invalid type for '{key}': expected {type_name}, "
                    f"got {type(value).__name__}"
                )

        positive_int_keys = [
            "api_max_retries",
            "auth_timeout",
        ]
        for key in positive_int_keys:
            if key in config and config[key] < 1:
                raise ConfigError(f"{key} must be >= 1, got {config[key]}")

        if "log_retention_count" in config and config["log_retention_count"] < 0:
            raise ConfigError(
                f"log_retention_count must be >= 0, got {config['log_retention_count']}"
            )

        if "batch_size" in config:
            batch_size = config["batch_size"]
            if not (1 <= batch_size <= MAX_BATCH_SIZE):
                raise ConfigError(
                    f"batch_size must be between 1 and {MAX_BATCH_SIZE}, "
                    f"got {batch_size}"
                )

        for key in ("contacts_page_size", "groups_page_size"):
            if key in config and not (1 <= config[key] <= MAX_PAGE_SIZE):
                raise ConfigError(
                    f"{key} must be between 1 and {MAX_PAGE_SIZE}, got {config[key]}"
                )

        for key in ("batch_delay", "update_delay"):
            if key in config and config[key] < 0:
                raise ConfigError(f"{key} must be >= 0, got {config[key]}")

        for key in ("api_initial_retry_delay", "api_max_retry_delay"):
            if key in config and config[key] <= 0:
                raise ConfigError(f"{key} must be > 0, got {config[key]}")

    def load_and_validate(self) -> dict[str, Any]:
        """
        Load configuration, validate it, and fill in defaults.

        Returns:
            Validated configuration dictionary with every known key present

        Raises:
            ConfigError: If configuration cannot be loaded or is invalid
        """
        config = self.load()
        if config:
            self.validate(config)
        return with_defaults(config)


def with_defaults(config: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of config with DEFAULTS filled in for missing keys."""
    merged = dict(DEFAULTS)
    merged.update({k: v for k, v in config.items() if v is not None})
    return merged


def client_config_from_env() -> dict[str, Any] | None:
    """
    Build an installed-app OAuth client config from environment variables.

    Returns:
        Client config dict for InstalledAppFlow.from_client_config, or None
        if GCP_CLIENT_ID or GCP_CLIENT_SECRET is not set
    """
    client_id = os.environ.get(ENV_CLIENT_ID)
    client_secret = os.environ.get(ENV_CLIENT_SECRET)
    if not client_id or not client_secret:
        return None

    return {
        "installed": {
            "client_id": client_id,
            "client_secret": client_secret,
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
            "redirect_uris": ["http://localhost"],
        }
    }
