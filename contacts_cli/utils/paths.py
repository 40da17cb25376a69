"""
Path utilities for configuration and output directory resolution.

Provides consistent path resolution for the contacts-cli configuration
directory, token storage and export output across all modules.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

# Default configuration directory
DEFAULT_CONFIG_DIR = Path.home() / ".contacts-cli"

# Environment variable for overriding config directory
CONFIG_DIR_ENV_VAR = "CONTACTS_CLI_CONFIG_DIR"

# Default directory for exported and failed contact files
DEFAULT_OUTPUT_DIR = Path("output")

# Characters that are not safe in a single path component
_UNSAFE_COMPONENT = re.compile(r"[^A-Za-z0-9@._+-]")


def resolve_config_dir(config_dir: Path | str | None = None) -> Path:
    """
    Resolve the configuration directory path.

    Priority:
        1. Explicit config_dir parameter (if provided)
        2. CONTACTS_CLI_CONFIG_DIR environment variable
        3. Default directory (~/.contacts-cli)

    Args:
        config_dir: Optional explicit configuration directory path.
                   Can be a Path object or string.

    Returns:
        Resolved Path to the configuration directory (expanduser and resolve applied)
    """
    if config_dir is not None:
        return Path(config_dir).expanduser().resolve()

    env_dir = os.environ.get(CONFIG_DIR_ENV_VAR)
    if env_dir:
        return Path(env_dir).expanduser().resolve()

    return DEFAULT_CONFIG_DIR.expanduser().resolve()


def resolve_output_dir(output_dir: Path | str | None = None) -> Path:
    """
    Resolve the directory that export and import artifacts are written to.

    Relative paths are taken relative to the current working directory.
    """
    if output_dir is None:
        return DEFAULT_OUTPUT_DIR.resolve()
    return Path(output_dir).expanduser().resolve()


def safe_path_component(value: str) -> str:
    """
    Make an account identifier usable as a single file or directory name.

    Email addresses pass through unchanged; path separators and other
    unusual characters are replaced with underscores.
    """
    cleaned = _UNSAFE_COMPONENT.sub("_", value.strip())
    return cleaned.strip(".") or "_"
