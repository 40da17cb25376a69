"""
Configuration file generator for contacts-cli.

Writes a default configuration file with every option documented and
commented out.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def generate_default_config() -> str:
    """
    Generate default YAML configuration with all options documented.

    Returns:
        String containing YAML configuration with comments
    """
    return """# Contacts CLI Configuration
# ==========================
#
# Default options for contacts-cli. CLI arguments always override these.
#
# Save as ~/.contacts-cli/config.yaml (or $CONTACTS_CLI_CONFIG_DIR/config.yaml)
# and uncomment the options you want to change.

# Logging Options
# ---------------

# Enable verbose output with detailed logging
# Default: false
# verbose: true

# Directory for log files
# Default: logs/ next to the installed package
# log_dir: ~/.contacts-cli/logs

# Number of daily log files to keep (0 keeps all)
# Default: 10
# log_retention_count: 10


# Output Options
# --------------

# Directory for exported contacts and failed/created import results.
# Files are written to <output_dir>/<account>/.
# Default: ./output
# output_dir: ~/contacts-output


# Import Throttling
# -----------------

# Contacts submitted per batchCreateContacts request (1 to 200)
# Default: 25
# batch_size: 25

# Seconds to wait between batches to stay under the write quota
# Default: 5
# batch_delay: 5

# Seconds to wait between single-contact updates made by "contacts clean"
# Default: 0.5
# update_delay: 0.5


# API Options
# -----------

# Page sizes when listing contacts (max 1000) and contact groups (max 1000)
# Default: 1000 / 200
# contacts_page_size: 1000
# groups_page_size: 200

# Retries for rate-limited (429/403) and server (5xx) errors
# Default: 5
# api_max_retries: 5

# Exponential backoff bounds in seconds
# Default: 1.0 / 60.0
# api_initial_retry_delay: 1.0
# api_max_retry_delay: 60.0

# Timeout in seconds for the user info lookup after authorization
# Default: 10
# auth_timeout: 10


# OAuth Client
# ------------
#
# Place the OAuth client file downloaded from Google Cloud Console at
# ~/.contacts-cli/credentials.json, or export GCP_CLIENT_ID and
# GCP_CLIENT_SECRET.
"""


def save_config_file(
    config_path: Path, overwrite: bool = False
) -> tuple[bool, str | None]:
    """
    Save default configuration file to specified path.

    Args:
        config_path: Path where the config file should be saved
        overwrite: If True, overwrite existing file. If False, fail if file exists.

    Returns:
        Tuple of (success, error_message); error_message is None on success
    """
    try:
        config_path = config_path.expanduser().resolve()

        if config_path.exists() and not overwrite:
            return (
                False,
                f"Configuration file already exists: {config_path}\n"
                "Use --force to overwrite.",
            )

        config_path.parent.mkdir(parents=True, mode=0o700, exist_ok=True)
        config_path.write_text(generate_default_config(), encoding="utf-8")
        config_path.chmod(0o600)

        logger.info(f"Created configuration file: {config_path}")
        return (True, None)

    except OSError as e:
        error_msg = f"Failed to create configuration file: {e}"
        logger.error(error_msg)
        return (False, error_msg)
