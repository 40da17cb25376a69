"""CLI package for contacts_cli."""

from contacts_cli.cli.formatters import (
    ClickProgress,
    print_clean_summary,
    print_contact_summary,
    print_groups_table,
    print_import_summary,
)
from contacts_cli.cli.main import (
    DEFAULT_CONFIG_FILE,
    cli,
    get_config_dir,
    parse_groups,
)
from contacts_cli.utils import DEFAULT_CONFIG_DIR

__all__ = [
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_CONFIG_FILE",
    "ClickProgress",
    "cli",
    "get_config_dir",
    "parse_groups",
    "print_clean_summary",
    "print_contact_summary",
    "print_groups_table",
    "print_import_summary",
]
