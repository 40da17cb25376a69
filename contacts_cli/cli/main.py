"""
Command-line interface for contacts_cli.

Provides CLI commands for exporting, importing and cleaning Google
Contacts, listing contact groups, and inspecting exported files.

Usage:
    # Show help
    contacts-cli --help

    # Authenticate an account ahead of time
    contacts-cli auth --account me@example.com

    # Export every contact of an account
    contacts-cli contacts export --account me@example.com

    # Import an exported file into another account
    contacts-cli contacts import --destination other@example.com \\
        --file output/me@example.com/contacts-20240120_103000.json

    # List contact groups
    contacts-cli contact-groups list --account me@example.com
"""

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional

import click

from contacts_cli import __version__
from contacts_cli.api.people_api import PeopleAPI, PeopleAPIError
from contacts_cli.auth.google_auth import AuthenticationError, GoogleAuth
from contacts_cli.cli.formatters import (
    ClickProgress,
    print_clean_summary,
    print_contact_summary,
    print_groups_table,
    print_import_summary,
)
from contacts_cli.config.generator import save_config_file
from contacts_cli.config.loader import (
    DEFAULT_CONFIG_FILE as CONFIG_FILE_NAME,
)
from contacts_cli.config.loader import (
    ConfigError,
    ConfigLoader,
    with_defaults,
)
from contacts_cli.storage.store import JsonStore
from contacts_cli.sync.errors import (
    NotFoundError,
    SyncError,
    UnimplementedError,
    ValidationError,
)
from contacts_cli.sync.orchestrator import SyncOrchestrator
from contacts_cli.sync.writer import FixedDelayRateLimiter
from contacts_cli.utils import DEFAULT_CONFIG_DIR, resolve_config_dir
from contacts_cli.utils.logging import cleanup_old_logs, get_logger, setup_logging

# Default configuration file
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / CONFIG_FILE_NAME


def get_config_dir(config_dir: Optional[str]) -> Path:
    """Get the configuration directory path."""
    return resolve_config_dir(config_dir)


def get_config_file(config_file: Optional[str], config_dir: Path) -> Path:
    """Get the configuration file path."""
    if config_file:
        return Path(config_file)
    return config_dir / CONFIG_FILE_NAME


def parse_groups(value: Optional[str]) -> list[str]:
    """Split a comma separated list of contact group identifiers."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def fail(message: str) -> None:
    """Print an error in red on stderr and exit with status 1."""
    click.echo(click.style(message, fg="red"), err=True)
    sys.exit(1)


def show_credentials_help(config_dir: Path) -> None:
    click.echo("\nTo get started:", err=True)
    click.echo("1. Go to https://console.cloud.google.com/", err=True)
    click.echo("2. Create a project and enable the People API", err=True)
    click.echo("3. Create OAuth 2.0 credentials (Desktop application)", err=True)
    click.echo(
        f"4. Download and save as: {config_dir / 'credentials.json'}", err=True
    )
    click.echo(
        "   or set the GCP_CLIENT_ID and GCP_CLIENT_SECRET environment variables",
        err=True,
    )


@contextmanager
def command_errors(ctx: click.Context, action: str) -> Iterator[None]:
    """
    Report workflow errors and exit with status 1.

    Validation, missing input, unimplemented features, authentication and
    API failures each get a one-line red message on stderr.
    """
    logger = get_logger(__name__)
    try:
        yield
    except (ValidationError, NotFoundError) as e:
        logger.error(f"{action}: {e}")
        fail(f"Error: {e}")
    except UnimplementedError as e:
        logger.error(f"{action}: {e}")
        fail(f"Not implemented: {e}")
    except SyncError as e:
        logger.error(f"{action}: {e}")
        fail(f"{action} failed: {e}")
    except FileNotFoundError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        show_credentials_help(ctx.obj["config_dir"])
        sys.exit(1)
    except AuthenticationError as e:
        logger.error(f"Authentication failed: {e}")
        fail(f"Authentication failed: {e}")
    except PeopleAPIError as e:
        logger.error(f"{action} failed: {e}")
        fail(f"{action} failed: {e}")
    except ValueError as e:
        logger.error(f"{action}: {e}")
        fail(f"Error: {e}")
    except Exception as e:
        logger.exception(f"Unexpected error during {action.lower()}: {e}")
        fail(f"Error: {e}")


def build_orchestrator(
    ctx: click.Context,
    batch_size: Optional[int] = None,
    batch_delay: Optional[float] = None,
    progress_label: str = "Writing contacts",
    update_delay: Optional[float] = None,
) -> SyncOrchestrator:
    """
    Build a SyncOrchestrator from the loaded configuration.

    Command line values for batch size and delays take precedence over the
    configuration file.
    """
    config: dict[str, Any] = ctx.obj["config"]
    auth = GoogleAuth(
        config_dir=ctx.obj["config_dir"], auth_timeout=config["auth_timeout"]
    )

    def api_factory(account: str) -> PeopleAPI:
        return PeopleAPI(
            auth.authorize(account),
            max_retries=config["api_max_retries"],
            initial_retry_delay=config["api_initial_retry_delay"],
            max_retry_delay=config["api_max_retry_delay"],
        )

    return SyncOrchestrator(
        api_factory=api_factory,
        store=JsonStore(config["output_dir"]),
        batch_size=batch_size if batch_size is not None else config["batch_size"],
        rate_limiter=FixedDelayRateLimiter(
            batch_delay if batch_delay is not None else config["batch_delay"]
        ),
        progress=ClickProgress(progress_label),
        contacts_page_size=config["contacts_page_size"],
        groups_page_size=config["groups_page_size"],
        update_rate_limiter=FixedDelayRateLimiter(
            update_delay if update_delay is not None else config["update_delay"]
        ),
    )


@click.group()
@click.version_option(version=__version__, prog_name="contacts-cli")
@click.option(
    "--verbose", "-v", is_flag=True, help="Enable verbose output with detailed logging."
)
@click.option(
    "--config-dir",
    "-c",
    type=click.Path(exists=False, file_okay=False, dir_okay=True),
    envvar="CONTACTS_CLI_CONFIG_DIR",
    help="Configuration directory path (default: ~/.contacts-cli).",
)
@click.option(
    "--config-file",
    type=click.Path(exists=False, file_okay=True, dir_okay=False),
    envvar="CONTACTS_CLI_CONFIG_FILE",
    help="Configuration file path (default: <config-dir>/config.yaml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    config_dir: Optional[str],
    config_file: Optional[str],
) -> None:
    """
    Google Contacts command line tool.

    Exports contacts to JSON files, imports them into another account in
    throttled batches, and cleans up contact data.
    """
    ctx.ensure_object(dict)

    resolved_config_dir = get_config_dir(config_dir)
    resolved_config_file = get_config_file(config_file, resolved_config_dir)

    ctx.obj["config_dir"] = resolved_config_dir
    ctx.obj["config_file"] = resolved_config_file

    config: dict[str, Any] = {}
    try:
        loader = ConfigLoader(config_dir=resolved_config_dir)
        config = loader.load_from_file(resolved_config_file)
        if config:
            loader.validate(config)
    except ConfigError as e:
        # The CLI still works on defaults when the file is broken
        click.echo(
            click.style(f"Warning: Configuration error: {e}", fg="yellow"), err=True
        )
        config = {}

    config = with_defaults(config)
    ctx.obj["config"] = config

    effective_verbose = verbose or bool(config.get("verbose"))
    ctx.obj["verbose"] = effective_verbose

    log_dir = Path(config["log_dir"]).expanduser() if config.get("log_dir") else None

    setup_logging(verbose=effective_verbose, log_dir=log_dir, enable_file_logging=True)

    log_retention = config.get("log_retention_count", 10)
    if log_retention > 0:
        cleanup_old_logs(log_dir=log_dir, keep_count=log_retention)


# =============================================================================
# Auth Command
# =============================================================================


@cli.command("auth")
@click.option(
    "--account", "-a", required=True, help="Email of the account to authenticate."
)
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Force re-authentication even if already authenticated.",
)
@click.pass_context
def auth_command(ctx: click.Context, account: str, force: bool) -> None:
    """
    Authenticate a Google account.

    Opens a browser window to complete the OAuth flow and stores the
    credentials for future use.

    Examples:

        contacts-cli auth --account me@example.com

        contacts-cli auth --account me@example.com --force
    """
    logger = get_logger(__name__)
    config_dir = ctx.obj["config_dir"]

    click.echo(f"Authenticating {account}...")

    with command_errors(ctx, "Authentication"):
        auth = GoogleAuth(
            config_dir=config_dir, auth_timeout=ctx.obj["config"]["auth_timeout"]
        )

        if not force and auth.is_authenticated(account):
            click.echo(
                click.style(f"Account {account} is already authenticated.", fg="green")
            )
            click.echo("Use --force to re-authenticate.")
            return

        auth.authenticate(account, force_reauth=force)
        click.echo(click.style(f"Successfully authenticated {account}!", fg="green"))
        logger.info(f"Authentication completed for {account}")


# =============================================================================
# Init Config Command
# =============================================================================


@cli.command("init-config")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite existing configuration file if it exists.",
)
@click.pass_context
def init_config_command(ctx: click.Context, force: bool) -> None:
    """
    Generate a default configuration file.

    Creates a configuration file with all available options documented
    and commented out.

    Examples:

        contacts-cli init-config

        contacts-cli init-config --force
    """
    logger = get_logger(__name__)
    config_file = ctx.obj["config_file"]

    click.echo(f"Creating configuration file: {config_file}")

    success, error = save_config_file(config_file, overwrite=force)

    if success:
        click.echo(click.style("Configuration file created successfully!", fg="green"))
        click.echo(f"\nLocation: {config_file}")
        logger.info(f"Created configuration file: {config_file}")
    else:
        logger.error(f"Failed to create configuration file: {error}")
        fail(f"Error: {error}")


# =============================================================================
# Contacts Commands
# =============================================================================


@cli.group("contacts")
def contacts_group() -> None:
    """Export, import and clean contacts."""


@contacts_group.command("export")
@click.option("--account", "-a", help="Email of the account to export.")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    help="Output file (default: <output_dir>/<account>/contacts-<timestamp>.json).",
)
@click.pass_context
def export_command(
    ctx: click.Context, account: Optional[str], output: Optional[str]
) -> None:
    """
    Export every contact of an account to a JSON file.

    Contacts are saved exactly as the People API returns them.

    Examples:

        contacts-cli contacts export --account me@example.com
    """
    with command_errors(ctx, "Export"):
        orchestrator = build_orchestrator(ctx)
        result = orchestrator.export_contacts(account or "", output=output)

    click.echo(click.style(f"Exported {result.count} contacts", fg="green"))
    click.echo(f"Contacts written to: {result.path}")


@contacts_group.command("import")
@click.option("--source", "-s", help="Account to copy contacts from.")
@click.option("--destination", "-d", help="Account to create the contacts in.")
@click.option(
    "--file", "-f", "file", type=click.Path(dir_okay=False), help="Contacts file."
)
@click.option(
    "--limit", "-l", type=int, help="Only import the first N contacts of the file."
)
@click.option(
    "--contact-groups",
    "-g",
    help="Comma separated contact groups to add every contact to.",
)
@click.option(
    "--save-results", is_flag=True, help="Also write the created contacts to a file."
)
@click.option(
    "--batch-size",
    type=click.IntRange(1, 200),
    help="Contacts per request (default from config: 25).",
)
@click.option(
    "--batch-delay",
    type=click.FloatRange(min=0),
    help="Seconds to wait between requests (default from config: 5).",
)
@click.pass_context
def import_command(
    ctx: click.Context,
    source: Optional[str],
    destination: Optional[str],
    file: Optional[str],
    limit: Optional[int],
    contact_groups: Optional[str],
    save_results: bool,
    batch_size: Optional[int],
    batch_delay: Optional[float],
) -> None:
    """
    Import contacts into an account.

    Every record is stripped of server identity, read-only fields and
    foreign provenance, added to the default group plus any --contact-groups,
    and created in throttled batches. Batches that fail are written to a
    failed-contacts file for a later retry.

    Examples:

        contacts-cli contacts import -d me@example.com -f contacts.json

        contacts-cli contacts import -d me@example.com -f contacts.json \\
            --contact-groups friends,family --limit 10
    """
    with command_errors(ctx, "Import"):
        orchestrator = build_orchestrator(
            ctx, batch_size=batch_size, batch_delay=batch_delay
        )
        result = orchestrator.import_contacts(
            destination,
            file=file,
            source=source,
            limit=limit,
            groups=parse_groups(contact_groups),
            save_results=save_results,
        )

    print_import_summary(result)


@contacts_group.command("clean")
@click.option("--account", "-a", help="Email of the account to clean.")
@click.option("--urls", is_flag=True, help="Remove URLs of the given --url-type.")
@click.option("--url-type", help="URL type to remove, e.g. 'profile'.")
@click.option("--external-ids", is_flag=True, help="Remove external ids.")
@click.option(
    "--file",
    "-f",
    "file",
    type=click.Path(dir_okay=False),
    help="Work from an exported file instead of fetching contacts.",
)
@click.option(
    "--update-delay",
    type=click.FloatRange(min=0),
    help="Seconds to wait between contact updates (default from config: 0.5).",
)
@click.pass_context
def clean_command(
    ctx: click.Context,
    account: Optional[str],
    urls: bool,
    url_type: Optional[str],
    external_ids: bool,
    file: Optional[str],
    update_delay: Optional[float],
) -> None:
    """
    Remove unnecessary data from existing contacts.

    Examples:

        contacts-cli contacts clean -a me@example.com --urls --url-type profile
    """
    with command_errors(ctx, "Clean"):
        orchestrator = build_orchestrator(
            ctx, progress_label="Updating contacts", update_delay=update_delay
        )
        result = orchestrator.clean_contacts(
            account, file=file, urls=urls, url_type=url_type, external_ids=external_ids
        )

    print_clean_summary(result, url_type if urls else None)


# =============================================================================
# Contact Groups Commands
# =============================================================================


@cli.group("contact-groups")
def contact_groups_group() -> None:
    """Inspect contact groups."""


@contact_groups_group.command("list")
@click.option("--account", "-a", help="Email of the account.")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    help="Also write the raw groups to this JSON file.",
)
@click.pass_context
def list_groups_command(
    ctx: click.Context, account: Optional[str], output: Optional[str]
) -> None:
    """
    List the contact groups of an account.

    Examples:

        contacts-cli contact-groups list -a me@example.com

        contacts-cli contact-groups list -a me@example.com -o groups.json
    """
    with command_errors(ctx, "Listing contact groups"):
        orchestrator = build_orchestrator(ctx)
        result = orchestrator.list_contact_groups(account, output=output)

    print_groups_table(result.groups)

    if result.path:
        if result.overwritten:
            click.echo(
                click.style(f"Overwrote existing file: {result.path}", fg="yellow")
            )
        click.echo(f"Contact groups written to: {result.path}")


# =============================================================================
# Utils Commands
# =============================================================================


@cli.group("utils")
def utils_group() -> None:
    """Helpers for exported data."""


@utils_group.command("summarize-data")
@click.option(
    "--file", "-f", "file", type=click.Path(dir_okay=False), help="Contacts file."
)
@click.pass_context
def summarize_data_command(ctx: click.Context, file: Optional[str]) -> None:
    """
    Summarize an exported contacts file.

    Examples:

        contacts-cli utils summarize-data -f contacts.json
    """
    with command_errors(ctx, "Summarize"):
        orchestrator = build_orchestrator(ctx)
        summary = orchestrator.summarize_file(file)

    print_contact_summary(summary)
