"""CLI output formatting functions.

This module contains the progress sink used while writing contacts and the
functions that render workflow results on the command line.
"""

from typing import TYPE_CHECKING, Any, Optional

import click

if TYPE_CHECKING:
    from contacts_cli.sync.cleaner import CleanResult
    from contacts_cli.sync.group import ContactGroup
    from contacts_cli.sync.orchestrator import ImportResult
    from contacts_cli.sync.summary import ContactSummary

# Maximum number of failure causes listed after an import
MAX_LISTED_ERRORS = 10


class ClickProgress:
    """
    Progress sink backed by click.progressbar.

    The bar is created on the first report, once the total is known, and
    finished when the processed count reaches the total.
    """

    def __init__(self, label: str):
        self.label = label
        self._bar: Optional[Any] = None
        self._shown = 0

    def __call__(self, processed: int, total: int) -> None:
        if self._bar is None:
            self._bar = click.progressbar(length=total, label=self.label, file=None)
            self._shown = 0

        delta = processed - self._shown
        if delta > 0:
            self._bar.update(delta)
            self._shown = processed

        if processed >= total:
            self._bar.render_finish()
            self._bar = None


def print_import_summary(result: "ImportResult") -> None:
    """Display counts, failure causes and artifact paths of an import."""
    write = result.write

    click.echo(f"\nRead {result.read_count} contacts")
    click.echo(
        click.style(f"Created {len(write.succeeded)} contacts", fg="green")
    )

    if write.has_failures():
        click.echo(
            click.style(
                f"Failed to create {write.failed_count} contacts "
                f"in {len(write.failed)} batch(es)",
                fg="yellow",
            )
        )
        for batch_number, error in write.errors[:MAX_LISTED_ERRORS]:
            click.echo(f"  batch {batch_number}: {error}")
        if len(write.errors) > MAX_LISTED_ERRORS:
            click.echo(f"  ... and {len(write.errors) - MAX_LISTED_ERRORS} more")

    if result.failed_path:
        click.echo(f"Failed contacts written to: {result.failed_path}")
    else:
        click.echo(
            click.style("Could not write the failed contacts file", fg="red"),
            err=True,
        )

    if result.created_path:
        click.echo(f"Created contacts written to: {result.created_path}")


def print_groups_table(groups: list["ContactGroup"]) -> None:
    """Display contact groups as an aligned table."""
    headers = ("id", "name", "etag", "group-type")
    rows = [
        (g.resource_name, g.display_name, g.etag, g.group_type) for g in groups
    ]

    widths = [len(h) for h in headers]
    for row in rows:
        widths = [max(w, len(str(cell))) for w, cell in zip(widths, row)]

    def format_row(cells: tuple[str, ...]) -> str:
        return "  ".join(str(c).ljust(w) for c, w in zip(cells, widths)).rstrip()

    click.echo(click.style(format_row(headers), bold=True))
    click.echo("  ".join("-" * w for w in widths))
    for row in rows:
        click.echo(format_row(row))


def print_clean_summary(result: "CleanResult", url_type: Optional[str]) -> None:
    """Display the outcome of a clean run."""
    if url_type:
        click.echo(f"Removing '{url_type}' urls")
    click.echo(click.style(f"Updated {len(result.updated)} contacts", fg="green"))
    if result.failed:
        click.echo(
            click.style(f"Failed to update {len(result.failed)} contacts", fg="yellow")
        )
        for person, error in result.failed[:MAX_LISTED_ERRORS]:
            click.echo(f"  {person.get('resourceName', '?')}: {error}")
    click.echo(f"Unchanged: {result.skipped}")


def print_contact_summary(summary: "ContactSummary") -> None:
    """Display the statistics of an exported file."""
    click.echo(f"Contacts: {summary.total}")

    if summary.field_counts:
        click.echo("\nFields:")
        for field_name, count in summary.field_counts.most_common():
            click.echo(f"  {field_name}: {count}")

    for field_name, counts in summary.source_counts.items():
        if not counts:
            continue
        click.echo(f"\n{field_name} by source:")
        for source, count in counts.most_common():
            click.echo(f"  {source}: {count}")

    if summary.group_counts:
        click.echo("\nGroups:")
        for group, count in summary.group_counts.most_common():
            click.echo(f"  {group}: {count}")
