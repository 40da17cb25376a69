"""
Import, export and maintenance workflows over the People API.

The orchestrator wires the fetcher, sanitizer and batch writer together
and owns input validation. Each workflow validates its arguments and input
files before asking for credentials, so a bad invocation never touches the
network.

Workflows:
- export_contacts: fetch every contact and save it verbatim
- import_contacts: read a file, sanitize, create in batches, save failures
- clean_contacts: remove URL entries of a given type from existing contacts
- list_contact_groups: fetch every contact group, optionally save it
- summarize_file: statistics over an exported file
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from contacts_cli.sync.cleaner import CleanResult, clean_urls
from contacts_cli.sync.errors import UnimplementedError, ValidationError
from contacts_cli.sync.fetcher import ResourceKind, fetch_all
from contacts_cli.sync.group import ContactGroup
from contacts_cli.sync.sanitizer import sanitize_contacts
from contacts_cli.sync.summary import ContactSummary, summarize_contacts
from contacts_cli.sync.writer import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_UPDATE_DELAY,
    BatchWriter,
    FixedDelayRateLimiter,
    ProgressCallback,
    RateLimiter,
    WriteResult,
)

if TYPE_CHECKING:
    from contacts_cli.api.people_api import PeopleAPI
    from contacts_cli.storage.store import JsonStore

# Maps an account email to a People API client bound to its credentials
ApiFactory = Callable[[str], "PeopleAPI"]

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    """Where an export was written and how many contacts it holds."""

    path: Path
    count: int


@dataclass
class ImportResult:
    """
    Outcome of an import.

    Attributes:
        read_count: Records read from the source before sanitization
        write: Per-batch outcome of the batched create
        failed_path: File holding the failed batches, None if it could not be written
        created_path: File holding the created contacts, when requested
    """

    read_count: int
    write: WriteResult
    failed_path: Path | None = None
    created_path: Path | None = None


@dataclass
class GroupListResult:
    """Contact groups of an account and where they were saved."""

    groups: list[ContactGroup]
    raw: list[dict[str, Any]]
    path: Path | None = None
    overwritten: bool = False


class SyncOrchestrator:
    """
    Entry point for every contacts workflow.

    Attributes:
        api_factory: Returns a People API client for an account email
        store: JSON persistence for inputs and artifacts
        batch_size: Contacts per create request
        rate_limiter: Pause strategy between batch create requests
        update_rate_limiter: Pause strategy between single-contact updates
        progress: Called with (processed, total) while writing

    Usage:
        orchestrator = SyncOrchestrator(
            api_factory=lambda account: PeopleAPI(auth.authorize(account)),
            store=JsonStore("output"),
        )
        result = orchestrator.import_contacts(
            "me@example.com", file="contacts.json", groups=["friends"]
        )
    """

    def __init__(
        self,
        api_factory: ApiFactory,
        store: JsonStore,
        batch_size: int = DEFAULT_BATCH_SIZE,
        rate_limiter: RateLimiter | None = None,
        progress: ProgressCallback | None = None,
        contacts_page_size: int | None = None,
        groups_page_size: int | None = None,
        update_rate_limiter: RateLimiter | None = None,
    ):
        self.api_factory = api_factory
        self.store = store
        self.batch_size = batch_size
        self.rate_limiter = rate_limiter or FixedDelayRateLimiter()
        self.update_rate_limiter = update_rate_limiter or FixedDelayRateLimiter(
            DEFAULT_UPDATE_DELAY
        )
        self.progress = progress
        self.contacts_page_size = contacts_page_size
        self.groups_page_size = groups_page_size

    # ========== Export ==========

    def export_contacts(
        self, account: str, output: Path | str | None = None
    ) -> ExportResult:
        """
        Fetch every contact of an account and save it unmodified.

        Args:
            account: Account email to export
            output: Target file; relative paths land in the output directory.
                   Defaults to <output_dir>/<account>/contacts-<timestamp>.json

        Raises:
            ValidationError: If no account is given
            PeopleAPIError: If any page request fails (nothing is written)
        """
        if not account:
            raise ValidationError("No account provided")

        target = (
            self.store.resolve(output)
            if output
            else self.store.artifact_path(account, "contacts")
        )

        logger.info(f"Listing contacts for account: {account}")
        api = self.api_factory(account)
        contacts = fetch_all(
            api, ResourceKind.CONTACTS, page_size=self.contacts_page_size
        )
        logger.info(f"Retrieved {len(contacts)} contacts")

        self.store.write(target, contacts)
        logger.info(f"Contacts written to: {target}")
        return ExportResult(path=target, count=len(contacts))

    # ========== Import ==========

    def _load_import_records(
        self, file: Path | str, limit: int | None
    ) -> list[dict[str, Any]]:
        records = self.store.read_records(file)
        if limit is not None:
            records = records[:limit]
        logger.info(f"Read {len(records)} contacts from file: {file}")
        return records

    def import_contacts(
        self,
        destination: str | None,
        file: Path | str | None = None,
        source: str | None = None,
        limit: int | None = None,
        groups: Sequence[str] | None = None,
        save_results: bool = False,
    ) -> ImportResult:
        """
        Create contacts in the destination account from an exported file.

        Records are truncated to ``limit``, sanitized with ``groups`` as
        their memberships, and created in throttled batches. Failed batches
        are written to <output_dir>/<destination>/failed-contacts-<ts>.json.

        Args:
            destination: Account email to create the contacts in
            file: JSON file holding an array of contacts
            source: Account to copy from directly (not implemented)
            limit: Only import the first N contacts
            groups: Contact group identifiers every contact is added to
            save_results: Also write the created contacts to a file

        Raises:
            ValidationError: If destination or source input is missing, or limit < 1
            NotFoundError: If the file does not exist
            UnimplementedError: If only a source account is given
            PeopleAPIError: If the destination client cannot be created
        """
        if not destination:
            raise ValidationError("No destination account provided")
        if limit is not None and limit < 1:
            raise ValidationError(f"Limit must be a positive number, got {limit}")

        if not file:
            if source:
                raise UnimplementedError(
                    "Importing directly from a source account is not implemented "
                    "yet. Export the source account and import the file instead."
                )
            raise ValidationError("No source account or file provided")

        records = self._load_import_records(file, limit)
        sanitized = sanitize_contacts(records, groups)
        if len(sanitized) != len(records):
            logger.warning(
                f"Skipped {len(records) - len(sanitized)} entries that are not "
                "contact objects"
            )

        api = self.api_factory(destination)
        writer = BatchWriter(
            api,
            batch_size=self.batch_size,
            rate_limiter=self.rate_limiter,
            progress=self.progress,
        )
        write_result = writer.write(sanitized)

        result = ImportResult(read_count=len(records), write=write_result)
        result.failed_path = self._save_artifact(
            destination, "failed-contacts", write_result.failed
        )
        if save_results:
            result.created_path = self._save_artifact(
                destination, "created-contacts", write_result.succeeded
            )
        return result

    def _save_artifact(self, account: str, prefix: str, data: Any) -> Path | None:
        path = self.store.artifact_path(account, prefix)
        try:
            self.store.write(path, data)
        except OSError as e:
            logger.error(f"Error writing {prefix} to {path}: {e}")
            return None
        logger.info(f"Wrote {prefix} to {path}")
        return path

    # ========== Clean ==========

    def clean_contacts(
        self,
        account: str | None,
        file: Path | str | None = None,
        urls: bool = False,
        url_type: str | None = None,
        external_ids: bool = False,
    ) -> CleanResult:
        """
        Remove unnecessary data from an account's existing contacts.

        Contacts come from ``file`` when given, otherwise from the account.

        Args:
            account: Account email whose contacts are updated
            file: Exported contacts to work from instead of fetching
            urls: Remove URL entries of ``url_type``
            url_type: URL type to remove, required with ``urls``
            external_ids: Remove external ids (not implemented)

        Raises:
            ValidationError: If the options are incomplete
            NotFoundError: If the file does not exist
            UnimplementedError: If external id removal is requested
            PeopleAPIError: If fetching contacts fails
        """
        if not account:
            raise ValidationError("No account provided")
        if urls and not url_type:
            raise ValidationError("No url type provided")
        if not file and not external_ids and not urls:
            raise ValidationError("No file or external ids or urls flag provided")
        if external_ids:
            raise UnimplementedError("Removing external ids is not implemented yet")

        contacts = self.store.read_records(file) if file else None

        logger.info(f"Cleaning contacts for account: {account}")
        api = self.api_factory(account)
        if contacts is None:
            logger.warning("Reading contacts from the account")
            contacts = fetch_all(
                api, ResourceKind.CONTACTS, page_size=self.contacts_page_size
            )
        logger.info(f"Retrieved {len(contacts)} contacts")

        if not urls or not url_type:
            return CleanResult(skipped=len(contacts))

        return clean_urls(
            api,
            contacts,
            url_type,
            rate_limiter=self.update_rate_limiter,
            progress=self.progress,
        )

    # ========== Groups ==========

    def list_contact_groups(
        self, account: str | None, output: Path | str | None = None
    ) -> GroupListResult:
        """
        Fetch every contact group of an account.

        Args:
            account: Account email
            output: Optional file to save the raw groups to

        Raises:
            ValidationError: If no account is given
            PeopleAPIError: If any page request fails
        """
        if not account:
            raise ValidationError("No account provided")

        api = self.api_factory(account)
        raw = fetch_all(api, ResourceKind.CONTACT_GROUPS, page_size=self.groups_page_size)
        result = GroupListResult(
            groups=[ContactGroup.from_api_response(g) for g in raw], raw=raw
        )
        logger.info(f"Retrieved {len(raw)} contact groups")

        if output:
            path = Path(output).expanduser()
            result.overwritten = path.exists()
            if result.overwritten:
                logger.warning(f"File already exists. Overwriting {path}")
            result.path = self.store.write(path, raw)
        return result

    # ========== Utils ==========

    def summarize_file(self, file: Path | str | None) -> ContactSummary:
        """
        Summarize an exported contacts file.

        Raises:
            ValidationError: If no file is given or it is not a JSON array
            NotFoundError: If the file does not exist
        """
        if not file:
            raise ValidationError("No file provided")
        contacts = self.store.read_records(file)
        logger.info(f"Read {len(contacts)} contacts from file: {file}")
        return summarize_contacts(contacts)
