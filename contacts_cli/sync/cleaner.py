"""
Removal of unwanted URL entries from existing contacts.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from contacts_cli.api.people_api import PeopleAPIError

if TYPE_CHECKING:
    from contacts_cli.api.people_api import PeopleAPI
    from contacts_cli.sync.writer import ProgressCallback, RateLimiter

logger = logging.getLogger(__name__)


@dataclass
class CleanResult:
    """
    Outcome of a clean run.

    Attributes:
        updated: Contacts as returned by the server after the update
        failed: (contact, error) for every update that was rejected
        skipped: Number of contacts that needed no change
    """

    updated: list[dict[str, Any]] = field(default_factory=list)
    failed: list[tuple[dict[str, Any], Exception]] = field(default_factory=list)
    skipped: int = 0


def _url_type(entry: Any) -> str:
    if not isinstance(entry, dict):
        return ""
    value = entry.get("type") or entry.get("formattedType") or ""
    return str(value).strip().lower()


def strip_urls(person: Any, url_type: str) -> list[dict[str, Any]] | None:
    """
    Return the person's URLs without entries of the given type.

    Matching is case-insensitive against the entry's type (or formatted
    type when the raw type is missing).

    Returns:
        The remaining URL entries, or None if nothing would be removed
    """
    if not isinstance(person, dict):
        return None
    urls = person.get("urls")
    if not isinstance(urls, list):
        return None

    wanted = url_type.strip().lower()
    kept = [entry for entry in urls if _url_type(entry) != wanted]
    if len(kept) == len(urls):
        return None
    return kept


def clean_urls(
    api: PeopleAPI,
    contacts: Sequence[dict[str, Any]],
    url_type: str,
    rate_limiter: RateLimiter | None = None,
    progress: ProgressCallback | None = None,
) -> CleanResult:
    """
    Remove URLs of one type from every contact that has them.

    Each affected contact is updated with a single updateContact call that
    overwrites only the ``urls`` field, guarded by the record's etag. A
    rejected update is recorded and the run continues.

    Args:
        api: People API client bound to the account
        contacts: Person dicts carrying resourceName and etag
        url_type: URL type to remove (e.g. "profile", "blog")
        rate_limiter: Optional pause strategy between updates
        progress: Called with (processed, total) after every contact

    Returns:
        CleanResult with updated, failed and skipped counts
    """
    result = CleanResult()
    total = len(contacts)
    requests_sent = 0

    for processed, person in enumerate(contacts, start=1):
        kept = strip_urls(person, url_type)
        resource_name = person.get("resourceName") if kept is not None else None

        if not isinstance(person, dict):
            logger.warning(f"Skipping non-object contact entry at position {processed}")
            result.skipped += 1
        elif kept is None:
            result.skipped += 1
        elif not resource_name:
            logger.warning("Skipping contact without resourceName")
            result.skipped += 1
        else:
            if requests_sent and rate_limiter is not None:
                rate_limiter.wait()
            requests_sent += 1

            body = {"etag": person.get("etag"), "urls": kept}
            try:
                updated = api.update_contact(resource_name, body, ["urls"])
            except PeopleAPIError as e:
                logger.error(f"Failed to clean {resource_name}: {e}")
                result.failed.append((person, e))
            else:
                result.updated.append(updated)

        if progress is not None:
            progress(processed, total)

    logger.info(
        f"Cleaned {url_type!r} URLs: {len(result.updated)} updated, "
        f"{len(result.failed)} failed, {result.skipped} unchanged"
    )
    return result
