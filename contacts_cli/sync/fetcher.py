"""
Paginated retrieval of an account's contacts and contact groups.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from contacts_cli.sync.errors import PaginationError

if TYPE_CHECKING:
    from contacts_cli.api.people_api import PeopleAPI

# Page sizes requested from the API
CONTACTS_PAGE_SIZE = 1000
GROUPS_PAGE_SIZE = 200

# Upper bound on pages walked in one fetch
MAX_PAGES = 10_000

logger = logging.getLogger(__name__)


class ResourceKind(Enum):
    """Collections that can be fetched in full."""

    CONTACTS = "contacts"
    CONTACT_GROUPS = "contactGroups"


def fetch_all(
    api: PeopleAPI,
    resource_kind: ResourceKind,
    page_size: int | None = None,
) -> list[dict[str, Any]]:
    """
    Fetch every record of a collection by following continuation cursors.

    Pages are requested one at a time until a response carries no next page
    token. Records are returned in the order the server sent them.

    Any PeopleAPIError raised by a page request propagates unchanged: the
    caller gets the complete collection or an exception, never a partial list.

    Args:
        api: People API client bound to the account
        resource_kind: CONTACTS or CONTACT_GROUPS
        page_size: Override for the per-page size (1000 contacts, 200 groups)

    Returns:
        All records of the collection

    Raises:
        PeopleAPIError: If any page request fails
        PaginationError: If the server never stops returning cursors
    """
    if resource_kind is ResourceKind.CONTACTS:
        list_page = api.list_connections
        size = page_size or CONTACTS_PAGE_SIZE
    else:
        list_page = api.list_contact_groups
        size = page_size or GROUPS_PAGE_SIZE

    records: list[dict[str, Any]] = []
    page_token: str | None = None
    pages = 0

    while True:
        page, page_token = list_page(page_token=page_token, page_size=size)
        pages += 1
        records.extend(page)
        logger.debug(
            f"Fetched page {pages} of {resource_kind.value} ({len(page)} records)"
        )

        if not page_token:
            break
        if pages >= MAX_PAGES:
            raise PaginationError(
                f"Stopped fetching {resource_kind.value} after {pages} pages: "
                "the server keeps returning continuation tokens"
            )

    logger.info(f"Fetched {len(records)} {resource_kind.value} in {pages} page(s)")
    return records
