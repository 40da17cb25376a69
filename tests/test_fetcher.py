"""
Tests for paginated fetching of contacts and contact groups.
"""

from unittest.mock import MagicMock, call, patch

import pytest

from contacts_cli.api.people_api import PeopleAPIError
from contacts_cli.sync.errors import PaginationError
from contacts_cli.sync.fetcher import (
    CONTACTS_PAGE_SIZE,
    GROUPS_PAGE_SIZE,
    ResourceKind,
    fetch_all,
)


def _person(n):
    return {"resourceName": f"people/c{n}"}


class TestFetchContacts:
    """Tests for fetching every contact."""

    def test_three_pages_in_order(self):
        """Test that 2/2/1 records across three pages come back in order."""
        api = MagicMock()
        api.list_connections.side_effect = [
            ([_person(1), _person(2)], "t1"),
            ([_person(3), _person(4)], "t2"),
            ([_person(5)], None),
        ]

        result = fetch_all(api, ResourceKind.CONTACTS)

        assert [p["resourceName"] for p in result] == [
            f"people/c{n}" for n in range(1, 6)
        ]
        assert api.list_connections.call_args_list == [
            call(page_token=None, page_size=CONTACTS_PAGE_SIZE),
            call(page_token="t1", page_size=CONTACTS_PAGE_SIZE),
            call(page_token="t2", page_size=CONTACTS_PAGE_SIZE),
        ]

    def test_empty_collection(self):
        """Test that an account without contacts yields an empty list."""
        api = MagicMock()
        api.list_connections.return_value = ([], None)

        assert fetch_all(api, ResourceKind.CONTACTS) == []
        api.list_connections.assert_called_once()

    def test_custom_page_size(self):
        api = MagicMock()
        api.list_connections.return_value = ([], None)

        fetch_all(api, ResourceKind.CONTACTS, page_size=50)

        api.list_connections.assert_called_once_with(page_token=None, page_size=50)

    def test_error_propagates_without_partial_result(self):
        """Test that a failing page raises instead of returning a partial list."""
        api = MagicMock()
        api.list_connections.side_effect = [
            ([_person(1)], "t1"),
            PeopleAPIError("list_connections failed: boom", status_code=400),
        ]

        with pytest.raises(PeopleAPIError, match="boom"):
            fetch_all(api, ResourceKind.CONTACTS)

    def test_page_cap(self):
        """Test that endless continuation tokens stop at the page limit."""
        api = MagicMock()
        api.list_connections.return_value = ([_person(1)], "again")

        with patch("contacts_cli.sync.fetcher.MAX_PAGES", 3):
            with pytest.raises(PaginationError):
                fetch_all(api, ResourceKind.CONTACTS)

        assert api.list_connections.call_count == 3


class TestFetchContactGroups:
    """Tests for fetching every contact group."""

    def test_uses_group_listing_and_page_size(self):
        """Test that groups are listed 200 per page."""
        api = MagicMock()
        api.list_contact_groups.side_effect = [
            ([{"resourceName": "contactGroups/a"}], "t1"),
            ([{"resourceName": "contactGroups/b"}], None),
        ]

        result = fetch_all(api, ResourceKind.CONTACT_GROUPS)

        assert len(result) == 2
        assert GROUPS_PAGE_SIZE == 200
        api.list_contact_groups.assert_any_call(page_token=None, page_size=200)
        api.list_connections.assert_not_called()
