"""
Unit tests for the People API module.

Tests the PeopleAPI class with mocked Google API responses.
"""

from unittest.mock import MagicMock, patch

import httplib2
import pytest
from googleapiclient.errors import HttpError

from contacts_cli.api.people_api import (
    DEFAULT_CONTACTS_PAGE_SIZE,
    DEFAULT_GROUPS_PAGE_SIZE,
    MAX_BATCH_CREATE_SIZE,
    PERSON_FIELDS,
    PeopleAPI,
    PeopleAPIError,
    RateLimitError,
)


def _http_error(status, reason="error"):
    resp = MagicMock()
    resp.status = status
    resp.reason = reason
    return HttpError(resp, b'{"error": {"message": "error"}}')


@pytest.fixture
def api():
    api = PeopleAPI(MagicMock(), initial_retry_delay=0.01, max_retry_delay=0.02)
    api._service = MagicMock()
    return api


class TestPeopleAPIService:
    """Tests for the service property."""

    @patch("contacts_cli.api.people_api.build")
    def test_service_creates_on_first_access(self, mock_build):
        """Test that service is created once and cached."""
        mock_creds = MagicMock()
        api = PeopleAPI(mock_creds)

        first = api.service
        second = api.service

        mock_build.assert_called_once_with(
            "people", "v1", credentials=mock_creds, cache_discovery=False
        )
        assert first is second

    @patch("contacts_cli.api.people_api.build")
    def test_service_creation_failure(self, mock_build):
        mock_build.side_effect = RuntimeError("no discovery")
        with pytest.raises(PeopleAPIError, match="no discovery"):
            PeopleAPI(MagicMock()).service


class TestListConnections:
    """Tests for list_connections."""

    def test_first_page(self, api):
        list_call = api._service.people.return_value.connections.return_value.list
        list_call.return_value.execute.return_value = {
            "connections": [{"resourceName": "people/c1"}],
            "nextPageToken": "next",
        }

        people, token = api.list_connections()

        assert people == [{"resourceName": "people/c1"}]
        assert token == "next"
        kwargs = list_call.call_args.kwargs
        assert kwargs["resourceName"] == "people/me"
        assert kwargs["personFields"] == PERSON_FIELDS
        assert kwargs["pageSize"] == DEFAULT_CONTACTS_PAGE_SIZE
        assert "pageToken" not in kwargs

    def test_continuation_and_last_page(self, api):
        list_call = api._service.people.return_value.connections.return_value.list
        list_call.return_value.execute.return_value = {}

        people, token = api.list_connections(page_token="abc", page_size=5000)

        assert people == []
        assert token is None
        assert list_call.call_args.kwargs["pageToken"] == "abc"
        assert list_call.call_args.kwargs["pageSize"] == 1000


class TestListContactGroups:
    """Tests for list_contact_groups."""

    def test_page(self, api):
        list_call = api._service.contactGroups.return_value.list
        list_call.return_value.execute.return_value = {
            "contactGroups": [{"resourceName": "contactGroups/a"}],
            "nextPageToken": "",
        }

        groups, token = api.list_contact_groups()

        assert groups == [{"resourceName": "contactGroups/a"}]
        assert token is None
        assert list_call.call_args.kwargs["pageSize"] == DEFAULT_GROUPS_PAGE_SIZE


class TestCreateContacts:
    """Tests for create_contact and batch_create_contacts."""

    def test_create_contact(self, api):
        create = api._service.people.return_value.createContact
        create.return_value.execute.return_value = {"resourceName": "people/new"}

        result = api.create_contact({"names": []})

        assert result == {"resourceName": "people/new"}
        assert create.call_args.kwargs["body"] == {"names": []}

    def test_batch_create_body(self, api):
        """Test the batchCreateContacts request and response mapping."""
        batch = api._service.people.return_value.batchCreateContacts
        batch.return_value.execute.return_value = {
            "createdPeople": [
                {"person": {"resourceName": "people/1"}},
                {"person": {"resourceName": "people/2"}},
            ]
        }

        created = api.batch_create_contacts([{"a": 1}, {"b": 2}])

        assert [p["resourceName"] for p in created] == ["people/1", "people/2"]
        body = batch.call_args.kwargs["body"]
        assert body["contacts"] == [{"contactPerson": {"a": 1}}, {"contactPerson": {"b": 2}}]
        assert body["readMask"] == PERSON_FIELDS

    def test_batch_create_empty(self, api):
        assert api.batch_create_contacts([]) == []
        api._service.people.return_value.batchCreateContacts.assert_not_called()

    def test_batch_create_too_many(self, api):
        with pytest.raises(ValueError):
            api.batch_create_contacts([{}] * (MAX_BATCH_CREATE_SIZE + 1))


class TestUpdateContact:
    """Tests for update_contact."""

    def test_update_fields(self, api):
        update = api._service.people.return_value.updateContact
        update.return_value.execute.return_value = {"resourceName": "people/c1"}

        api.update_contact("people/c1", {"etag": "e", "urls": []}, ["urls"])

        kwargs = update.call_args.kwargs
        assert kwargs["resourceName"] == "people/c1"
        assert kwargs["updatePersonFields"] == "urls"

    def test_requires_resource_name(self, api):
        with pytest.raises(ValueError):
            api.update_contact("", {}, ["urls"])

    def test_requires_fields(self, api):
        with pytest.raises(ValueError):
            api.update_contact("people/c1", {}, [])


class TestRetryWithBackoff:
    """Tests for transport-level retries."""

    @patch("contacts_cli.api.people_api.time.sleep")
    def test_retries_rate_limit_then_succeeds(self, mock_sleep, api):
        operation = MagicMock(side_effect=[_http_error(429), "ok"])

        assert api._retry_with_backoff(operation, "op") == "ok"
        assert operation.call_count == 2
        mock_sleep.assert_called_once()

    @patch("contacts_cli.api.people_api.time.sleep")
    def test_rate_limit_exhausted(self, mock_sleep, api):
        api.max_retries = 3
        operation = MagicMock(side_effect=_http_error(429))

        with pytest.raises(RateLimitError) as exc_info:
            api._retry_with_backoff(operation, "op")

        assert exc_info.value.status_code == 429
        assert operation.call_count == 3
        assert mock_sleep.call_count == 2

    @patch("contacts_cli.api.people_api.time.sleep")
    def test_server_error_retried(self, mock_sleep, api):
        operation = MagicMock(side_effect=[_http_error(503), {"ok": True}])
        assert api._retry_with_backoff(operation, "op") == {"ok": True}

    @patch("contacts_cli.api.people_api.time.sleep")
    def test_backoff_doubles_up_to_max(self, mock_sleep, api):
        api.max_retries = 4
        operation = MagicMock(side_effect=_http_error(429))

        with pytest.raises(RateLimitError):
            api._retry_with_backoff(operation, "op")

        assert [c.args[0] for c in mock_sleep.call_args_list] == [0.01, 0.02, 0.02]

    @patch("contacts_cli.api.people_api.time.sleep")
    def test_client_error_not_retried(self, mock_sleep, api):
        operation = MagicMock(side_effect=_http_error(400, "Bad Request"))

        with pytest.raises(PeopleAPIError) as exc_info:
            api._retry_with_backoff(operation, "op")

        assert exc_info.value.status_code == 400
        assert not isinstance(exc_info.value, RateLimitError)
        operation.assert_called_once()
        mock_sleep.assert_not_called()

    def test_network_error_wrapped(self, api):
        operation = MagicMock(side_effect=ConnectionResetError("reset"))
        with pytest.raises(PeopleAPIError, match="reset"):
            api._retry_with_backoff(operation, "op")

    def test_transport_error_wrapped(self, api):
        """Test that httplib2 faults surface as PeopleAPIError."""
        operation = MagicMock(
            side_effect=httplib2.ServerNotFoundError("Unable to find the server")
        )
        with pytest.raises(PeopleAPIError, match="Unable to find the server"):
            api._retry_with_backoff(operation, "op")
        operation.assert_called_once()
