"""
Google People API wrapper for contact import and export.

Provides a thin, page-at-a-time interface to the Google People API for:
- Listing contacts and contact groups one page per call
- Creating contacts singly or in one batchCreateContacts request
- Updating selected fields of an existing contact
- Exponential backoff retry logic for rate limits and server errors

Records are passed through as the plain dicts the API returns so that
exports keep full fidelity.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

import httplib2
from google.auth import exceptions as auth_exceptions
from google.oauth2.credentials import Credentials
from googleapiclient import errors as googleapiclient_errors
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

# Person fields to request from the API. Everything the API can return,
# so that an export can be re-imported without losing data.
PERSON_FIELDS = ",".join(
    [
        "addresses",
        "ageRanges",
        "biographies",
        "birthdays",
        "calendarUrls",
        "clientData",
        "coverPhotos",
        "emailAddresses",
        "events",
        "externalIds",
        "genders",
        "imClients",
        "interests",
        "locales",
        "locations",
        "memberships",
        "metadata",
        "miscKeywords",
        "names",
        "nicknames",
        "occupations",
        "organizations",
        "phoneNumbers",
        "photos",
        "relations",
        "sipAddresses",
        "skills",
        "urls",
        "userDefined",
    ]
)

GROUP_FIELDS = "name,groupType,memberCount,metadata,clientData"

# Page sizes when listing
DEFAULT_CONTACTS_PAGE_SIZE = 1000
DEFAULT_GROUPS_PAGE_SIZE = 200
MAX_PAGE_SIZE = 1000

# batchCreateContacts accepts at most 200 contacts per request
MAX_BATCH_CREATE_SIZE = 200

# Retry configuration defaults
DEFAULT_MAX_RETRIES = 5
DEFAULT_INITIAL_RETRY_DELAY = 1.0  # seconds
DEFAULT_MAX_RETRY_DELAY = 60.0  # seconds

logger = logging.getLogger(__name__)


class PeopleAPIError(Exception):
    """Raised when a People API call fails (network, auth, quota, or API error)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(PeopleAPIError):
    """Raised when rate limit is exceeded and retries are exhausted."""

    pass


def _error_message(error: HttpError) -> str:
    """Extract the human readable message from an HttpError."""
    reason = getattr(error, "reason", None)
    if reason:
        return str(reason)
    return str(error)


class PeopleAPI:
    """
    Google People API wrapper bound to one account's credentials.

    Attributes:
        credentials: Google OAuth2 credentials
        service: Google API service object (created lazily)

    Usage:
        api = PeopleAPI(credentials)

        # Walk contacts one page at a time
        people, token = api.list_connections()
        while token:
            more, token = api.list_connections(page_token=token)

        # Create contacts
        created = api.batch_create_contacts([person1, person2])
    """

    def __init__(
        self,
        credentials: Credentials,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_retry_delay: float = DEFAULT_INITIAL_RETRY_DELAY,
        max_retry_delay: float = DEFAULT_MAX_RETRY_DELAY,
    ):
        """
        Initialize the People API wrapper.

        Args:
            credentials: Valid Google OAuth2 credentials with contacts scope
            max_retries: Maximum attempts for rate-limited or 5xx calls (default 5)
            initial_retry_delay: Initial backoff delay in seconds (default 1.0)
            max_retry_delay: Maximum backoff delay in seconds (default 60.0)
        """
        self.credentials = credentials
        self.max_retries = max(1, max_retries)
        self.initial_retry_delay = initial_retry_delay
        self.max_retry_delay = max_retry_delay
        self._service = None

    @property
    def service(self) -> Any:
        """
        Get or create the Google API service object.

        Raises:
            PeopleAPIError: If service cannot be created
        """
        if self._service is None:
            try:
                self._service = build(
                    "people", "v1", credentials=self.credentials, cache_discovery=False
                )
                logger.debug("Created People API service")
            except Exception as e:
                logger.error(f"Failed to create People API service: {e}")
                raise PeopleAPIError(f"Failed to create API service: {e}") from e
        return self._service

    def _retry_with_backoff(
        self, operation: Callable[[], Any], operation_name: str
    ) -> Any:
        """
        Execute an operation with exponential backoff retry.

        429 and 403 (quota) responses and 5xx server errors are retried up to
        max_retries attempts. Any other failure, including httplib2 transport
        faults such as ServerNotFoundError, is raised immediately.

        Raises:
            RateLimitError: If retries are exhausted due to rate limits
            PeopleAPIError: For every other failure
        """
        delay = self.initial_retry_delay

        for attempt in range(self.max_retries):
            try:
                return operation()

            except HttpError as e:
                status_code = e.resp.status
                last_attempt = attempt >= self.max_retries - 1

                if status_code in (429, 403):
                    if last_attempt:
                        raise RateLimitError(
                            f"Rate limit exceeded for {operation_name} "
                            f"after {self.max_retries} attempts",
                            status_code=status_code,
                        ) from e
                    logger.warning(
                        f"{operation_name} rate limited, retrying in "
                        f"{delay:.1f}s (attempt {attempt + 1}/{self.max_retries})"
                    )
                    time.sleep(delay)
                    delay = min(delay * 2, self.max_retry_delay)
                    continue

                if status_code >= 500 and not last_attempt:
                    logger.warning(
                        f"{operation_name} server error ({status_code}), "
                        f"retrying in {delay:.1f}s"
                    )
                    time.sleep(delay)
                    delay = min(delay * 2, self.max_retry_delay)
                    continue

                message = _error_message(e)
                logger.error(
                    f"{operation_name} failed with status {status_code}: {message}"
                )
                raise PeopleAPIError(
                    f"{operation_name} failed: {message}", status_code=status_code
                ) from e

            except (auth_exceptions.RefreshError, auth_exceptions.TransportError) as e:
                logger.error(f"{operation_name} failed to authorize: {e}")
                raise PeopleAPIError(
                    f"{operation_name} failed: credentials rejected ({e}). "
                    "Re-authorize the account and try again."
                ) from e

            except (OSError, httplib2.HttpLib2Error, googleapiclient_errors.Error) as e:
                logger.error(f"{operation_name} network error: {e}")
                raise PeopleAPIError(f"{operation_name} failed: {e}") from e

        # Should not reach here
        raise PeopleAPIError(f"{operation_name} failed after all retries")

    def list_connections(
        self, page_token: str | None = None, page_size: int | None = None
    ) -> tuple[list[dict[str, Any]], str | None]:
        """
        Fetch one page of the user's contacts.

        Args:
            page_token: Continuation cursor from the previous page, None for first
            page_size: Contacts per page (default 1000, capped at 1000)

        Returns:
            Tuple of (list of person dicts, next page token or None)

        Raises:
            PeopleAPIError: If the request fails
        """
        params: dict[str, Any] = {
            "resourceName": "people/me",
            "personFields": PERSON_FIELDS,
            "pageSize": min(page_size or DEFAULT_CONTACTS_PAGE_SIZE, MAX_PAGE_SIZE),
        }
        if page_token:
            params["pageToken"] = page_token

        def execute_list() -> Any:
            return self.service.people().connections().list(**params).execute()

        response = self._retry_with_backoff(execute_list, "list_connections")

        connections: list[dict[str, Any]] = response.get("connections", [])
        return connections, response.get("nextPageToken") or None

    def list_contact_groups(
        self, page_token: str | None = None, page_size: int | None = None
    ) -> tuple[list[dict[str, Any]], str | None]:
        """
        Fetch one page of the user's contact groups.

        Returns both user-defined and system groups (myContacts, starred...).

        Args:
            page_token: Continuation cursor from the previous page, None for first
            page_size: Groups per page (default 200, capped at 1000)

        Returns:
            Tuple of (list of contact group dicts, next page token or None)

        Raises:
            PeopleAPIError: If the request fails
        """
        params: dict[str, Any] = {
            "pageSize": min(page_size or DEFAULT_GROUPS_PAGE_SIZE, MAX_PAGE_SIZE),
            "groupFields": GROUP_FIELDS,
        }
        if page_token:
            params["pageToken"] = page_token

        def execute_list() -> Any:
            return self.service.contactGroups().list(**params).execute()

        response = self._retry_with_backoff(execute_list, "list_contact_groups")

        groups: list[dict[str, Any]] = response.get("contactGroups", [])
        return groups, response.get("nextPageToken") or None

    def create_contact(self, person: dict[str, Any]) -> dict[str, Any]:
        """
        Create a single contact.

        Args:
            person: Sanitized person dict

        Returns:
            The created person as returned by the API, with resourceName and etag

        Raises:
            PeopleAPIError: If creation fails
        """

        def execute_create() -> Any:
            return (
                self.service.people()
                .createContact(body=person, personFields=PERSON_FIELDS)
                .execute()
            )

        response = self._retry_with_backoff(execute_create, "create_contact")
        logger.debug(f"Created contact: {response.get('resourceName')}")
        return dict(response)

    def batch_create_contacts(
        self, people: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        """
        Create several contacts in one batchCreateContacts request.

        Splitting larger sets into batches is the caller's job.

        Args:
            people: Sanitized person dicts, at most 200

        Returns:
            Created person dicts in request order

        Raises:
            ValueError: If more than 200 contacts are passed
            PeopleAPIError: If the request fails
        """
        if not people:
            return []
        if len(people) > MAX_BATCH_CREATE_SIZE:
            raise ValueError(
                f"batchCreateContacts accepts at most {MAX_BATCH_CREATE_SIZE} "
                f"contacts, got {len(people)}"
            )

        body = {
            "contacts": [{"contactPerson": person} for person in people],
            "readMask": PERSON_FIELDS,
        }

        def execute_batch_create() -> Any:
            return self.service.people().batchCreateContacts(body=body).execute()

        response = self._retry_with_backoff(
            execute_batch_create, f"batch_create_contacts({len(people)})"
        )

        created = [
            result.get("person", {}) for result in response.get("createdPeople", [])
        ]
        logger.debug(f"Batch created {len(created)} contacts")
        return created

    def update_contact(
        self,
        resource_name: str,
        person: dict[str, Any],
        update_fields: list[str],
    ) -> dict[str, Any]:
        """
        Update selected fields of an existing contact.

        Args:
            resource_name: Contact's resource name (e.g., "people/c12345")
            person: Person dict carrying the new field values and current etag
            update_fields: Person fields to overwrite (e.g., ["urls"])

        Returns:
            Updated person dict with new etag

        Raises:
            ValueError: If resource_name or update_fields is missing
            PeopleAPIError: If the update fails (409 when the etag is stale)
        """
        if not resource_name:
            raise ValueError("resource_name is required for update")
        if not update_fields:
            raise ValueError("update_fields must name at least one field")

        def execute_update() -> Any:
            return (
                self.service.people()
                .updateContact(
                    resourceName=resource_name,
                    body=person,
                    updatePersonFields=",".join(update_fields),
                    personFields=PERSON_FIELDS,
                )
                .execute()
            )

        response = self._retry_with_backoff(
            execute_update, f"update_contact({resource_name})"
        )
        logger.debug(f"Updated contact: {resource_name}")
        return dict(response)
