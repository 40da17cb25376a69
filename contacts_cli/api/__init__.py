"""Google People API client."""

from contacts_cli.api.people_api import PeopleAPI, PeopleAPIError, RateLimitError

__all__ = ["PeopleAPI", "PeopleAPIError", "RateLimitError"]
