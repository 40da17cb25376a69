"""
ContactGroup data model for Google Contacts groups.

Provides a typed view over contactGroups API responses, used when listing
an account's groups on the command line.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# groupType reported when the server omits one
GROUP_TYPE_UNSPECIFIED = "GROUP_TYPE_UNSPECIFIED"


@dataclass
class ContactGroup:
    """
    Contact group (label) of one account.

    Attributes:
        resource_name: Google's unique ID (e.g., "contactGroups/123abc")
        etag: Entity tag used by the server for optimistic concurrency
        name: Display name of the group (e.g., "Family", "Work")
        group_type: USER_CONTACT_GROUP, SYSTEM_CONTACT_GROUP or unspecified
        member_count: Number of members in the group
        formatted_name: Name localized by the server (system groups differ)

    Usage:
        group = ContactGroup.from_api_response(api_response)
        print(group.display_name, group.group_type)
    """

    resource_name: str
    etag: str
    name: str
    group_type: str = GROUP_TYPE_UNSPECIFIED
    member_count: int = 0
    formatted_name: str | None = None

    @classmethod
    def from_api_response(cls, group_data: dict[str, Any]) -> ContactGroup:
        """
        Create a ContactGroup from a Google People API response.

        Example API response structure::

            {
                'resourceName': 'contactGroups/123abc',
                'etag': 'xyz789',
                'name': 'My Custom Group',
                'formattedName': 'My Custom Group',
                'groupType': 'USER_CONTACT_GROUP',
                'memberCount': 5,
            }
        """
        return cls(
            resource_name=group_data.get("resourceName", ""),
            etag=group_data.get("etag", ""),
            name=group_data.get("name", ""),
            group_type=group_data.get("groupType", GROUP_TYPE_UNSPECIFIED),
            member_count=group_data.get("memberCount", 0),
            formatted_name=group_data.get("formattedName"),
        )

    @property
    def display_name(self) -> str:
        """Formatted name when the server supplies one, raw name otherwise."""
        return self.formatted_name or self.name
