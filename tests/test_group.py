"""
Tests for the ContactGroup model.
"""

from contacts_cli.sync.group import GROUP_TYPE_UNSPECIFIED, ContactGroup


class TestContactGroupFromApiResponse:
    """Tests for ContactGroup.from_api_response."""

    def test_full_response(self):
        group = ContactGroup.from_api_response(
            {
                "resourceName": "contactGroups/123abc",
                "etag": "xyz789",
                "name": "Family",
                "formattedName": "Family",
                "groupType": "USER_CONTACT_GROUP",
                "memberCount": 5,
            }
        )

        assert group.resource_name == "contactGroups/123abc"
        assert group.etag == "xyz789"
        assert group.member_count == 5
        assert group.group_type == "USER_CONTACT_GROUP"
        assert group.display_name == "Family"

    def test_minimal_response(self):
        """Test that missing keys fall back to defaults."""
        group = ContactGroup.from_api_response({})

        assert group.resource_name == ""
        assert group.group_type == GROUP_TYPE_UNSPECIFIED
        assert group.member_count == 0
        assert group.formatted_name is None


class TestDisplayName:
    """Tests for display_name."""

    def test_prefers_formatted_name(self):
        group = ContactGroup(
            resource_name="contactGroups/myContacts",
            etag="e",
            name="myContacts",
            group_type="SYSTEM_CONTACT_GROUP",
            formatted_name="My Contacts",
        )
        assert group.display_name == "My Contacts"

    def test_falls_back_to_name(self):
        group = ContactGroup(resource_name="contactGroups/x", etag="e", name="Work")
        assert group.display_name == "Work"
