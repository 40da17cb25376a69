"""
Contact record sanitization for re-import.

The People API returns a merged read view of every contact: contact-entered
data plus fields pulled in from linked Google profiles and the domain
directory, along with server-owned identifiers. Only the contact-sourced
parts may be sent back on create, so records read from an export are
cleaned here before submission.

All functions are pure: the input record is never modified.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

# Top-level fields that the server owns or renders and that cannot be written
READ_ONLY_FIELDS = frozenset(
    {"metadata", "resourceName", "id", "etag", "photos", "coverPhotos"}
)

# Keys removed from every nested structure
NESTED_IDENTITY_KEYS = frozenset({"id", "resourceName"})

# Fields whose entries are kept only when their source is the contact itself
SOURCE_FILTERED_FIELDS = ("names", "emailAddresses")

SOURCE_TYPE_CONTACT = "CONTACT"

DEFAULT_GROUP = "contactGroups/myContacts"
GROUP_PREFIX = "contactGroups/"


def group_resource_name(group: str) -> str:
    """
    Turn a group identifier into a contact group resource name.

    "friends" becomes "contactGroups/friends"; values that already carry
    the prefix are returned unchanged.
    """
    group = group.strip()
    if group.startswith(GROUP_PREFIX):
        return group
    return f"{GROUP_PREFIX}{group}"


def _membership(resource_name: str) -> dict[str, Any]:
    return {"contactGroupMembership": {"contactGroupResourceName": resource_name}}


def build_memberships(groups: Iterable[str] | None = None) -> list[dict[str, Any]]:
    """
    Build the membership list for a contact about to be created.

    The default group always comes first, followed by each requested group
    once, in the order given. Blank identifiers are ignored.
    """
    resource_names = [DEFAULT_GROUP]
    for group in groups or ():
        if not group or not group.strip():
            continue
        resource_name = group_resource_name(group)
        if resource_name not in resource_names:
            resource_names.append(resource_name)
    return [_membership(name) for name in resource_names]


def source_type(entry: Any) -> str | None:
    """Return metadata.source.type of a field entry, or None when absent."""
    if not isinstance(entry, Mapping):
        return None
    metadata = entry.get("metadata")
    if not isinstance(metadata, Mapping):
        return None
    source = metadata.get("source")
    if not isinstance(source, Mapping):
        return None
    value = source.get("type")
    return value if isinstance(value, str) else None


def _strip_identity(value: Any) -> Any:
    """Return a deep copy of value without any id/resourceName keys."""
    if isinstance(value, Mapping):
        return {
            key: _strip_identity(item)
            for key, item in value.items()
            if key not in NESTED_IDENTITY_KEYS
        }
    if isinstance(value, list):
        return [_strip_identity(item) for item in value]
    return value


def sanitize_contact(
    record: Mapping[str, Any], groups: Iterable[str] | None = None
) -> dict[str, Any]:
    """
    Produce a submittable copy of a contact record.

    Steps, in order:
        1. Drop read-only top-level fields (metadata, resourceName, id,
           etag, photos, coverPhotos).
        2. Keep only CONTACT-sourced names and email addresses.
        3. Replace memberships with the default group plus ``groups``.
        4. Remove every nested id/resourceName key.

    Args:
        record: Person dict as returned by the People API or read from an export
        groups: Contact group identifiers to add the contact to

    Returns:
        A new person dict safe to pass to createContact/batchCreateContacts
    """
    cleaned: dict[str, Any] = {}

    for field_name, value in record.items():
        if field_name in READ_ONLY_FIELDS or field_name == "memberships":
            continue

        if field_name in SOURCE_FILTERED_FIELDS:
            if not isinstance(value, list):
                continue
            value = [
                entry for entry in value if source_type(entry) == SOURCE_TYPE_CONTACT
            ]

        cleaned[field_name] = value

    cleaned["memberships"] = build_memberships(groups)

    return _strip_identity(cleaned)


def sanitize_contacts(
    records: Iterable[Any], groups: Iterable[str] | None = None
) -> list[dict[str, Any]]:
    """
    Sanitize a sequence of records, skipping entries that are not objects.

    Args:
        records: Person dicts
        groups: Contact group identifiers applied to every record

    Returns:
        Sanitized person dicts in input order
    """
    group_list = list(groups) if groups is not None else None
    return [
        sanitize_contact(record, group_list)
        for record in records
        if isinstance(record, Mapping)
    ]
