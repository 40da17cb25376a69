"""
Statistics over an exported contacts file.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from contacts_cli.sync.sanitizer import SOURCE_FILTERED_FIELDS, source_type

NO_SOURCE = "UNSPECIFIED"


@dataclass
class ContactSummary:
    """
    Aggregate view of a list of contacts.

    Attributes:
        total: Number of contact records
        field_counts: Contacts carrying a non-empty value per field
        source_counts: Name/email entries per provenance, keyed by field
        group_counts: Contacts per contact group resource name
    """

    total: int = 0
    field_counts: Counter[str] = field(default_factory=Counter)
    source_counts: dict[str, Counter[str]] = field(default_factory=dict)
    group_counts: Counter[str] = field(default_factory=Counter)


def _group_names(person: dict[str, Any]) -> set[str]:
    names: set[str] = set()
    for membership in person.get("memberships") or []:
        if not isinstance(membership, dict):
            continue
        group = membership.get("contactGroupMembership") or {}
        name = group.get("contactGroupResourceName")
        if name:
            names.add(name)
    return names


def summarize_contacts(contacts: Iterable[Any]) -> ContactSummary:
    """Count fields, provenance of names/emails, and group memberships."""
    summary = ContactSummary(
        source_counts={name: Counter() for name in SOURCE_FILTERED_FIELDS}
    )

    for person in contacts:
        if not isinstance(person, dict):
            continue
        summary.total += 1

        for field_name, value in person.items():
            if value:
                summary.field_counts[field_name] += 1

        for field_name in SOURCE_FILTERED_FIELDS:
            entries = person.get(field_name)
            if not isinstance(entries, list):
                continue
            for entry in entries:
                summary.source_counts[field_name][source_type(entry) or NO_SOURCE] += 1

        summary.group_counts.update(_group_names(person))

    return summary
