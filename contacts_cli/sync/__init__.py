"""
contacts_cli.sync - Contact import/export pipeline

Sanitization, paginated fetching, and batched writing of contacts.
The workflows composing them live in contacts_cli.sync.orchestrator.
"""

from contacts_cli.sync.errors import (
    NotFoundError,
    PaginationError,
    SyncError,
    UnimplementedError,
    ValidationError,
)
from contacts_cli.sync.fetcher import ResourceKind, fetch_all
from contacts_cli.sync.sanitizer import sanitize_contact, sanitize_contacts
from contacts_cli.sync.writer import (
    BatchResult,
    BatchWriter,
    FixedDelayRateLimiter,
    WriteResult,
)

__all__ = [
    "BatchResult",
    "BatchWriter",
    "FixedDelayRateLimiter",
    "NotFoundError",
    "PaginationError",
    "ResourceKind",
    "SyncError",
    "UnimplementedError",
    "ValidationError",
    "WriteResult",
    "fetch_all",
    "sanitize_contact",
    "sanitize_contacts",
]
