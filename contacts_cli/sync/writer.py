"""
Batched, rate-limited contact creation with partial-failure tracking.

Records are submitted in fixed-size batches, one request at a time. A batch
that fails is recorded and the run moves on to the next batch; the outcome
of every batch is kept so that failed contacts can be written out and
retried later.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from contacts_cli.api.people_api import PeopleAPIError

if TYPE_CHECKING:
    from contacts_cli.api.people_api import PeopleAPI

# Contacts per batchCreateContacts request
DEFAULT_BATCH_SIZE = 25

# Seconds between batches; keeps a run under the per-minute write quota
DEFAULT_BATCH_DELAY = 5.0

# Seconds between single-contact update requests
DEFAULT_UPDATE_DELAY = 0.5

ProgressCallback = Callable[[int, int], None]

logger = logging.getLogger(__name__)


class RateLimiter(Protocol):
    """Strategy deciding how long to pause between two batches."""

    def wait(self) -> None: ...


class FixedDelayRateLimiter:
    """
    Sleeps for the same delay before every batch after the first.

    Attributes:
        delay: Seconds to sleep on each wait() call
    """

    def __init__(
        self,
        delay: float = DEFAULT_BATCH_DELAY,
        sleep: Callable[[float], None] | None = None,
    ):
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        self.delay = delay
        self._sleep = sleep

    def wait(self) -> None:
        if self.delay > 0:
            logger.debug(f"Waiting {self.delay:.1f}s before next batch")
            (self._sleep or time.sleep)(self.delay)


@dataclass
class BatchResult:
    """
    Outcome of one submitted batch.

    Attributes:
        batch_number: 1-based position of the batch in the run
        records: The records that were submitted
        created: Records returned by the server when the batch succeeded
        error: The failure cause when the batch failed
    """

    batch_number: int
    records: list[dict[str, Any]]
    created: list[dict[str, Any]] = field(default_factory=list)
    error: Exception | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class WriteResult:
    """
    Aggregate outcome of a batched write.

    Attributes:
        succeeded: Created records, as returned by the server
        failed: One list of submitted records per failed batch
        batches: Every BatchResult in submission order
    """

    succeeded: list[dict[str, Any]] = field(default_factory=list)
    failed: list[list[dict[str, Any]]] = field(default_factory=list)
    batches: list[BatchResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(len(batch.records) for batch in self.batches)

    @property
    def failed_count(self) -> int:
        return sum(len(batch) for batch in self.failed)

    @property
    def errors(self) -> list[tuple[int, Exception]]:
        """(batch_number, cause) for every failed batch."""
        return [
            (batch.batch_number, batch.error)
            for batch in self.batches
            if batch.error is not None
        ]

    def has_failures(self) -> bool:
        return bool(self.failed)

    def summary(self) -> str:
        """One-line human readable summary."""
        return (
            f"Created {len(self.succeeded)} of {self.total} contacts in "
            f"{len(self.batches)} batch(es); "
            f"{self.failed_count} contacts in {len(self.failed)} failed batch(es)"
        )


def partition(records: Sequence[Any], batch_size: int) -> list[list[Any]]:
    """Split records into contiguous batches of at most batch_size, in order."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    return [
        list(records[i : i + batch_size]) for i in range(0, len(records), batch_size)
    ]


class BatchWriter:
    """
    Creates contacts in sequential, throttled batches.

    Each batch is submitted and its response awaited before the rate
    limiter runs and the next batch starts, so at most one request is in
    flight. A PeopleAPIError fails only the batch that raised it.

    Usage:
        writer = BatchWriter(api, batch_size=25,
                             rate_limiter=FixedDelayRateLimiter(5.0))
        result = writer.write(sanitized_contacts)
        print(result.summary())
    """

    def __init__(
        self,
        api: PeopleAPI,
        batch_size: int = DEFAULT_BATCH_SIZE,
        rate_limiter: RateLimiter | None = None,
        progress: ProgressCallback | None = None,
    ):
        """
        Args:
            api: People API client bound to the destination account
            batch_size: Maximum contacts per request (default 25)
            rate_limiter: Pause strategy between batches (default 5s fixed delay)
            progress: Called with (processed, total) after every batch
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.api = api
        self.batch_size = batch_size
        self.rate_limiter = rate_limiter or FixedDelayRateLimiter()
        self.progress = progress

    def _submit(self, batch: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if len(batch) == 1:
            return [self.api.create_contact(batch[0])]
        return self.api.batch_create_contacts(batch)

    def write(self, records: Sequence[dict[str, Any]]) -> WriteResult:
        """
        Submit records in batches and collect per-batch outcomes.

        Args:
            records: Sanitized person dicts

        Returns:
            WriteResult with created records and failed batches
        """
        result = WriteResult()
        batches = partition(records, self.batch_size)
        total = len(records)
        processed = 0

        logger.info(
            f"Creating {total} contacts in {len(batches)} batch(es) "
            f"of up to {self.batch_size}"
        )

        for index, batch in enumerate(batches):
            batch_number = index + 1
            if index > 0:
                self.rate_limiter.wait()

            try:
                created = self._submit(batch)
            except PeopleAPIError as e:
                logger.error(f"Batch {batch_number} ({len(batch)} contacts) failed: {e}")
                result.failed.append(batch)
                result.batches.append(
                    BatchResult(batch_number=batch_number, records=batch, error=e)
                )
            else:
                # The server may omit entries; keep the submitted record then
                merged = [
                    created[i] if i < len(created) and created[i] else record
                    for i, record in enumerate(batch)
                ]
                result.succeeded.extend(merged)
                result.batches.append(
                    BatchResult(batch_number=batch_number, records=batch, created=merged)
                )
                logger.debug(f"Batch {batch_number} created {len(merged)} contacts")

            processed += len(batch)
            if self.progress is not None:
                self.progress(processed, total)

        logger.info(result.summary())
        return result
