"""Errors raised by the import/export workflows."""


class SyncError(Exception):
    """Base class for workflow errors that halt a command."""

    pass


class ValidationError(SyncError):
    """Required input is missing or inconsistent. Raised before any I/O."""

    pass


class NotFoundError(SyncError):
    """A referenced input file does not exist. Raised before any I/O."""

    pass


class UnimplementedError(SyncError):
    """The requested workflow exists on the command line but is not implemented."""

    pass


class PaginationError(SyncError):
    """The server kept returning continuation cursors past the page limit."""

    pass
