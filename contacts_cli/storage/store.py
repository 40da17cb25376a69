"""
JSON file persistence for exported contacts and import results.

Provides functionality to:
- Write contact and group lists as pretty-printed JSON documents
- Read contact lists back for import, clean and summarize commands
- Build timestamped per-account artifact paths under the output directory
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from contacts_cli.sync.errors import NotFoundError, ValidationError
from contacts_cli.utils.paths import resolve_output_dir, safe_path_component

logger = logging.getLogger(__name__)


class JsonStore:
    """
    Reads and writes JSON arrays of records.

    Files are UTF-8, indented by two spaces, and hold the records exactly
    as given. Per-account artifacts live in ``<output_dir>/<account>/``.

    Attributes:
        output_dir: Root directory for generated artifacts

    Usage:
        store = JsonStore(Path("output"))

        path = store.artifact_path("me@example.com", "contacts")
        store.write(path, contacts)

        contacts = store.read_records(Path("output/me@example.com/contacts.json"))
    """

    SUFFIX = ".json"
    TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

    def __init__(self, output_dir: Path | str | None = None):
        self.output_dir = resolve_output_dir(output_dir)

    def resolve(self, path: Path | str) -> Path:
        """Resolve a user-supplied output path; relative paths land in output_dir."""
        path = Path(path).expanduser()
        if path.is_absolute():
            return path
        return self.output_dir / path

    def account_dir(self, account: str) -> Path:
        """Directory holding the artifacts of one account."""
        return self.output_dir / safe_path_component(account)

    def artifact_path(
        self, account: str, prefix: str, timestamp: datetime | None = None
    ) -> Path:
        """
        Build a timestamped artifact path for an account.

        Example: ``output/me@example.com/failed-contacts-20240120_103000.json``
        """
        ts_str = (timestamp or datetime.now()).strftime(self.TIMESTAMP_FORMAT)
        return self.account_dir(account) / f"{prefix}-{ts_str}{self.SUFFIX}"

    def write(self, path: Path, data: Any) -> Path:
        """
        Write data as pretty-printed JSON, creating parent directories.

        Returns:
            The path written

        Raises:
            OSError: If the file cannot be written
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
        logger.debug(f"Wrote {path}")
        return path

    def read(self, path: Path | str) -> Any:
        """
        Read and parse a JSON document.

        Raises:
            NotFoundError: If the file does not exist
            ValidationError: If the file is not valid JSON
        """
        path = Path(path).expanduser()
        if not path.is_file():
            raise NotFoundError(f"File not found: {path}")

        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"{path} is not valid JSON: {e}") from e

    def read_records(self, path: Path | str) -> list[dict[str, Any]]:
        """
        Read a JSON array of record objects.

        Raises:
            NotFoundError: If the file does not exist
            ValidationError: If the document is not an array
        """
        data = self.read(path)
        if not isinstance(data, list):
            raise ValidationError(
                f"{path} must contain a JSON array of contacts, "
                f"got {type(data).__name__}"
            )
        return data
