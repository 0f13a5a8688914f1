"""
Local JSON snapshot store for contact data.

Provides functionality to:
- Write a whole JSON document to a named file under the cache directory
- Read it back, treating missing or damaged files as empty
- Serialize and deserialize lists of contacts

Snapshots are rewritten wholesale on every save. They exist for
inspection after a run; nothing reads them while a sync is in progress.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from b24_contact_sync.sync.contact import Contact

# Snapshot of every contact seen during the current pass, after normalization
CONTACTS_SNAPSHOT = "contacts.json"

# Snapshot of the same contacts exactly as the CRM returned them
RAW_SNAPSHOT = "contacts_raw.json"

# Snapshot of the changed contacts and their update payloads
SANITIZED_SNAPSHOT = "contacts_sanitized.json"

logger = logging.getLogger(__name__)


class SnapshotStore:
    """
    JSON file store addressed by filename under a cache directory.

    Attributes:
        cache_dir: Directory holding the snapshot files

    Usage:
        store = SnapshotStore(Path("cache"))
        store.write("contacts.json", [contact.to_snapshot() for contact in contacts])
        data = store.read("contacts.json")
    """

    def __init__(self, cache_dir: Path | str):
        """
        Initialize the store.

        The directory is created on the first write, not here.

        Args:
            cache_dir: Directory where snapshot files are kept
        """
        self.cache_dir = Path(cache_dir).expanduser()

    def path_for(self, filename: str) -> Path:
        return self.cache_dir / filename

    def read(self, filename: str) -> Any:
        """
        Read a snapshot file as JSON.

        Args:
            filename: Name of the file within the cache directory

        Returns:
            The decoded document, or an empty list if the file is missing
            or cannot be parsed
        """
        path = self.path_for(filename)
        if not path.exists():
            logger.debug(f"Snapshot not found: {path}")
            return []

        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read snapshot {path}: {e}")
            return []

    def write(self, filename: str, data: Any) -> Path:
        """
        Overwrite a snapshot file with a JSON document.

        Creates the cache directory if it does not exist yet.

        Args:
            filename: Name of the file within the cache directory
            data: JSON-serializable document

        Returns:
            Path to the written file

        Raises:
            OSError: If the directory or file cannot be written
        """
        if not self.cache_dir.exists():
            logger.info(f"Creating {self.cache_dir}")
        self.cache_dir.mkdir(parents=True, exist_ok=True)

        path = self.path_for(filename)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        return path

    def write_contacts(self, filename: str, contacts: list[Contact]) -> Path:
        """Serialize contacts in snapshot format and overwrite the file."""
        return self.write(filename, [contact.to_snapshot() for contact in contacts])

    def read_contacts(self, filename: str) -> list[Contact]:
        """
        Load contacts from a snapshot file.

        Items that are not valid contact records are skipped with a warning.
        """
        data = self.read(filename)
        if not isinstance(data, list):
            logger.warning(f"Snapshot {filename} does not contain a list")
            return []

        contacts: list[Contact] = []
        for item in data:
            try:
                contacts.append(Contact.from_api_response(item))
            except (ValueError, TypeError, AttributeError) as e:
                logger.warning(f"Skipping snapshot item: {e}")
        return contacts
