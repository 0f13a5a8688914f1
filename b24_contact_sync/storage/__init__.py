"""
b24_contact_sync.storage - Local snapshot storage module
"""

from b24_contact_sync.storage.snapshot import (
    CONTACTS_SNAPSHOT,
    RAW_SNAPSHOT,
    SANITIZED_SNAPSHOT,
    SnapshotStore,
)

__all__ = ["CONTACTS_SNAPSHOT", "RAW_SNAPSHOT", "SANITIZED_SNAPSHOT", "SnapshotStore"]
