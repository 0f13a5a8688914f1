"""
Sync engine for CRM contact cleanup.

Drives the paginated pass over all CRM contacts: fetch a page, normalize
every contact on it, rewrite the local snapshot and write back the
contacts that changed. Every remote call is followed by a fixed delay and
no two requests are ever in flight at once.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from b24_contact_sync.api.crm_api import CrmAPI, CrmAPIError
from b24_contact_sync.storage.snapshot import (
    CONTACTS_SNAPSHOT,
    RAW_SNAPSHOT,
    SANITIZED_SNAPSHOT,
    SnapshotStore,
)
from b24_contact_sync.sync.contact import Contact, ContactPage
from b24_contact_sync.sync.normalizer import ContactNormalizer, NormalizationResult

# Page size of crm.contact.list; fixed by the CRM
DEFAULT_PAGE_SIZE = 50

# Pause after every remote call
DEFAULT_REQUEST_DELAY = 0.25  # seconds

# Retries of a failing page fetch before the pass is aborted, so at most
# 1 + DEFAULT_MAX_FETCH_RETRIES attempts per page (0 = retry forever)
DEFAULT_MAX_FETCH_RETRIES = 10

logger = logging.getLogger(__name__)


class SyncError(Exception):
    """Raised when a sync pass cannot continue."""

    pass


@dataclass
class SyncState:
    """
    Position of a pass in the contact listing.

    Attributes:
        offset: Start offset of the next page to fetch
        next: Continuation value from the last page, negative when exhausted
        accumulated: Every normalized contact seen so far, in fetch order
    """

    offset: int = 0
    next: int = 0
    accumulated: list[Contact] = field(default_factory=list)

    @property
    def done(self) -> bool:
        return self.next < 0


@dataclass
class SyncStats:
    """
    Statistics from a sync pass.

    Tracks counts of all operations performed during the pass.
    """

    pages_fetched: int = 0
    fetch_errors: int = 0
    contacts_processed: int = 0
    contacts_changed: int = 0
    updates_sent: int = 0
    updates_skipped: int = 0
    update_errors: int = 0
    snapshot_errors: int = 0
    total_reported: int = 0


@dataclass
class SyncResult:
    """
    Result of a sync pass.

    Contains every normalized contact, the changed ones and statistics.
    """

    contacts: list[Contact] = field(default_factory=list)
    changed: list[NormalizationResult] = field(default_factory=list)
    stats: SyncStats = field(default_factory=SyncStats)
    dry_run: bool = False

    def has_changes(self) -> bool:
        """Check if any contact needed a write-back."""
        return any(result.needs_update for result in self.changed)

    def sanitized_snapshot(self) -> list[dict[str, Any]]:
        """Changed contacts as {"ID": ..., <update fields>} items."""
        return [
            {"ID": result.contact_id, **result.fields}
            for result in self.changed
            if result.needs_update
        ]

    def summary(self) -> str:
        """Generate a human-readable summary of the pass."""
        stats = self.stats
        lines = [
            "Sync Summary:",
            f"  Pages fetched: {stats.pages_fetched}",
            f"  Contacts processed: {stats.contacts_processed}",
            f"  Contacts changed: {stats.contacts_changed}",
        ]
        if self.dry_run:
            planned = len(self.sanitized_snapshot())
            lines.append(f"  Updates planned (dry run): {planned}")
        else:
            lines.append(f"  Updates sent: {stats.updates_sent}")
        if stats.updates_skipped:
            lines.append(f"  Changed but nothing to send: {stats.updates_skipped}")
        if stats.fetch_errors:
            lines.append(f"  Fetch errors (retried): {stats.fetch_errors}")
        if stats.update_errors:
            lines.append(f"  Update errors: {stats.update_errors}")
        if stats.snapshot_errors:
            lines.append(f"  Snapshot write errors: {stats.snapshot_errors}")
        return "\n".join(lines)


class SyncEngine:
    """
    Sequential cleanup pass over all CRM contacts.

    Attributes:
        api: CrmAPI used for listing and updating contacts
        normalizer: ContactNormalizer applied to every contact
        snapshot_store: Optional SnapshotStore for the local snapshots
        request_delay: Seconds to wait after each remote call
        page_size: Offset increment per page, must equal the CRM page size
        max_fetch_retries: Retries of a failing page fetch after the first
            attempt (0 = unlimited)
        dry_run: If True, never call the update endpoint

    Usage:
        engine = SyncEngine(CrmAPI(webhook_url), ContactNormalizer())
        result = engine.run()
        print(result.summary())
    """

    def __init__(
        self,
        api: CrmAPI,
        normalizer: Optional[ContactNormalizer] = None,
        snapshot_store: Optional[SnapshotStore] = None,
        request_delay: float = DEFAULT_REQUEST_DELAY,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_fetch_retries: int = DEFAULT_MAX_FETCH_RETRIES,
        dry_run: bool = False,
    ):
        self.api = api
        self.normalizer = normalizer or ContactNormalizer()
        self.snapshot_store = snapshot_store
        self.request_delay = request_delay
        self.page_size = page_size
        self.max_fetch_retries = max_fetch_retries
        self.dry_run = dry_run

    def _wait(self) -> None:
        if self.request_delay > 0:
            time.sleep(self.request_delay)

    def run(self) -> SyncResult:
        """
        Execute one full pass.

        Returns:
            SyncResult with all normalized contacts and the changed ones

        Raises:
            SyncError: If a page keeps failing beyond max_fetch_retries
        """
        mode = " (dry run)" if self.dry_run else ""
        logger.info(f"Starting contact cleanup{mode}")

        state = SyncState()
        result = SyncResult(dry_run=self.dry_run)
        raw_contacts: list[Contact] = []

        while not state.done:
            page = self._fetch_page(state, result.stats)
            state = self._advance(state, page)
            result.stats.total_reported = page.total
            logger.info(f"{state.offset}/{state.next} [{page.total}]")

            raw_contacts.extend(page.contacts)
            self._persist(RAW_SNAPSHOT, raw_contacts, result.stats)

            page_results = normalize_page(self.normalizer, page.contacts, result.stats)
            state.accumulated.extend(r.contact for r in page_results)
            self._persist(CONTACTS_SNAPSHOT, state.accumulated, result.stats)

            for page_result in page_results:
                if page_result.changed:
                    result.changed.append(page_result)
                    self._dispatch(page_result, result.stats)

        result.contacts = state.accumulated
        write_sanitized_snapshot(self.snapshot_store, result)

        logger.info(
            f"Cleanup finished: {result.stats.contacts_processed} contacts, "
            f"{result.stats.contacts_changed} changed"
        )
        return result

    def _fetch_page(self, state: SyncState, stats: SyncStats) -> ContactPage:
        """Fetch the page at state.offset, retrying the same offset on failure."""
        failures = 0
        while True:
            try:
                page = self.api.list_contacts(start=state.offset)
            except CrmAPIError as e:
                failures += 1
                stats.fetch_errors += 1
                logger.error(f"Error fetching contacts at offset {state.offset}: {e}")
                if self.max_fetch_retries and failures > self.max_fetch_retries:
                    raise SyncError(
                        f"Giving up on offset {state.offset} after "
                        f"{failures} failed attempts"
                    ) from e
                self._wait()
                continue

            self._wait()
            stats.pages_fetched += 1
            return page

    def _advance(self, state: SyncState, page: ContactPage) -> SyncState:
        return SyncState(
            offset=state.offset + self.page_size,
            next=page.next,
            accumulated=state.accumulated,
        )

    def _persist(
        self, filename: str, contacts: list[Contact], stats: SyncStats
    ) -> None:
        if self.snapshot_store is None:
            return
        try:
            self.snapshot_store.write_contacts(filename, list(contacts))
        except OSError as e:
            stats.snapshot_errors += 1
            logger.error(f"Could not write snapshot {filename}: {e}")

    def _dispatch(self, result: NormalizationResult, stats: SyncStats) -> None:
        """Send the update payload of one changed contact."""
        if not result.fields:
            stats.updates_skipped += 1
            logger.debug(f"Contact {result.contact_id} changed but nothing to send")
            return

        if self.dry_run:
            logger.info(
                f"[dry run] Would update contact {result.contact_id}: {result.fields}"
            )
            return

        logger.info(f"Updating contact {result.contact_id}: {result.fields}")
        try:
            self.api.update_contact(result.contact_id, result.fields)
            stats.updates_sent += 1
        except CrmAPIError as e:
            stats.update_errors += 1
            logger.error(f"Error updating contact {result.contact_id}: {e}")
        self._wait()


def normalize_page(
    normalizer: ContactNormalizer, contacts: list[Contact], stats: SyncStats
) -> list[NormalizationResult]:
    """Normalize contacts in order, counting processed and changed ones."""
    results = []
    for contact in contacts:
        result = normalizer.normalize(contact)
        stats.contacts_processed += 1
        if result.changed:
            stats.contacts_changed += 1
        results.append(result)
    return results


def write_sanitized_snapshot(
    snapshot_store: Optional[SnapshotStore], result: SyncResult
) -> None:
    """Write the changed contacts of a pass; failures are logged and counted."""
    if snapshot_store is None:
        return
    try:
        path = snapshot_store.write(SANITIZED_SNAPSHOT, result.sanitized_snapshot())
        logger.info(f"Sanitized contacts written to {path}")
    except OSError as e:
        result.stats.snapshot_errors += 1
        logger.error(f"Could not write snapshot {SANITIZED_SNAPSHOT}: {e}")


def normalize_contacts(
    contacts: list[Contact],
    normalizer: Optional[ContactNormalizer] = None,
    snapshot_store: Optional[SnapshotStore] = None,
) -> SyncResult:
    """
    Normalize already retrieved contacts without any remote call.

    Used to inspect a saved snapshot offline. The result is marked as a
    dry run and the sanitized snapshot is written like after a real pass.

    Args:
        contacts: Contacts to normalize, e.g. loaded from contacts_raw.json
        normalizer: ContactNormalizer to apply (default settings if None)
        snapshot_store: Where to write contacts_sanitized.json, if anywhere

    Returns:
        SyncResult with the normalized and changed contacts
    """
    normalizer = normalizer or ContactNormalizer()
    result = SyncResult(dry_run=True)

    page_results = normalize_page(normalizer, contacts, result.stats)
    result.contacts = [r.contact for r in page_results]
    result.changed = [r for r in page_results if r.changed]

    write_sanitized_snapshot(snapshot_store, result)
    return result
