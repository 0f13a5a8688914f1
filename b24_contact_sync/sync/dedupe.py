"""
Multi-value deduplication for contact phone numbers and emails.

Canonicalizes every entry of one multi-valued field, clears invalid
values and later duplicates of an already seen canonical value, and keeps
the list shape intact so cleared entries reach the CRM as tombstones.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable
from enum import Enum
from typing import Optional

from b24_contact_sync.sync.contact import WORK_VALUE_TYPE, ContactEntry
from b24_contact_sync.utils.normalization import (
    DEFAULT_PHONE_REGION,
    CanonicalValue,
    canonicalize_email,
    canonicalize_phone,
    is_empty_list,
)

logger = logging.getLogger(__name__)


class EntryKind(str, Enum):
    """Kind of multi-valued field being deduplicated."""

    PHONE = "phone"
    EMAIL = "email"


def _canonicalizer(
    kind: EntryKind, phone_region: str
) -> Callable[[str], CanonicalValue]:
    if kind == EntryKind.PHONE:
        return lambda raw: canonicalize_phone(raw, region=phone_region)
    return canonicalize_email


def dedupe(
    entries: Optional[list[ContactEntry]],
    kind: EntryKind | str,
    phone_region: str = DEFAULT_PHONE_REGION,
) -> Optional[list[ContactEntry]]:
    """
    Canonicalize and deduplicate the entries of one multi-valued field.

    Entries are processed in their original order:

    1. An entry whose value is already empty passes through unchanged.
    2. An entry whose value fails canonicalization is cleared to "" (a
       tombstone) and never used as a duplicate key.
    3. An entry whose canonical value was already seen is cleared to "".
       The earliest entry wins regardless of ID, type tag or validity.
    4. Otherwise the entry keeps its canonical value. A phone number that
       had to be rewritten into canonical form is tagged WORK.

    The input list is not modified. The returned list always has the same
    length and order as the input; only values (and the type tag of
    rewritten phones) differ.

    Args:
        entries: Field entries as retrieved from the CRM
        kind: EntryKind.PHONE or EntryKind.EMAIL (or their string values)
        phone_region: Region used to parse national phone numbers

    Returns:
        New list of entries, or None when the field is missing or empty

    Example:
        >>> result = dedupe(
        ...     [ContactEntry("8-900-123-45-67"), ContactEntry("+79001234567")],
        ...     EntryKind.PHONE,
        ... )
        >>> [e.value for e in result]
        ['+79001234567', '']
    """
    if is_empty_list(entries):
        return None

    kind = EntryKind(kind)
    canonicalize = _canonicalizer(kind, phone_region)
    seen: set[str] = set()
    result: list[ContactEntry] = []

    for entry in entries:
        if entry.is_tombstone:
            result.append(dataclasses.replace(entry))
            continue

        canonical = canonicalize(entry.value)

        if not canonical.valid:
            logger.debug(f"Clearing invalid {kind.value} '{entry.value}'")
            result.append(dataclasses.replace(entry, value=""))
            continue

        if canonical.value in seen:
            logger.debug(f"Clearing duplicate {kind.value} '{entry.value}'")
            result.append(dataclasses.replace(entry, value=""))
            continue

        seen.add(canonical.value)

        if canonical.value == entry.value:
            result.append(dataclasses.replace(entry))
        elif kind == EntryKind.PHONE:
            result.append(
                dataclasses.replace(
                    entry, value=canonical.value, value_type=WORK_VALUE_TYPE
                )
            )
        else:
            result.append(dataclasses.replace(entry, value=canonical.value))

    return result
