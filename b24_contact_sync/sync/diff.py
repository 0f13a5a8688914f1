"""
Structural comparison of contacts before and after normalization.

Decides whether a normalized contact differs from the version retrieved
from the CRM and therefore needs a write-back.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from b24_contact_sync.sync.contact import Contact, ContactEntry


def _entry_identity(entry: ContactEntry) -> tuple:
    # The canonical value is derived from the value, so comparing values
    # covers it as well.
    return (entry.entry_id, entry.value_type, entry.value)


def entries_equal(
    left: Optional[list[ContactEntry]], right: Optional[list[ContactEntry]]
) -> bool:
    """
    Compare two multi-valued fields as sets.

    Both sides are sorted by value before positional comparison, so the
    CRM's own ordering does not register as a change. A missing field equals
    a missing or empty field; a missing field against a non-empty one is a
    difference.
    """
    if left is None or right is None:
        other = right if left is None else left
        return not other

    if len(left) != len(right):
        return False

    left_sorted = sorted(left, key=lambda e: e.sort_key())
    right_sorted = sorted(right, key=lambda e: e.sort_key())
    return all(
        _entry_identity(a) == _entry_identity(b)
        for a, b in zip(left_sorted, right_sorted)
    )


def contacts_equal(a: Contact, b: Contact) -> bool:
    """
    Compare two contacts field by field.

    Name fields use exact string equality, with None distinct from any
    string. Phones and emails use entries_equal(). The contact ID is not
    compared.
    """
    if a.name_parts != b.name_parts:
        return False
    return entries_equal(a.phones, b.phones) and entries_equal(a.emails, b.emails)


def changed_fields(original: Contact, normalized: Contact) -> list[str]:
    """List the CRM field names that differ between two versions of a contact."""
    from b24_contact_sync.sync.contact import (
        FIELD_EMAIL,
        FIELD_LAST_NAME,
        FIELD_NAME,
        FIELD_PHONE,
        FIELD_SECOND_NAME,
    )

    changed = [
        key
        for key, old, new in (
            (FIELD_LAST_NAME, original.last_name, normalized.last_name),
            (FIELD_NAME, original.name, normalized.name),
            (FIELD_SECOND_NAME, original.second_name, normalized.second_name),
        )
        if old != new
    ]
    if not entries_equal(original.phones, normalized.phones):
        changed.append(FIELD_PHONE)
    if not entries_equal(original.emails, normalized.emails):
        changed.append(FIELD_EMAIL)
    return changed
