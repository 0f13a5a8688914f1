"""
Per-contact normalization pipeline.

Runs name splitting, name sanitization and phone/email deduplication over
one contact and reports whether the result differs from the original.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from b24_contact_sync.sync.contact import Contact
from b24_contact_sync.sync.dedupe import EntryKind, dedupe
from b24_contact_sync.sync.diff import changed_fields, contacts_equal
from b24_contact_sync.sync.names import NameDecomposer, NameSplitter
from b24_contact_sync.utils.normalization import (
    DEFAULT_PHONE_REGION,
    clean_text,
    is_blank,
)

logger = logging.getLogger(__name__)


@dataclass
class NormalizationResult:
    """
    Outcome of normalizing one contact.

    Attributes:
        original: The contact as retrieved from the CRM (untouched)
        contact: The normalized contact
        changed: True when the normalized contact differs from the original
        fields: The crm.contact.update payload ("fields"), empty if unchanged
    """

    original: Contact
    contact: Contact
    changed: bool
    fields: dict[str, Any] = field(default_factory=dict)

    @property
    def contact_id(self) -> int:
        return self.contact.contact_id

    @property
    def needs_update(self) -> bool:
        """Changed and something is actually left to send."""
        return self.changed and bool(self.fields)

    def changed_field_names(self) -> list[str]:
        return changed_fields(self.original, self.contact)


def _clean_name(value: Optional[str]) -> Optional[str]:
    # Blank CRM values are left as they are; there is nothing to repair
    if is_blank(value):
        return value
    return clean_text(value) or None


class ContactNormalizer:
    """
    Normalize contacts one at a time.

    Attributes:
        splitter: NameSplitter used to re-split name fields
        phone_region: Region used to parse national phone numbers

    Usage:
        normalizer = ContactNormalizer(decomposer=HttpNameDecomposer(url))
        result = normalizer.normalize(contact)
        if result.needs_update:
            api.update_contact(result.contact_id, result.fields)
    """

    def __init__(
        self,
        decomposer: Optional[NameDecomposer] = None,
        phone_region: str = DEFAULT_PHONE_REGION,
    ):
        self.splitter = NameSplitter(decomposer)
        self.phone_region = phone_region

    def normalize(self, original: Contact) -> NormalizationResult:
        """
        Normalize a single contact.

        Steps:
            1. Re-split the name fields and apply the components that changed.
            2. Clean each remaining name field; a field with nothing left
               after cleaning is dropped (set to None).
            3. Deduplicate phones and emails.
            4. Compare against the original to set the changed flag.

        Args:
            original: Contact as retrieved from the CRM; it is not modified

        Returns:
            NormalizationResult for the contact
        """
        contact = original.copy()

        split = self.splitter.split(*contact.name_parts)
        if split.surname is not None:
            contact.last_name = split.surname
        if split.given is not None:
            contact.name = split.given
        if split.patronymic is not None:
            contact.second_name = split.patronymic

        contact.last_name = _clean_name(contact.last_name)
        contact.name = _clean_name(contact.name)
        contact.second_name = _clean_name(contact.second_name)

        contact.phones = dedupe(
            contact.phones, EntryKind.PHONE, phone_region=self.phone_region
        )
        contact.emails = dedupe(contact.emails, EntryKind.EMAIL)

        changed = not contacts_equal(original, contact)
        fields = contact.update_fields(original) if changed else {}

        if changed:
            logger.debug(
                f"Contact {contact.contact_id} changed: "
                f"{', '.join(changed_fields(original, contact))}"
            )

        return NormalizationResult(
            original=original, contact=contact, changed=changed, fields=fields
        )
