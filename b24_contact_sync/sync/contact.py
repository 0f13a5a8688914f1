"""
Contact data model for Bitrix24 CRM contact cleanup.

Provides a fixed-shape Contact representation with methods for:
- Converting to/from the CRM REST API format
- Serializing to the local snapshot format
- Building the update payload for a normalized contact
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Optional

from b24_contact_sync.sync.diff import entries_equal

# CRM field names for the scalar name fields
FIELD_LAST_NAME = "LAST_NAME"
FIELD_NAME = "NAME"
FIELD_SECOND_NAME = "SECOND_NAME"

# CRM field names for the multi-valued fields
FIELD_PHONE = "PHONE"
FIELD_EMAIL = "EMAIL"

# Fields requested from crm.contact.list
SELECT_FIELDS = (
    "ID",
    FIELD_LAST_NAME,
    FIELD_NAME,
    FIELD_SECOND_NAME,
    FIELD_PHONE,
    FIELD_EMAIL,
)

# Type tag assigned to phone numbers rewritten into canonical form
WORK_VALUE_TYPE = "WORK"


@dataclass
class ContactEntry:
    """
    One value of a multi-valued CRM field (a phone number or an email).

    An entry with an empty value is a tombstone: sent back to the CRM it
    clears the stored value with the same entry ID.

    Attributes:
        value: Raw or canonical value
        entry_id: CRM-assigned entry ID, None for entries unknown to the CRM
        value_type: Categorical tag such as "WORK", "HOME", "MOBILE"
    """

    value: str
    entry_id: Optional[int] = None
    value_type: Optional[str] = None

    @property
    def is_tombstone(self) -> bool:
        return self.value == ""

    @classmethod
    def from_api_response(cls, item: dict[str, Any]) -> ContactEntry:
        """
        Create an entry from a CRM multi-field item.

        Example item::

            {'ID': '83153', 'VALUE_TYPE': 'WORK', 'VALUE': '+79991234567',
             'TYPE_ID': 'PHONE'}
        """
        raw_id = item.get("ID")
        entry_id = int(raw_id) if raw_id not in (None, "") else None
        value = item.get("VALUE")
        return cls(
            value="" if value is None else str(value),
            entry_id=entry_id,
            value_type=item.get("VALUE_TYPE") or None,
        )

    def to_api_format(self) -> dict[str, Any]:
        """Convert to a CRM multi-field item, omitting unknown ID and type."""
        item: dict[str, Any] = {}
        if self.entry_id is not None:
            item["ID"] = self.entry_id
        if self.value_type is not None:
            item["VALUE_TYPE"] = self.value_type
        item["VALUE"] = self.value
        return item

    def sort_key(self) -> tuple[str, int, str]:
        entry_id = -1 if self.entry_id is None else self.entry_id
        return (self.value, entry_id, self.value_type or "")


def _entries_from_api(items: Any) -> Optional[list[ContactEntry]]:
    if items is None:
        return None
    return [ContactEntry.from_api_response(item) for item in items]


def _entries_to_api(
    entries: Optional[list[ContactEntry]],
) -> Optional[list[dict[str, Any]]]:
    if entries is None:
        return None
    return [entry.to_api_format() for entry in entries]


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


@dataclass
class Contact:
    """
    CRM contact record.

    Every field is explicit. A field missing from the CRM response, or
    dropped during normalization, is None rather than absent.

    Attributes:
        contact_id: CRM-assigned numeric ID, never changed locally
        last_name: Surname
        name: Given name
        second_name: Patronymic
        phones: Phone entries, or None when the contact has none
        emails: Email entries, or None when the contact has none

    Usage:
        contact = Contact.from_api_response(item)
        snapshot_item = contact.to_snapshot()
        fields = normalized.update_fields(original)
    """

    contact_id: int
    last_name: Optional[str] = None
    name: Optional[str] = None
    second_name: Optional[str] = None
    phones: Optional[list[ContactEntry]] = None
    emails: Optional[list[ContactEntry]] = None

    @classmethod
    def from_api_response(cls, item: dict[str, Any]) -> Contact:
        """
        Create a Contact from a crm.contact.list result item.

        Example item::

            {
                'ID': '1',
                'LAST_NAME': 'Иванов',
                'NAME': 'Иван',
                'SECOND_NAME': None,
                'PHONE': [{'ID': '10', 'VALUE_TYPE': 'WORK', 'VALUE': '89991234567'}],
                'EMAIL': [{'ID': '11', 'VALUE_TYPE': 'HOME', 'VALUE': 'a@b.ru'}],
            }

        Raises:
            ValueError: If the item has no usable ID
        """
        raw_id = item.get("ID")
        if raw_id in (None, ""):
            raise ValueError(f"Contact has no ID: {item!r}")

        return cls(
            contact_id=int(raw_id),
            last_name=_optional_str(item.get(FIELD_LAST_NAME)),
            name=_optional_str(item.get(FIELD_NAME)),
            second_name=_optional_str(item.get(FIELD_SECOND_NAME)),
            phones=_entries_from_api(item.get(FIELD_PHONE)),
            emails=_entries_from_api(item.get(FIELD_EMAIL)),
        )

    @property
    def name_parts(self) -> tuple[Optional[str], Optional[str], Optional[str]]:
        """Surname, given name and patronymic in display order."""
        return (self.last_name, self.name, self.second_name)

    def copy(self) -> Contact:
        """Return a deep copy that can be normalized without touching self."""
        return copy.deepcopy(self)

    def to_snapshot(self) -> dict[str, Any]:
        """
        Serialize to the snapshot format (CRM field names, ID included).

        Fields that are None are left out, matching the CRM's own sparse
        result items.
        """
        data: dict[str, Any] = {"ID": self.contact_id}
        data.update(self._fields_dict())
        return data

    def _fields_dict(self) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        for key, value in (
            (FIELD_LAST_NAME, self.last_name),
            (FIELD_NAME, self.name),
            (FIELD_SECOND_NAME, self.second_name),
        ):
            if value is not None:
                fields[key] = value

        for key, entries in ((FIELD_PHONE, self.phones), (FIELD_EMAIL, self.emails)):
            serialized = _entries_to_api(entries)
            if serialized is not None:
                fields[key] = serialized
        return fields

    def update_fields(self, original: Contact) -> dict[str, Any]:
        """
        Build the crm.contact.update "fields" payload against the original.

        Name fields are included only when they hold a value that differs
        from the original; a name dropped during cleanup is never sent as a
        clear. Multi-valued fields are included as complete lists when they
        differ from the original, tombstones included. The contact ID is
        never part of the payload.

        Args:
            original: The contact as retrieved from the CRM

        Returns:
            Dictionary of CRM fields to update, empty when nothing to send
        """
        fields: dict[str, Any] = {}
        for key, new, old in (
            (FIELD_LAST_NAME, self.last_name, original.last_name),
            (FIELD_NAME, self.name, original.name),
            (FIELD_SECOND_NAME, self.second_name, original.second_name),
        ):
            if new is not None and new != old:
                fields[key] = new

        for key, new_entries, old_entries in (
            (FIELD_PHONE, self.phones, original.phones),
            (FIELD_EMAIL, self.emails, original.emails),
        ):
            if new_entries and not entries_equal(new_entries, old_entries):
                fields[key] = _entries_to_api(new_entries)

        return fields


@dataclass
class ContactPage:
    """
    One page of crm.contact.list results.

    Attributes:
        contacts: Contacts on this page, in CRM order
        next: Offset of the next page, negative once the listing is exhausted
        total: Total number of contacts reported by the CRM
    """

    contacts: list[Contact] = field(default_factory=list)
    next: int = -1
    total: int = 0

    @property
    def is_last(self) -> bool:
        return self.next < 0
