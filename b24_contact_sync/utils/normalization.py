"""
Field canonicalization utilities for CRM contact cleanup.

Provides pure functions that normalize a single field value:
- Name text trimming and character-class filtering
- Phone number canonicalization to E.164 format
- Email address grammar validation

None of these functions raise on malformed input. Invalid phone numbers
and emails degrade to an empty canonical value so a single bad entry
cannot block normalization of the rest of a contact.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import phonenumbers
from email_validator import EmailNotValidError, validate_email

logger = logging.getLogger(__name__)

# Default region used when parsing national-format phone numbers
DEFAULT_PHONE_REGION = "RU"

# Number of trailing digits kept before region-specific parsing
PHONE_SIGNIFICANT_DIGITS = 10

# Everything outside the Cyrillic alphabet and whitespace is stripped from names
_FORBIDDEN_NAME_CHARS = re.compile(r"[^а-яА-ЯёЁ\s]")
_WHITESPACE_RUN = re.compile(r"\s+")
_NON_DIGITS = re.compile(r"\D")


@dataclass(frozen=True)
class CanonicalValue:
    """
    Result of canonicalizing a phone number or email address.

    Attributes:
        value: Canonical representation, empty string when invalid
        valid: Whether the raw input was recognized as valid
    """

    value: str
    valid: bool

    @classmethod
    def invalid(cls) -> CanonicalValue:
        return cls(value="", valid=False)


def is_blank(value: str | None) -> bool:
    """Check whether a string is missing or whitespace-only."""
    return value is None or not value.strip()


def is_empty_list(values: list | None) -> bool:
    """Check whether a multi-valued field is missing or has no entries."""
    return values is None or len(values) == 0


def clean_text(value: str | None) -> str:
    """
    Strip a name field down to the permitted alphabet.

    Trims the value, removes every character that is not a Cyrillic letter
    or whitespace, then collapses whitespace runs to a single space.

    Args:
        value: Raw field value

    Returns:
        Cleaned string, possibly empty
    """
    if is_blank(value):
        return ""

    cleaned = _FORBIDDEN_NAME_CHARS.sub("", value.strip())
    return _WHITESPACE_RUN.sub(" ", cleaned).strip()


def sanitize_text(value: str | None) -> str | None:
    """
    Sanitize a name field, reporting only actual changes.

    Args:
        value: Raw field value

    Returns:
        The cleaned string if cleaning changed a non-blank value, otherwise
        None. None means either "already clean" or "nothing left after
        cleaning"; callers that need to tell those apart use clean_text().

    Examples:
        >>> sanitize_text("  Иван123 ")
        'Иван'
        >>> sanitize_text("Иван") is None
        True
    """
    cleaned = clean_text(value)
    if cleaned and cleaned != value:
        return cleaned
    return None


def canonicalize_phone(
    raw: str | None, region: str = DEFAULT_PHONE_REGION
) -> CanonicalValue:
    """
    Canonicalize a phone number to E.164 format.

    All non-digit characters are removed and only the last ten digits are
    kept, so "8 (999) 123-45-67", "+7 999 123 45 67" and "9991234567" all
    resolve to the same national number before parsing.

    Args:
        raw: Raw phone value as stored in the CRM
        region: Region used to interpret the national number (default: RU)

    Returns:
        CanonicalValue with the E.164 string, or an invalid (empty) value
    """
    if is_blank(raw):
        return CanonicalValue.invalid()

    digits = _NON_DIGITS.sub("", raw.strip())[-PHONE_SIGNIFICANT_DIGITS:]
    if not digits:
        return CanonicalValue.invalid()

    try:
        parsed = phonenumbers.parse(digits, region)
    except phonenumbers.NumberParseException as e:
        logger.debug(f"Could not parse phone number '{raw}': {e}")
        return CanonicalValue.invalid()

    if not phonenumbers.is_valid_number(parsed):
        logger.debug(f"Phone number '{raw}' is not valid for region {region}")
        return CanonicalValue.invalid()

    return CanonicalValue(
        value=phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164),
        valid=True,
    )


def canonicalize_email(raw: str | None) -> CanonicalValue:
    """
    Validate an email address against standard address grammar.

    The address is returned unchanged when valid; no case folding or
    normalization is applied.

    Args:
        raw: Raw email value as stored in the CRM

    Returns:
        CanonicalValue with the original string, or an invalid (empty) value
    """
    if is_blank(raw):
        return CanonicalValue.invalid()

    try:
        validate_email(raw, check_deliverability=False)
    except EmailNotValidError as e:
        logger.debug(f"Invalid email address '{raw}': {e}")
        return CanonicalValue.invalid()

    return CanonicalValue(value=raw, valid=True)
