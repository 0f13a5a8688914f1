"""
Bitrix24 CRM REST API wrapper for contact cleanup.

Provides a thin interface over an incoming-webhook URL for:
- Listing contacts one page at a time (crm.contact.list)
- Updating a single contact (crm.contact.update)

The wrapper performs exactly one HTTP request per call. Pacing and
retrying are left to the sync engine.
"""

import logging
from typing import Any, Optional

import requests
from requests.exceptions import RequestException

from b24_contact_sync import __version__
from b24_contact_sync.sync.contact import SELECT_FIELDS, Contact, ContactPage

# REST methods used by the sync
LIST_METHOD = "crm.contact.list"
UPDATE_METHOD = "crm.contact.update"

# HTTP timeout configuration
DEFAULT_TIMEOUT = 30.0  # seconds

# Update params: do not publish a live-feed event for every cleaned contact
UPDATE_PARAMS = {"REGISTER_SONET_EVENT": "N"}

logger = logging.getLogger(__name__)


class CrmAPIError(Exception):
    """Raised when a CRM API request fails (transport, HTTP status or protocol)."""

    pass


def normalize_webhook_url(webhook_url: str) -> str:
    """Ensure the webhook base URL ends with a slash so method names append."""
    webhook_url = webhook_url.strip()
    if not webhook_url.endswith("/"):
        webhook_url += "/"
    return webhook_url


class CrmAPI:
    """
    Bitrix24 CRM contact API wrapper.

    Attributes:
        webhook_url: Incoming webhook base URL, ending with "/"
        timeout: HTTP timeout in seconds
        session: requests session used for all calls

    Usage:
        api = CrmAPI("https://example.bitrix24.ru/rest/1/abcdef/")

        page = api.list_contacts(start=0)
        for contact in page.contacts:
            ...

        api.update_contact(contact.contact_id, {"NAME": "Иван"})
    """

    def __init__(
        self,
        webhook_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the CRM API wrapper.

        Args:
            webhook_url: Incoming webhook base URL
            timeout: HTTP timeout in seconds (default 30)
            session: Optional pre-configured requests session
        """
        self.webhook_url = normalize_webhook_url(webhook_url)
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault(
            "User-Agent", f"b24-contact-sync/{__version__}"
        )

    def _method_url(self, method: str) -> str:
        return f"{self.webhook_url}{method}"

    def _parse_response(self, response: requests.Response, method: str) -> Any:
        """
        Validate an HTTP response and return its decoded JSON body.

        Raises:
            CrmAPIError: On non-success status, undecodable body or an
                error object in the body
        """
        if not response.ok:
            raise CrmAPIError(
                f"{method} failed with status {response.status_code}: {response.text}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise CrmAPIError(f"{method} returned invalid JSON: {response.text}") from e

        if not isinstance(payload, dict):
            raise CrmAPIError(
                f"{method} returned unexpected payload: {type(payload).__name__}"
            )

        if "error" in payload:
            description = payload.get("error_description") or payload["error"]
            raise CrmAPIError(f"{method} failed: {description}")

        return payload

    def list_contacts(
        self, start: int = 0, select: tuple[str, ...] = SELECT_FIELDS
    ) -> ContactPage:
        """
        Fetch one page of contacts.

        Args:
            start: Offset of the first contact on the page
            select: Fields to request for each contact

        Returns:
            ContactPage with parsed contacts, the next offset (-1 when the
            listing is exhausted) and the reported total

        Raises:
            CrmAPIError: If the request fails or returns unusable paging data
        """
        logger.debug(f"Listing contacts (start={start})")

        params = {"start": start, "select[]": list(select)}
        try:
            response = self.session.get(
                self._method_url(LIST_METHOD), params=params, timeout=self.timeout
            )
        except RequestException as e:
            raise CrmAPIError(f"{LIST_METHOD} request failed: {e}") from e

        payload = self._parse_response(response, LIST_METHOD)

        contacts: list[Contact] = []
        for item in payload.get("result") or []:
            try:
                contacts.append(Contact.from_api_response(item))
            except (ValueError, TypeError, AttributeError) as e:
                logger.warning(f"Failed to parse contact: {e}")
                continue

        next_start = payload.get("next")
        try:
            next_offset = -1 if next_start is None else int(next_start)
            total = int(payload.get("total") or 0)
        except (TypeError, ValueError) as e:
            raise CrmAPIError(
                f"{LIST_METHOD} returned invalid paging data: "
                f"next={next_start!r}, total={payload.get('total')!r}"
            ) from e

        return ContactPage(contacts=contacts, next=next_offset, total=total)

    def update_contact(self, contact_id: int, fields: dict[str, Any]) -> Any:
        """
        Update fields of an existing contact.

        Args:
            contact_id: CRM contact ID (sent out-of-band, never inside fields)
            fields: CRM fields to write

        Returns:
            The "result" value from the CRM (True or the contact ID)

        Raises:
            CrmAPIError: If the request fails
        """
        body = {
            "id": int(contact_id),
            "fields": fields,
            "params": dict(UPDATE_PARAMS),
        }
        logger.debug(f"Updating contact {contact_id}: {fields}")

        try:
            response = self.session.post(
                self._method_url(UPDATE_METHOD), json=body, timeout=self.timeout
            )
        except RequestException as e:
            raise CrmAPIError(f"{UPDATE_METHOD} request failed: {e}") from e

        payload = self._parse_response(response, UPDATE_METHOD)
        return payload.get("result")
