"""
Full-name decomposition for contact name fields.

Contacts often carry a whole "Surname Given Patronymic" string in a single
field. The splitter joins the three name fields, hands the result to a
name-decomposition service and reports which components actually change.

Decomposition is best-effort: any failure of the service is reported as
a failed NameDecomposition and the splitter maps it to "no change".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import requests
from requests.exceptions import RequestException

from b24_contact_sync.utils.normalization import is_blank

# HTTP timeout for the decomposition service
DEFAULT_NAME_SERVICE_TIMEOUT = 10.0  # seconds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NameDecomposition:
    """
    Result of decomposing a full name: either components or an error.

    Attributes:
        surname: Decomposed surname
        name: Decomposed given name
        middlename: Decomposed patronymic
        error: Failure reason; when set the components are meaningless
    """

    surname: Optional[str] = None
    name: Optional[str] = None
    middlename: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, reason: str) -> NameDecomposition:
        return cls(error=reason)


class NameDecomposer(Protocol):
    """Capability that splits a free-text full name into its components."""

    def decompose(self, full_name: str) -> NameDecomposition:
        ...


class NullNameDecomposer:
    """Decomposer used when no service is configured; always fails."""

    def decompose(self, full_name: str) -> NameDecomposition:
        return NameDecomposition.failure("name decomposition service not configured")


class HttpNameDecomposer:
    """
    Name decomposer backed by an HTTP service.

    The service receives {"name": "<full name>"} as a JSON POST body and
    answers with {"surname": ..., "name": ..., "middlename": ...}.

    Usage:
        decomposer = HttpNameDecomposer("https://names.example.com/split")
        result = decomposer.decompose("Иванов Иван Иванович")
        if result.ok:
            print(result.surname)
    """

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_NAME_SERVICE_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def decompose(self, full_name: str) -> NameDecomposition:
        try:
            response = self.session.post(
                self.url, json={"name": full_name}, timeout=self.timeout
            )
            response.raise_for_status()
            data: Any = response.json()
        except (RequestException, ValueError) as e:
            return NameDecomposition.failure(f"name service request failed: {e}")

        if not isinstance(data, dict):
            return NameDecomposition.failure(
                f"unexpected name service response: {type(data).__name__}"
            )

        return NameDecomposition(
            surname=_component(data.get("surname")),
            name=_component(data.get("name")),
            middlename=_component(data.get("middlename")),
        )


def _component(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


@dataclass(frozen=True)
class NameSplit:
    """
    Name components that differ from the input; None means "no change".
    """

    surname: Optional[str] = None
    given: Optional[str] = None
    patronymic: Optional[str] = None

    @property
    def has_changes(self) -> bool:
        return any(v is not None for v in (self.surname, self.given, self.patronymic))


class NameSplitter:
    """
    Re-split contact name fields through a NameDecomposer.

    Usage:
        splitter = NameSplitter(HttpNameDecomposer(url))
        split = splitter.split("Иванов Иван", None, None)
        # NameSplit(surname=None, given="Иван", patronymic=None) when the
        # service answers surname="Иванов", name="Иван"
    """

    def __init__(self, decomposer: Optional[NameDecomposer] = None):
        self.decomposer: NameDecomposer = decomposer or NullNameDecomposer()

    def split(
        self,
        surname: Optional[str],
        given: Optional[str],
        patronymic: Optional[str],
    ) -> NameSplit:
        """
        Decompose the joined name fields and report changed components.

        Args:
            surname: Current surname field
            given: Current given-name field
            patronymic: Current patronymic field

        Returns:
            NameSplit holding each component only when it differs from the
            corresponding input. Empty components from the service are
            never emitted, so a split never clears a field.
        """
        parts = [p.strip() for p in (surname, given, patronymic) if not is_blank(p)]
        full_name = " ".join(parts)
        if not full_name:
            return NameSplit()

        result = self.decomposer.decompose(full_name)
        if not result.ok:
            logger.debug(
                f"Name decomposition skipped for '{full_name}': {result.error}"
            )
            return NameSplit()

        return NameSplit(
            surname=_changed(result.surname, surname),
            given=_changed(result.name, given),
            patronymic=_changed(result.middlename, patronymic),
        )


def _changed(new: Optional[str], old: Optional[str]) -> Optional[str]:
    if new is None or new == old:
        return None
    return new
