"""
Source Adapter Base

HTTP plumbing shared by the networked source adapters: one bounded-timeout
GET per call, status mapping, and the never-raise ``query`` contract.
"""

from abc import abstractmethod
from typing import Any, Dict, Optional
import logging
import threading

import requests

from ...domain.ports.source_adapter import SourceAdapterPort
from ...domain.entities.source_result import SourceResult, SourceKind
from ...domain.exceptions import (
    SourceError,
    SourceUnavailableError,
    SourceResponseError,
)


DEFAULT_TIMEOUT = 15.0


class BaseSourceAdapter(SourceAdapterPort):
    """
    Adapter with a fixed kind, display name and reliability weight.

    Subclasses implement ``_fetch(term)``, returning the payload, or None
    when the provider has nothing for the term. Any SourceError (or other
    exception) raised by ``_fetch`` becomes an ERROR result.
    """

    SOURCE_KIND: SourceKind
    DISPLAY_NAME: str = ""

    def __init__(self, reliability_weight: float = 0.5):
        if not 0.0 <= reliability_weight <= 1.0:
            raise ValueError(f"Reliability weight must be in [0, 1], got {reliability_weight}")
        self._reliability_weight = reliability_weight
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def source_id(self) -> SourceKind:
        return self.SOURCE_KIND

    @property
    def display_name(self) -> str:
        return self.DISPLAY_NAME

    @property
    def reliability_weight(self) -> float:
        return self._reliability_weight

    @abstractmethod
    def _fetch(self, term: str) -> Any:
        pass

    def query(self, term: str) -> SourceResult:
        term = (term or "").strip()
        if not term:
            return SourceResult.not_found(
                self.source_id, self.display_name, self.reliability_weight, term
            )

        try:
            payload = self._fetch(term)
        except SourceError as e:
            self.logger.warning(f"{self.source_id.value} query failed for '{term}': {e.message}")
            return SourceResult.failed(
                self.source_id, self.display_name, self.reliability_weight, term, e.message
            )
        except Exception as e:
            self.logger.warning(f"{self.source_id.value} unexpected error for '{term}': {e}")
            return SourceResult.failed(
                self.source_id, self.display_name, self.reliability_weight, term, str(e)
            )

        if not payload:
            self.logger.debug(f"{self.source_id.value}: nothing found for '{term}'")
            return SourceResult.not_found(
                self.source_id, self.display_name, self.reliability_weight, term
            )

        self.logger.debug(f"{self.source_id.value}: found '{term}'")
        return SourceResult.found(
            self.source_id, self.display_name, self.reliability_weight, term, payload
        )


class HttpSourceAdapter(BaseSourceAdapter):
    """
    Base class for adapters backed by a JSON HTTP API.

    Attributes:
        base_url: Provider base URL
        timeout: Per-call timeout in seconds
    """

    def __init__(
        self,
        base_url: str,
        reliability_weight: float,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        user_agent: str = "medscan/1.0"
    ):
        super().__init__(reliability_weight)
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._user_agent = user_agent
        self._session = session
        self._owns_session = session is None
        self._session_lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        """Injected session, or one session owned by the adapter and reused across runs."""
        if self._session is None:
            with self._session_lock:
                if self._session is None:
                    session = requests.Session()
                    session.headers.update({
                        "Accept": "application/json",
                        "User-Agent": self._user_agent,
                    })
                    self._session = session
        return self._session

    def close(self) -> None:
        """Close the adapter's own session; an injected session is left to its owner."""
        if self._owns_session and self._session is not None:
            self._session.close()
            self._session = None

    def _get_json(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None
    ) -> Optional[Any]:
        """
        GET a JSON document.

        Returns:
            Decoded body, or None on 404

        Raises:
            SourceUnavailableError: On timeout or connection failure
            SourceResponseError: On any other non-200 status or a non-JSON body
        """
        url = f"{self._base_url}/{path.lstrip('/')}"
        try:
            response = self.session.get(url, params=params, timeout=timeout or self._timeout)
        except requests.Timeout:
            raise SourceUnavailableError(
                f"Timed out after {timeout or self._timeout}s", source_id=self.source_id.value
            )
        except requests.RequestException as e:
            raise SourceUnavailableError(f"Request failed: {e}", source_id=self.source_id.value)

        if response.status_code == 404:
            return None

        if response.status_code != 200:
            raise SourceResponseError(
                f"Unexpected HTTP {response.status_code}",
                status_code=response.status_code,
                source_id=self.source_id.value,
            )

        try:
            return response.json()
        except ValueError:
            raise SourceResponseError("Response body is not JSON", source_id=self.source_id.value)


def quote_term(term: str) -> str:
    """Phrase-quote a term for an openFDA search expression."""
    return '"' + term.replace('"', " ").strip() + '"'
