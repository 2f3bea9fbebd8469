"""
Lookup client for the AccessGUDID device database.

One HTTP round trip per identifier. No retries, no caching; every outcome is
returned as a ``LookupResult`` instead of raised.

Deutsch:
    Lookup-Client für die AccessGUDID-Gerätedatenbank.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import requests

from . import __version__
from .models import LookupFailure, LookupResult, LookupSuccess

log = logging.getLogger(__name__)

DEFAULT_LOOKUP_URL = "https://accessgudid.nlm.nih.gov/api/v3/devices/lookup.json"
USER_AGENT = f"udiscan/{__version__}"
CONNECTIVITY_MESSAGE = "could not reach the device database; check the network connection and try again"

# UDI components some deployments advertise as response headers.
HEADER_FIELDS: Dict[str, str] = {
    "expirationdate": "expirationDate",
    "lotnumber": "lotNumber",
    "serialnumber": "serialNumber",
}


class DeviceLookupError(Exception):
    """Base class for lookup failures. / Basisklasse für Lookup-Fehler."""


class LookupTransportError(DeviceLookupError):
    """Raised when the device database cannot be reached or read."""


class LookupStatusError(DeviceLookupError):
    """Raised when the device database answers with a non-success status."""

    def __init__(self, status: int) -> None:
        super().__init__(status_message(status))
        self.status = status


def status_message(status: int) -> str:
    return f"lookup failed with status {status}; the device may not be in the database"


class LookupClient:
    """
    Resolve raw identifiers against the device database.

    ``timeout`` defaults to ``None``: a hung call blocks the caller, which is
    acceptable for a single-operator tool.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_LOOKUP_URL,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        user_agent: str = USER_AGENT,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.user_agent = user_agent
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            session = requests.Session()
            session.headers.update(
                {
                    "User-Agent": self.user_agent,
                    "Accept": "application/json",
                }
            )
            self._session = session
        return self._session

    def lookup(self, raw_identifier: str) -> LookupResult:
        log.info("looking up %s", raw_identifier)
        try:
            response = self.session.get(
                self.base_url,
                params={"udi": raw_identifier},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            log.warning("lookup for %s failed: %s", raw_identifier, exc)
            error = LookupTransportError(str(exc))
            error.__cause__ = exc
            return LookupFailure(reason=CONNECTIVITY_MESSAGE, error=error)

        try:
            if not 200 <= response.status_code < 300:
                status_error = LookupStatusError(response.status_code)
                log.warning("lookup for %s: %s", raw_identifier, status_error)
                return LookupFailure(reason=str(status_error), status=response.status_code, error=status_error)
            try:
                payload = response.json()
            except ValueError as exc:
                log.warning("lookup for %s returned an unreadable payload: %s", raw_identifier, exc)
                error = LookupTransportError("device database returned an unreadable response")
                error.__cause__ = exc
                return LookupFailure(
                    reason=str(error),
                    status=response.status_code,
                    error=error,
                )
            headers = _extract_headers(response.headers)
        finally:
            response.close()

        result = parse_payload(payload, headers)
        if not result.device:
            log.info("lookup for %s returned no device object", raw_identifier)
        return result


def parse_payload(payload: Any, headers: Optional[Mapping[str, str]] = None) -> LookupSuccess:
    """
    Split a decoded lookup response into its device and UDI blocks.

    A payload without the nested ``gudid.device`` object is still a success,
    just an empty one.
    """

    device: Mapping[str, Any] = {}
    udi: Mapping[str, Any] = {}
    if isinstance(payload, Mapping):
        gudid = payload.get("gudid")
        if isinstance(gudid, Mapping) and isinstance(gudid.get("device"), Mapping):
            device = dict(gudid["device"])
        if isinstance(payload.get("udi"), Mapping):
            udi = dict(payload["udi"])
    return LookupSuccess(device=device, udi=udi, headers=dict(headers or {}))


def _extract_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    lowered = {str(k).lower(): v for k, v in headers.items()}
    return {name: str(lowered[name]) for name in HEADER_FIELDS if lowered.get(name)}
