from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from udiscan.lookup import (
    CONNECTIVITY_MESSAGE,
    LookupClient,
    LookupStatusError,
    LookupTransportError,
    parse_payload,
)
from udiscan.models import LookupFailure, LookupSuccess


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, headers: Optional[Dict[str, str]] = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}
        self.closed = False

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def close(self) -> None:
        self.closed = True


class FakeSession:
    def __init__(self, response: Any) -> None:
        self.response = response
        self.calls: List[Dict[str, Any]] = []

    def get(self, url: str, params: Dict[str, str], timeout: Optional[float]) -> FakeResponse:
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


GUDID_PAYLOAD = {
    "gudid": {
        "device": {
            "companyName": "Acme Medical",
            "brandName": "Acme",
            "catalogNumber": "CAT-1",
            "deviceCount": 3,
        }
    },
    "udi": {"di": "00843188003523", "lotNumber": "L42", "expirationDate": "2027-01-31"},
}


def test_lookup_success_splits_device_and_udi_blocks() -> None:
    response = FakeResponse(200, GUDID_PAYLOAD)
    session = FakeSession(response)
    client = LookupClient(base_url="https://gudid.test/lookup.json", session=session)

    result = client.lookup("(01)00843188003523")

    assert isinstance(result, LookupSuccess)
    assert result.device["brandName"] == "Acme"
    assert result.udi["lotNumber"] == "L42"
    assert session.calls == [
        {"url": "https://gudid.test/lookup.json", "params": {"udi": "(01)00843188003523"}, "timeout": None}
    ]
    assert response.closed


def test_lookup_status_failure_carries_status_and_message() -> None:
    client = LookupClient(session=FakeSession(FakeResponse(404)))

    result = client.lookup("(01)00843188003523")

    assert isinstance(result, LookupFailure)
    assert result.status == 404
    assert result.reason == "lookup failed with status 404; the device may not be in the database"
    assert isinstance(result.error, LookupStatusError)
    assert result.error.status == 404


def test_lookup_transport_failure_is_not_raised() -> None:
    client = LookupClient(session=FakeSession(requests.ConnectionError("offline")))

    result = client.lookup("123")

    assert isinstance(result, LookupFailure)
    assert result.status is None
    assert result.reason == CONNECTIVITY_MESSAGE
    assert isinstance(result.error, LookupTransportError)


def test_lookup_unreadable_body_is_failure() -> None:
    client = LookupClient(session=FakeSession(FakeResponse(200, ValueError("not json"))))

    result = client.lookup("123")

    assert isinstance(result, LookupFailure)
    assert isinstance(result.error, LookupTransportError)


def test_lookup_without_device_object_is_empty_success() -> None:
    client = LookupClient(session=FakeSession(FakeResponse(200, {"gudid": {}})))

    result = client.lookup("123")

    assert isinstance(result, LookupSuccess)
    assert dict(result.device) == {}
    assert dict(result.udi) == {}


def test_lookup_captures_udi_headers() -> None:
    response = FakeResponse(
        200,
        {"gudid": {"device": {"brandName": "Acme"}}},
        headers={"LotNumber": "H-7", "SerialNumber": "SN-9", "Content-Type": "application/json"},
    )
    client = LookupClient(session=FakeSession(response))

    result = client.lookup("123")

    assert isinstance(result, LookupSuccess)
    assert dict(result.headers) == {"lotnumber": "H-7", "serialnumber": "SN-9"}


def test_parse_payload_tolerates_non_mapping_shapes() -> None:
    assert parse_payload([1, 2, 3]) == LookupSuccess()
    assert parse_payload({"gudid": {"device": "oops"}, "udi": None}) == LookupSuccess()


def test_client_passes_configured_timeout() -> None:
    session = FakeSession(FakeResponse(200, {}))
    LookupClient(session=session, timeout=2.5).lookup("abc")
    assert session.calls[0]["timeout"] == 2.5
