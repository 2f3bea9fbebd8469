"""
Record normalisation for lookup results.

Every lookup outcome, however sparse, yields exactly one ``DeviceRecord``.
Malformed input degrades to blank fields and never to an exception.

Deutsch:
    Normalisierung von Lookup-Ergebnissen zu kanonischen Gerätedatensätzen.
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from .lookup import HEADER_FIELDS
from .models import DeviceRecord, LookupFailure, LookupResult, LookupSuccess

log = logging.getLogger(__name__)

# (payload block, source key) -> record field
FIELD_MAPPING: Tuple[Tuple[str, str, str], ...] = (
    ("device", "companyName", "companyName"),
    ("device", "brandName", "brandName"),
    ("device", "catalogNumber", "referenceNumber"),
    ("device", "versionModelNumber", "modelNumber"),
    ("device", "deviceDescription", "partName"),
    ("device", "deviceCount", "unit"),
    ("udi", "expirationDate", "expirationDate"),
    ("udi", "lotNumber", "lotNumber"),
    ("udi", "di", "deviceIdentifier"),
)

ABSENT_SENTINELS = {"unknown", "null", "none"}
DEFAULT_UNIT = "1"
DEFAULT_QUANTITY = "1"


class SerialNumberSource:
    """
    Session-unique serial numbers derived from the monotonic clock.

    Values are strictly increasing within the process; they are not globally
    unique.
    """

    def __init__(self, clock: Callable[[], int] = time.monotonic_ns) -> None:
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def next(self) -> str:
        with self._lock:
            value = self._clock() // 1000
            if value <= self._last:
                value = self._last + 1
            self._last = value
        return str(value)


def iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class RecordNormalizer:
    def __init__(
        self,
        clock: Callable[[], str] = iso_now,
        serials: Optional[SerialNumberSource] = None,
    ) -> None:
        self._clock = clock
        self._serials = serials or SerialNumberSource()

    def next_serial(self) -> str:
        return self._serials.next()

    def normalize(self, raw_identifier: str, result: LookupResult) -> DeviceRecord:
        record = DeviceRecord({"udi": "" if raw_identifier is None else str(raw_identifier)})

        if isinstance(result, LookupSuccess):
            self._apply_payload(record, result)
            if record.is_blank("unit"):
                record.set("unit", DEFAULT_UNIT)
            if record.is_blank("quantity"):
                record.set("quantity", DEFAULT_QUANTITY)
        elif isinstance(result, LookupFailure):
            log.debug("normalising failed lookup for %s: %s", record.udi, result.reason)
        else:
            log.warning("unexpected lookup result %r for %s; treating as failure", type(result).__name__, record.udi)

        record.set("scanTimestamp", self._clock())
        if record.is_blank("serialNumber"):
            record.set("serialNumber", self.next_serial())
        return record

    def _apply_payload(self, record: DeviceRecord, result: LookupSuccess) -> None:
        blocks: Dict[str, Mapping[str, Any]] = {
            "device": _as_mapping(result.device),
            "udi": _as_mapping(result.udi),
        }
        for block, source_key, target in FIELD_MAPPING:
            value = clean_value(blocks[block].get(source_key))
            if value is not None:
                record.set(target, value)

        headers = _as_mapping(result.headers)
        for header, target in HEADER_FIELDS.items():
            if not record.is_blank(target):
                continue
            value = clean_value(headers.get(header))
            if value is not None:
                record.set(target, value)


def clean_value(value: Any) -> Optional[str]:
    """
    Return the string form of a payload value, or ``None`` when it counts as absent.

    Absent means missing, null, blank, an ``unknown``/``null`` sentinel, or a
    nested container that has no flat representation.
    """

    if value is None or isinstance(value, (Mapping, list, tuple, set)):
        return None
    if isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, float) and value.is_integer():
        text = str(int(value))
    else:
        text = str(value).strip()
    if not text or text.lower() in ABSENT_SENTINELS:
        return None
    return text


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}
