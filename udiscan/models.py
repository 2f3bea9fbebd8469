"""
Shared data models for the scan-ingest pipeline.

Deutsch:
    Gemeinsame Datenmodelle für die Scan-Ingest-Pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union

RECORD_FIELDS: Tuple[str, ...] = (
    "udi",
    "deviceIdentifier",
    "companyName",
    "brandName",
    "referenceNumber",
    "modelNumber",
    "partName",
    "expirationDate",
    "lotNumber",
    "unit",
    "quantity",
    "serialNumber",
    "scanTimestamp",
)

# Set once by the normaliser; operators never edit these.
READ_ONLY_FIELDS = frozenset({"scanTimestamp"})


@dataclass
class DeviceRecord:
    """
    Canonical, flat device record (field name -> string value).

    Fields that were never set read as an empty string.

    Deutsch:
        Kanonischer, flacher Gerätedatensatz (Feldname -> Zeichenkette).
    """

    values: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        cleaned: Dict[str, str] = {}
        for name, value in self.values.items():
            _check_field(name)
            cleaned[name] = "" if value is None else str(value)
        self.values = cleaned

    def __getitem__(self, name: str) -> str:
        _check_field(name)
        return self.values.get(name, "")

    def set(self, name: str, value: Optional[str]) -> None:
        _check_field(name)
        self.values[name] = "" if value is None else str(value)

    def is_blank(self, name: str) -> bool:
        return not self[name].strip()

    @property
    def udi(self) -> str:
        return self["udi"]

    def copy(self) -> "DeviceRecord":
        return DeviceRecord(dict(self.values))

    def to_dict(self) -> Dict[str, str]:
        return {name: self.values.get(name, "") for name in RECORD_FIELDS}


def _check_field(name: str) -> None:
    if name not in RECORD_FIELDS:
        raise KeyError(f"unknown device record field {name!r}")


@dataclass(frozen=True)
class LookupSuccess:
    """
    Structured payload returned by the device database.

    ``device`` holds the nested device object, ``udi`` the parsed identifier
    block and ``headers`` any UDI components advertised in response headers.
    """

    device: Mapping[str, Any] = field(default_factory=dict)
    udi: Mapping[str, Any] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class LookupFailure:
    """Descriptive lookup failure. / Beschreibung eines fehlgeschlagenen Lookups."""

    reason: str
    status: Optional[int] = None
    error: Optional[Exception] = field(default=None, compare=False)


LookupResult = Union[LookupSuccess, LookupFailure]


@dataclass
class ScanSession:
    """
    Transient scanning state.

    Lifecycle: idle -> locked (processing) -> idle. Only the scan guard touches
    ``lock_held``.
    """

    active: bool = False
    lock_held: bool = False


@dataclass(frozen=True)
class FieldSpec:
    """Presentation entry: which field, its label and whether operators may edit it."""

    field: str
    label: str
    editable: bool = True

    def __post_init__(self) -> None:
        _check_field(self.field)


DEFAULT_COLUMNS: Tuple[FieldSpec, ...] = (
    FieldSpec("serialNumber", "Serial #"),
    FieldSpec("deviceIdentifier", "DI"),
    FieldSpec("companyName", "Company"),
    FieldSpec("brandName", "Brand"),
    FieldSpec("referenceNumber", "Ref #"),
    FieldSpec("modelNumber", "Model #"),
    FieldSpec("expirationDate", "Exp. Date"),
    FieldSpec("lotNumber", "Lot #"),
    FieldSpec("unit", "Unit"),
    FieldSpec("quantity", "Quantity"),
    FieldSpec("partName", "Part Name"),
    FieldSpec("scanTimestamp", "Scan Timestamp", editable=False),
    FieldSpec("udi", "UDI"),
)
