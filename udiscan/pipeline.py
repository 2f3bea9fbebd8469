"""
Operator workflow: scan or enter an identifier, review the record, collect and export.

All state lives on the ``ScanPipeline`` instance; nothing is module global.

Deutsch:
    Bedienablauf: Scannen/Eingeben, Prüfen, Sammeln und Exportieren.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .export import ExportIOError, write_export
from .guard import IdentifierChannel, ScanGuard
from .inventory import InventoryStore, ValidationError
from .lookup import LookupClient
from .models import DEFAULT_COLUMNS, READ_ONLY_FIELDS, RECORD_FIELDS, DeviceRecord, FieldSpec, LookupFailure
from .normalizer import RecordNormalizer

log = logging.getLogger(__name__)


@dataclass
class ScanOutcome:
    """Terminal state of one identifier: the record written to the form plus an optional notice."""

    record: DeviceRecord
    notice: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.notice is not None


class ScanPipeline:
    def __init__(
        self,
        client: LookupClient,
        normalizer: Optional[RecordNormalizer] = None,
        inventory: Optional[InventoryStore] = None,
        columns: Sequence[FieldSpec] = DEFAULT_COLUMNS,
    ) -> None:
        self.client = client
        self.normalizer = normalizer or RecordNormalizer()
        self.inventory = inventory or InventoryStore()
        self.columns = tuple(columns)
        self.form = DeviceRecord()
        self.notices: List[str] = []
        self.guard: ScanGuard[ScanOutcome] = ScanGuard(self._resolve)

    # scanning

    @property
    def scanning(self) -> bool:
        return self.guard.session.active

    @property
    def busy(self) -> bool:
        return self.guard.busy

    def start_scanning(self) -> None:
        self.guard.start_session()

    def stop_scanning(self) -> None:
        self.guard.stop_session()

    def handle_scan(self, raw_identifier: str) -> Optional[ScanOutcome]:
        return self.guard.submit(raw_identifier)

    def submit_manual(self, raw_identifier: str) -> Optional[ScanOutcome]:
        identifier = (raw_identifier or "").strip()
        if not identifier:
            self._notify("please enter a valid UDI")
            raise ValidationError("please enter a valid UDI")
        return self.guard.submit_manual(identifier)

    def run_channel(self, channel: IdentifierChannel) -> List[ScanOutcome]:
        return list(self.guard.consume(channel))

    def _resolve(self, raw_identifier: str) -> ScanOutcome:
        result = self.client.lookup(raw_identifier)
        record = self.normalizer.normalize(raw_identifier, result)
        self.form = record
        notice = None
        if isinstance(result, LookupFailure):
            notice = result.reason
            self._notify(notice)
        return ScanOutcome(record=record.copy(), notice=notice)

    # review

    def edit(self, field_name: str, value: str) -> None:
        if field_name not in RECORD_FIELDS:
            raise ValidationError(f"unknown field {field_name!r}")
        spec = next((item for item in self.columns if item.field == field_name), None)
        if field_name in READ_ONLY_FIELDS or (spec is not None and not spec.editable):
            raise ValidationError(f"field {spec.label if spec else field_name!r} is read-only")
        self.form.set(field_name, value)

    def clear_form(self) -> None:
        self.form = DeviceRecord()

    def accept(self) -> int:
        record = self.form.copy()
        if record.udi.strip() and record.is_blank("serialNumber"):
            record.set("serialNumber", self.normalizer.next_serial())
        try:
            count = self.inventory.add(record)
        except ValidationError as exc:
            self._notify(str(exc))
            raise
        self.clear_form()
        return count

    # collection

    def remove(self, index: int, confirm: Callable[[DeviceRecord], bool]) -> Optional[DeviceRecord]:
        entries = self.inventory.all()
        if not 0 <= index < len(entries):
            raise ValidationError(f"no inventory item at position {index} ({len(entries)} items)")
        if not confirm(entries[index]):
            log.debug("removal of position %d cancelled", index)
            return None
        return self.inventory.remove(index)

    def display_rows(self) -> List[DeviceRecord]:
        return list(reversed(self.inventory.all()))

    def export(self, target_dir: Path, now: Optional[datetime] = None) -> Path:
        records = self.inventory.all()
        if not records:
            self._notify("the list is empty; nothing to export")
            raise ValidationError("the list is empty; nothing to export")
        try:
            return write_export(records, self.columns, target_dir, now=now)
        except ExportIOError as exc:
            self._notify(str(exc))
            raise

    def _notify(self, message: str) -> None:
        log.warning("%s", message)
        self.notices.append(message)
