"""
In-memory inventory of accepted device records.

Deutsch:
    Inventar der übernommenen Gerätedatensätze (nur im Speicher).
"""

from __future__ import annotations

import logging
from typing import Iterator, List

from .models import DeviceRecord

log = logging.getLogger(__name__)


class ValidationError(Exception):
    """Raised when an inventory action is rejected. / Wird bei abgelehnten Aktionen geworfen."""


class InventoryStore:
    """
    Ordered collection of accepted records.

    Insertion order is export order. Entries are private copies, so later
    edits to a form never reach stored records.
    """

    def __init__(self) -> None:
        self._entries: List[DeviceRecord] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[DeviceRecord]:
        return iter(self.all())

    def add(self, record: DeviceRecord) -> int:
        if not record.udi.strip():
            raise ValidationError("cannot add an item without a UDI")
        self._entries.append(record.copy())
        log.info("added %s (%d items)", record.udi, len(self._entries))
        return len(self._entries)

    def remove(self, index: int) -> DeviceRecord:
        if not 0 <= index < len(self._entries):
            raise ValidationError(f"no inventory item at position {index} ({len(self._entries)} items)")
        removed = self._entries.pop(index)
        log.info("removed %s from position %d", removed.udi, index)
        return removed

    def all(self) -> List[DeviceRecord]:
        return [entry.copy() for entry in self._entries]

    def clear(self) -> None:
        self._entries.clear()
