"""
CSV serialisation and file delivery for the inventory.

Deutsch:
    CSV-Serialisierung und Dateiausgabe des Inventars.
"""

from __future__ import annotations

import csv
import io
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .models import DeviceRecord, FieldSpec

log = logging.getLogger(__name__)

FILENAME_PREFIX = "device-inventory-"


class ExportIOError(RuntimeError):
    """Raised when the serialised inventory cannot be delivered."""


def serialize(records: Iterable[DeviceRecord], columns: Sequence[FieldSpec]) -> str:
    """
    Render records as comma separated text.

    The header row carries the column labels, quoted only when they contain a
    comma, quote or line break; every data value is wrapped in
    double quotes with embedded quotes doubled. Rows are joined with ``\\n``.
    """

    lines: List[str] = [",".join(_header_label(spec.label) for spec in columns)]
    for record in records:
        lines.append(",".join(_quote(record[spec.field]) for spec in columns))
    return "\n".join(lines)


def _quote(value: Optional[str]) -> str:
    text = "" if value is None else str(value)
    return '"' + text.replace('"', '""') + '"'


def _header_label(label: str) -> str:
    # Plain labels stay bare; anything that would split the header row is quoted.
    if any(ch in label for ch in (",", '"', "\n", "\r")):
        return _quote(label)
    return label


def export_filename(now: Optional[datetime] = None) -> str:
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    stamp = moment.isoformat().replace(":", "-").replace(".", "-")[:19]
    return f"{FILENAME_PREFIX}{stamp}.csv"


def write_export(
    records: Iterable[DeviceRecord],
    columns: Sequence[FieldSpec],
    target_dir: Path,
    now: Optional[datetime] = None,
) -> Path:
    """
    Write the serialised inventory into ``target_dir`` and return the file path.
    """

    text = serialize(records, columns)
    target_dir = Path(target_dir)
    target_path = target_dir / export_filename(now)
    tmp_path = target_path.with_suffix(target_path.suffix + ".tmp")
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(text, encoding="utf-8")
        tmp_path.replace(target_path)
    except OSError as exc:
        log.error("export to %s failed: %s", target_path, exc)
        raise ExportIOError(f"could not save the CSV file to {target_path}: {exc}") from exc
    log.info("exported inventory -> %s", target_path)
    return target_path


def parse_export(text: str) -> List[List[str]]:
    """Read exported text back into rows (header first)."""

    if not text:
        return []
    return [row for row in csv.reader(io.StringIO(text))]
