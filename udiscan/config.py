"""
YAML configuration loading.

Deutsch:
    Laden der YAML-Konfiguration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml
from .lookup import DEFAULT_LOOKUP_URL, USER_AGENT
from .models import DEFAULT_COLUMNS, READ_ONLY_FIELDS, RECORD_FIELDS, FieldSpec
from .schemas import schema_validator

log = logging.getLogger(__name__)

class ConfigError(Exception):
    """Raised when the configuration file is unusable."""


@dataclass
class AppConfig:
    lookup_url: str = DEFAULT_LOOKUP_URL
    lookup_timeout: Optional[float] = None
    user_agent: str = USER_AGENT
    export_dir: Path = Path(".")
    columns: Tuple[FieldSpec, ...] = field(default_factory=lambda: DEFAULT_COLUMNS)


def load_config(path: Optional[Union[str, Path]] = None) -> AppConfig:
    if path is None:
        return AppConfig()
    config_path = Path(path)
    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        raise ConfigError(f"cannot read config {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"config {config_path} is not valid YAML: {exc}") from exc
    if data is None:
        data = {}
    return parse_config(data, source=str(config_path))


def parse_config(data: Any, source: str = "<config>") -> AppConfig:
    errors = sorted(schema_validator().iter_errors(data), key=lambda err: [str(part) for part in err.path])
    if errors:
        first = errors[0]
        location = "/".join(str(part) for part in first.path) or "<root>"
        raise ConfigError(f"{source} invalid at {location}: {first.message}")

    lookup: Dict[str, Any] = data.get("lookup") or {}
    export: Dict[str, Any] = data.get("export") or {}
    config = AppConfig(
        lookup_url=str(lookup.get("url") or DEFAULT_LOOKUP_URL),
        lookup_timeout=lookup.get("timeout"),
        user_agent=str(lookup.get("user_agent") or USER_AGENT),
        export_dir=Path(export.get("directory") or "."),
    )
    if data.get("columns"):
        config.columns = _parse_columns(data["columns"], source)
    log.debug("loaded config from %s", source)
    return config


def _parse_columns(raw_columns: Any, source: str) -> Tuple[FieldSpec, ...]:
    """
    Overlay configured labels and order on the default columns.

    Every record field is always exported: listed fields come first in the
    configured order, the rest follow in default order with default labels.
    """

    columns = []
    seen = set()
    for item in raw_columns:
        name = str(item["field"])
        if name not in RECORD_FIELDS:
            raise ConfigError(f"{source}: unknown column field {name!r}")
        if name in seen:
            raise ConfigError(f"{source}: duplicate column field {name!r}")
        seen.add(name)
        if name in READ_ONLY_FIELDS:
            if item.get("editable"):
                log.warning("%s: column %s is read-only; ignoring editable flag", source, name)
            editable = False
        else:
            editable = bool(item.get("editable", True))
        columns.append(FieldSpec(name, str(item["label"]), editable=editable))
    columns.extend(spec for spec in DEFAULT_COLUMNS if spec.field not in seen)
    return tuple(columns)
