"""
JSON schemas shipped with udiscan, exposed as ready-to-use validators.

Deutsch:
    Mitgelieferte JSON-Schemata als fertige Validatoren.
"""

from __future__ import annotations

__all__ = ["CONFIG_SCHEMA", "schema_validator"]

import json
from functools import lru_cache
from importlib import resources

from jsonschema import Draft7Validator

CONFIG_SCHEMA = "config.schema.json"


@lru_cache(maxsize=None)
def schema_validator(name: str = CONFIG_SCHEMA) -> Draft7Validator:
    """Parse a bundled schema once, check it against the draft-07 meta-schema and wrap it."""

    text = resources.files(__name__).joinpath(name).read_text(encoding="utf-8")
    schema = json.loads(text)
    Draft7Validator.check_schema(schema)
    return Draft7Validator(schema)
