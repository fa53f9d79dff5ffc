"""Top-level YAML validation entry point."""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources as res
from typing import Any

import jsonschema
import yaml

from rangegen.log_config import get_logger

from .config_dict import validate_range_config_dict

logger = get_logger(__name__)

SCHEMA_RESOURCE = "range-config.json"


@lru_cache(maxsize=1)
def load_schema() -> dict[str, Any]:
    """Return the embedded range configuration JSON Schema."""
    with (
        res.files("rangegen.schemas")
        .joinpath(SCHEMA_RESOURCE)
        .open("r", encoding="utf-8") as f
    ):
        return json.load(f)


def _schema_issues(data: Any) -> list[str]:
    validator = jsonschema.Draft7Validator(load_schema())
    issues: list[str] = []
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
    for error in errors:
        location = "/".join(str(p) for p in error.path) or "<root>"
        issues.append(f"schema: {location}: {error.message}")
    return issues


def validate_range_config_yaml(text: str, *, run_schema: bool = True) -> list[str]:
    """Validate range configuration YAML and return a list of issue strings.

    Args:
        text: Complete range configuration YAML (the schema comment line is
            allowed).
        run_schema: If True, also validate against the embedded JSON Schema.

    Returns:
        List of human-readable issue strings. Empty list when no issues.
    """
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        return [f"YAML parse error: {e}"]

    issues: list[str] = []
    if run_schema:
        issues.extend(_schema_issues(data))
    issues.extend(validate_range_config_dict(data))

    for msg in issues:
        logger.error(msg)
    return issues
