"""Naming utilities for stable identifiers.

Provides a single source of truth for the key-case conversion between the
editor (camelCase) and the range configuration (snake_case), and for the
identifiers derived from node ids and template names.
"""

from __future__ import annotations

import re
from typing import Any

from rangegen.constants import NUMERIC_STRING_FIELDS

_TRAILING_INT = re.compile(r"(\d+)$")
_PAREN_PART = re.compile(r"\(([^()]*)\)")


def camel_to_snake(key: str) -> str:
    """Return ``key`` converted from camelCase to snake_case.

    Keys already in snake_case are returned unchanged.
    """
    return re.sub(r"[A-Z]", lambda m: f"_{m.group(0).lower()}", key)


def snake_to_camel(key: str) -> str:
    """Return ``key`` converted from snake_case to camelCase."""
    return re.sub(r"_([a-z])", lambda m: m.group(1).upper(), key)


def rename_aliases(data: dict[str, Any], aliases: dict[str, str]) -> dict[str, Any]:
    """Return a copy of ``data`` with aliased keys renamed.

    Key order is preserved. When both spellings are present the target
    spelling wins and the alias is dropped.
    """
    out: dict[str, Any] = {}
    for key, value in data.items():
        target = aliases.get(key, key)
        if target != key and target in data:
            continue
        out[target] = value
    return out


def keys_to_snake(mapping: dict[str, Any]) -> dict[str, Any]:
    """Return a shallow copy of ``mapping`` with snake_case keys.

    ``office_version`` and ``visual_studio_version`` hold integers in the
    configuration but strings in the editor; integer-like strings are
    converted back.
    """
    out: dict[str, Any] = {}
    for key, value in mapping.items():
        snake = camel_to_snake(str(key))
        if snake in NUMERIC_STRING_FIELDS and isinstance(value, str):
            try:
                value = int(value, 10)
            except ValueError:
                pass
        out[snake] = value
    return out


def keys_to_camel(mapping: dict[str, Any]) -> dict[str, Any]:
    """Return a shallow copy of ``mapping`` with camelCase keys."""
    out: dict[str, Any] = {}
    for key, value in mapping.items():
        if key in NUMERIC_STRING_FIELDS and isinstance(value, int):
            value = str(value)
        out[snake_to_camel(str(key))] = value
    return out


def vlan_number_from_id(node_id: str) -> int | None:
    """Return the trailing integer of a VLAN node id.

    Args:
        node_id: Node identifier such as ``"vlan1000"``.

    Returns:
        The trailing integer (``1000``), or None when the id does not end in
        digits.
    """
    m = _TRAILING_INT.search(str(node_id))
    if not m:
        return None
    return int(m.group(1))


def hostname_from_label(label: str | None) -> str | None:
    """Return the hostname embedded in a display label.

    The editor labels deployed VMs as ``"Display name (hostname)"``.
    """
    if not label:
        return None
    m = _PAREN_PART.search(label)
    if not m:
        return None
    inner = m.group(1).strip()
    return inner or None


def template_slug(template: str) -> str:
    """Return a lowercase, hyphenated slug for a template name.

    Example: ``"Windows Server 2022"`` -> ``"windows-server-2022"``.
    """
    return re.sub(r"\s+", "-", template.strip().lower())


def has_value(value: Any) -> bool:
    """Return True unless ``value`` is None or an empty string, list or mapping."""
    if value is None:
        return False
    if isinstance(value, (list, dict, str)) and len(value) == 0:
        return False
    return True
