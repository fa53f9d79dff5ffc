"""Range configuration validation package.

This package provides validation helpers to check a range configuration for:

- Duplicate VM names and hostnames across the range
- Two VMs claiming the same IP address (VLAN and last octet)
- A missing router section
- Optional schema validation against the embedded JSON Schema

Public API:
    - validate_range_config_dict
    - validate_range_config_yaml
"""

from __future__ import annotations

from .config_dict import validate_range_config_dict
from .yaml_validation import load_schema, validate_range_config_yaml

__all__ = ["load_schema", "validate_range_config_dict", "validate_range_config_yaml"]
