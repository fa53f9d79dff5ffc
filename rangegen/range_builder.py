"""Range configuration builder facade.

Public entry points for compiling topologies live in ``rangegen.compiler``.
This module re-exports them to keep the stable import path
``rangegen.range_builder``.
"""

from __future__ import annotations

from rangegen.compiler.assembly import compile_range_config
from rangegen.compiler.decompile import topology_from_config
from rangegen.compiler.defaults import merge_defaults
from rangegen.compiler.emit import (
    build_range_yaml,
    load_range_config,
    parse_range_config,
    serialize_range_config,
)
from rangegen.compiler.network import build_network_section, derive_rules
from rangegen.compiler.router import compile_router, find_router
from rangegen.compiler.vlans import VlanMap, build_vlan_map
from rangegen.compiler.vms import compile_vm, compile_vms

__all__ = [
    "compile_range_config",
    "serialize_range_config",
    "parse_range_config",
    "load_range_config",
    "build_range_yaml",
    "topology_from_config",
    "merge_defaults",
    "build_network_section",
    "derive_rules",
    "compile_router",
    "find_router",
    "VlanMap",
    "build_vlan_map",
    "compile_vm",
    "compile_vms",
]
