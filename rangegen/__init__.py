"""Range configuration generator.

Compiles range editor topologies (VLAN and router nodes connected by
firewall-rule edges) into declarative range configuration YAML.
"""

from .config import GeneratorConfig
from .range_builder import (
    build_range_yaml,
    compile_range_config,
    parse_range_config,
    serialize_range_config,
    topology_from_config,
)
from .topology import load_topology, save_topology

__version__ = "0.1.0"

__all__ = [
    "GeneratorConfig",
    "build_range_yaml",
    "compile_range_config",
    "load_topology",
    "parse_range_config",
    "save_topology",
    "serialize_range_config",
    "topology_from_config",
]
