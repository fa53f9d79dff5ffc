"""Resource totals for a topology."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from rangegen.constants import (
    DEFAULT_ROUTER_CPUS,
    DEFAULT_ROUTER_RAM_GB,
    NODE_KIND_ROUTER,
    NODE_KIND_VLAN,
)
from rangegen.topology import RouterPayload, TopologyNode, VlanPayload, coerce_nodes


@dataclass(frozen=True)
class ResourceTotals:
    """Aggregate VM count, CPUs and RAM (GB)."""

    vms: int = 0
    cpus: int = 0
    ram_gb: int = 0


def calculate_resource_totals(
    nodes: Iterable[TopologyNode | dict[str, Any]],
) -> ResourceTotals:
    """Sum the resources requested by a topology.

    Every VM in every VLAN node counts, with missing ``cpus``/``ram_gb``
    counted as 0. Every router node counts as one VM with 2 CPUs and 2 GB
    unless it says otherwise.
    """
    vms = cpus = ram = 0
    for node in coerce_nodes(nodes):
        payload = node.payload
        if node.kind == NODE_KIND_VLAN and isinstance(payload, VlanPayload):
            for vm in payload.vms:
                vms += 1
                cpus += int(vm.cpus or 0)
                ram += int(vm.ram_gb or 0)
        elif node.kind == NODE_KIND_ROUTER and isinstance(payload, RouterPayload):
            vms += 1
            cpus += int(payload.cpus or DEFAULT_ROUTER_CPUS)
            ram += int(payload.ram_gb or DEFAULT_ROUTER_RAM_GB)
    return ResourceTotals(vms=vms, cpus=cpus, ram_gb=ram)
