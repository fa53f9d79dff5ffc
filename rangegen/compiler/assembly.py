"""Range configuration assembly orchestrator."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, Sequence

from rangegen.config import GeneratorConfig
from rangegen.constants import NODE_KIND_ROUTER, NODE_KIND_VLAN, PRESERVED_SECTIONS
from rangegen.log_config import get_logger
from rangegen.topology import coerce_edges, coerce_nodes

from .defaults import merge_defaults
from .network import build_network_section, derive_rules
from .router import compile_router, find_router
from .vlans import build_vlan_map
from .vms import compile_vms

if TYPE_CHECKING:  # pragma: no cover - import-time types only
    from rangegen.topology import TopologyEdge, TopologyNode

logger = get_logger(__name__)


def compile_range_config(
    nodes: Sequence["TopologyNode | dict[str, Any]"],
    edges: Sequence["TopologyEdge | dict[str, Any]"],
    existing_config: dict[str, Any] | None = None,
    overrides: dict[str, Any] | None = None,
    *,
    settings: GeneratorConfig | None = None,
) -> dict[str, Any]:
    """Compile an editor topology into a range configuration.

    The result is always complete: an empty topology yields an empty
    ``ludus`` list, the default router, default network policies and the
    baseline ``defaults`` block. Inputs are never modified.

    Args:
        nodes: Ordered node sequence. The first router node is authoritative
            and VMs are emitted in VLAN node order.
        edges: Ordered edge sequence; rules keep this order.
        existing_config: Previously saved configuration whose ``defaults``,
            network policies and preserved sections carry over.
        overrides: Values laid over the ``defaults`` block.
        settings: Generator configuration; ``GeneratorConfig()`` when omitted.

    Returns:
        Mapping with ``ludus``, ``router``, ``network`` and ``defaults`` in
        that order, followed by any preserved sections.
    """
    cfg = settings or GeneratorConfig()
    node_list = coerce_nodes(copy.deepcopy(list(nodes)))
    edge_list = coerce_edges(copy.deepcopy(list(edges)))
    logger.debug(
        f"Compiling range configuration: {len(node_list)} nodes, {len(edge_list)} edges, "
        f"existing config: {'yes' if existing_config else 'no'}"
    )

    vlan_nodes = [n for n in node_list if n.kind == NODE_KIND_VLAN]
    vlan_map = build_vlan_map(vlan_nodes, cfg.vlans)

    ludus = compile_vms(vlan_nodes, vlan_map, cfg)

    router_payload = find_router(node_list)
    router_id = next((n.id for n in node_list if n.kind == NODE_KIND_ROUTER), None)
    router = compile_router(router_payload, cfg.router_defaults)

    existing_network = None
    if isinstance(existing_config, dict):
        existing_network = existing_config.get("network")
    rules = derive_rules(edge_list, node_list, router_id, vlan_map)
    network = build_network_section(
        router_payload, existing_network, rules, cfg.network_defaults
    )

    defaults = merge_defaults(existing_config, overrides, cfg.range_defaults)

    config: dict[str, Any] = {
        "ludus": ludus,
        "router": router,
        "network": network,
        "defaults": defaults,
    }
    if isinstance(existing_config, dict):
        for section in PRESERVED_SECTIONS:
            if section in existing_config:
                config[section] = copy.deepcopy(existing_config[section])

    logger.info(
        f"Compiled range configuration: {len(ludus)} VMs across "
        f"{len(vlan_map.numbers)} VLANs, {len(rules)} rules"
    )
    return config
