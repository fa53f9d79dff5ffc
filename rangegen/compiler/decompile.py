"""Reverse transform: range configuration back to an editor topology.

Used to load a saved configuration onto the canvas. Compiling the result
again yields the same ``ludus``, ``router`` and ``network`` content.
"""

from __future__ import annotations

import copy
import re
from typing import Any

from rangegen.constants import (
    DEFAULT_INTER_VLAN_POLICY,
    DEFAULT_EXTERNAL_POLICY,
    EDGE_KIND_RULE,
    NETWORK_POLICY_KEYS,
    NODE_KIND_ROUTER,
    NODE_KIND_VLAN,
    PUBLIC_ENDPOINT,
)
from rangegen.log_config import get_logger
from rangegen.topology import (
    EdgeStatus,
    RouterPayload,
    TopologyEdge,
    TopologyNode,
    VlanPayload,
    VMDescriptor,
)

logger = get_logger(__name__)

ROUTER_NODE_ID = "router"

_ACTION_CONNECTION_TYPES = {"ACCEPT": "accept", "REJECT": "deny", "DROP": "drop"}


def _title(text: str) -> str:
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), text)


def vm_label(entry: dict[str, Any]) -> str:
    """Return the display label for a compiled VM entry.

    Domain members are labelled by role, everything else by template name;
    the hostname follows in parentheses.
    """
    hostname = entry.get("hostname") or entry.get("vm_name") or ""
    windows = entry.get("windows")
    domain = entry.get("domain")
    role = None
    if isinstance(domain, dict):
        role = domain.get("role")
    if not role and isinstance(windows, dict) and isinstance(windows.get("domain"), dict):
        role = windows["domain"].get("role")
    if role:
        name = _title(str(role).replace("-", " "))
    else:
        template = re.sub(r"-template$", "", str(entry.get("template") or ""))
        name = _title(template.replace("-", " "))
    return f"{name} ({hostname})" if hostname else name


def connection_type_for(action: Any) -> str:
    """Map a rule action back to the editor's connection type."""
    return _ACTION_CONNECTION_TYPES.get(str(action or "").upper(), "accept")


def _vlan_node_id(number: Any) -> str:
    return f"vlan{number}"


def topology_from_config(
    config: dict[str, Any],
) -> tuple[list[TopologyNode], list[TopologyEdge]]:
    """Rebuild editor nodes and edges from a range configuration.

    Args:
        config: Parsed range configuration.

    Returns:
        Tuple of (nodes, edges). VLAN nodes come first in ``ludus`` order,
        followed by VLANs referenced only by rules and then the router node.
        One ``custom`` edge is created per rule whose endpoints both exist.
    """
    ludus = config.get("ludus") or []
    network = config.get("network") or {}
    rules = network.get("rules") or []

    vlan_vms: dict[Any, list[VMDescriptor]] = {}
    for entry in ludus:
        if not isinstance(entry, dict):
            continue
        vlan = entry.get("vlan")
        vms = vlan_vms.setdefault(vlan, [])
        data = copy.deepcopy(entry)
        data.pop("vlan", None)
        data["id"] = f"{_vlan_node_id(vlan)}-vm{len(vms)}"
        data["label"] = vm_label(entry)
        vms.append(VMDescriptor.from_dict(data))

    for rule in rules:
        for endpoint in (rule.get("vlan_src"), rule.get("vlan_dst")):
            if isinstance(endpoint, int) and not isinstance(endpoint, bool):
                vlan_vms.setdefault(endpoint, [])

    nodes: list[TopologyNode] = [
        TopologyNode(
            id=_vlan_node_id(vlan),
            kind=NODE_KIND_VLAN,
            payload=VlanPayload(label=f"VLAN {vlan}", vms=vms),
        )
        for vlan, vms in vlan_vms.items()
    ]

    router_entry = config.get("router")
    if isinstance(router_entry, dict):
        data = copy.deepcopy(router_entry)
        data["label"] = "Router"
        data["inter_vlan_default"] = network.get(
            "inter_vlan_default", DEFAULT_INTER_VLAN_POLICY
        )
        data["external_default"] = network.get(
            "external_default", DEFAULT_EXTERNAL_POLICY
        )
        for key in NETWORK_POLICY_KEYS[2:]:
            if key in network:
                data[key] = copy.deepcopy(network[key])
        nodes.append(
            TopologyNode(
                id=ROUTER_NODE_ID,
                kind=NODE_KIND_ROUTER,
                payload=RouterPayload.from_dict(data),
            )
        )

    node_ids = {n.id for n in nodes}

    def _endpoint(value: Any) -> str:
        if value == PUBLIC_ENDPOINT:
            return ROUTER_NODE_ID
        return _vlan_node_id(value)

    edges: list[TopologyEdge] = []
    for index, rule in enumerate(rules):
        source = _endpoint(rule.get("vlan_src"))
        target = _endpoint(rule.get("vlan_dst"))
        if source not in node_ids or target not in node_ids:
            logger.debug(
                f"Rule {rule.get('name')!r} cannot be drawn "
                f"({rule.get('vlan_src')} -> {rule.get('vlan_dst')})"
            )
            continue
        status = EdgeStatus(
            connection_type=connection_type_for(rule.get("action")),
            name=rule.get("name"),
            protocol=rule.get("protocol"),
            ports=rule.get("ports"),
            action=rule.get("action"),
            ip_last_octet_src=rule.get("ip_last_octet_src"),
            ip_last_octet_dst=rule.get("ip_last_octet_dst"),
        )
        edges.append(
            TopologyEdge(
                id=f"rule-{index}",
                source=source,
                target=target,
                status=status,
                label=rule.get("name"),
                kind=EDGE_KIND_RULE,
            )
        )

    logger.info(
        f"Decompiled range configuration: {len(nodes)} nodes, {len(edges)} edges"
    )
    return nodes, edges
