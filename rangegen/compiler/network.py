"""Network section: firewall rules derived from edges and default policies."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, Iterable

from rangegen.constants import (
    CONNECTION_TYPE_ACTIONS,
    DEFAULT_RULE_PORTS,
    DEFAULT_RULE_PROTOCOL,
    EDGE_KIND_RULE,
    NETWORK_POLICY_KEYS,
    NODE_KIND_VLAN,
    PUBLIC_ENDPOINT,
)
from rangegen.log_config import get_logger
from rangegen.naming import has_value
from rangegen.topology import EdgeStatus

from .vlans import VlanMap

if TYPE_CHECKING:  # pragma: no cover - import-time types only
    from rangegen.config import NetworkDefaultsConfig
    from rangegen.topology import RouterPayload, TopologyEdge, TopologyNode

logger = get_logger(__name__)


def rule_action(status: EdgeStatus) -> str:
    """Return the rule action for an edge status.

    An explicit ``action`` wins; otherwise the connection type maps
    ``accept -> ACCEPT``, ``deny -> REJECT`` and ``drop -> DROP``. Unknown or
    missing connection types count as ``accept``.
    """
    if status.action:
        return str(status.action).upper()
    connection_type = str(status.connection_type or "accept").lower()
    return CONNECTION_TYPE_ACTIONS.get(connection_type, CONNECTION_TYPE_ACTIONS["accept"])


def _present(value: Any) -> bool:
    return value is not None and value != ""


def _endpoint(
    node_id: str,
    kinds: dict[str, str],
    router_id: str | None,
    vlan_map: VlanMap,
) -> int | str | None:
    """Return the rule endpoint for one edge end.

    The authoritative router is ``public`` and a VLAN node is its resolved
    number. Special VLANs, unknown nodes and ignored routers give None.
    """
    if router_id is not None and node_id == router_id:
        return PUBLIC_ENDPOINT
    if kinds.get(node_id) == NODE_KIND_VLAN:
        return vlan_map.resolve(node_id)
    return None


def build_rule(
    edge: "TopologyEdge", vlan_src: int | str, vlan_dst: int | str
) -> dict[str, Any]:
    """Build one network rule from an edge and its resolved endpoints."""
    status = edge.status or EdgeStatus()
    name = status.name or edge.label or f"VLAN {vlan_src} to VLAN {vlan_dst}"
    rule: dict[str, Any] = {
        "name": name,
        "vlan_src": vlan_src,
        "vlan_dst": vlan_dst,
        "protocol": status.protocol or DEFAULT_RULE_PROTOCOL,
        "ports": status.ports if _present(status.ports) else DEFAULT_RULE_PORTS,
        "action": rule_action(status),
    }
    if _present(status.ip_last_octet_src):
        rule["ip_last_octet_src"] = status.ip_last_octet_src
    if _present(status.ip_last_octet_dst):
        rule["ip_last_octet_dst"] = status.ip_last_octet_dst
    return rule


def derive_rules(
    edges: Iterable["TopologyEdge"],
    nodes: Iterable["TopologyNode"],
    router_id: str | None,
    vlan_map: VlanMap,
) -> list[dict[str, Any]]:
    """Derive firewall rules from edges, in edge order.

    VLAN-to-VLAN edges keep both VLAN numbers, router-to-VLAN edges become
    ``public -> N`` and VLAN-to-router edges ``N -> public``. Edges touching a
    special or missing VLAN, router-to-router edges and non-rule edges are
    dropped.

    Args:
        edges: Topology edges in order.
        nodes: Topology nodes (used to look up endpoint kinds).
        router_id: Id of the authoritative router node, if any.
        vlan_map: Resolved VLAN numbers.

    Returns:
        List of rule mappings.
    """
    kinds: dict[str, str] = {}
    for node in nodes:
        kinds.setdefault(node.id, node.kind)

    rules: list[dict[str, Any]] = []
    for edge in edges:
        if edge.kind != EDGE_KIND_RULE:
            continue
        src = _endpoint(edge.source, kinds, router_id, vlan_map)
        dst = _endpoint(edge.target, kinds, router_id, vlan_map)
        if src is None or dst is None:
            logger.debug(f"Dropping edge {edge.id}: endpoint not compiled")
            continue
        if src == PUBLIC_ENDPOINT and dst == PUBLIC_ENDPOINT:
            logger.debug(f"Dropping router-to-router edge {edge.id}")
            continue
        rules.append(build_rule(edge, src, dst))
    return rules


def build_network_section(
    router: "RouterPayload | None",
    existing_network: dict[str, Any] | None,
    rules: list[dict[str, Any]],
    defaults: "NetworkDefaultsConfig",
) -> dict[str, Any]:
    """Build the ``network`` section.

    Policy precedence is router payload, then the previous configuration's
    network block, then ``defaults``. ``wireguard_vlan_default`` and
    ``always_blocked_networks`` have no fixed default and are omitted unless
    set. Other keys of the previous network block are preserved; ``rules``
    is always replaced.
    """
    existing = existing_network if isinstance(existing_network, dict) else {}

    def _pick(key: str) -> Any:
        value = getattr(router, key, None) if router is not None else None
        if has_value(value):
            return value
        value = existing.get(key)
        if has_value(value):
            return value
        return None

    network: dict[str, Any] = {}
    inter_vlan = _pick("inter_vlan_default") or defaults.inter_vlan_default
    external = _pick("external_default") or defaults.external_default
    network["inter_vlan_default"] = str(inter_vlan).upper()
    network["external_default"] = str(external).upper()

    wireguard = _pick("wireguard_vlan_default")
    if wireguard is not None:
        network["wireguard_vlan_default"] = str(wireguard).upper()
    blocked = _pick("always_blocked_networks")
    if blocked is not None:
        if isinstance(blocked, str):
            blocked = [blocked]
        network["always_blocked_networks"] = list(copy.deepcopy(blocked))

    for key, value in existing.items():
        if key in NETWORK_POLICY_KEYS or key == "rules":
            continue
        network[key] = copy.deepcopy(value)

    network["rules"] = rules
    return network
