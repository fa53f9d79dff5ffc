"""VLAN numbering for the compiler.

Each VLAN node's number is the trailing integer of its node id. Numbers at or
above the special threshold mark editor-internal VLANs, which are excluded
from the configuration entirely. Numbers below the minimum (or ids without a
number) are remapped to the next free slot starting at the minimum.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

from rangegen.log_config import get_logger
from rangegen.naming import vlan_number_from_id

if TYPE_CHECKING:  # pragma: no cover - import-time types only
    from rangegen.config import VlanPolicyConfig
    from rangegen.topology import TopologyNode

logger = get_logger(__name__)


@dataclass
class VlanMap:
    """Resolved VLAN numbers for one compilation.

    Attributes:
        numbers: Node id -> VLAN number, for every compiled VLAN node.
        special: Node ids of special VLANs.
        remapped: Node id -> original derived number (None when the id had no
            number) for every remapped VLAN node.
    """

    numbers: dict[str, int] = field(default_factory=dict)
    special: set[str] = field(default_factory=set)
    remapped: dict[str, int | None] = field(default_factory=dict)

    def resolve(self, node_id: str) -> int | None:
        """Return the VLAN number for ``node_id``; None for special or unknown nodes."""
        return self.numbers.get(node_id)

    def is_special(self, node_id: str) -> bool:
        return node_id in self.special


def build_vlan_map(
    vlan_nodes: Iterable["TopologyNode"], policy: "VlanPolicyConfig"
) -> VlanMap:
    """Assign a VLAN number to every VLAN node.

    Valid numbers are claimed first so that a remapped VLAN never collides
    with one the user numbered explicitly. Remaps are handed out in node-list
    order.

    Args:
        vlan_nodes: VLAN nodes in node-list order.
        policy: Minimum and special thresholds.

    Returns:
        The resolved mapping.
    """
    vmap = VlanMap()
    claimed: set[int] = set()
    pending: list[tuple[str, int | None]] = []

    for node in vlan_nodes:
        if node.id in vmap.numbers or node.id in vmap.special:
            continue
        number = vlan_number_from_id(node.id)
        if number is not None and number >= policy.special_threshold:
            vmap.special.add(node.id)
        elif number is not None and number >= policy.min_vlan:
            vmap.numbers[node.id] = number
            claimed.add(number)
        elif all(node.id != pid for pid, _ in pending):
            pending.append((node.id, number))

    candidate = policy.min_vlan
    for node_id, original in pending:
        while candidate in claimed:
            candidate += 1
        if candidate >= policy.special_threshold:
            logger.warning(f"No free VLAN number left for node {node_id}; excluding it")
            vmap.special.add(node_id)
            continue
        vmap.numbers[node_id] = candidate
        vmap.remapped[node_id] = original
        claimed.add(candidate)
        logger.debug(f"Remapped VLAN node {node_id} ({original}) to {candidate}")

    return vmap
