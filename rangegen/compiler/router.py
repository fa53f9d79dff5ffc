"""Router entry compilation."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, Iterable

from rangegen.constants import (
    EDITOR_ONLY_ROUTER_FIELDS,
    NETWORK_POLICY_KEYS,
    NODE_KIND_ROUTER,
    SNAKE_CASED_SUBSECTIONS,
)
from rangegen.log_config import get_logger
from rangegen.naming import has_value, keys_to_snake
from rangegen.topology import RouterPayload

if TYPE_CHECKING:  # pragma: no cover - import-time types only
    from rangegen.config import RouterDefaultsConfig
    from rangegen.topology import TopologyNode

logger = get_logger(__name__)

# Optional router fields copied only when set, in emission order
_OPTIONAL_FIELDS = (
    "ram_min_gb",
    "roles",
    "role_vars",
    "outbound_wireguard_config",
    "outbound_wireguard_vlans",
    "inbound_wireguard",
)


def find_router(nodes: Iterable["TopologyNode"]) -> RouterPayload | None:
    """Return the payload of the first router node, or None.

    Router nodes after the first are ignored.
    """
    for node in nodes:
        if node.kind == NODE_KIND_ROUTER:
            payload = node.payload
            if isinstance(payload, RouterPayload):
                return payload
            return RouterPayload.from_dict(dict(payload or {}))
    return None


def compile_router(
    router: RouterPayload | None, defaults: "RouterDefaultsConfig"
) -> dict[str, Any]:
    """Build the ``router`` entry.

    Args:
        router: Payload of the authoritative router node, or None when the
            topology has no router.
        defaults: Fallback values.

    Returns:
        A complete router entry. Without a router node this is the same entry
        an empty router node produces.
    """
    if router is None:
        logger.info("No router node found in topology, adding default router configuration")
        router = RouterPayload()

    entry: dict[str, Any] = {
        "vm_name": router.vm_name or defaults.vm_name,
        "hostname": router.hostname or defaults.hostname,
        "template": router.template or defaults.template,
        "ram_gb": router.ram_gb or defaults.ram_gb,
        "cpus": router.cpus or defaults.cpus,
    }
    for name in _OPTIONAL_FIELDS:
        value = getattr(router, name)
        if not has_value(value):
            continue
        value = copy.deepcopy(value)
        if name in SNAKE_CASED_SUBSECTIONS and isinstance(value, dict):
            value = keys_to_snake(value)
        entry[name] = value

    for key, value in router.extras.items():
        if key in EDITOR_ONLY_ROUTER_FIELDS or key in NETWORK_POLICY_KEYS:
            continue
        entry.setdefault(key, copy.deepcopy(value))
    return entry
