"""Typed records for the range editor topology.

The editor hands over React-Flow style nodes and edges whose ``data`` payloads
are open-ended. Each record here keeps the fields the compiler reads as named
attributes and captures everything else in an ``extras`` mapping that is
forwarded verbatim into the compiled configuration.

Node and edge sequences are ordered: the first router node wins and rules are
emitted in edge order.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Union

import yaml

from rangegen.constants import (
    EDGE_KIND_RULE,
    EDITOR_ONLY_VM_FIELDS,
    NODE_KIND_ROUTER,
    NODE_KIND_VLAN,
    ROUTER_FIELD_ALIASES,
    SNAKE_CASED_SUBSECTIONS,
    VM_FIELD_ALIASES,
)
from rangegen.log_config import get_logger
from rangegen.naming import keys_to_camel, rename_aliases

logger = get_logger(__name__)

_VM_ALIASES_REVERSED = {v: k for k, v in VM_FIELD_ALIASES.items()}


@dataclass
class VMDescriptor:
    """One virtual machine placed in a VLAN."""

    id: str
    label: str = ""
    vm_name: str | None = None
    template: str | None = None
    ram_gb: int | None = None
    cpus: int | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VMDescriptor:
        raw = rename_aliases(dict(data), VM_FIELD_ALIASES)
        vm_id = raw.pop("id", None)
        label = raw.pop("label", None)
        vm_name = raw.pop("vm_name", None)
        template = raw.pop("template", None)
        ram_gb = raw.pop("ram_gb", None)
        cpus = raw.pop("cpus", None)
        extras = {k: v for k, v in raw.items() if k not in EDITOR_ONLY_VM_FIELDS}
        return cls(
            id=str(vm_id) if vm_id is not None else str(vm_name or label or ""),
            label=str(label) if label is not None else "",
            vm_name=vm_name,
            template=template,
            ram_gb=ram_gb,
            cpus=cpus,
            extras=extras,
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the editor (camelCase) representation."""
        out: dict[str, Any] = {"id": self.id, "label": self.label}
        if self.vm_name is not None:
            out["vmName"] = self.vm_name
        if self.template is not None:
            out["template"] = self.template
        if self.ram_gb is not None:
            out["ramGb"] = self.ram_gb
        if self.cpus is not None:
            out["cpus"] = self.cpus
        for key, value in self.extras.items():
            if key in SNAKE_CASED_SUBSECTIONS and isinstance(value, dict):
                value = keys_to_camel(value)
            out[_VM_ALIASES_REVERSED.get(key, key)] = value
        return out


@dataclass
class VlanPayload:
    """Payload of a VLAN node."""

    label: str = ""
    vms: list[VMDescriptor] = field(default_factory=list)
    extras: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.vms = [
            vm if isinstance(vm, VMDescriptor) else VMDescriptor.from_dict(vm)
            for vm in (self.vms or [])
        ]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VlanPayload:
        raw = dict(data)
        label = raw.pop("label", "") or ""
        vms = raw.pop("vms", None) or []
        return cls(label=str(label), vms=list(vms), extras=raw)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"label": self.label}
        out["vms"] = [vm.to_dict() for vm in self.vms]
        out.update(self.extras)
        return out


@dataclass
class RouterPayload:
    """Payload of a router node.

    Network policy fields (``inter_vlan_default`` and friends) are edited on
    the router in the UI but compile into the ``network`` section.
    """

    label: str = ""
    vm_name: str | None = None
    hostname: str | None = None
    template: str | None = None
    cpus: int | None = None
    ram_gb: int | None = None
    ram_min_gb: int | None = None
    roles: list[Any] | None = None
    role_vars: dict[str, Any] | None = None
    inter_vlan_default: str | None = None
    external_default: str | None = None
    wireguard_vlan_default: str | None = None
    always_blocked_networks: list[str] | None = None
    inbound_wireguard: dict[str, Any] | None = None
    outbound_wireguard_config: str | None = None
    outbound_wireguard_vlans: list[int] | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RouterPayload:
        raw = rename_aliases(dict(data), ROUTER_FIELD_ALIASES)
        kwargs: dict[str, Any] = {}
        for name in cls.__dataclass_fields__:
            if name == "extras":
                continue
            if name in raw:
                kwargs[name] = raw.pop(name)
        if kwargs.get("label") is None:
            kwargs["label"] = ""
        return cls(**kwargs, extras=raw)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for name in self.__dataclass_fields__:
            if name == "extras":
                continue
            value = getattr(self, name)
            if value is not None:
                out[name] = value
        out.update(self.extras)
        return out


Payload = Union[VlanPayload, RouterPayload, dict]


@dataclass
class TopologyNode:
    """A node of the editable graph.

    ``kind`` is ``"vlan"``, ``"router"`` or any editor-only kind. Dict
    payloads are coerced to the typed payload for the compiler's kinds.
    """

    id: str
    kind: str
    payload: Payload = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.payload, dict):
            if self.kind == NODE_KIND_VLAN:
                self.payload = VlanPayload.from_dict(self.payload)
            elif self.kind == NODE_KIND_ROUTER:
                self.payload = RouterPayload.from_dict(self.payload)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TopologyNode:
        kind = data.get("type", data.get("kind"))
        payload = data.get("data", data.get("payload")) or {}
        return cls(id=str(data.get("id", "")), kind=str(kind or ""), payload=payload)

    def to_dict(self) -> dict[str, Any]:
        payload = self.payload
        body = payload.to_dict() if hasattr(payload, "to_dict") else dict(payload)
        return {"id": self.id, "type": self.kind, "data": body}


@dataclass
class EdgeStatus:
    """Firewall settings attached to an edge."""

    connection_type: str | None = None
    name: str | None = None
    protocol: str | None = None
    ports: Any = None
    ip_last_octet_src: Any = None
    ip_last_octet_dst: Any = None
    action: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EdgeStatus:
        raw = dict(data)
        connection_type = raw.pop("connectionType", None)
        if "connection_type" in raw:
            connection_type = raw.pop("connection_type")
        return cls(
            connection_type=connection_type,
            name=raw.pop("name", None),
            protocol=raw.pop("protocol", None),
            ports=raw.pop("ports", None),
            ip_last_octet_src=raw.pop("ip_last_octet_src", None),
            ip_last_octet_dst=raw.pop("ip_last_octet_dst", None),
            action=raw.pop("action", None),
            extras=raw,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.connection_type is not None:
            out["connectionType"] = self.connection_type
        for key in (
            "name",
            "protocol",
            "ports",
            "action",
            "ip_last_octet_src",
            "ip_last_octet_dst",
        ):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        out.update(self.extras)
        return out


@dataclass
class TopologyEdge:
    """A connection between two nodes; ``custom`` edges are firewall rules."""

    id: str
    source: str
    target: str
    status: EdgeStatus | None = None
    label: str | None = None
    kind: str = EDGE_KIND_RULE

    def __post_init__(self) -> None:
        if isinstance(self.status, dict):
            self.status = EdgeStatus.from_dict(self.status)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TopologyEdge:
        payload = data.get("data", data.get("payload")) or {}
        status = payload.get("status")
        kind = data.get("type", data.get("kind")) or EDGE_KIND_RULE
        label = payload.get("label")
        return cls(
            id=str(data.get("id", "")),
            source=str(data.get("source", "")),
            target=str(data.get("target", "")),
            status=EdgeStatus.from_dict(status) if isinstance(status, dict) else None,
            label=str(label) if label is not None else None,
            kind=str(kind),
        )

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.label is not None:
            body["label"] = self.label
        if self.status is not None:
            body["status"] = self.status.to_dict()
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.kind,
            "data": body,
        }


def coerce_nodes(nodes: Iterable[TopologyNode | dict[str, Any]]) -> list[TopologyNode]:
    """Return ``nodes`` as typed records, preserving order."""
    return [n if isinstance(n, TopologyNode) else TopologyNode.from_dict(n) for n in nodes]


def coerce_edges(edges: Iterable[TopologyEdge | dict[str, Any]]) -> list[TopologyEdge]:
    """Return ``edges`` as typed records, preserving order."""
    return [e if isinstance(e, TopologyEdge) else TopologyEdge.from_dict(e) for e in edges]


def load_topology(path: Path) -> tuple[list[TopologyNode], list[TopologyEdge]]:
    """Load an editor topology from a JSON or YAML file.

    Args:
        path: File containing a mapping with ``nodes`` and ``edges`` lists.

    Returns:
        Tuple of (nodes, edges) in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the document is not a mapping or the sections are not lists.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Topology file not found: {path}")

    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yml", ".yaml"}:
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)

    if not isinstance(data, dict):
        raise ValueError(f"Topology file must contain a mapping: {path}")
    raw_nodes = data.get("nodes") or []
    raw_edges = data.get("edges") or []
    if not isinstance(raw_nodes, list) or not isinstance(raw_edges, list):
        raise ValueError("'nodes' and 'edges' must be lists")

    nodes = coerce_nodes(raw_nodes)
    edges = coerce_edges(raw_edges)
    logger.info(f"Loaded topology from {path}: {len(nodes)} nodes, {len(edges)} edges")
    return nodes, edges


def save_topology(
    nodes: Iterable[TopologyNode],
    edges: Iterable[TopologyEdge],
    path: Path,
    *,
    json_indent: int = 2,
) -> None:
    """Write a topology to ``path`` as JSON in the editor's shape."""
    doc = {
        "nodes": [n.to_dict() for n in nodes],
        "edges": [e.to_dict() for e in edges],
    }
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(doc, f, indent=json_indent)
    logger.info(f"Saved topology to {path}")
