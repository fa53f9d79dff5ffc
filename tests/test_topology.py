"""Tests for typed topology records and topology files."""

import json
from pathlib import Path

import pytest
import yaml

from rangegen.topology import (
    EdgeStatus,
    RouterPayload,
    TopologyEdge,
    TopologyNode,
    VlanPayload,
    VMDescriptor,
    load_topology,
    save_topology,
)


def test_vm_descriptor_from_editor_dict():
    vm = VMDescriptor.from_dict(
        {
            "id": "vm-1",
            "label": "Web (web01)",
            "vmName": "web",
            "ramGb": 4,
            "ipLastOctet": 12,
            "poweredOn": True,
            "roles": ["nginx"],
        }
    )

    assert (vm.id, vm.label, vm.vm_name, vm.ram_gb) == ("vm-1", "Web (web01)", "web", 4)
    assert vm.extras == {"ip_last_octet": 12, "roles": ["nginx"]}


def test_vm_descriptor_to_dict_is_camel_case():
    vm = VMDescriptor(
        id="a",
        label="A",
        ram_gb=2,
        extras={"ip_last_octet": 10, "testing": {"block_internet": True}},
    )

    assert vm.to_dict() == {
        "id": "a",
        "label": "A",
        "ramGb": 2,
        "ipLastOctet": 10,
        "testing": {"blockInternet": True},
    }


def test_node_payloads_are_coerced_by_kind():
    vlan = TopologyNode.from_dict({"id": "vlan10", "type": "vlan", "data": {"vms": [{"id": "a"}]}})
    router = TopologyNode.from_dict({"id": "r", "type": "router", "data": {"ramGb": 3}})
    other = TopologyNode.from_dict({"id": "n", "type": "note", "data": {"text": "x"}})

    assert isinstance(vlan.payload, VlanPayload)
    assert isinstance(vlan.payload.vms[0], VMDescriptor)
    assert isinstance(router.payload, RouterPayload)
    assert router.payload.ram_gb == 3
    assert other.payload == {"text": "x"}


def test_edge_from_dict():
    edge = TopologyEdge.from_dict(
        {
            "id": "e",
            "source": "a",
            "target": "b",
            "data": {"label": "L", "status": {"connectionType": "drop", "extra": 1}},
        }
    )

    assert edge.kind == "custom"
    assert edge.label == "L"
    assert edge.status == EdgeStatus(connection_type="drop", extras={"extra": 1})


def test_load_topology_json_and_yaml(tmp_path, editor_nodes, editor_edges):
    doc = {"nodes": editor_nodes, "edges": editor_edges}
    json_path = tmp_path / "t.json"
    json_path.write_text(json.dumps(doc))
    yaml_path = tmp_path / "t.yml"
    yaml_path.write_text(yaml.safe_dump(doc))

    from_json = load_topology(json_path)
    from_yaml = load_topology(yaml_path)

    assert [n.id for n in from_json[0]] == ["router", "vlan10", "vlan20", "vlan1000"]
    assert len(from_json[1]) == 4
    assert from_json == from_yaml


def test_load_topology_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_topology(tmp_path / "missing.json")

    not_mapping = tmp_path / "list.json"
    not_mapping.write_text("[]")
    with pytest.raises(ValueError, match="mapping"):
        load_topology(not_mapping)

    bad_sections = tmp_path / "bad.json"
    bad_sections.write_text('{"nodes": {}}')
    with pytest.raises(ValueError, match="lists"):
        load_topology(bad_sections)


def test_save_and_load_round_trip(tmp_path: Path, editor_nodes, editor_edges):
    nodes = [TopologyNode.from_dict(n) for n in editor_nodes]
    edges = [TopologyEdge.from_dict(e) for e in editor_edges]
    path = tmp_path / "out" / "topology.json"

    save_topology(nodes, edges, path)
    loaded_nodes, loaded_edges = load_topology(path)

    assert loaded_nodes == nodes
    assert loaded_edges == edges
