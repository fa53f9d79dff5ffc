"""Tests for compiling editor topologies into range configurations."""

from __future__ import annotations

import copy

from rangegen.config import GeneratorConfig, RouterDefaultsConfig
from rangegen.constants import BASELINE_RANGE_DEFAULTS
from rangegen.range_builder import (
    build_range_yaml,
    compile_range_config,
    parse_range_config,
    serialize_range_config,
)
from rangegen.topology import TopologyEdge, TopologyNode

DEFAULT_ROUTER = {
    "vm_name": "{{ range_id }}-router",
    "hostname": "{{ range_id }}-router",
    "template": "debian-11-x64-server-template",
    "ram_gb": 2,
    "cpus": 2,
}


def _vlan(node_id: str, *vms: dict) -> dict:
    return {"id": node_id, "type": "vlan", "data": {"label": node_id, "vms": list(vms)}}


def test_empty_topology_yields_complete_default_config():
    config = compile_range_config([], [])

    assert list(config) == ["ludus", "router", "network", "defaults"]
    assert config["ludus"] == []
    assert config["router"] == DEFAULT_ROUTER
    assert config["network"] == {
        "inter_vlan_default": "REJECT",
        "external_default": "ACCEPT",
        "rules": [],
    }
    assert config["defaults"] == BASELINE_RANGE_DEFAULTS
    assert config["defaults"]["stale_hours"] == 0
    assert config["defaults"]["snapshot_with_RAM"] is True
    assert config["defaults"]["enable_dynamic_wallpaper"] is True


def test_full_topology(editor_nodes, editor_edges):
    config = compile_range_config(editor_nodes, editor_edges)

    assert [vm["vm_name"] for vm in config["ludus"]] == [
        "{{ range_id }}-dc01",
        "Web (web01)",
        "kali",
    ]
    dc, web, kali = config["ludus"]
    assert dc == {
        "vm_name": "{{ range_id }}-dc01",
        "hostname": "dc01",
        "template": "win2022-server-x64-template",
        "vlan": 10,
        "ip_last_octet": 11,
        "ram_gb": 8,
        "cpus": 4,
        "windows": {"sysprep": True},
        "domain": {"fqdn": "lab.local", "role": "primary-dc"},
    }
    assert list(web) == [
        "vm_name",
        "hostname",
        "template",
        "vlan",
        "ip_last_octet",
        "ram_gb",
        "cpus",
        "linux",
    ]
    assert web["hostname"] == "web01"
    assert web["ip_last_octet"] == 10
    assert kali["vlan"] == 20

    assert config["router"] == DEFAULT_ROUTER
    assert config["network"]["rules"] == [
        {
            "name": "Attacker to DC",
            "vlan_src": 20,
            "vlan_dst": 10,
            "protocol": "tcp",
            "ports": "445",
            "action": "ACCEPT",
            "ip_last_octet_dst": 11,
        },
        {
            "name": "VLAN public to VLAN 20",
            "vlan_src": "public",
            "vlan_dst": 20,
            "protocol": "all",
            "ports": "all",
            "action": "REJECT",
        },
        {
            "name": "Outbound",
            "vlan_src": 10,
            "vlan_dst": "public",
            "protocol": "all",
            "ports": "all",
            "action": "DROP",
        },
    ]


def test_special_vlan_vms_and_rules_are_excluded(editor_nodes, editor_edges):
    config = compile_range_config(editor_nodes, editor_edges)

    assert "stray" not in {vm["vm_name"] for vm in config["ludus"]}
    assert all(vm["vlan"] < 999 for vm in config["ludus"])
    for rule in config["network"]["rules"]:
        assert rule["vlan_src"] != 1000 and rule["vlan_dst"] != 1000


def test_special_vlan_does_not_shift_other_vlans():
    nodes = [
        _vlan("vlan999", {"id": "a", "vmName": "hidden"}),
        _vlan("vlan10", {"id": "b", "vmName": "visible"}),
    ]
    config = compile_range_config(nodes, [])

    assert config["ludus"] == [
        {
            "vm_name": "visible",
            "hostname": "visible",
            "template": "debian-12-x64-server-template",
            "vlan": 10,
            "ip_last_octet": 10,
            "ram_gb": 4,
            "cpus": 2,
            "linux": True,
        }
    ]


def test_vlan_below_threshold_is_remapped():
    nodes = [_vlan("vlan1", {"id": "a", "vmName": "a"}, {"id": "b", "vmName": "b"})]
    config = compile_range_config(nodes, [])

    assert [vm["vlan"] for vm in config["ludus"]] == [10, 10]


def test_remap_skips_numbers_in_use_and_applies_to_rules():
    nodes = [
        _vlan("vlan1", {"id": "a", "vmName": "a"}),
        _vlan("vlan10", {"id": "b", "vmName": "b"}),
    ]
    edges = [{"id": "e", "source": "vlan1", "target": "vlan10", "type": "custom"}]
    config = compile_range_config(nodes, edges)

    assert [vm["vlan"] for vm in config["ludus"]] == [11, 10]
    rule = config["network"]["rules"][0]
    assert (rule["vlan_src"], rule["vlan_dst"]) == (11, 10)


def test_router_fallback_without_router_node():
    config = compile_range_config([_vlan("vlan10")], [])
    router = config["router"]

    assert router["vm_name"] == router["hostname"] == "{{ range_id }}-router"
    assert router["template"] == "debian-11-x64-server-template"
    assert router["cpus"] == 2
    assert router["ram_gb"] == 2


def test_first_router_wins():
    nodes = [
        {"id": "r1", "type": "router", "data": {"template": "first-template"}},
        {"id": "r2", "type": "router", "data": {"template": "second-template", "cpus": 8}},
    ]
    config = compile_range_config(nodes, [])

    assert config["router"]["template"] == "first-template"
    assert config["router"]["cpus"] == 2


def test_router_vlan_rule_directionality():
    nodes = [
        {"id": "router", "type": "router", "data": {}},
        _vlan("vlan10"),
    ]
    edges = [
        {"id": "out", "source": "router", "target": "vlan10", "type": "custom"},
        {"id": "in", "source": "vlan10", "target": "router", "type": "custom"},
    ]
    rules = compile_range_config(nodes, edges)["network"]["rules"]

    assert (rules[0]["vlan_src"], rules[0]["vlan_dst"]) == ("public", 10)
    assert (rules[1]["vlan_src"], rules[1]["vlan_dst"]) == (10, "public")


def test_defaults_merge_precedence(existing_config):
    preserved = compile_range_config([], [], existing_config)
    assert preserved["defaults"]["stale_hours"] == 24
    assert preserved["defaults"]["timezone"] == "Europe/Berlin"

    overridden = compile_range_config([], [], existing_config, {"stale_hours": 48})
    assert overridden["defaults"]["stale_hours"] == 48
    assert overridden["defaults"]["timezone"] == "Europe/Berlin"
    assert overridden["defaults"]["ad_domain_admin"] == "admin"
    assert existing_config["defaults"]["stale_hours"] == 24


def test_existing_network_and_preserved_sections(existing_config, editor_nodes):
    config = compile_range_config(editor_nodes, [], existing_config)

    # Router payload wins over the saved network block
    assert config["network"]["inter_vlan_default"] == "REJECT"
    assert config["network"]["wireguard_vlan_default"] == "DROP"
    assert config["network"]["always_blocked_networks"] == ["192.168.1.0/24"]
    assert config["network"]["rules"] == []
    assert list(config)[4:] == ["global_role_vars", "notify"]
    assert config["global_role_vars"] == {"ntp_server": "pool.ntp.org"}
    assert config["router"]["vm_name"] == "{{ range_id }}-router"


def test_template_defaults_inference():
    nodes = [
        _vlan(
            "vlan10",
            {"id": "bare", "vmName": "bare"},
            {
                "id": "explicit",
                "vmName": "explicit",
                "template": "win11-22h2-x64-enterprise-template",
                "ramGb": 16,
                "cpus": 6,
            },
        )
    ]
    bare, explicit = compile_range_config(nodes, [])["ludus"]

    assert bare["template"] == "debian-12-x64-server-template"
    assert (bare["ram_gb"], bare["cpus"]) == (4, 2)
    assert bare["linux"] is True
    assert explicit["template"] == "win11-22h2-x64-enterprise-template"
    assert (explicit["ram_gb"], explicit["cpus"]) == (16, 6)
    assert "linux" not in explicit


def test_explicit_template_without_resources_leaves_them_unset():
    nodes = [_vlan("vlan10", {"id": "a", "vmName": "a", "template": "custom-template"})]
    (vm,) = compile_range_config(nodes, [])["ludus"]

    assert "ram_gb" not in vm
    assert "cpus" not in vm


def test_inputs_are_not_mutated(editor_nodes, editor_edges, existing_config):
    before = copy.deepcopy((editor_nodes, editor_edges, existing_config))
    compile_range_config(editor_nodes, editor_edges, existing_config, {"stale_hours": 1})

    assert (editor_nodes, editor_edges, existing_config) == before


def test_compilation_is_deterministic(editor_nodes, editor_edges):
    first = build_range_yaml(editor_nodes, editor_edges)
    second = build_range_yaml(editor_nodes, editor_edges)

    assert first == second


def test_serialization_round_trip(editor_nodes, editor_edges, existing_config):
    config = compile_range_config(editor_nodes, editor_edges, existing_config)

    assert parse_range_config(serialize_range_config(config)) == config


def test_typed_records_are_accepted(editor_nodes, editor_edges):
    nodes = [TopologyNode.from_dict(n) for n in editor_nodes]
    edges = [TopologyEdge.from_dict(e) for e in editor_edges]

    assert compile_range_config(nodes, edges) == compile_range_config(
        editor_nodes, editor_edges
    )


def test_kind_and_payload_aliases():
    nodes = [{"id": "vlan12", "kind": "vlan", "payload": {"vms": [{"id": "a", "vmName": "a"}]}}]
    (vm,) = compile_range_config(nodes, [])["ludus"]

    assert vm["vlan"] == 12


def test_editor_only_nodes_are_ignored():
    nodes = [
        {"id": "note1", "type": "note", "data": {"text": "hello"}},
        _vlan("vlan10", {"id": "a", "vmName": "a"}),
    ]
    config = compile_range_config(nodes, [])

    assert len(config["ludus"]) == 1


def test_settings_control_router_fallbacks():
    settings = GeneratorConfig(
        router_defaults=RouterDefaultsConfig(vm_name="gw", template="router-template")
    )
    router = compile_range_config([], [], settings=settings)["router"]

    assert router["vm_name"] == "gw"
    assert router["template"] == "router-template"
    assert router["hostname"] == "{{ range_id }}-router"
