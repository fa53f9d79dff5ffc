"""Pytest configuration and shared fixtures for rangegen tests."""

import json

import pytest


@pytest.fixture
def editor_nodes():
    """Editor topology nodes: a router, two VLANs and one special VLAN."""
    return [
        {
            "id": "router",
            "type": "router",
            "data": {"label": "Router", "interVlanDefault": "REJECT"},
        },
        {
            "id": "vlan10",
            "type": "vlan",
            "data": {
                "label": "VLAN 10",
                "vms": [
                    {
                        "id": "vm-dc",
                        "label": "DC (dc01)",
                        "vmName": "{{ range_id }}-dc01",
                        "hostname": "dc01",
                        "template": "win2022-server-x64-template",
                        "ramGb": 8,
                        "cpus": 4,
                        "ipLastOctet": 11,
                        "windows": {"sysprep": True},
                        "domain": {"fqdn": "lab.local", "role": "primary-dc"},
                        "isDeployed": True,
                        "poweredOn": True,
                    },
                    {"id": "vm-web", "label": "Web (web01)"},
                ],
            },
        },
        {
            "id": "vlan20",
            "type": "vlan",
            "data": {
                "label": "VLAN 20",
                "vms": [
                    {
                        "id": "vm-kali",
                        "label": "Kali",
                        "vmName": "kali",
                        "template": "kali-x64-desktop-template",
                        "ramGb": 8,
                        "cpus": 4,
                        "ipLastOctet": 10,
                        "linux": True,
                    }
                ],
            },
        },
        {
            "id": "vlan1000",
            "type": "vlan",
            "data": {
                "label": "Unmatched VMs",
                "vms": [{"id": "stray", "label": "Stray VM", "vmName": "stray"}],
            },
        },
    ]


@pytest.fixture
def editor_edges():
    """Rule edges: VLAN to VLAN, router to VLAN, VLAN to router, special VLAN."""
    return [
        {
            "id": "e1",
            "source": "vlan20",
            "target": "vlan10",
            "type": "custom",
            "data": {
                "status": {
                    "connectionType": "accept",
                    "name": "Attacker to DC",
                    "protocol": "tcp",
                    "ports": "445",
                    "ip_last_octet_dst": 11,
                }
            },
        },
        {
            "id": "e2",
            "source": "router",
            "target": "vlan20",
            "type": "custom",
            "data": {"status": {"connectionType": "deny"}},
        },
        {
            "id": "e3",
            "source": "vlan10",
            "target": "router",
            "type": "custom",
            "data": {"status": {"connectionType": "drop", "name": "Outbound"}},
        },
        {
            "id": "e4",
            "source": "vlan20",
            "target": "vlan1000",
            "type": "custom",
            "data": {"status": {"connectionType": "accept"}},
        },
    ]


@pytest.fixture
def existing_config():
    """A previously saved configuration with non-default values."""
    return {
        "ludus": [],
        "router": {"vm_name": "old-router"},
        "network": {
            "inter_vlan_default": "ACCEPT",
            "wireguard_vlan_default": "DROP",
            "always_blocked_networks": ["192.168.1.0/24"],
            "rules": [{"name": "stale"}],
        },
        "defaults": {
            "stale_hours": 24,
            "timezone": "Europe/Berlin",
            "ad_domain_admin": "admin",
        },
        "global_role_vars": {"ntp_server": "pool.ntp.org"},
        "notify": {"urls": ["https://hooks.example.com/range"]},
    }


@pytest.fixture
def topology_file(tmp_path, editor_nodes, editor_edges):
    """Write the editor topology to a JSON file and return its path."""
    path = tmp_path / "lab.json"
    path.write_text(json.dumps({"nodes": editor_nodes, "edges": editor_edges}))
    return path
