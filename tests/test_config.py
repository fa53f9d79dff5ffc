"""Tests for configuration management."""

from pathlib import Path

import pytest
import yaml

from rangegen import constants as C
from rangegen.config import GeneratorConfig


def test_config_from_yaml(tmp_path: Path) -> None:
    """Test loading configuration from YAML file."""
    config_data = {
        "vm_defaults": {
            "template": "ubuntu-22.04-x64-server-template",
            "ram_gb": 2,
            "cpus": 1,
        },
        "router_defaults": {"template": "debian-12-x64-server-template"},
        "network_defaults": {"inter_vlan_default": "ACCEPT"},
        "vlans": {"min_vlan": 20},
        "range_defaults": {"stale_hours": 48},
        "output": {"formatting": {"json_indent": 4, "yaml_anchors": True}},
    }

    config_path = tmp_path / "test_config.yml"
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)

    config = GeneratorConfig.from_yaml(config_path)

    assert config.vm_defaults.template == "ubuntu-22.04-x64-server-template"
    assert config.vm_defaults.ram_gb == 2
    assert config.router_defaults.template == "debian-12-x64-server-template"
    assert config.router_defaults.vm_name == C.RANGE_ROUTER_NAME
    assert config.network_defaults.inter_vlan_default == "ACCEPT"
    assert config.vlans.min_vlan == 20
    assert config.output.formatting.json_indent == 4
    assert config.output.formatting.yaml_anchors is True
    assert config._source_path == config_path


def test_config_defaults() -> None:
    """Test default configuration values."""
    config = GeneratorConfig()

    assert config.vm_defaults.template == C.DEFAULT_VM_TEMPLATE
    assert config.vm_defaults.ram_gb == 4
    assert config.vm_defaults.cpus == 2
    assert config.router_defaults.vm_name == "{{ range_id }}-router"
    assert config.network_defaults.inter_vlan_default == "REJECT"
    assert config.vlans.min_vlan == 10
    assert config.vlans.special_threshold == 999
    assert config.range_defaults == C.BASELINE_RANGE_DEFAULTS
    assert config.output.formatting.schema_comment == C.SCHEMA_COMMENT
    assert config.output.formatting.yaml_anchors is False


def test_range_defaults_overlay_baseline() -> None:
    config = GeneratorConfig._from_dict({"range_defaults": {"stale_hours": 48}})

    assert config.range_defaults["stale_hours"] == 48
    for key in C.BASELINE_RANGE_DEFAULTS:
        assert key in config.range_defaults
    assert C.BASELINE_RANGE_DEFAULTS.get("stale_hours") != 48


def test_range_defaults_are_not_shared() -> None:
    a = GeneratorConfig()
    b = GeneratorConfig()
    a.range_defaults["marker"] = True

    assert "marker" not in b.range_defaults


def test_empty_file_gives_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yml"
    path.write_text("")

    config = GeneratorConfig.from_yaml(path)

    assert config.vm_defaults.template == C.DEFAULT_VM_TEMPLATE


def test_unknown_section_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown configuration sections"):
        GeneratorConfig._from_dict({"clustering": {}})


def test_unknown_key_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown keys in 'vm_defaults'"):
        GeneratorConfig._from_dict({"vm_defaults": {"disk_gb": 40}})

    with pytest.raises(ValueError, match="Unknown keys in 'output'"):
        GeneratorConfig._from_dict({"output": {"scenario_metadata": {}}})


def test_section_must_be_mapping() -> None:
    with pytest.raises(ValueError, match="must be a dictionary"):
        GeneratorConfig._from_dict({"vlans": [10, 20]})


@pytest.mark.parametrize(
    "data, message",
    [
        ({"vlans": {"min_vlan": 1}}, "min_vlan"),
        ({"vlans": {"min_vlan": 999}}, "min_vlan"),
        ({"vm_defaults": {"first_ip_octet": 200, "last_ip_octet": 100}}, "ip_octet"),
        ({"network_defaults": {"external_default": "ALLOW"}}, "external_default"),
        ({"vm_defaults": {"cpus": 0}}, "vm_defaults.cpus"),
        ({"router_defaults": {"ram_gb": 0}}, "router_defaults.ram_gb"),
        ({"range_defaults": {"ad_forest_functional_level": "Win2025"}}, "functional_level"),
    ],
)
def test_validate_rejects_bad_values(data, message) -> None:
    with pytest.raises(ValueError, match=message):
        GeneratorConfig._from_dict(data)


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        GeneratorConfig.from_yaml(tmp_path / "nope.yml")


def test_invalid_yaml_raises(tmp_path: Path) -> None:
    path = tmp_path / "bad.yml"
    path.write_text("vm_defaults: [unclosed\n")

    with pytest.raises(yaml.YAMLError):
        GeneratorConfig.from_yaml(path)


def test_summary_mentions_sections() -> None:
    text = GeneratorConfig().summary()

    assert "VM DEFAULTS" in text
    assert "ROUTER DEFAULTS" in text
    assert "Inter-VLAN Default: REJECT" in text
    assert "VLAN Range: 10-998" in text


def test_shipped_config_file_loads() -> None:
    """The sample settings file in the repository root stays loadable."""
    path = Path(__file__).resolve().parent.parent / "config.yml"

    config = GeneratorConfig.from_yaml(path)

    assert config.vlans.special_threshold == C.SPECIAL_VLAN_THRESHOLD
