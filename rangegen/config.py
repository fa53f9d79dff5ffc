"""Configuration management for the range configuration generator."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from rangegen import constants as C
from rangegen.log_config import get_logger

logger = get_logger(__name__)


@dataclass
class VmDefaultsConfig:
    """Defaults applied to VMs that do not name a template.

    Resources are only filled in when the template itself was defaulted.
    """

    template: str = C.DEFAULT_VM_TEMPLATE
    ram_gb: int = C.DEFAULT_VM_RAM_GB
    cpus: int = C.DEFAULT_VM_CPUS
    first_ip_octet: int = C.FIRST_HOST_OCTET  # First automatically assigned octet
    last_ip_octet: int = C.LAST_HOST_OCTET  # Allocation stops climbing here


@dataclass
class RouterDefaultsConfig:
    """Fallback values for the range router entry."""

    vm_name: str = C.RANGE_ROUTER_NAME
    hostname: str = C.RANGE_ROUTER_NAME
    template: str = C.DEFAULT_ROUTER_TEMPLATE
    ram_gb: int = C.DEFAULT_ROUTER_RAM_GB
    cpus: int = C.DEFAULT_ROUTER_CPUS


@dataclass
class NetworkDefaultsConfig:
    """Default firewall policies when neither the router nor a saved config sets them."""

    inter_vlan_default: str = C.DEFAULT_INTER_VLAN_POLICY
    external_default: str = C.DEFAULT_EXTERNAL_POLICY


@dataclass
class VlanPolicyConfig:
    """VLAN numbering thresholds.

    Numbers at or above ``special_threshold`` belong to editor-internal VLANs
    and are never compiled. Numbers below ``min_vlan`` are remapped.
    """

    min_vlan: int = C.MIN_VLAN
    special_threshold: int = C.SPECIAL_VLAN_THRESHOLD


@dataclass
class FormattingConfig:
    """Output formatting for serialized configurations and topologies."""

    schema_comment: str = C.SCHEMA_COMMENT  # Emitted as the first line
    yaml_anchors: bool = False  # Emit YAML anchors/aliases for shared objects
    json_indent: int = 2  # JSON output indentation for topology files


@dataclass
class OutputConfig:
    """Output configuration."""

    formatting: FormattingConfig = field(default_factory=FormattingConfig)


@dataclass
class GeneratorConfig:
    """Complete generator configuration.

    Every section defaults to the compiler's constants, so ``GeneratorConfig()``
    reproduces the built-in behavior exactly.
    """

    vm_defaults: VmDefaultsConfig = field(default_factory=VmDefaultsConfig)
    router_defaults: RouterDefaultsConfig = field(default_factory=RouterDefaultsConfig)
    network_defaults: NetworkDefaultsConfig = field(
        default_factory=NetworkDefaultsConfig
    )
    vlans: VlanPolicyConfig = field(default_factory=VlanPolicyConfig)
    # Baseline ``defaults`` block used when no previous configuration exists
    range_defaults: dict[str, Any] = field(
        default_factory=lambda: copy.deepcopy(C.BASELINE_RANGE_DEFAULTS)
    )
    output: OutputConfig = field(default_factory=OutputConfig)
    _source_path: Path | None = None

    @classmethod
    def from_yaml(cls, config_path: Path) -> GeneratorConfig:
        """Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file.

        Returns:
            Parsed configuration object.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            yaml.YAMLError: If YAML is invalid.
            ValueError: If configuration is invalid.
        """
        logger.info(f"Loading configuration from: {config_path}")

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, "r") as f:
                raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in configuration: {e}")
            raise

        cfg = cls._from_dict(raw_config or {})
        cfg._source_path = Path(config_path)
        return cfg

    @classmethod
    def _from_dict(cls, config_dict: dict[str, Any]) -> GeneratorConfig:
        """Create configuration from dictionary.

        All sections are optional; unknown sections or keys are rejected.

        Args:
            config_dict: Raw configuration dictionary.

        Returns:
            Parsed configuration object.
        """
        if not isinstance(config_dict, dict):
            raise ValueError("Configuration must be a mapping")

        allowed_sections = {
            "vm_defaults",
            "router_defaults",
            "network_defaults",
            "vlans",
            "range_defaults",
            "output",
        }
        extra = set(config_dict.keys()) - allowed_sections
        if extra:
            raise ValueError(
                f"Unknown configuration sections: {sorted(extra)}. Allowed: {sorted(allowed_sections)}"
            )

        def _section(name: str) -> dict[str, Any]:
            value = config_dict.get(name, {})
            if value is None:
                return {}
            if not isinstance(value, dict):
                raise ValueError(f"'{name}' configuration section must be a dictionary")
            return value

        def _build(name: str, klass: type, data: dict[str, Any]) -> Any:
            allowed = set(klass.__dataclass_fields__)
            unknown = set(data.keys()) - allowed
            if unknown:
                raise ValueError(
                    f"Unknown keys in '{name}': {sorted(unknown)}. Allowed keys: {sorted(allowed)}"
                )
            return klass(**data)

        vm_defaults = _build("vm_defaults", VmDefaultsConfig, _section("vm_defaults"))
        router_defaults = _build(
            "router_defaults", RouterDefaultsConfig, _section("router_defaults")
        )
        network_defaults = _build(
            "network_defaults", NetworkDefaultsConfig, _section("network_defaults")
        )
        vlans = _build("vlans", VlanPolicyConfig, _section("vlans"))

        # range_defaults overlays the baseline rather than replacing it
        range_defaults = copy.deepcopy(C.BASELINE_RANGE_DEFAULTS)
        range_defaults.update(_section("range_defaults"))

        output_dict = _section("output")
        unknown_output = set(output_dict.keys()) - {"formatting"}
        if unknown_output:
            raise ValueError(
                f"Unknown keys in 'output': {sorted(unknown_output)}. Allowed keys: ['formatting']"
            )
        formatting_dict = output_dict.get("formatting") or {}
        if not isinstance(formatting_dict, dict):
            raise ValueError("'output.formatting' must be a dictionary")
        formatting = _build("output.formatting", FormattingConfig, formatting_dict)

        cfg = cls(
            vm_defaults=vm_defaults,
            router_defaults=router_defaults,
            network_defaults=network_defaults,
            vlans=vlans,
            range_defaults=range_defaults,
            output=OutputConfig(formatting=formatting),
        )
        cfg.validate()
        return cfg

    def validate(self) -> None:
        """Validate configuration parameters.

        Raises:
            ValueError: If configuration is invalid.
        """
        logger.info("Validating configuration")

        if not 2 <= self.vlans.min_vlan < self.vlans.special_threshold:
            raise ValueError(
                "vlans.min_vlan must be at least 2 and below vlans.special_threshold"
            )
        if not 1 <= self.vm_defaults.first_ip_octet <= self.vm_defaults.last_ip_octet <= 255:
            raise ValueError(
                "vm_defaults.first_ip_octet/last_ip_octet must satisfy 1 <= first <= last <= 255"
            )
        for name in ("inter_vlan_default", "external_default"):
            value = str(getattr(self.network_defaults, name)).upper()
            if value not in C.RULE_ACTIONS:
                raise ValueError(
                    f"network_defaults.{name} must be one of {list(C.RULE_ACTIONS)}"
                )
        for name in ("ram_gb", "cpus"):
            if int(getattr(self.vm_defaults, name)) <= 0:
                raise ValueError(f"vm_defaults.{name} must be positive")
            if int(getattr(self.router_defaults, name)) <= 0:
                raise ValueError(f"router_defaults.{name} must be positive")
        for name in ("ad_domain_functional_level", "ad_forest_functional_level"):
            level = self.range_defaults.get(name)
            if level is not None and level not in C.FUNCTIONAL_LEVELS:
                raise ValueError(
                    f"range_defaults.{name} must be one of {list(C.FUNCTIONAL_LEVELS)}"
                )

        logger.info("Configuration validation passed")

    def summary(self) -> str:
        """Generate configuration summary string.

        Returns:
            Human-readable configuration summary.
        """
        lines = [
            "RANGE GENERATOR CONFIGURATION",
            "=" * 60,
            "",
            "VM DEFAULTS",
            "-" * 30,
            f"   Template: {self.vm_defaults.template}",
            f"   RAM: {self.vm_defaults.ram_gb}GB",
            f"   CPUs: {self.vm_defaults.cpus}",
            f"   IP Octets: {self.vm_defaults.first_ip_octet}-{self.vm_defaults.last_ip_octet}",
            "",
            "ROUTER DEFAULTS",
            "-" * 30,
            f"   Name: {self.router_defaults.vm_name}",
            f"   Template: {self.router_defaults.template}",
            f"   RAM: {self.router_defaults.ram_gb}GB",
            f"   CPUs: {self.router_defaults.cpus}",
            "",
            "NETWORK",
            "-" * 30,
            f"   Inter-VLAN Default: {self.network_defaults.inter_vlan_default}",
            f"   External Default: {self.network_defaults.external_default}",
            f"   VLAN Range: {self.vlans.min_vlan}-{self.vlans.special_threshold - 1}",
            "",
            "=" * 60,
        ]

        return "\n".join(lines)
