"""Range configuration from the "create range" wizard form.

The wizard offers three creation methods:

* ``template``: one VM per selected template.
* ``import``: a single Linux VM for an imported template.
* ``scratch``: a grid of Linux VMs, a number of VLANs with a number of VMs each.

Optional firewall rules from the form become ``network.rules``.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any

from rangegen.compiler.emit import serialize_range_config
from rangegen.compiler.router import compile_router
from rangegen.config import GeneratorConfig
from rangegen.constants import (
    RULE_KEYWORD_ENDPOINTS,
    RULE_PROTOCOLS,
)
from rangegen.log_config import get_logger
from rangegen.naming import template_slug

logger = get_logger(__name__)

CREATION_METHODS = ("template", "import", "scratch")

# Templates per VLAN before the wizard opens the next VLAN
TEMPLATES_PER_VLAN = 5
WINDOWS_RAM_GB = 8
WINDOWS_CPUS = 4


@dataclass
class WizardForm:
    """Values collected by the create-range wizard."""

    creation_method: str = "scratch"
    selected_templates: list[str] = field(default_factory=list)
    imported_template: str | None = None
    number_of_vlans: int = 0
    same_vms_per_vlan: bool = True
    vms_per_vlan: int = 1
    vlan_vms: dict[int, int] = field(default_factory=dict)
    firewall_rules: list[dict[str, Any]] | str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WizardForm:
        """Create a form from a mapping in either camelCase or snake_case."""
        aliases = {
            "creationMethod": "creation_method",
            "selectedTemplates": "selected_templates",
            "importedTemplate": "imported_template",
            "numberOfVLANs": "number_of_vlans",
            "numberOfVlans": "number_of_vlans",
            "sameVMsPerVLAN": "same_vms_per_vlan",
            "vmsPerVLAN": "vms_per_vlan",
            "vlanVMs": "vlan_vms",
            "firewallRules": "firewall_rules",
        }
        raw: dict[str, Any] = {}
        for key, value in data.items():
            raw[aliases.get(key, key)] = value

        allowed = set(cls.__dataclass_fields__)
        unknown = set(raw) - allowed
        if unknown:
            raise ValueError(
                f"Unknown wizard form fields: {sorted(unknown)}. Allowed: {sorted(allowed)}"
            )
        method = raw.get("creation_method", "scratch")
        if method not in CREATION_METHODS:
            raise ValueError(
                f"creation_method must be one of {list(CREATION_METHODS)}, got {method!r}"
            )
        vlan_vms = raw.get("vlan_vms") or {}
        raw["vlan_vms"] = {int(k): int(v) for k, v in vlan_vms.items()}
        raw["selected_templates"] = list(raw.get("selected_templates") or [])
        return cls(**raw)


def _is_windows_template(template: str) -> bool:
    return "win" in template.lower()


def _template_vms(templates: list[str]) -> list[dict[str, Any]]:
    vms: list[dict[str, Any]] = []
    ip_counter = 10
    vlan_counter = 10
    for index, template in enumerate(templates):
        slug = template_slug(template)
        windows = _is_windows_template(template)
        vm: dict[str, Any] = {
            "vm_name": f"{{{{ range_id }}}}-{slug}-{index + 1}",
            "hostname": f"{{{{ range_id }}}}-{slug[:10]}-{index + 1}",
            "template": template,
            "vlan": vlan_counter,
            "ip_last_octet": ip_counter,
            "ram_gb": WINDOWS_RAM_GB if windows else 4,
            "cpus": WINDOWS_CPUS if windows else 2,
        }
        if windows:
            vm["windows"] = {"sysprep": False}
        else:
            vm["linux"] = True
        vms.append(vm)
        ip_counter += 1

        if index > 0 and index % TEMPLATES_PER_VLAN == 0:
            vlan_counter += 1
            ip_counter = 10
    return vms


def _imported_vm(settings: GeneratorConfig) -> dict[str, Any]:
    return {
        "vm_name": "{{ range_id }}-imported-vm",
        "hostname": "{{ range_id }}-imported",
        "template": settings.vm_defaults.template,
        "vlan": 10,
        "ip_last_octet": 10,
        "ram_gb": settings.vm_defaults.ram_gb,
        "cpus": settings.vm_defaults.cpus,
        "linux": True,
    }


def _scratch_vms(form: WizardForm, settings: GeneratorConfig) -> list[dict[str, Any]]:
    vms: list[dict[str, Any]] = []
    ip_counter = 10
    for vlan in range(10, 10 + max(form.number_of_vlans, 0)):
        if form.same_vms_per_vlan:
            count = form.vms_per_vlan or 1
        else:
            count = form.vlan_vms.get(vlan) or 1
        for vm_index in range(count):
            vms.append(
                {
                    "vm_name": f"{{{{ range_id }}}}-vm-{vlan}-{vm_index + 1}",
                    "hostname": f"{{{{ range_id }}}}-VM{vlan}-{vm_index + 1}",
                    "template": settings.vm_defaults.template,
                    "vlan": vlan,
                    "ip_last_octet": ip_counter,
                    "ram_gb": settings.vm_defaults.ram_gb,
                    "cpus": settings.vm_defaults.cpus,
                    "linux": True,
                }
            )
            ip_counter += 1
    return vms


def _rule_endpoint(value: Any) -> int | str:
    text = str(value).strip()
    if text in ("*", "all"):
        return "all"
    if text in RULE_KEYWORD_ENDPOINTS:
        return text
    try:
        return int(text, 10)
    except ValueError:
        return "all"


def parse_firewall_rules(
    rules: list[dict[str, Any]] | str | None,
) -> list[dict[str, Any]]:
    """Convert wizard firewall rules into configuration rules.

    Args:
        rules: A list of rule mappings (``name``, ``sourceVLAN``,
            ``destinationVLAN``, ``protocol``, ``ports``, ``action``) or the
            same list as JSON text.

    Returns:
        Configuration rules. Text that cannot be parsed yields an empty list.
    """
    if rules is None:
        return []
    if isinstance(rules, str):
        if not rules.strip():
            return []
        try:
            rules = json.loads(rules)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unparsable firewall rules: {e}")
            return []
    if not isinstance(rules, list):
        logger.warning("Ignoring firewall rules: expected a list")
        return []

    out: list[dict[str, Any]] = []
    for rule in rules:
        if not isinstance(rule, dict):
            logger.warning(f"Ignoring firewall rule that is not a mapping: {rule!r}")
            continue
        protocol = str(rule.get("protocol", "")).lower()
        ports = rule.get("ports", "all")
        out.append(
            {
                "name": rule.get("name", ""),
                "vlan_src": _rule_endpoint(
                    rule.get("sourceVLAN", rule.get("vlan_src", "all"))
                ),
                "vlan_dst": _rule_endpoint(
                    rule.get("destinationVLAN", rule.get("vlan_dst", "all"))
                ),
                "protocol": protocol if protocol in RULE_PROTOCOLS else "tcp",
                "ports": "all" if ports == "*" else ports,
                "action": str(rule.get("action", "ACCEPT")).upper(),
            }
        )
    return out


def build_wizard_config(
    form: WizardForm | dict[str, Any], *, settings: GeneratorConfig | None = None
) -> dict[str, Any]:
    """Build a range configuration from wizard input.

    Args:
        form: Wizard values, as a ``WizardForm`` or a mapping.
        settings: Generator configuration; ``GeneratorConfig()`` when omitted.

    Returns:
        Complete configuration with ``ludus``, ``router``, ``network`` and
        ``defaults`` sections.
    """
    cfg = settings or GeneratorConfig()
    if not isinstance(form, WizardForm):
        form = WizardForm.from_dict(form)
    logger.debug(
        f"Generating range configuration from wizard: method={form.creation_method}, "
        f"vlans={form.number_of_vlans}, templates={len(form.selected_templates)}"
    )

    if form.creation_method == "template":
        ludus = _template_vms(form.selected_templates)
    elif form.creation_method == "import" and form.imported_template:
        ludus = [_imported_vm(cfg)]
    elif form.creation_method == "scratch":
        ludus = _scratch_vms(form, cfg)
    else:
        ludus = []

    network: dict[str, Any] = {
        "inter_vlan_default": cfg.network_defaults.inter_vlan_default,
        "external_default": cfg.network_defaults.external_default,
        "rules": parse_firewall_rules(form.firewall_rules),
    }
    config = {
        "ludus": ludus,
        "router": compile_router(None, cfg.router_defaults),
        "network": network,
        "defaults": copy.deepcopy(cfg.range_defaults),
    }
    logger.info(
        f"Range configuration generated from wizard: {len(ludus)} VMs, "
        f"{len(network['rules'])} rules"
    )
    return config


def generate_wizard_yaml(
    form: WizardForm | dict[str, Any], *, settings: GeneratorConfig | None = None
) -> str:
    """Build a wizard configuration and render it as YAML text."""
    config = build_wizard_config(form, settings=settings)
    return serialize_range_config(config, settings=settings)
