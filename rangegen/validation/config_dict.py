"""Cross-entity checks on a parsed range configuration."""

from __future__ import annotations

from collections import Counter
from typing import Any

from rangegen.log_config import get_logger

logger = get_logger(__name__)


def validate_range_config_dict(data: dict[str, Any]) -> list[str]:
    """Validate a parsed range configuration and return issues.

    Args:
        data: Parsed range configuration.

    Returns:
        A list of human-readable issue strings. Empty when no issues found.
    """
    issues: list[str] = []
    if not isinstance(data, dict):
        return ["Range configuration must be a mapping"]

    ludus = data.get("ludus")
    if not isinstance(ludus, list):
        issues.append("Missing or invalid 'ludus' list")
        ludus = []
    vms = [vm for vm in ludus if isinstance(vm, dict)]
    if len(vms) != len(ludus):
        issues.append("ludus: every entry must be a mapping")

    names = Counter(vm.get("vm_name") for vm in vms if vm.get("vm_name"))
    for name, count in names.items():
        if count > 1:
            issues.append(f"Duplicate vm_name '{name}' ({count} VMs)")

    hostnames = Counter(vm.get("hostname") for vm in vms if vm.get("hostname"))
    for hostname, count in hostnames.items():
        if count > 1:
            issues.append(f"Duplicate hostname '{hostname}' ({count} VMs)")

    addresses = Counter(
        (vm.get("vlan"), vm.get("ip_last_octet"))
        for vm in vms
        if vm.get("vlan") is not None and vm.get("ip_last_octet") is not None
    )
    for (vlan, octet), count in addresses.items():
        if count > 1:
            issues.append(
                f"Duplicate address VLAN {vlan} / .{octet} ({count} VMs)"
            )

    if not isinstance(data.get("router"), dict):
        issues.append("Missing 'router' section")

    network = data.get("network")
    if network is not None and not isinstance(network, dict):
        issues.append("'network' must be a mapping")
        network = None
    for rule in (network or {}).get("rules") or []:
        if not isinstance(rule, dict):
            issues.append("network.rules: every rule must be a mapping")

    return issues
