"""VM entry compilation.

Turns the VM descriptors of every compiled VLAN into ``ludus`` entries:
resolves names, fills in defaults for VMs without a template, assigns free IP
octets per VLAN and keeps exactly one OS flag.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, Iterable

from rangegen.constants import (
    EDITOR_ONLY_VM_FIELDS,
    SNAKE_CASED_SUBSECTIONS,
    VM_FIELD_ALIASES,
)
from rangegen.log_config import get_logger
from rangegen.naming import hostname_from_label, keys_to_snake, rename_aliases
from rangegen.topology import VlanPayload, VMDescriptor

from .vlans import VlanMap

if TYPE_CHECKING:  # pragma: no cover - import-time types only
    from rangegen.config import GeneratorConfig
    from rangegen.topology import TopologyNode

logger = get_logger(__name__)

_OS_FLAGS = ("windows", "macOS", "linux")


def _has_flag(value: Any) -> bool:
    return value is not None and value is not False


def _pick_os_flag(flags: dict[str, Any], template_defaulted: bool) -> dict[str, Any]:
    """Return the single OS flag to emit.

    The configuration schema accepts exactly one of ``windows``, ``macOS`` and
    ``linux``; when several are set Windows wins over macOS, macOS over Linux.
    """
    windows = flags.get("windows")
    if _has_flag(windows):
        return {"windows": windows if isinstance(windows, dict) else {}}
    if _has_flag(flags.get("macOS")):
        return {"macOS": True}
    linux = flags.get("linux")
    if _has_flag(linux):
        return {"linux": linux}
    if template_defaulted:
        return {"linux": True}
    return {}


def _ip_registry(vms: Iterable[VMDescriptor], first_octet: int) -> set[int]:
    """Return the explicitly assigned octets of a VLAN that automatic allocation must skip."""
    used: set[int] = set()
    for vm in vms:
        extras = rename_aliases(vm.extras, VM_FIELD_ALIASES)
        octet = extras.get("ip_last_octet")
        if isinstance(octet, int) and not isinstance(octet, bool) and octet >= first_octet:
            used.add(octet)
    return used


def next_free_octet(used: set[int], first_octet: int, last_octet: int) -> int:
    """Return the lowest octet from ``first_octet`` not in ``used``.

    Allocation does not climb past ``last_octet``; when the range is full the
    last octet is returned and a warning is logged.
    """
    candidate = first_octet
    while candidate in used and candidate < last_octet:
        candidate += 1
    if candidate in used:
        logger.warning(
            f"IP allocation reached upper limit {last_octet} ({len(used)} octets in use)"
        )
    return candidate


def compile_vm(
    vm: VMDescriptor,
    vlan_number: int,
    used_ips: set[int],
    settings: "GeneratorConfig",
) -> dict[str, Any]:
    """Compile one VM descriptor into a ``ludus`` entry.

    Args:
        vm: VM descriptor from a VLAN node.
        vlan_number: Resolved VLAN number of the containing node.
        used_ips: Octets already taken in this VLAN; updated with the octet
            assigned to this VM.
        settings: Generator configuration.

    Returns:
        The compiled entry. Input objects are not modified.
    """
    vm_defaults = settings.vm_defaults
    extras = copy.deepcopy(rename_aliases(vm.extras, VM_FIELD_ALIASES))
    for key in list(extras):
        if key in EDITOR_ONLY_VM_FIELDS or key == "vlan":
            extras.pop(key)
    for key in SNAKE_CASED_SUBSECTIONS:
        if isinstance(extras.get(key), dict):
            extras[key] = keys_to_snake(extras[key])

    template_defaulted = not vm.template
    if template_defaulted:
        template = vm_defaults.template
        ram_gb = vm.ram_gb if vm.ram_gb is not None else vm_defaults.ram_gb
        cpus = vm.cpus if vm.cpus is not None else vm_defaults.cpus
    else:
        template = vm.template
        ram_gb = vm.ram_gb
        cpus = vm.cpus

    vm_name = vm.vm_name or vm.label or f"{{{{ range_id }}}}-{vm.id}"

    octet = extras.pop("ip_last_octet", None)
    if octet is None or octet == "" or octet == 0:
        octet = next_free_octet(
            used_ips, vm_defaults.first_ip_octet, vm_defaults.last_ip_octet
        )
        logger.debug(f"Assigned IP octet {octet} to VM {vm.id} in VLAN {vlan_number}")
    if isinstance(octet, int) and not isinstance(octet, bool):
        used_ips.add(octet)

    hostname = (
        extras.pop("hostname", None)
        or vm.vm_name
        or hostname_from_label(vm.label)
        or f"{{{{ range_id }}}}-vm-{vlan_number}-{octet}"
    )

    flags = {name: extras.pop(name) for name in _OS_FLAGS if name in extras}

    entry: dict[str, Any] = {
        "vm_name": vm_name,
        "hostname": hostname,
        "template": template,
        "vlan": vlan_number,
        "ip_last_octet": octet,
    }
    if ram_gb is not None:
        entry["ram_gb"] = ram_gb
    if cpus is not None:
        entry["cpus"] = cpus
    entry.update(_pick_os_flag(flags, template_defaulted))
    entry.update(extras)
    return entry


def compile_vms(
    vlan_nodes: Iterable["TopologyNode"],
    vlan_map: VlanMap,
    settings: "GeneratorConfig",
) -> list[dict[str, Any]]:
    """Build the ``ludus`` list.

    VLANs are visited in node-list order and VMs in list order. Special VLANs
    contribute nothing.
    """
    entries: list[dict[str, Any]] = []
    first_octet = settings.vm_defaults.first_ip_octet
    seen: set[str] = set()
    for node in vlan_nodes:
        if node.id in seen:
            continue
        seen.add(node.id)
        vlan_number = vlan_map.resolve(node.id)
        if vlan_number is None:
            logger.debug(f"Skipping special VLAN node {node.id}")
            continue
        payload = node.payload
        if not isinstance(payload, VlanPayload) or not payload.vms:
            continue
        used_ips = _ip_registry(payload.vms, first_octet)
        for vm in payload.vms:
            entries.append(compile_vm(vm, vlan_number, used_ips, settings))
    return entries
