"""Default values owned by the range configuration compiler.

Every literal the compiler falls back to lives here so that the router
fallback, the Linux resource defaults and the VLAN thresholds are defined
exactly once. ``rangegen.config.GeneratorConfig`` uses these as its
dataclass defaults.
"""

from __future__ import annotations

from typing import Any

SCHEMA_COMMENT = (
    "# yaml-language-server: $schema=https://docs.ludus.cloud/schemas/range-config.json"
)

# Node kinds understood by the compiler; every other kind is editor-only.
NODE_KIND_VLAN = "vlan"
NODE_KIND_ROUTER = "router"
EDGE_KIND_RULE = "custom"

# VLAN numbering
MIN_VLAN = 10
SPECIAL_VLAN_THRESHOLD = 999

# VM defaults, used for every VM without a template
DEFAULT_VM_TEMPLATE = "debian-12-x64-server-template"
DEFAULT_VM_RAM_GB = 4
DEFAULT_VM_CPUS = 2

# Per-VLAN IP octet allocation
FIRST_HOST_OCTET = 10
LAST_HOST_OCTET = 254

# Router defaults
RANGE_ROUTER_NAME = "{{ range_id }}-router"
DEFAULT_ROUTER_TEMPLATE = "debian-11-x64-server-template"
DEFAULT_ROUTER_RAM_GB = 2
DEFAULT_ROUTER_CPUS = 2

# Network defaults
DEFAULT_INTER_VLAN_POLICY = "REJECT"
DEFAULT_EXTERNAL_POLICY = "ACCEPT"
PUBLIC_ENDPOINT = "public"
RULE_KEYWORD_ENDPOINTS = ("public", "all", "wireguard")
DEFAULT_RULE_PROTOCOL = "all"
DEFAULT_RULE_PORTS = "all"
RULE_ACTIONS = ("ACCEPT", "REJECT", "DROP")
CONNECTION_TYPE_ACTIONS: dict[str, str] = {
    "accept": "ACCEPT",
    "deny": "REJECT",
    "drop": "DROP",
}
RULE_PROTOCOLS = (
    "tcp",
    "udp",
    "udplite",
    "icmp",
    "ipv6-icmp",
    "esp",
    "ah",
    "sctp",
    "all",
)

# Accepted AD domain and forest functional levels
FUNCTIONAL_LEVELS = (
    "Win2003",
    "Win2008",
    "Win2008R2",
    "Win2012",
    "Win2012R2",
    "WinThreshold",
)

# Baseline ``defaults`` block used when no previous configuration exists
BASELINE_RANGE_DEFAULTS: dict[str, Any] = {
    "snapshot_with_RAM": True,
    "ad_domain_functional_level": "Win2012R2",
    "ad_forest_functional_level": "Win2012R2",
    "ad_domain_admin": "domainadmin",
    "ad_domain_admin_password": "password",
    "ad_domain_user": "domainuser",
    "ad_domain_user_password": "password",
    "ad_domain_safe_mode_password": "password",
    "stale_hours": 0,
    "enable_dynamic_wallpaper": True,
    "timezone": "America/New_York",
}

# Network keys that live on the router node in the editor
NETWORK_POLICY_KEYS = (
    "inter_vlan_default",
    "external_default",
    "wireguard_vlan_default",
    "always_blocked_networks",
)

# Top-level sections carried over from a previous configuration verbatim
PRESERVED_SECTIONS = ("global_role_vars", "notify")

# Editor bookkeeping that never reaches the compiled configuration
EDITOR_ONLY_VM_FIELDS = frozenset(
    {
        "id",
        "label",
        "status",
        "isDeployed",
        "poweredOn",
        "ipAddress",
        "proxmoxId",
        "type",
    }
)
EDITOR_ONLY_ROUTER_FIELDS = frozenset(
    {"label", "status", "isDeployed", "poweredOn", "ipAddress", "proxmoxId"}
)

# camelCase editor field -> configuration field
VM_FIELD_ALIASES: dict[str, str] = {
    "vmName": "vm_name",
    "ramGb": "ram_gb",
    "ramMinGb": "ram_min_gb",
    "ipLastOctet": "ip_last_octet",
    "fullClone": "full_clone",
    "forceIp": "force_ip",
    "ansibleGroups": "ansible_groups",
    "dnsRewrites": "dns_rewrites",
    "roleVars": "role_vars",
}
ROUTER_FIELD_ALIASES: dict[str, str] = {
    "vmName": "vm_name",
    "ramGb": "ram_gb",
    "ramMinGb": "ram_min_gb",
    "roleVars": "role_vars",
    "interVlanDefault": "inter_vlan_default",
    "externalDefault": "external_default",
    "wireguardVlanDefault": "wireguard_vlan_default",
    "alwaysBlockedNetworks": "always_blocked_networks",
    "outboundWireguardConfig": "outbound_wireguard_config",
    "outboundWireguardVlans": "outbound_wireguard_vlans",
    "inboundWireguard": "inbound_wireguard",
}
# Nested mappings whose keys are converted to snake_case
SNAKE_CASED_SUBSECTIONS = frozenset(
    {"windows", "linux", "domain", "testing", "inbound_wireguard"}
)
# Numeric options the editor stores as strings
NUMERIC_STRING_FIELDS = frozenset({"office_version", "visual_studio_version"})
