"""IP Privacy — hashing, anonymisation, and internal-address matching for visitor IPs.

Invariants:
    - hash_ip is deterministic: sha256(ip + salt), first 16 hex chars; '' for empty input
    - anonymize_ip zeroes the host part (IPv4 last octet, IPv6 last four groups)
    - Malformed addresses are returned unchanged by anonymize_ip and never match a CIDR rule
    - Rule matching never raises on bad stored rules

Design Decisions:
    - ipaddress module for CIDR checks (works for IPv4 and IPv6, validates rules on write)
    - Fixed salt: hashes must be stable across restarts so consent records stay linkable
"""

import hashlib
import ipaddress

from app.core.domain_types import IpRuleType

_HASH_SALT = "gdpr-salt-da"

PRIVATE_PREFIXES = ("192.168.", "10.", "172.16.")
LOOPBACK_ADDRESSES = ("127.0.0.1", "::1")


def hash_ip(ip: str | None) -> str:
    if not ip:
        return ""
    return hashlib.sha256((ip + _HASH_SALT).encode("utf-8")).hexdigest()[:16]


def anonymize_ip(ip: str | None) -> str:
    if not ip:
        return ""
    if ":" in ip:
        parts = ip.split(":")
        if len(parts) >= 4:
            return ":".join(parts[:4]) + ":0:0:0:0"
        return ip
    parts = ip.split(".")
    if len(parts) == 4:
        return ".".join(parts[:3]) + ".0"
    return ip


def is_private_ip(ip: str | None) -> bool:
    """Loopback or RFC1918-style address that never reaches a geo lookup."""
    if not ip:
        return False
    return ip in LOOPBACK_ADDRESSES or ip.startswith(PRIVATE_PREFIXES)


def ip_in_cidr(ip: str, cidr: str) -> bool:
    try:
        network = ipaddress.ip_network(cidr.strip(), strict=False)
        address = ipaddress.ip_address(ip.strip())
    except ValueError:
        return False
    return address.version == network.version and address in network


def validate_cidr(cidr: str) -> bool:
    if "/" not in cidr:
        return False
    try:
        ipaddress.ip_network(cidr.strip(), strict=False)
    except ValueError:
        return False
    return True


def matches_ip_rule(ip: str, rule_ip: str, rule_type: str) -> bool:
    if not ip or not rule_ip:
        return False
    if rule_type == IpRuleType.EXACT.value:
        return ip == rule_ip
    if rule_type == IpRuleType.PREFIX.value:
        return ip.startswith(rule_ip)
    if rule_type == IpRuleType.CIDR.value:
        return ip_in_cidr(ip, rule_ip)
    return False


def is_internal_ip(ip: str | None, rules) -> bool:
    """Private address, or any (rule_ip, rule_type) pair in `rules` matches."""
    if not ip:
        return False
    if is_private_ip(ip):
        return True
    return any(matches_ip_rule(ip, rule_ip, rule_type) for rule_ip, rule_type in rules)
