"""Tests for IP privacy helpers — hashing, anonymisation and internal-IP rules."""

from app.core.ip_privacy import (
    anonymize_ip, hash_ip, ip_in_cidr, is_internal_ip, is_private_ip,
    matches_ip_rule, validate_cidr,
)


def test_hash_ip_is_stable_and_short():
    assert hash_ip("203.0.113.9") == hash_ip("203.0.113.9")
    assert len(hash_ip("203.0.113.9")) == 16
    assert hash_ip("203.0.113.9") != hash_ip("203.0.113.10")
    assert hash_ip(None) == ""


def test_anonymize_ipv4_zeroes_last_octet():
    assert anonymize_ip("203.0.113.77") == "203.0.113.0"


def test_anonymize_ipv6_keeps_first_four_groups():
    assert anonymize_ip("2001:db8:85a3:8d3:1319:8a2e:370:7348") == "2001:db8:85a3:8d3:0:0:0:0"


def test_anonymize_leaves_malformed_values():
    assert anonymize_ip("not-an-ip") == "not-an-ip"
    assert anonymize_ip("") == ""


def test_private_addresses():
    assert is_private_ip("127.0.0.1") is True
    assert is_private_ip("::1") is True
    assert is_private_ip("192.168.1.20") is True
    assert is_private_ip("10.4.0.1") is True
    assert is_private_ip("8.8.8.8") is False


def test_cidr_matching_ipv4_and_ipv6():
    assert ip_in_cidr("198.51.100.14", "198.51.100.0/24") is True
    assert ip_in_cidr("198.51.101.14", "198.51.100.0/24") is False
    assert ip_in_cidr("2001:db8::1", "2001:db8::/32") is True
    assert ip_in_cidr("198.51.100.14", "2001:db8::/32") is False


def test_bad_cidr_never_matches_or_validates():
    assert ip_in_cidr("198.51.100.14", "garbage/99") is False
    assert validate_cidr("198.51.100.0") is False
    assert validate_cidr("198.51.100.0/24") is True
    assert validate_cidr("300.1.1.1/8") is False


def test_rule_types():
    assert matches_ip_rule("203.0.113.5", "203.0.113.5", "exact") is True
    assert matches_ip_rule("203.0.113.5", "203.0.113.", "prefix") is True
    assert matches_ip_rule("203.0.113.5", "203.0.113.0/28", "cidr") is True
    assert matches_ip_rule("203.0.113.5", "203.0.113.5", "unknown") is False


def test_is_internal_ip_uses_private_ranges_then_rules():
    rules = [("203.0.113.0/24", "cidr")]
    assert is_internal_ip("192.168.0.3", []) is True
    assert is_internal_ip("203.0.113.200", rules) is True
    assert is_internal_ip("198.51.100.1", rules) is False
    assert is_internal_ip(None, rules) is False
