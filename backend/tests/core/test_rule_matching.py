"""Tests for custom event rule matching."""

from app.core.rule_matching import matches_rules, rule_matches
from tests.core.event_factory import make_event

EVENT = {
    "page": "/Checkout/Complete",
    "eventType": "form_submit",
    "device": "Mobile",
    "metadata": {"form": {"id": "newsletter"}, "text": "Subscribe"},
}


def _rule(field, operator, value):
    return {"field": field, "operator": operator, "value": value}


def test_operators_are_case_insensitive():
    assert rule_matches(EVENT, _rule("page", "contains", "checkout")) is True
    assert rule_matches(EVENT, _rule("page", "equals", "/checkout/complete")) is True
    assert rule_matches(EVENT, _rule("page", "starts_with", "/CHECKOUT")) is True
    assert rule_matches(EVENT, _rule("page", "ends_with", "complete")) is True
    assert rule_matches(EVENT, _rule("device", "not_equals", "desktop")) is True
    assert rule_matches(EVENT, _rule("page", "not_contains", "cart")) is True


def test_contains_any_splits_on_commas():
    assert rule_matches(EVENT, _rule("page", "contains_any", "cart, complete")) is True
    assert rule_matches(EVENT, _rule("page", "contains_any", "cart, basket")) is False


def test_regex_and_invalid_regex():
    assert rule_matches(EVENT, _rule("page", "regex", r"^/checkout/\w+$")) is True
    assert rule_matches(EVENT, _rule("page", "regex", "([unclosed")) is False


def test_dotted_metadata_paths():
    assert rule_matches(EVENT, _rule("metadata.form.id", "equals", "newsletter")) is True
    assert rule_matches(EVENT, _rule("metadata.text.deeper", "equals", "")) is True
    assert rule_matches(EVENT, _rule("metadata.missing", "contains", "x")) is False


def test_unknown_operator_never_matches():
    assert rule_matches(EVENT, _rule("page", "sounds_like", "checkout")) is False


def test_all_rules_must_match():
    rules = [_rule("eventType", "equals", "form_submit"), _rule("device", "equals", "Mobile")]
    assert matches_rules(EVENT, rules) is True
    assert matches_rules(EVENT, rules + [_rule("page", "contains", "cart")]) is False
    assert matches_rules(EVENT, []) is True


def test_accepts_event_records():
    evt = make_event("click", page="/pricing", metadata={"text": "Upgrade"})
    assert matches_rules(evt, [_rule("metadata.text", "equals", "upgrade")]) is True
