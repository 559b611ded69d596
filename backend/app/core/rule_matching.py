"""Rule Matching — evaluates custom event definitions against stored events.

Invariants:
    - An event matches a definition only if ALL rules match (empty rules match everything)
    - Comparisons are case-insensitive; missing fields compare as ''
    - An invalid regex never matches and never raises
    - Unknown operators never match

Design Decisions:
    - Field lookup over the camelCase event dict plus dotted metadata paths
      (metadata.form_id): rules are authored in the dashboard with those names
"""

import re
from typing import Any

from app.core.domain_types import RuleOperator
from app.core.event_record import EventRecord

RULE_FIELDS = (
    "page", "referrer", "eventType", "device", "browser", "os", "country",
    "city", "trafficSource", "visitorId", "sessionId",
)


def _field_value(event: dict[str, Any], field: str) -> str:
    if field.startswith("metadata."):
        current: Any = event.get("metadata") or {}
        for part in field.split(".")[1:]:
            if not isinstance(current, dict):
                return ""
            current = current.get(part)
        return "" if current is None else str(current)
    value = event.get(field)
    return "" if value is None else str(value)


def rule_matches(event: dict[str, Any], rule: dict[str, Any]) -> bool:
    raw = _field_value(event, str(rule.get("field", "")))
    operator = rule.get("operator")
    rule_value = str(rule.get("value", ""))
    field_value = raw.lower()
    target = rule_value.lower()

    if operator == RuleOperator.EQUALS.value:
        return field_value == target
    if operator == RuleOperator.NOT_EQUALS.value:
        return field_value != target
    if operator == RuleOperator.CONTAINS.value:
        return target in field_value
    if operator == RuleOperator.NOT_CONTAINS.value:
        return target not in field_value
    if operator == RuleOperator.STARTS_WITH.value:
        return field_value.startswith(target)
    if operator == RuleOperator.ENDS_WITH.value:
        return field_value.endswith(target)
    if operator == RuleOperator.CONTAINS_ANY.value:
        options = [v.strip() for v in target.split(",") if v.strip()]
        return any(v in field_value for v in options)
    if operator == RuleOperator.REGEX.value:
        try:
            return re.search(rule_value, raw, re.IGNORECASE) is not None
        except re.error:
            return False
    return False


def matches_rules(event: EventRecord | dict[str, Any], rules: list[dict]) -> bool:
    data = event.as_dict() if isinstance(event, EventRecord) else event
    return all(rule_matches(data, rule) for rule in rules)
