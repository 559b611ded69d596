"""Tests for the keyword report-prompt parser."""

from app.core.report_prompt_parser import parse_report_prompt


def test_defaults_for_vague_prompt():
    result = parse_report_prompt("Show me how we're doing")
    assert result["metrics"] == ["pageViews", "visitors"]
    assert result["dimensions"] == ["date"]
    assert result["chartType"] == "line"
    assert result["dateRange"] == "last_30_days"
    assert result["filters"] is None
    assert result["name"] == "Page Views & Visitors Daily"


def test_categorical_dimension_defaults_to_bar():
    result = parse_report_prompt("Clicks by country for the last 7 days")
    assert result["metrics"] == ["clicks"]
    assert result["dimensions"] == ["country"]
    assert result["chartType"] == "bar"
    assert result["dateRange"] == "last_7_days"


def test_explicit_chart_and_filters():
    result = parse_report_prompt("Pie of sessions by device, exclude bots, mobile only")
    assert result["chartType"] == "pie"
    assert result["dimensions"] == ["device"]
    assert result["filters"] == {"excludeBots": True, "device": "Mobile"}


def test_same_prompt_same_definition():
    prompt = "Weekly bounce rate table, no internal traffic"
    assert parse_report_prompt(prompt) == parse_report_prompt(prompt)
    assert parse_report_prompt(prompt)["filters"] == {"excludeInternal": True}
