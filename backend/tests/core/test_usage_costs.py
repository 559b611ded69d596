"""Tests for AI usage pricing and rollups."""

from types import SimpleNamespace

import pytest

from app.core.usage_costs import DEFAULT_MODEL, calculate_cost_usd, summarize_usage, usd_to_gbp


def _log(feature, cost, tokens_in=100, tokens_out=50):
    return SimpleNamespace(
        feature=feature, cost_usd=cost, input_tokens=tokens_in, output_tokens=tokens_out,
    )


def test_cost_uses_per_thousand_token_prices():
    assert calculate_cost_usd(1000, 1000, "claude-sonnet-4-5") == pytest.approx(0.018)


def test_unknown_model_priced_as_default():
    assert calculate_cost_usd(2000, 0, "mystery-model") == calculate_cost_usd(2000, 0, DEFAULT_MODEL)
    assert calculate_cost_usd(2000, 0, "mystery-model") > 0


def test_summary_totals_and_feature_order():
    summary = summarize_usage([_log("chat", 0.01), _log("ux-audit", 0.05), _log("chat", 0.02)])
    assert summary["totalCalls"] == 3
    assert summary["totalInputTokens"] == 300
    assert summary["totalCostUsd"] == pytest.approx(0.08)
    assert [r["feature"] for r in summary["byFeature"]] == ["ux-audit", "chat"]
    assert summary["byFeature"][1]["calls"] == 2


def test_empty_usage():
    assert summarize_usage([])["totalCostUsd"] == 0.0


def test_usd_to_gbp_rounds_to_pence():
    assert usd_to_gbp(10.0, 0.79) == 7.9
    assert usd_to_gbp(1.234, 0.8) == 0.99
