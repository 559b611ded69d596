"""Usage Costs — per-1K-token model prices and usage rollups for billing.

Invariants:
    - cost = input/1000 * input_price + output/1000 * output_price (USD)
    - Unknown models are priced at DEFAULT_MODEL rates, never free
    - Rollups round USD to 6 decimals at the edge only
"""

from collections import defaultdict
from typing import Iterable

DEFAULT_MODEL = "claude-haiku-4-5"

# USD per 1K tokens: (input, output)
MODEL_PRICES: dict[str, tuple[float, float]] = {
    "claude-haiku-4-5": (0.001, 0.005),
    "claude-sonnet-4-5": (0.003, 0.015),
    "claude-opus-4-1": (0.015, 0.075),
}


def calculate_cost_usd(input_tokens: int, output_tokens: int, model: str = DEFAULT_MODEL) -> float:
    input_price, output_price = MODEL_PRICES.get(model, MODEL_PRICES[DEFAULT_MODEL])
    return input_tokens / 1000 * input_price + output_tokens / 1000 * output_price


def summarize_usage(logs: Iterable) -> dict:
    """Totals and per-feature breakdown over AIUsageLog-like rows."""
    total_cost = 0.0
    total_in = 0
    total_out = 0
    calls = 0
    by_feature: dict[str, dict] = defaultdict(
        lambda: {"calls": 0, "inputTokens": 0, "outputTokens": 0, "costUsd": 0.0}
    )
    for log in logs:
        calls += 1
        total_in += log.input_tokens
        total_out += log.output_tokens
        total_cost += log.cost_usd
        row = by_feature[log.feature]
        row["calls"] += 1
        row["inputTokens"] += log.input_tokens
        row["outputTokens"] += log.output_tokens
        row["costUsd"] += log.cost_usd

    return {
        "totalCalls": calls,
        "totalInputTokens": total_in,
        "totalOutputTokens": total_out,
        "totalCostUsd": round(total_cost, 6),
        "byFeature": [
            {"feature": feature, **row, "costUsd": round(row["costUsd"], 6)}
            for feature, row in sorted(
                by_feature.items(), key=lambda item: item[1]["costUsd"], reverse=True,
            )
        ],
    }


def usd_to_gbp(amount_usd: float, rate: float) -> float:
    return round(amount_usd * rate, 2)
