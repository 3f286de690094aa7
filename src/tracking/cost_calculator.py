# src/tracking/cost_calculator.py — v2
"""Savings estimation for analyzer calls avoided by the cache.

A cache hit saves one full analyzer request: the instruction prompt plus the
text itself. Token counts are rough (4 characters per token).
"""

from __future__ import annotations

import math

from proofline.tracking.models import ModelPricing

SYSTEM_PROMPT_TOKENS = 80
USER_PROMPT_TOKENS = 10
CHARS_PER_TOKEN = 4

# Default pricing per 1M tokens
DEFAULT_PRICING: dict[str, ModelPricing] = {
    "gpt-4o-mini": ModelPricing(
        model="gpt-4o-mini",
        input_price_per_1m=0.15, output_price_per_1m=0.60,
    ),
    "gpt-4o": ModelPricing(
        model="gpt-4o",
        input_price_per_1m=2.50, output_price_per_1m=10.0,
    ),
    "claude-sonnet-4-20250514": ModelPricing(
        model="claude-sonnet-4-20250514",
        input_price_per_1m=3.0, output_price_per_1m=15.0,
    ),
    "claude-haiku-4-5-20251001": ModelPricing(
        model="claude-haiku-4-5-20251001",
        input_price_per_1m=0.80, output_price_per_1m=4.0,
    ),
}


def estimate_tokens_saved(text: str) -> int:
    """Approximate request tokens avoided by not analyzing ``text``."""
    text_tokens = math.ceil(len(text) / CHARS_PER_TOKEN)
    return SYSTEM_PROMPT_TOKENS + USER_PROMPT_TOKENS + text_tokens


def estimate_cost_saved(
    text: str,
    model: str,
    pricing: dict[str, ModelPricing] | None = None,
) -> float:
    """Approximate USD input cost avoided. Unknown models cost 0."""
    pricing = pricing or DEFAULT_PRICING
    p = pricing.get(model)
    if p is None:
        return 0.0
    return estimate_tokens_saved(text) * p.input_price_per_1m / 1_000_000
