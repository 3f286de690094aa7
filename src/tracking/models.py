# src/tracking/models.py — v2
"""Tracking domain models."""

from __future__ import annotations

from pydantic import BaseModel


class ModelPricing(BaseModel):
    """Per-model token pricing in USD per 1M tokens."""

    model: str
    input_price_per_1m: float
    output_price_per_1m: float
