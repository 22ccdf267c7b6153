# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from __future__ import annotations

from clearview_core.billing.types import ModelPrice, PricingTable, TokenUsage

MODEL_PRICING: dict[str, ModelPrice] = {
    "gpt-5": ModelPrice(usd_per_1m_input=2.00, usd_per_1m_output=8.00),
    "gpt-5-mini": ModelPrice(usd_per_1m_input=0.30, usd_per_1m_output=1.20),
    "gpt-5-nano": ModelPrice(usd_per_1m_input=0.10, usd_per_1m_output=0.40),
    "gpt-4o": ModelPrice(usd_per_1m_input=2.50, usd_per_1m_output=10.00),
    "gpt-4o-mini": ModelPrice(usd_per_1m_input=0.15, usd_per_1m_output=0.60),
}

DEFAULT_PRICING = PricingTable(prices=MODEL_PRICING, default_model="gpt-5")


class LLMPriceCalculator:
    """Calculate generation costs in USD from token usage."""

    def __init__(self, table: PricingTable = DEFAULT_PRICING) -> None:
        self._table = table

    def price_for(self, model: str) -> ModelPrice:
        return self._table.get_model_price(model)

    def usd_cost(self, model: str, usage: TokenUsage) -> float:
        return self.price_for(model).cost(usage)
