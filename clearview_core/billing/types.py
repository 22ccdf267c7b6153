# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

_PER_TOKENS = 1_000_000


@dataclass(frozen=True, slots=True)
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0

    @classmethod
    def from_response(cls, response: Any) -> "TokenUsage":
        """Read token counts from a Responses API result; missing usage counts as zero."""
        usage = getattr(response, "usage", None)
        if usage is None:
            return cls()
        return cls(
            input_tokens=max(0, int(getattr(usage, "input_tokens", 0) or 0)),
            output_tokens=max(0, int(getattr(usage, "output_tokens", 0) or 0)),
        )


@dataclass(frozen=True, slots=True)
class ModelPrice:
    """USD per 1M tokens."""

    usd_per_1m_input: float
    usd_per_1m_output: float

    def cost(self, usage: TokenUsage) -> float:
        return (
            usage.input_tokens * self.usd_per_1m_input
            + usage.output_tokens * self.usd_per_1m_output
        ) / _PER_TOKENS


@dataclass(frozen=True, slots=True)
class PricingTable:
    prices: dict[str, ModelPrice] = field(default_factory=dict)
    default_model: str = "gpt-5"

    def get_model_price(self, model: str) -> ModelPrice:
        if model in self.prices:
            return self.prices[model]
        # Dated snapshots (gpt-5-mini-2025-08-07) resolve to the longest known prefix.
        prefixes = [known for known in self.prices if model.startswith(known)]
        if prefixes:
            return self.prices[max(prefixes, key=len)]
        return self.prices[self.default_model]
