# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from clearview_core.billing.cost_guard import CostGuard
from clearview_core.billing.cost_ledger import CostLedger
from clearview_core.billing.pricing import (
    DEFAULT_PRICING,
    MODEL_PRICING,
    LLMPriceCalculator,
)
from clearview_core.billing.types import ModelPrice, PricingTable, TokenUsage

__all__ = [
    "CostGuard",
    "CostLedger",
    "DEFAULT_PRICING",
    "LLMPriceCalculator",
    "MODEL_PRICING",
    "ModelPrice",
    "PricingTable",
    "TokenUsage",
]
