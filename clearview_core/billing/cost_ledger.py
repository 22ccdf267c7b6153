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
from datetime import date


@dataclass
class CostLedger:
    """
    Spend accumulated within one period (a UTC day).

    Increments are purely additive, so concurrent generation calls can record
    cost without coordination.
    """

    period_start: date
    cap: float
    cumulative_spend: float = 0.0
    calls: int = 0
    by_operation: dict[str, float] = field(default_factory=dict)

    def record(self, amount: float, *, operation: str | None = None) -> None:
        amount = max(0.0, float(amount))
        self.cumulative_spend += amount
        self.calls += 1
        if operation:
            self.by_operation[operation] = self.by_operation.get(operation, 0.0) + amount

    @property
    def percent_used(self) -> float:
        if self.cap <= 0:
            return 100.0
        return self.cumulative_spend / self.cap * 100.0

    def is_exhausted(self) -> bool:
        return self.cumulative_spend >= self.cap
