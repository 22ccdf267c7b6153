# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Daily spend ceiling for metered generation calls.

Every generation call asks `check_budget()` before any network activity;
once the day's tracked spend reaches the cap, calls fail fast with
BudgetExceededError until the ledger rolls over at the next UTC day.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Callable

from clearview_core.billing.cost_ledger import CostLedger
from clearview_core.errors import BudgetExceededError
from clearview_core.utils.trace import Trace

logger = logging.getLogger(__name__)

WARNING_THRESHOLD_PERCENT = 80.0


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


class CostGuard:
    def __init__(self, daily_cap: float = 50.0, *, clock: Callable[[], date] | None = None):
        self.daily_cap = float(daily_cap)
        self._clock = clock or _utc_today
        self._ledger = CostLedger(period_start=self._clock(), cap=self.daily_cap)
        self._warned = False
        self._alerted = False

    def _current_ledger(self) -> CostLedger:
        today = self._clock()
        if today != self._ledger.period_start:
            logger.info(
                "[CostGuard] New period %s; previous day spent $%.4f",
                today.isoformat(),
                self._ledger.cumulative_spend,
            )
            self._ledger = CostLedger(period_start=today, cap=self.daily_cap)
            self._warned = False
            self._alerted = False
        return self._ledger

    def track_cost(self, amount: float, *, operation: str | None = None) -> float:
        """Add `amount` USD to today's ledger and return the new total."""
        ledger = self._current_ledger()
        ledger.record(amount, operation=operation)

        pct = ledger.percent_used
        if pct >= 100.0 and not self._alerted:
            self._alerted = True
            logger.error(
                "[CostGuard] Daily cost cap reached: $%.4f / $%.2f",
                ledger.cumulative_spend,
                self.daily_cap,
            )
        elif pct >= WARNING_THRESHOLD_PERCENT and not self._warned:
            self._warned = True
            logger.warning(
                "[CostGuard] %.0f%% of daily budget used: $%.4f / $%.2f",
                pct,
                ledger.cumulative_spend,
                self.daily_cap,
            )

        Trace.event("cost.tracked", {
            "amount_usd": round(float(amount), 6),
            "total_usd": round(ledger.cumulative_spend, 6),
            "operation": operation,
        })
        return ledger.cumulative_spend

    def is_over_budget(self) -> bool:
        return self._current_ledger().is_exhausted()

    def check_budget(self) -> None:
        """Raise BudgetExceededError if today's spend has reached the cap."""
        ledger = self._current_ledger()
        if ledger.is_exhausted():
            Trace.event("cost.budget_exceeded", {"spent": ledger.cumulative_spend, "cap": self.daily_cap})
            raise BudgetExceededError(spent=ledger.cumulative_spend, cap=self.daily_cap)

    def get_daily_cost(self) -> float:
        return self._current_ledger().cumulative_spend

    def reset(self) -> None:
        self._ledger = CostLedger(period_start=self._clock(), cap=self.daily_cap)
        self._warned = False
        self._alerted = False

    def status(self) -> dict[str, Any]:
        ledger = self._current_ledger()
        return {
            "date": ledger.period_start.isoformat(),
            "total_cost": round(ledger.cumulative_spend, 6),
            "daily_cap": self.daily_cap,
            "percent_used": round(ledger.percent_used, 2),
            "is_over_budget": ledger.is_exhausted(),
            "calls": ledger.calls,
            "by_operation": {k: round(v, 6) for k, v in ledger.by_operation.items()},
        }
