# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Error taxonomy for the orchestration core.

Every error carries an HTTP-equivalent status code so outer surfaces
(CLI, an HTTP adapter) can map failures without inspecting messages:

- NotConfiguredError: a credential is missing (service unavailable).
- BudgetExceededError: the daily generation budget is spent. Never retried.
- UpstreamUnavailableError: transient upstream failure after retries.
- UpstreamRequestError: upstream rejected the request (4xx excl. 429).
- RequestValidationError: the caller's request is malformed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class ClearviewError(Exception):
    """Base class for all engine errors."""

    status_code: int = 500
    error_code: str = "internal_error"

    def to_trace_dict(self) -> dict[str, Any]:
        return {
            "error": self.error_code,
            "status_code": self.status_code,
            "message": str(self),
        }


@dataclass
class NotConfiguredError(ClearviewError):
    service: str
    status_code: int = 503
    error_code: str = "not_configured"

    def __post_init__(self) -> None:
        super().__init__(f"{self.service} is not configured")


@dataclass
class BudgetExceededError(ClearviewError):
    spent: float
    cap: float
    status_code: int = 429
    error_code: str = "budget_exceeded"

    def __post_init__(self) -> None:
        super().__init__(
            f"Daily cost cap reached: ${self.spent:.4f} spent of ${self.cap:.2f}"
        )

    def to_trace_dict(self) -> dict[str, Any]:
        out = super().to_trace_dict()
        out.update({"spent": round(self.spent, 6), "cap": self.cap})
        return out


@dataclass
class UpstreamUnavailableError(ClearviewError):
    service: str
    upstream_status: int | None = None
    cause: BaseException | None = field(default=None, repr=False)
    status_code: int = 503
    error_code: str = "upstream_unavailable"

    def __post_init__(self) -> None:
        msg = f"{self.service} is temporarily unavailable"
        if self.upstream_status is not None:
            msg += f" (status {self.upstream_status})"
        if self.cause is not None:
            msg += f": {self.cause}"
        super().__init__(msg)

    def to_trace_dict(self) -> dict[str, Any]:
        out = super().to_trace_dict()
        out.update({"service": self.service, "upstream_status": self.upstream_status})
        return out


@dataclass
class UpstreamRequestError(ClearviewError):
    """Upstream rejected the request; retrying would not help."""

    service: str
    upstream_status: int
    cause: BaseException | None = field(default=None, repr=False)
    error_code: str = "upstream_rejected"

    def __post_init__(self) -> None:
        self.status_code = self.upstream_status
        msg = f"{self.service} rejected the request (status {self.upstream_status})"
        if self.cause is not None:
            msg += f": {self.cause}"
        super().__init__(msg)

    def to_trace_dict(self) -> dict[str, Any]:
        out = super().to_trace_dict()
        out.update({"service": self.service, "upstream_status": self.upstream_status})
        return out


@dataclass
class RequestValidationError(ClearviewError):
    field_name: str
    message: str
    status_code: int = 400
    error_code: str = "validation_error"

    def __post_init__(self) -> None:
        super().__init__(f"Invalid '{self.field_name}': {self.message}")


def describe_error(exc: BaseException) -> dict[str, Any]:
    """Map any exception to a transport-neutral error payload."""
    if isinstance(exc, ClearviewError):
        return {
            "status_code": exc.status_code,
            "error": exc.error_code,
            "message": str(exc),
        }
    return {
        "status_code": 500,
        "error": "internal_error",
        "message": str(exc) or type(exc).__name__,
    }
