# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Classification of generation failures.

Used when the analysis pipeline degrades to its local fallback, so the
warning and the trace say *why* the primary call failed:
- CONNECTION_ERROR: network-level failures
- TIMEOUT: request exceeded its deadline
- PROVIDER_ERROR: upstream rejected or could not serve the call
- INVALID_JSON / EMPTY_RESPONSE: the model answered, but unusably
"""

from typing import Any

from clearview_core.errors import UpstreamRequestError, UpstreamUnavailableError
from clearview_core.llm.errors import LLMCallError, LLMFailureKind


_CONNECTION_KEYWORDS = (
    "connection",
    "connect",
    "network",
    "socket",
    "refused",
    "unreachable",
    "dns",
    "ssl",
)

_TIMEOUT_KEYWORDS = (
    "timeout",
    "timed out",
    "deadline exceeded",
)


def classify_llm_failure(exc: BaseException) -> LLMFailureKind:
    """
    Classify a generation exception into a failure kind.

    Typed errors are classified by type; anything else falls back to
    message keywords, then UNKNOWN.
    """
    if isinstance(exc, LLMCallError):
        return exc.kind
    if isinstance(exc, (UpstreamUnavailableError, UpstreamRequestError)):
        cause = exc.cause
        if cause is not None and not isinstance(cause, (UpstreamUnavailableError, UpstreamRequestError)):
            nested = classify_llm_failure(cause)
            if nested in (LLMFailureKind.TIMEOUT, LLMFailureKind.CONNECTION_ERROR):
                return nested
        return LLMFailureKind.PROVIDER_ERROR

    error_msg = str(exc).lower()
    exc_type = type(exc).__name__.lower()

    if any(kw in error_msg for kw in _TIMEOUT_KEYWORDS) or "timeout" in exc_type:
        return LLMFailureKind.TIMEOUT
    if any(kw in error_msg for kw in _CONNECTION_KEYWORDS) or "connection" in exc_type:
        return LLMFailureKind.CONNECTION_ERROR
    if "json" in exc_type:
        return LLMFailureKind.INVALID_JSON

    return LLMFailureKind.UNKNOWN


def failure_kind_to_trace_data(kind: LLMFailureKind | None, exc: BaseException) -> dict[str, Any]:
    return {
        "failure_kind": kind.value if kind else "unknown",
        "error_type": type(exc).__name__,
        "error_message": str(exc)[:200],
    }
