# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Metered generation client using the OpenAI Responses API.

Every call goes through the same gate:
- credential check (NotConfiguredError)
- daily budget check *before* the network request (BudgetExceededError)
- bounded retry with capped exponential backoff on transient failures;
  authentication and malformed-request errors are never retried
- cost accounting on every response that reports usage
- JSON extraction tolerant of code fences and surrounding prose
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import re
import time
from typing import Any, Iterable

import openai
from openai import AsyncOpenAI

from clearview_core.billing.cost_guard import CostGuard
from clearview_core.billing.pricing import LLMPriceCalculator
from clearview_core.billing.types import TokenUsage
from clearview_core.errors import NotConfiguredError, UpstreamRequestError, UpstreamUnavailableError
from clearview_core.llm.errors import LLMCallError, LLMFailureKind
from clearview_core.utils.trace import Trace

logger = logging.getLogger(__name__)

SERVICE_NAME = "OpenAI"

LLM_MAX_ATTEMPTS = 3
LLM_BASE_DELAY_SEC = 1.0
LLM_MAX_DELAY_SEC = 10.0
# Statuses that are retried; any other 4xx (incl. 400/401/403) is surfaced at once.
LLM_RETRYABLE_STATUS_CODES = frozenset({408, 409, 429, 500, 502, 503, 504})

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def backoff_delay(attempt: int, *, base: float = LLM_BASE_DELAY_SEC, cap: float = LLM_MAX_DELAY_SEC) -> float:
    """Delay after failed attempt `attempt` (0-based): base, 2*base, 4*base ... capped."""
    return min(base * (2 ** attempt), cap)


def extract_json_object(content: str) -> dict[str, Any]:
    """
    Extract a JSON object from model output.

    Tries, in order: a fenced code block, the whole text, and the outermost
    `{...}` span. Raises LLMCallError(INVALID_JSON) when none parses to an object.
    """
    text = (content or "").strip()
    candidates: list[str] = []
    fence = _FENCE_RE.search(text)
    if fence:
        candidates.append(fence.group(1).strip())
    candidates.append(text)
    span = _OBJECT_RE.search(text)
    if span:
        candidates.append(span.group(0))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except (TypeError, ValueError):
            continue
        if isinstance(parsed, dict):
            return parsed

    raise LLMCallError(f"Failed to parse JSON from model output ({len(text)} chars)", LLMFailureKind.INVALID_JSON)


def missing_fields(parsed: dict[str, Any], expected_fields: Iterable[str]) -> list[str]:
    return [f for f in expected_fields if f not in parsed]


class LLMClient:
    """
    Generation client bound to one model and one CostGuard.

    Example:
        client = LLMClient(openai_api_key="sk-...", model="gpt-5", cost_guard=CostGuard(50.0))
        data = await client.call_json(
            instructions="You are a news analyst. Respond with valid JSON only.",
            input="Analyze this article: ...",
            operation="quick",
            expected_fields=("biasScore", "summaryText"),
        )
    """

    def __init__(
        self,
        *,
        openai_api_key: str | None,
        cost_guard: CostGuard,
        model: str = "gpt-5",
        default_timeout: float = 60.0,
        max_attempts: int = LLM_MAX_ATTEMPTS,
        base_delay: float = LLM_BASE_DELAY_SEC,
        max_delay: float = LLM_MAX_DELAY_SEC,
        concurrency: int = 6,
        calculator: LLMPriceCalculator | None = None,
    ):
        self.api_key = openai_api_key
        self.model = model
        self.cost_guard = cost_guard
        self.default_timeout = default_timeout
        self.max_attempts = max(1, int(max_attempts))
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.calculator = calculator or LLMPriceCalculator()
        # SDK-level retries are disabled; retry policy lives here so the budget
        # gate runs before every network attempt.
        self.client = AsyncOpenAI(api_key=openai_api_key, max_retries=0) if openai_api_key else None
        self._sem = asyncio.Semaphore(max(1, int(concurrency)))

    def is_configured(self) -> bool:
        return self.client is not None

    def _preflight(self) -> None:
        if self.client is None:
            raise NotConfiguredError("OPENAI_API_KEY")
        self.cost_guard.check_budget()

    def _record_cost(self, response: Any, operation: str) -> dict[str, Any]:
        usage = TokenUsage.from_response(response)
        cost = self.calculator.usd_cost(self.model, usage)
        self.cost_guard.track_cost(cost, operation=operation)
        return {"input_tokens": usage.input_tokens, "output_tokens": usage.output_tokens, "cost_usd": cost}

    async def call(
        self,
        *,
        input: str,  # noqa: A002 - 'input' is the official API param name
        instructions: str | None = None,
        json_output: bool = False,
        operation: str = "generation",
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """
        Execute one generation call with retry.

        Returns:
            Dict with keys "content", "model", "usage" (tokens and cost_usd).

        Raises:
            NotConfiguredError: no API key.
            BudgetExceededError: daily cap reached; no request was sent.
            UpstreamRequestError: non-retryable rejection (400/401/403 ...).
            UpstreamUnavailableError: transient failures exhausted all attempts.
            LLMCallError: the model returned an empty response.
        """
        params: dict[str, Any] = {
            "model": self.model,
            "input": input,
            "timeout": timeout or self.default_timeout,
        }
        if instructions:
            params["instructions"] = instructions
        if json_output:
            params["text"] = {"format": {"type": "json_object"}}

        payload_hash = hashlib.md5(((instructions or "") + "||" + input).encode()).hexdigest()
        Trace.event(f"llm.{operation}.prompt", {
            "model": self.model,
            "input_chars": len(input),
            "instructions_chars": len(instructions or ""),
            "json_output": json_output,
            "payload_hash": payload_hash,
        })

        last_error: Exception | None = None
        last_status: int | None = None

        for attempt in range(self.max_attempts):
            if attempt > 0:
                delay = backoff_delay(attempt - 1, base=self.base_delay, cap=self.max_delay)
                logger.info(
                    "[LLMClient] %s retry %d/%d in %.1fs", operation, attempt + 1, self.max_attempts, delay
                )
                await asyncio.sleep(delay)

            self._preflight()

            start_time = time.time()
            try:
                async with self._sem:
                    response = await self.client.responses.create(**params)
            except openai.APIStatusError as e:
                last_error, last_status = e, e.status_code
                if e.status_code not in LLM_RETRYABLE_STATUS_CODES:
                    logger.error("[LLMClient] %s rejected with status %s: %s", operation, e.status_code, e)
                    Trace.event(f"llm.{operation}.error", {
                        "attempt": attempt + 1, "status": e.status_code, "retryable": False,
                    })
                    raise UpstreamRequestError(SERVICE_NAME, e.status_code, cause=e) from e
                logger.warning("[LLMClient] %s attempt %d failed (status %s): %s", operation, attempt + 1, e.status_code, e)
                Trace.event(f"llm.{operation}.error", {"attempt": attempt + 1, "status": e.status_code, "retryable": True})
                continue
            except (openai.APIConnectionError, asyncio.TimeoutError) as e:
                last_error, last_status = e, None
                logger.warning("[LLMClient] %s attempt %d failed: %s", operation, attempt + 1, e)
                Trace.event(f"llm.{operation}.error", {"attempt": attempt + 1, "error": str(e)[:200], "retryable": True})
                continue

            latency_ms = int((time.time() - start_time) * 1000)
            usage = self._record_cost(response, operation)
            usage["latency_ms"] = latency_ms

            content = getattr(response, "output_text", None) or ""
            Trace.event(f"llm.{operation}.response", {
                "model": self.model,
                "content_chars": len(content),
                "attempt": attempt + 1,
                "payload_hash": payload_hash,
                "usage": usage,
            })
            if not content.strip():
                raise LLMCallError(f"Empty response from {self.model} ({operation})", LLMFailureKind.EMPTY_RESPONSE)

            return {"content": content, "model": self.model, "usage": usage}

        logger.error("[LLMClient] %s failed after %d attempts: %s", operation, self.max_attempts, last_error)
        raise UpstreamUnavailableError(SERVICE_NAME, upstream_status=last_status, cause=last_error) from last_error

    async def call_json(
        self,
        *,
        input: str,  # noqa: A002
        instructions: str | None = None,
        operation: str = "generation",
        expected_fields: Iterable[str] = (),
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """
        JSON-mode call. Returns the parsed object.

        Missing expected top-level fields are logged, not raised; callers
        default them.
        """
        result = await self.call(
            input=input,
            instructions=instructions,
            json_output=True,
            operation=operation,
            timeout=timeout,
        )
        parsed = extract_json_object(result["content"])
        missing = missing_fields(parsed, expected_fields)
        if missing:
            logger.warning("[LLMClient] %s response missing fields: %s", operation, ", ".join(missing))
            Trace.event(f"llm.{operation}.missing_fields", {"missing": missing})
        return parsed

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()
