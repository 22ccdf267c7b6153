# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Article bias analysis pipeline.

Non-streaming `analyze` runs one full generation pass and degrades to a
local extractive summary on any failure except an exhausted budget.
Degraded results are never cached.

Streaming `analyze_streaming` drives this state machine:

    IDLE -> AWAITING_GROUNDING -> RACING(quick, detailed) -> EMITTING -> COMPLETE
    any stage -(exception)-> FAILED

A cache hit replays the stored result and goes straight to COMPLETE.
Quick results are pushed as soon as they arrive; the detailed pass is
still awaited before the result is assembled and cached. Exactly one
terminal event (`complete` or `error`) is pushed, and the sink is always
closed. In-flight generation calls are not cancelled when the sink goes away.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any
from urllib.parse import urlparse

from clearview_core.agents.generation_client import GenerationClient
from clearview_core.errors import BudgetExceededError, RequestValidationError
from clearview_core.llm.failures import classify_llm_failure, failure_kind_to_trace_data
from clearview_core.pipeline.events import (
    EVENT_BIAS_INDICATORS,
    EVENT_BIAS_SCORE,
    EVENT_CACHED,
    EVENT_COMPLETE,
    EVENT_ERROR,
    EVENT_KEY_FACTS,
    EVENT_MISSING_CONTEXT,
    EVENT_STATUS,
    EVENT_SUMMARY,
    EventSink,
    StreamState,
)
from clearview_core.pipeline.fallback import extract_basic_summary
from clearview_core.runtime_config import EngineRuntimeConfig
from clearview_core.schema.analysis import (
    AnalysisRequest,
    AnalysisResult,
    AnalysisSummary,
    DegradedResult,
    DetailedAnalysis,
    QuickAnalysis,
)
from clearview_core.tools.cache_store import CacheStore
from clearview_core.tools.cache_utils import analyze_cache_key
from clearview_core.utils.trace import Trace
from clearview_core.verification.fact_grounding import FactGroundingExtractor

logger = logging.getLogger(__name__)

ANALYZE_CACHE_TTL_SEC = 3600
MIN_CONTENT_CHARS = 100

SUMMARY_UNAVAILABLE = "Summary unavailable"
SUMMARY_FAILED_TEXT = "Unable to generate summary at this time."
WARNING_PARTIAL = "Full analysis unavailable - showing partial results"
WARNING_SUMMARY_FAILED = "Summary generation failed"

STATUS_VERIFYING = "Verifying facts..."
STATUS_ANALYZING = "Analyzing..."


def validate_stream_request(request: AnalysisRequest) -> None:
    parsed = urlparse(request.url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise RequestValidationError("url", "must be an absolute http(s) URL")
    if len(request.content or "") < MIN_CONTENT_CHARS:
        raise RequestValidationError("content", f"Article content must be at least {MIN_CONTENT_CHARS} characters")
    if not (request.title or "").strip():
        raise RequestValidationError("title", "Title is required")
    if not (request.source or "").strip():
        raise RequestValidationError("source", "Source is required")


def _indicators_payload(indicators: list[Any]) -> dict[str, Any]:
    return {"indicators": [bi.to_dict() for bi in indicators]}


def _retrieve_exception(task: asyncio.Task) -> None:
    # Abandoned branches keep running; read their outcome so asyncio does not warn.
    if not task.cancelled() and task.exception() is not None:
        logger.debug("[AnalyzeStream] Abandoned branch failed: %s", task.exception())


class AnalysisPipeline:
    def __init__(
        self,
        generation: GenerationClient,
        grounding: FactGroundingExtractor,
        cache: CacheStore,
        *,
        cache_ttl_sec: int = ANALYZE_CACHE_TTL_SEC,
        runtime: EngineRuntimeConfig | None = None,
    ):
        self.generation = generation
        self.grounding = grounding
        self.cache = cache
        self.cache_ttl_sec = cache_ttl_sec
        self.runtime = runtime or EngineRuntimeConfig.defaults()
        self.state = StreamState.IDLE

    def _set_state(self, state: StreamState) -> None:
        if state != self.state:
            Trace.event("analyze_stream.state", {"from": self.state.value, "to": state.value})
            self.state = state

    async def _cached_result(self, key: str) -> AnalysisResult | None:
        cached = await self.cache.get(key)
        if cached is None:
            return None
        try:
            result = AnalysisResult.from_dict(cached)
        except (TypeError, ValueError) as e:
            logger.warning("[Analyze] Ignoring unreadable cache entry %s: %s", key, e)
            return None
        result.cached = True
        return result

    # ------------------------------------------------------------------
    # Non-streaming
    # ------------------------------------------------------------------

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        key = analyze_cache_key(request.url)
        cached = await self._cached_result(key)
        if cached is not None:
            logger.info("[Analyze] Cache hit for %s", request.url)
            return cached

        logger.info('[Analyze] Analyzing article: "%s" from %s', request.title, request.source)
        try:
            full = await self.generation.analyze_full(
                title=request.title, source=request.source, content=request.content
            )
        except BudgetExceededError:
            raise
        except Exception as e:
            logger.error("[Analyze] Generation failed: %s", e)
            return self._degrade(request, e)

        result = AnalysisResult(
            id=str(uuid.uuid4()),
            bias_score=full.bias_score,
            summary=AnalysisSummary(
                text=full.summary.text or SUMMARY_UNAVAILABLE,
                key_facts=full.summary.key_facts,
                missing_context=full.summary.missing_context,
            ),
            bias_indicators=full.bias_indicators,
            is_political=full.is_political,
            political_lean=full.political_lean,
        )
        await self.cache.set(key, result.to_dict(), self.cache_ttl_sec)
        return result

    def _degrade(self, request: AnalysisRequest, exc: Exception) -> DegradedResult:
        kind = classify_llm_failure(exc)
        Trace.event("analyze.degraded", failure_kind_to_trace_data(kind, exc))

        warnings = [WARNING_PARTIAL]
        summary = AnalysisSummary()
        try:
            basic = extract_basic_summary(request.content, request.title)
            summary.text = basic.text
            summary.key_facts = basic.key_facts
        except Exception as e:
            logger.error("[Analyze] Basic summary extraction failed: %s", e)
            summary.text = SUMMARY_FAILED_TEXT
            warnings.append(WARNING_SUMMARY_FAILED)

        summary.text = summary.text or SUMMARY_UNAVAILABLE
        return DegradedResult(id=str(uuid.uuid4()), summary=summary, warnings=warnings)

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    async def analyze_streaming(self, request: AnalysisRequest, sink: EventSink) -> StreamState:
        """
        Push analysis events into `sink` and return the final stream state.

        Raises RequestValidationError before any event is pushed when the
        request is malformed. Every other failure becomes an `error` event.
        """
        self.state = StreamState.IDLE
        try:
            validate_stream_request(request)
        except RequestValidationError:
            await sink.close()
            raise

        try:
            await self._run_stream(request, sink)
            self._set_state(StreamState.COMPLETE)
        except Exception as e:
            logger.error("[AnalyzeStream] Error: %s", e)
            self._set_state(StreamState.FAILED)
            Trace.event("analyze_stream.error", {"error": str(e)[:500], "type": type(e).__name__})
            try:
                await sink.push(EVENT_ERROR, {"message": str(e) or type(e).__name__})
            except Exception as push_err:
                logger.warning("[AnalyzeStream] Could not deliver error event: %s", push_err)
        finally:
            await sink.close()
        return self.state

    async def _run_stream(self, request: AnalysisRequest, sink: EventSink) -> None:
        key = analyze_cache_key(request.url)
        cached = await self._cached_result(key)
        if cached is not None:
            logger.info("[AnalyzeStream] Cache hit for %s", request.url)
            await self._replay(cached, sink)
            return

        status_events = self.runtime.features.stream_status_events
        analysis_id = str(uuid.uuid4())

        self._set_state(StreamState.AWAITING_GROUNDING)
        if status_events:
            await sink.push(EVENT_STATUS, {"message": STATUS_VERIFYING})
        grounding = await self.grounding.get_grounding(request.title, request.content)
        if grounding:
            logger.info("[AnalyzeStream] Got fact grounding, injecting into prompts")
        if status_events:
            await sink.push(EVENT_STATUS, {"message": STATUS_ANALYZING})

        self._set_state(StreamState.RACING)
        quick, detailed = await self._race(request, grounding, sink)

        self._set_state(StreamState.EMITTING)
        await sink.push(EVENT_KEY_FACTS, {"facts": detailed.key_facts})
        await sink.push(EVENT_MISSING_CONTEXT, {"items": detailed.missing_context})
        await sink.push(EVENT_BIAS_INDICATORS, _indicators_payload(detailed.bias_indicators))

        result = AnalysisResult(
            id=analysis_id,
            bias_score=quick.bias_score,
            summary=AnalysisSummary(
                text=quick.summary_text,
                key_facts=detailed.key_facts,
                missing_context=detailed.missing_context,
            ),
            bias_indicators=detailed.bias_indicators,
            is_political=quick.is_political,
            political_lean=quick.political_lean,
        )
        await self.cache.set(key, result.to_dict(), self.cache_ttl_sec)

        await sink.push(EVENT_COMPLETE, {
            "id": result.id,
            "is_political": result.is_political,
            "political_lean": result.political_lean.value,
            "cached": False,
        })

    async def _race(
        self, request: AnalysisRequest, grounding: str, sink: EventSink
    ) -> tuple[QuickAnalysis, DetailedAnalysis]:
        common = {
            "title": request.title,
            "source": request.source,
            "content": request.content,
            "grounding": grounding,
        }
        quick_task = asyncio.create_task(self.generation.analyze_quick(**common))
        detailed_task = asyncio.create_task(self.generation.analyze_detailed(**common))
        pending: set[asyncio.Task] = {quick_task, detailed_task}

        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                if quick_task in done:
                    quick = quick_task.result()
                    await sink.push(EVENT_BIAS_SCORE, quick.bias_score.to_dict())
                    await sink.push(EVENT_SUMMARY, {"text": quick.summary_text})
                if detailed_task in done:
                    detailed_task.result()
        except BaseException:
            for task in pending:
                task.add_done_callback(_retrieve_exception)
            raise

        return quick_task.result(), detailed_task.result()

    async def _replay(self, cached: AnalysisResult, sink: EventSink) -> None:
        await sink.push(EVENT_CACHED, {"cached": True})
        if cached.bias_score is not None:
            await sink.push(EVENT_BIAS_SCORE, cached.bias_score.to_dict())
        await sink.push(EVENT_SUMMARY, {"text": cached.summary.text})
        await sink.push(EVENT_KEY_FACTS, {"facts": cached.summary.key_facts})
        await sink.push(EVENT_MISSING_CONTEXT, {"items": cached.summary.missing_context})
        await sink.push(EVENT_BIAS_INDICATORS, _indicators_payload(cached.bias_indicators))
        await sink.push(EVENT_COMPLETE, {
            "id": cached.id,
            "is_political": cached.is_political,
            "political_lean": cached.political_lean.value,
            "cached": True,
        })
