# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

# ClearView Engine - main entry point

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime
from typing import Any, AsyncIterator, Callable, Iterable
from uuid import uuid4

from clearview_core import __version__
from clearview_core.agents.generation_client import GenerationClient
from clearview_core.agents.llm_client import LLMClient
from clearview_core.billing.cost_guard import CostGuard
from clearview_core.config import ClearviewConfig
from clearview_core.pipeline.analysis_pipeline import AnalysisPipeline
from clearview_core.pipeline.events import EventSink, QueueSink, StreamState
from clearview_core.schema.analysis import AnalysisRequest, AnalysisResult
from clearview_core.schema.citation import DOIMetadata
from clearview_core.schema.evidence import EvidenceDossier
from clearview_core.schema.perspectives import PerspectivesResult
from clearview_core.tools.cache_store import CacheStore
from clearview_core.tools.crossref_client import CitationRegistry
from clearview_core.tools.exa_client import SearchGateway
from clearview_core.utils.runtime import runtime_env
from clearview_core.utils.trace import Trace
from clearview_core.verification.evidence_synthesizer import EvidenceSynthesizer
from clearview_core.verification.fact_grounding import FactGroundingExtractor
from clearview_core.verification.perspective_ranker import PerspectiveRanker

logger = logging.getLogger(__name__)


def _new_trace_id(operation: str) -> str:
    return f"{datetime.now().strftime('%Y-%m-%d_%H-%M-%S')}_{operation}_{str(uuid4())[:6]}"


class ClearviewEngine:
    """
    The main entry point for the ClearView bias analysis core.

    Owns every service object and its lifecycle:

        async with ClearviewEngine(ClearviewConfig.from_env()) as engine:
            result = await engine.analyze(request)
    """

    def __init__(
        self,
        config: ClearviewConfig,
        *,
        cache_client_factory: Callable[[str], Any] | None = None,
    ):
        self.config = config
        runtime = config.runtime

        self.cost_guard = CostGuard(daily_cap=config.daily_cost_cap)
        self.cache = CacheStore(
            config.redis_url,
            max_reconnect_attempts=runtime.cache.reconnect_max_attempts,
            reconnect_base_delay=runtime.cache.reconnect_base_delay_sec,
            reconnect_max_delay=runtime.cache.reconnect_max_delay_sec,
            client_factory=cache_client_factory,
        )
        self.llm = LLMClient(
            openai_api_key=config.openai_api_key,
            cost_guard=self.cost_guard,
            model=config.openai_model,
            default_timeout=runtime.llm.timeout_sec,
            max_attempts=runtime.llm.max_attempts,
            base_delay=runtime.llm.base_delay_sec,
            max_delay=runtime.llm.max_delay_sec,
            concurrency=runtime.llm.concurrency,
        )
        self.generation = GenerationClient(self.llm, runtime.llm)
        self.search = SearchGateway(
            api_key=config.exa_api_key,
            timeout_s=runtime.search.timeout_sec,
            concurrency=runtime.search.concurrency,
            max_attempts=runtime.search.max_attempts,
            base_delay=runtime.search.base_delay_sec,
            news_snippet_chars=runtime.search.news_snippet_chars,
            fact_check_snippet_chars=runtime.search.fact_check_snippet_chars,
        )
        self.citations = CitationRegistry(
            cache=self.cache,
            email=config.crossref_email,
            cache_ttl_sec=runtime.cache.doi_ttl_sec,
        )
        self.grounding = FactGroundingExtractor(self.search)
        self.pipeline = AnalysisPipeline(
            self.generation,
            self.grounding,
            self.cache,
            cache_ttl_sec=runtime.cache.analyze_ttl_sec,
            runtime=runtime,
        )
        self.perspectives = PerspectiveRanker(
            self.search, self.cache, cache_ttl_sec=runtime.cache.perspectives_ttl_sec
        )
        self.evidence = EvidenceSynthesizer(
            self.search,
            self.generation,
            self.citations,
            self.cache,
            cache_ttl_sec=runtime.cache.evidence_ttl_sec,
        )
        self._started = False
        self._abandoned: set[asyncio.Task] = set()

        try:
            logger.debug("Effective config: %s", json.dumps(self.config.to_safe_log_dict(), ensure_ascii=False))
        except (TypeError, ValueError):
            pass

    async def start(self) -> None:
        if self._started:
            return
        await self.cache.start()
        self._started = True
        if not self.generation.is_configured():
            logger.warning("[Engine] OPENAI_API_KEY not set; analysis calls will fail")
        if not self.search.is_configured():
            logger.warning("[Engine] EXA_API_KEY not set; search-backed features disabled")

    async def stop(self) -> None:
        await self.cache.stop()
        await self.generation.close()
        await self.search.close()
        await self.citations.close()
        self._started = False

    async def __aenter__(self) -> "ClearviewEngine":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        with Trace.scope(_new_trace_id("analyze"), runtime=self.config.runtime):
            with Trace.span("engine.analyze", {"url": request.url, "content_len": len(request.content)}) as span:
                result = await self.pipeline.analyze(request)
                span.update({
                    "id": result.id,
                    "cached": result.cached,
                    "degraded": bool(getattr(result, "degraded", False)),
                })
            return result

    async def analyze_streaming(self, request: AnalysisRequest, sink: EventSink) -> StreamState:
        with Trace.scope(_new_trace_id("stream"), runtime=self.config.runtime):
            with Trace.span("engine.stream", {"url": request.url, "content_len": len(request.content)}) as span:
                state = await self.pipeline.analyze_streaming(request, sink)
                span["state"] = state.value
            return state

    async def stream_analysis(self, request: AnalysisRequest) -> AsyncIterator[str]:
        """Yield formatted event frames as the streaming pipeline produces them."""
        sink = QueueSink()
        task = asyncio.create_task(self.analyze_streaming(request, sink))
        drained = False
        try:
            async for frame in sink:
                yield frame
            drained = True
        finally:
            if not drained:
                # Consumer left early; the pipeline finishes against the unbounded queue.
                self._abandoned.add(task)
                task.add_done_callback(self._finish_abandoned)
        # Surfaces request validation errors raised before any event.
        await task

    def _finish_abandoned(self, task: asyncio.Task) -> None:
        self._abandoned.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.debug("[Engine] Abandoned stream failed: %s", task.exception())

    async def get_perspectives(
        self,
        topic: str,
        keywords: list[str] | None = None,
        article_lean: str | None = None,
    ) -> PerspectivesResult:
        with Trace.scope(_new_trace_id("perspectives"), runtime=self.config.runtime):
            return await self.perspectives.get_perspectives(topic, keywords, article_lean)

    async def get_evidence(
        self,
        topic: str,
        *,
        core_argument: str | None = None,
        summary_text: str | None = None,
        claims: Iterable[str] | None = None,
    ) -> EvidenceDossier:
        with Trace.scope(_new_trace_id("evidence"), runtime=self.config.runtime):
            return await self.evidence.get_evidence(
                topic, core_argument=core_argument, summary_text=summary_text, claims=claims
            )

    async def lookup_doi(self, doi: str) -> DOIMetadata:
        return await self.citations.lookup_doi(doi)

    async def complete(self, prompt: str, *, instructions: str | None = None) -> str:
        """Free-form generation call, used to check credentials and budget from the CLI."""
        with Trace.scope(_new_trace_id("complete"), runtime=self.config.runtime):
            return await self.generation.complete(prompt, instructions=instructions)

    def cost_status(self) -> dict[str, Any]:
        return self.cost_guard.status()

    def health(self) -> dict[str, Any]:
        return {
            "status": "ok",
            "version": __version__,
            "env": runtime_env(),
            "services": {
                "generation": self.generation.is_configured(),
                "search": self.search.is_configured(),
                "cache": self.cache.state.value,
                "crossref_polite_pool": bool(self.config.crossref_email),
            },
            "cost": self.cost_status(),
        }
