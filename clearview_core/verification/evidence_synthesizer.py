# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Evidence Synthesizer
====================
Builds a balanced research dossier for the core argument of an article.

Flow:
    1. five fixed research queries (three academic, two expert)
    2. all searches run concurrently; a failed query contributes nothing
    3. URL dedup across the combined pool, academic first
    4. generation-side synthesis into an EvidenceDossier
    5. concurrent DOI verification of key studies
    6. think-tank disclosure on evidence items and expert voices
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

from clearview_core.agents.generation_client import GenerationClient
from clearview_core.data.think_tanks import get_think_tank
from clearview_core.errors import NotConfiguredError
from clearview_core.schema.evidence import EvidenceDossier, ThinkTankInfo
from clearview_core.schema.search import SearchHit, SearchResponse
from clearview_core.tools.cache_store import CacheStore
from clearview_core.tools.cache_utils import evidence_cache_key
from clearview_core.tools.crossref_client import CitationRegistry, normalize_doi
from clearview_core.tools.exa_client import SearchGateway
from clearview_core.tools.search_result_normalizer import dedupe_by_url
from clearview_core.utils.trace import Trace

logger = logging.getLogger(__name__)

EVIDENCE_CACHE_TTL_SEC = 24 * 3600

ACADEMIC_QUERY_COUNT = 3
ACADEMIC_RESULTS_PER_QUERY = 5
EXPERT_RESULTS_PER_QUERY = 4
MAX_ACADEMIC_SOURCES = 10
MAX_EXPERT_SOURCES = 6


def build_research_queries(topic: str) -> list[str]:
    """General research, meta-analysis, benefits, risks, expert analysis."""
    return [
        f"{topic} research study evidence",
        f"{topic} academic meta-analysis",
        f"{topic} benefits effectiveness study",
        f"{topic} problems risks criticism research",
        f"{topic} expert analysis policy",
    ]


def resolve_argument(
    topic: str,
    *,
    core_argument: str | None = None,
    summary_text: str | None = None,
    claims: Iterable[str] | None = None,
) -> str:
    if core_argument and core_argument.strip():
        return core_argument.strip()
    if summary_text and summary_text.strip():
        return summary_text.strip()
    joined = "; ".join(c.strip() for c in (claims or []) if c and c.strip())
    if joined:
        return joined
    return topic


def merge_search_sets(
    academic: list[list[SearchHit]],
    expert: list[list[SearchHit]],
) -> dict[str, list[SearchHit]]:
    """
    Flatten, dedupe by URL across both sets (first occurrence wins), then cap.

    Academic hits claim their URLs before expert hits are considered, and
    caps apply after dedup so an over-cap academic URL still blocks a
    duplicate expert hit.
    """
    seen: set[str] = set()
    flat_academic = [hit for hits in academic for hit in hits]
    flat_expert = [hit for hits in expert for hit in hits]
    deduped_academic = dedupe_by_url(flat_academic, seen)[:MAX_ACADEMIC_SOURCES]
    deduped_expert = dedupe_by_url(flat_expert, seen)[:MAX_EXPERT_SOURCES]
    return {"academic": deduped_academic, "expert": deduped_expert}


def _think_tank_info(url: str) -> ThinkTankInfo | None:
    if not url:
        return None
    entry = get_think_tank(url)
    if entry is None:
        return None
    return ThinkTankInfo(name=entry["name"], lean=entry["lean"], description=entry["description"])


def annotate_think_tanks(dossier: EvidenceDossier) -> int:
    """Attach think-tank disclosures in place; returns how many were attached."""
    annotated = 0
    for item in [*dossier.evidence_for, *dossier.evidence_against, *dossier.expert_voices]:
        info = _think_tank_info(item.url)
        if info is not None:
            item.think_tank = info
            annotated += 1
    return annotated


class EvidenceSynthesizer:
    def __init__(
        self,
        search: SearchGateway,
        generation: GenerationClient,
        citations: CitationRegistry,
        cache: CacheStore,
        *,
        cache_ttl_sec: int = EVIDENCE_CACHE_TTL_SEC,
    ):
        self.search = search
        self.generation = generation
        self.citations = citations
        self.cache = cache
        self.cache_ttl_sec = cache_ttl_sec

    async def get_evidence(
        self,
        topic: str,
        *,
        core_argument: str | None = None,
        summary_text: str | None = None,
        claims: Iterable[str] | None = None,
    ) -> EvidenceDossier:
        argument = resolve_argument(
            topic, core_argument=core_argument, summary_text=summary_text, claims=claims
        )

        key = evidence_cache_key(topic, argument)
        cached: Any = await self.cache.get(key)
        if cached is not None:
            try:
                dossier = EvidenceDossier.from_dict(cached)
            except (TypeError, ValueError) as e:
                logger.warning("[Evidence] Ignoring unreadable cache entry %s: %s", key, e)
            else:
                logger.info("[Evidence] Cache hit for topic: %s", topic)
                dossier.cached = True
                return dossier

        if not self.search.is_configured():
            raise NotConfiguredError("EXA_API_KEY")

        logger.info('[Evidence] Researching expert evidence for: "%s"', topic)
        logger.info('[Evidence] Core argument: "%s..."', argument[:100])

        warnings: list[str] = []
        bundle = await self._gather_sources(topic, warnings)
        logger.info(
            "[Evidence] Found %d academic, %d expert sources",
            len(bundle["academic"]), len(bundle["expert"]),
        )

        dossier = await self.generation.synthesize_evidence(
            topic=topic, argument=argument, search_bundle=bundle
        )
        await self._verify_key_studies(dossier)
        annotated = annotate_think_tanks(dossier)

        dossier.topic = topic
        dossier.warnings = warnings
        dossier.cached = False

        Trace.event("evidence.done", {
            "topic": topic,
            "academic": len(bundle["academic"]),
            "expert": len(bundle["expert"]),
            "key_studies": len(dossier.key_studies),
            "verified_dois": sum(1 for s in dossier.key_studies if s.doi_verified),
            "think_tanks": annotated,
            "warnings": len(warnings),
        })

        if warnings:
            logger.warning("[Evidence] Skipping cache write: %d search(es) failed", len(warnings))
        else:
            await self.cache.set(key, dossier.to_dict(), self.cache_ttl_sec)
        return dossier

    async def _gather_sources(self, topic: str, warnings: list[str]) -> dict[str, list[SearchHit]]:
        queries = build_research_queries(topic)
        academic_queries = queries[:ACADEMIC_QUERY_COUNT]
        expert_queries = queries[ACADEMIC_QUERY_COUNT:]

        tasks = [self.search.search_academic(q, ACADEMIC_RESULTS_PER_QUERY) for q in academic_queries]
        tasks += [self.search.search_expert_commentary(q, EXPERT_RESULTS_PER_QUERY) for q in expert_queries]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        hit_lists: list[list[SearchHit]] = []
        for query, result in zip(queries, results):
            if isinstance(result, Exception):
                logger.warning('[Evidence] Search failed for "%s": %s', query, result)
                Trace.event("evidence.search.error", {"query": query, "error": str(result)[:200]})
                warnings.append(f'Search failed for "{query}"')
                hit_lists.append([])
                continue
            if isinstance(result, SearchResponse):
                hit_lists.append(list(result.results))
            else:
                hit_lists.append([])

        return merge_search_sets(hit_lists[:ACADEMIC_QUERY_COUNT], hit_lists[ACADEMIC_QUERY_COUNT:])

    async def _verify_key_studies(self, dossier: EvidenceDossier) -> None:
        with_doi = [s for s in dossier.key_studies if normalize_doi(s.doi)]
        for study in dossier.key_studies:
            study.doi_verified = False
        if not with_doi:
            return
        verified = await self.citations.verify_dois([s.doi for s in with_doi])
        for study in with_doi:
            study.doi_verified = bool(verified.get(normalize_doi(study.doi), False))
