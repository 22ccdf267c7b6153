# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Viewpoint diversity ranking.

Candidate news sources are scored by how far their outlet's lean sits from
the analyzed article's lean, so the reader sees the other side first:

    opposite (distance >= 3)  100
    far      (distance == 2)   80
    center source              70
    adjacent (distance == 1)   40
    same lean                  20

Without a usable article lean, center sources score 100 and all others 50.
"""

from __future__ import annotations

import logging
from typing import Any

from clearview_core.data.source_leans import LEAN_SPECTRUM, get_source_lean
from clearview_core.schema.perspectives import PerspectiveSource, PerspectivesResult
from clearview_core.schema.search import SearchHit
from clearview_core.tools.cache_store import CacheStore
from clearview_core.tools.cache_utils import perspectives_cache_key
from clearview_core.tools.exa_client import SearchGateway
from clearview_core.utils.trace import Trace
from clearview_core.utils.url_utils import extract_source_name

logger = logging.getLogger(__name__)

MAX_PERSPECTIVE_SOURCES = 8
CANDIDATE_RESULTS = 15
SNIPPET_CHARS = 150
PERSPECTIVES_CACHE_TTL_SEC = 6 * 3600


def perspective_score(source_lean: str, article_lean: str | None) -> int:
    if article_lean not in LEAN_SPECTRUM:
        return 100 if source_lean == "center" else 50

    article_index = LEAN_SPECTRUM.index(article_lean)
    source_index = LEAN_SPECTRUM.index(source_lean) if source_lean in LEAN_SPECTRUM else LEAN_SPECTRUM.index("center")
    distance = abs(source_index - article_index)

    if distance >= 3:
        return 100
    if distance == 2:
        return 80
    if source_lean == "center":
        return 70
    if distance == 1:
        return 40
    return 20


def to_perspective_source(hit: SearchHit) -> PerspectiveSource:
    return PerspectiveSource(
        name=extract_source_name(hit.url),
        url=hit.url,
        title=hit.title,
        lean=get_source_lean(hit.url) or "center",
        snippet=hit.snippet[:SNIPPET_CHARS] + "...",
    )


def rank_sources(
    sources: list[PerspectiveSource],
    article_lean: str | None,
    *,
    limit: int = MAX_PERSPECTIVE_SOURCES,
) -> list[PerspectiveSource]:
    """Order by diversity score, highest first; ties keep input order."""
    scored = [(perspective_score(s.lean, article_lean), s) for s in sources]
    # sorted() is stable, so equal scores keep search-result order.
    scored = sorted(scored, key=lambda pair: pair[0], reverse=True)
    return [s for _, s in scored[:limit]]


class PerspectiveRanker:
    def __init__(
        self,
        search: SearchGateway,
        cache: CacheStore,
        *,
        cache_ttl_sec: int = PERSPECTIVES_CACHE_TTL_SEC,
    ):
        self.search = search
        self.cache = cache
        self.cache_ttl_sec = cache_ttl_sec

    async def get_perspectives(
        self,
        topic: str,
        keywords: list[str] | None = None,
        article_lean: str | None = None,
    ) -> PerspectivesResult:
        keywords = [k for k in (keywords or []) if k]
        key = perspectives_cache_key(topic, keywords, article_lean)

        cached: Any = await self.cache.get(key)
        if cached is not None:
            try:
                result = PerspectivesResult.from_dict(cached)
            except (TypeError, ValueError) as e:
                logger.warning("[Perspectives] Ignoring unreadable cache entry %s: %s", key, e)
            else:
                logger.info("[Perspectives] Cache hit for topic: %s", topic)
                result.cached = True
                return result

        logger.info('[Perspectives] Searching perspectives for: "%s" (article lean: %s)', topic, article_lean or "unknown")
        query = " ".join([topic, *keywords]).strip()
        response = await self.search.search_news(query, CANDIDATE_RESULTS)

        candidates = [to_perspective_source(hit) for hit in response.results]
        ranked = rank_sources(candidates, article_lean)
        Trace.event("perspectives.ranked", {
            "topic": topic,
            "candidates": len(candidates),
            "kept": len(ranked),
            "leans": [s.lean for s in ranked],
        })

        result = PerspectivesResult(
            topic=topic,
            article_lean=article_lean or "unknown",
            sources=ranked,
            cached=False,
        )
        await self.cache.set(key, result.to_dict(), self.cache_ttl_sec)
        return result
