# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Neural search gateway (Exa).

Four categories: general news, research papers, expert commentary (news
framed as opinion/interview/analysis) and a tight fact-check search.
Retries 5xx/429 and network failures with exponential backoff; any other
4xx propagates immediately.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from clearview_core.errors import NotConfiguredError, UpstreamRequestError, UpstreamUnavailableError
from clearview_core.schema.search import SearchCategory, SearchResponse
from clearview_core.tools.search_result_normalizer import normalize_exa_results
from clearview_core.utils.trace import Trace

logger = logging.getLogger(__name__)

SERVICE_NAME = "Exa"
EXA_SEARCH_URL = "https://api.exa.ai/search"

EXA_MAX_ATTEMPTS = 3
EXA_BASE_DELAY_SEC = 1.0
EXA_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

EXPERT_QUERY_SUFFIX = " expert opinion OR interview OR analysis"


def _is_retryable_status(status: int) -> bool:
    return status in EXA_RETRYABLE_STATUS_CODES or status >= 500


class SearchGateway:
    def __init__(
        self,
        *,
        api_key: str | None,
        timeout_s: float = 15.0,
        concurrency: int = 8,
        max_attempts: int = EXA_MAX_ATTEMPTS,
        base_delay: float = EXA_BASE_DELAY_SEC,
        news_snippet_chars: int = 500,
        fact_check_snippet_chars: int = 300,
    ):
        self.api_key = api_key
        self.max_attempts = max(1, int(max_attempts))
        self.base_delay = float(base_delay)
        self.news_snippet_chars = news_snippet_chars
        self.fact_check_snippet_chars = fact_check_snippet_chars
        self._sem = asyncio.Semaphore(max(1, min(int(concurrency or 8), 32)))

        self._client = httpx.AsyncClient(
            timeout=float(timeout_s),
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
            headers={
                "Content-Type": "application/json",
                "x-api-key": api_key or "",
            },
        )

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def close(self) -> None:
        await self._client.aclose()

    async def _post_with_retry(self, payload: dict[str, Any], operation: str) -> dict:
        if not self.is_configured():
            raise NotConfiguredError("EXA_API_KEY")

        last_error: Exception | None = None
        last_status: int | None = None

        for attempt in range(self.max_attempts):
            try:
                async with self._sem:
                    Trace.event("exa.request", {"operation": operation, "payload": payload, "attempt": attempt + 1})
                    r = await self._client.post(EXA_SEARCH_URL, json=payload)
                    r.raise_for_status()
            except httpx.HTTPStatusError as e:
                status = e.response.status_code if e.response is not None else 0
                last_error, last_status = e, status
                if not _is_retryable_status(status):
                    logger.warning("[Exa] %s rejected with status %s", operation, status)
                    raise UpstreamRequestError(SERVICE_NAME, status, cause=e) from e
            except httpx.TransportError as e:
                last_error, last_status = e, None
            else:
                Trace.event("exa.response", {"operation": operation, "status_code": r.status_code})
                try:
                    return r.json()
                except ValueError as e:
                    logger.warning("[Exa] %s returned an undecodable body: %s", operation, e)
                    raise UpstreamUnavailableError(SERVICE_NAME, upstream_status=r.status_code, cause=e) from e

            if attempt < self.max_attempts - 1:
                delay = self.base_delay * (2 ** attempt)
                logger.info(
                    "[Exa] %s failed (attempt %d/%d), retrying in %.1fs: %s",
                    operation,
                    attempt + 1,
                    self.max_attempts,
                    delay,
                    last_error,
                )
                await asyncio.sleep(delay)

        logger.warning("[Exa] %s failed after %d attempts: %s", operation, self.max_attempts, last_error)
        raise UpstreamUnavailableError(SERVICE_NAME, upstream_status=last_status, cause=last_error) from last_error

    async def _search(
        self,
        *,
        query: str,
        category: SearchCategory,
        num_results: int,
        exa_category: str | None,
        max_characters: int,
        keep_author: bool = True,
    ) -> SearchResponse:
        payload: dict[str, Any] = {
            "query": query,
            "type": "neural",
            "useAutoprompt": True,
            "numResults": int(num_results),
            "contents": {"text": {"maxCharacters": int(max_characters)}},
        }
        if exa_category:
            payload["category"] = exa_category

        data = await self._post_with_retry(payload, f"search_{category.value}")
        results = data.get("results") if isinstance(data, dict) else None
        hits = normalize_exa_results(results, keep_author=keep_author)
        return SearchResponse(query=query, category=category, results=hits)

    async def search_news(self, topic: str, num_results: int = 10) -> SearchResponse:
        return await self._search(
            query=topic,
            category=SearchCategory.NEWS,
            num_results=num_results,
            exa_category="news",
            max_characters=self.news_snippet_chars,
        )

    async def search_academic(self, topic: str, num_results: int = 10) -> SearchResponse:
        return await self._search(
            query=topic,
            category=SearchCategory.RESEARCH,
            num_results=num_results,
            exa_category="research paper",
            max_characters=self.news_snippet_chars,
        )

    async def search_expert_commentary(self, topic: str, num_results: int = 10) -> SearchResponse:
        # Expert commentary hits carry no reliable author; the quoted expert is in the text.
        return await self._search(
            query=f"{topic}{EXPERT_QUERY_SUFFIX}",
            category=SearchCategory.EXPERT,
            num_results=num_results,
            exa_category="news",
            max_characters=self.news_snippet_chars,
            keep_author=False,
        )

    async def search_fact_check(self, query: str, num_results: int = 5) -> SearchResponse:
        return await self._search(
            query=query,
            category=SearchCategory.FACT_CHECK,
            num_results=num_results,
            exa_category=None,
            max_characters=self.fact_check_snippet_chars,
        )
