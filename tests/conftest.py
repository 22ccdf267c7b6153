# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.


from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from clearview_core.agents.generation_client import GenerationClient
from clearview_core.billing.cost_guard import CostGuard
from clearview_core.pipeline.events import RecordingSink
from clearview_core.schema.search import SearchCategory, SearchResponse
from clearview_core.tools.crossref_client import CitationRegistry
from clearview_core.tools.exa_client import SearchGateway


class InMemoryCache:
    """Matches the CacheStore get/set/delete interface; records writes."""

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}
        self.sets: list[tuple[str, Any, int | None]] = []

    async def get(self, key: str) -> Any | None:
        return self.data.get(key)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        self.sets.append((key, value, ttl))
        self.data[key] = value
        return True

    async def delete(self, key: str) -> bool:
        return self.data.pop(key, None) is not None


@pytest.fixture
def cache():
    return InMemoryCache()


@pytest.fixture
def cost_guard():
    return CostGuard(daily_cap=50.0)


@pytest.fixture
def mock_search():
    """Matches the interface of SearchGateway, returning AsyncMocks."""
    search = MagicMock(spec=SearchGateway)
    search.is_configured.return_value = True
    search.search_news = AsyncMock(return_value=SearchResponse(query="q", category=SearchCategory.NEWS))
    search.search_academic = AsyncMock(return_value=SearchResponse(query="q", category=SearchCategory.RESEARCH))
    search.search_expert_commentary = AsyncMock(
        return_value=SearchResponse(query="q", category=SearchCategory.EXPERT)
    )
    search.search_fact_check = AsyncMock(
        return_value=SearchResponse(query="q", category=SearchCategory.FACT_CHECK)
    )
    search.close = AsyncMock()
    return search


@pytest.fixture
def mock_generation():
    """Matches the interface of GenerationClient, returning AsyncMocks."""
    generation = MagicMock(spec=GenerationClient)
    generation.is_configured.return_value = True
    generation.analyze_quick = AsyncMock()
    generation.analyze_detailed = AsyncMock()
    generation.analyze_full = AsyncMock()
    generation.synthesize_evidence = AsyncMock()
    generation.complete = AsyncMock(return_value="ok")
    generation.close = AsyncMock()
    return generation


@pytest.fixture
def mock_citations():
    citations = MagicMock(spec=CitationRegistry)
    citations.verify_dois = AsyncMock(return_value={})
    citations.close = AsyncMock()
    return citations


@pytest.fixture
def recording_sink():
    return RecordingSink()
