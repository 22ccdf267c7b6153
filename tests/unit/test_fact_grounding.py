# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from datetime import date
from unittest.mock import AsyncMock

import pytest

from clearview_core.errors import UpstreamUnavailableError
from clearview_core.schema.search import SearchCategory, SearchHit, SearchResponse
from clearview_core.verification.fact_grounding import FactGroundingExtractor, extract_entities

TITLE = "Secretary Kristi Noem visits border"
CONTENT = "The DHS announced new rules on Tuesday."


def _fact_check(query: str) -> SearchResponse:
    return SearchResponse(
        query=query,
        category=SearchCategory.FACT_CHECK,
        results=[SearchHit(title=f"About {query}", url="https://www.dhs.gov/x", snippet="Current leadership")],
    )


class TestExtractEntities:
    def test_titled_person_and_department(self):
        assert extract_entities(TITLE, CONTENT, year=2025) == [
            "Secretary Kristi Noem",
            "current DHS leadership 2025",
        ]

    def test_caps_at_five_and_dedupes(self):
        content = " ".join(f"Senator Name{chr(97 + i)} spoke." for i in range(8)) + " Senator Namea again."
        entities = extract_entities("Hearing", content, year=2025)
        assert len(entities) == 5
        assert len(set(entities)) == 5

    def test_at_most_two_department_entities(self):
        entities = extract_entities("x", "FBI and CIA and Pentagon officials met", year=2025)
        assert entities == ["current FBI leadership 2025", "current CIA leadership 2025"]

    def test_nothing_found(self):
        assert extract_entities("A quiet day", "Nothing much happened in the park.") == []


@pytest.mark.asyncio
class TestFactGrounding:
    async def test_block_contains_found_facts(self, mock_search):
        mock_search.search_fact_check = AsyncMock(side_effect=lambda q, n: _fact_check(q))
        extractor = FactGroundingExtractor(mock_search, clock=lambda: date(2025, 6, 1))

        block = await extractor.get_grounding(TITLE, CONTENT)

        assert "CURRENT VERIFIED INFORMATION (from web search, June 2025):" in block
        assert "### Secretary Kristi Noem" in block
        assert "### current DHS leadership 2025" in block
        assert "Do NOT contradict these current facts." in block
        assert all(call.args[1] == 3 for call in mock_search.search_fact_check.call_args_list)

    async def test_single_failure_is_isolated(self, mock_search):
        async def flaky(query, n):
            if query.startswith("Secretary"):
                raise UpstreamUnavailableError("Exa")
            return _fact_check(query)

        mock_search.search_fact_check = AsyncMock(side_effect=flaky)
        extractor = FactGroundingExtractor(mock_search, clock=lambda: date(2025, 6, 1))

        block = await extractor.get_grounding(TITLE, CONTENT)

        assert "Secretary Kristi Noem" not in block
        assert "current DHS leadership 2025" in block

    async def test_all_failures_give_empty_block(self, mock_search):
        mock_search.search_fact_check = AsyncMock(side_effect=UpstreamUnavailableError("Exa"))
        extractor = FactGroundingExtractor(mock_search)
        assert await extractor.get_grounding(TITLE, CONTENT) == ""

    async def test_no_entities_skips_search(self, mock_search):
        extractor = FactGroundingExtractor(mock_search)
        assert await extractor.get_grounding("A quiet day", "Nothing much happened.") == ""
        mock_search.search_fact_check.assert_not_called()

    async def test_unconfigured_search(self, mock_search):
        mock_search.is_configured.return_value = False
        extractor = FactGroundingExtractor(mock_search)
        assert await extractor.get_grounding(TITLE, CONTENT) == ""
        mock_search.search_fact_check.assert_not_called()
