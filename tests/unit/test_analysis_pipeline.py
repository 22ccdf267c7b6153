# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from clearview_core.errors import BudgetExceededError, UpstreamUnavailableError
from clearview_core.pipeline.analysis_pipeline import (
    SUMMARY_FAILED_TEXT,
    WARNING_PARTIAL,
    WARNING_SUMMARY_FAILED,
    AnalysisPipeline,
)
from clearview_core.pipeline.fallback import KEY_FACTS_UNAVAILABLE, extract_basic_summary
from clearview_core.schema.analysis import (
    AnalysisRequest,
    AnalysisSummary,
    BiasScore,
    DegradedResult,
    FullAnalysis,
    PoliticalLean,
)
from clearview_core.tools.cache_utils import analyze_cache_key
from clearview_core.verification.fact_grounding import FactGroundingExtractor

CONTENT = (
    "The city council approved a $12 million budget on Monday. "
    'Officials said "this is historic" during the meeting. '
    "Residents were mostly supportive of the plan overall."
)


def _request(content: str = CONTENT) -> AnalysisRequest:
    return AnalysisRequest(url="https://news.example.com/budget", title="Budget passes", source="Example", content=content)


@pytest.fixture
def pipeline(mock_generation, cache):
    grounding = MagicMock(spec=FactGroundingExtractor)
    grounding.get_grounding = AsyncMock(return_value="")
    return AnalysisPipeline(mock_generation, grounding, cache)


class TestBasicSummary:
    def test_sentences_and_facts(self):
        summary = extract_basic_summary(CONTENT, "Budget passes")
        assert summary.text == (
            "The city council approved a $12 million budget on Monday. "
            'Officials said "this is historic" during the meeting. '
            "Residents were mostly supportive of the plan overall."
        )
        assert summary.key_facts == [
            "The city council approved a $12 million budget on Monday",
            'Officials said "this is historic" during the meeting',
        ]

    def test_short_content_falls_back_to_title(self):
        summary = extract_basic_summary("Too short. Also short!", "Budget passes")
        assert summary.text == "Article: Budget passes"
        assert summary.key_facts == [KEY_FACTS_UNAVAILABLE]


@pytest.mark.asyncio
class TestAnalyze:
    async def test_success_is_cached(self, pipeline, mock_generation, cache):
        mock_generation.analyze_full.return_value = FullAnalysis(
            bias_score=BiasScore(score=3, label="Minimal Bias"),
            summary=AnalysisSummary(text="Council approves budget.", key_facts=["$12 million"]),
            is_political=True,
            political_lean=PoliticalLean.CENTER,
        )

        first = await pipeline.analyze(_request())
        second = await pipeline.analyze(_request())

        assert first.cached is False
        assert first.bias_score.score == 3
        assert first.summary.key_facts == ["$12 million"]
        assert second.cached is True
        assert second.id == first.id
        assert mock_generation.analyze_full.await_count == 1
        key, _, ttl = cache.sets[0]
        assert key == analyze_cache_key("https://news.example.com/budget")
        assert ttl == 3600

    async def test_empty_summary_gets_sentinel(self, pipeline, mock_generation):
        mock_generation.analyze_full.return_value = FullAnalysis()
        result = await pipeline.analyze(_request())
        assert result.summary.text == "Summary unavailable"

    async def test_generation_failure_degrades_without_cache_write(self, pipeline, mock_generation, cache):
        mock_generation.analyze_full.side_effect = UpstreamUnavailableError("OpenAI", upstream_status=503)

        result = await pipeline.analyze(_request())

        assert isinstance(result, DegradedResult)
        assert result.degraded is True
        assert result.warnings == [WARNING_PARTIAL]
        assert result.summary.text.startswith("The city council approved")
        assert len(result.summary.key_facts) == 2
        assert result.bias_score is None
        assert result.id
        assert cache.sets == []

        # A repeat call re-runs generation instead of hitting the cache.
        await pipeline.analyze(_request())
        assert mock_generation.analyze_full.await_count == 2

    async def test_budget_exceeded_propagates(self, pipeline, mock_generation, cache):
        mock_generation.analyze_full.side_effect = BudgetExceededError(spent=51.0, cap=50.0)

        with pytest.raises(BudgetExceededError):
            await pipeline.analyze(_request())

        assert cache.sets == []

    async def test_fallback_failure_uses_fixed_text(self, pipeline, mock_generation, cache):
        mock_generation.analyze_full.side_effect = RuntimeError("boom")

        with patch(
            "clearview_core.pipeline.analysis_pipeline.extract_basic_summary",
            side_effect=ValueError("bad content"),
        ):
            result = await pipeline.analyze(_request())

        assert result.summary.text == SUMMARY_FAILED_TEXT
        assert result.warnings == [WARNING_PARTIAL, WARNING_SUMMARY_FAILED]
        assert cache.sets == []
