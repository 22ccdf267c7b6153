# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from unittest.mock import AsyncMock, MagicMock

import pytest

from clearview_core.agents.generation_client import GenerationClient
from clearview_core.agents.llm_client import LLMClient
from clearview_core.runtime_config import EngineLLMConfig
from clearview_core.schema.analysis import BiasIndicatorType, PoliticalLean
from clearview_core.schema.evidence import ConsensusDirection, ConsensusLevel
from clearview_core.schema.search import SearchHit


@pytest.fixture
def llm():
    client = MagicMock(spec=LLMClient)
    client.call_json = AsyncMock(return_value={})
    client.call = AsyncMock(return_value={"content": "plain text", "model": "gpt-5", "usage": {}})
    client.is_configured.return_value = True
    return client


@pytest.mark.asyncio
class TestGenerationClient:
    async def test_quick_parses_and_truncates_content(self, llm):
        llm.call_json.return_value = {
            "biasScore": {"score": 12, "label": "Strong Bias", "summary": "Loaded framing"},
            "summaryText": "Short summary.",
            "isPolitical": True,
            "politicalLean": "center-left",
        }
        gen = GenerationClient(llm, EngineLLMConfig(quick_content_chars=50))

        quick = await gen.analyze_quick(title="T", source="S", content="x" * 500 + "TAIL", grounding="GROUND")

        assert quick.bias_score.score == 10
        assert quick.bias_score.label == "Strong Bias"
        assert quick.summary_text == "Short summary."
        assert quick.is_political is True
        assert quick.political_lean == PoliticalLean.CENTER_LEFT
        prompt = llm.call_json.call_args.kwargs["input"]
        assert "TAIL" not in prompt
        assert "GROUND" in prompt
        assert llm.call_json.call_args.kwargs["operation"] == "quick"

    async def test_quick_defaults_when_fields_missing(self, llm):
        llm.call_json.return_value = {"politicalLean": "far-out"}
        gen = GenerationClient(llm)

        quick = await gen.analyze_quick(title="T", source="S", content="c")

        assert quick.bias_score.score == 5
        assert quick.bias_score.label == "Some Bias"
        assert quick.summary_text == ""
        assert quick.is_political is False
        assert quick.political_lean == PoliticalLean.NONE

    async def test_detailed_indicators(self, llm):
        llm.call_json.return_value = {
            "keyFacts": ["Fact one", "", None, "Fact two"],
            "missingContext": "not a list",
            "biasIndicators": [
                {"originalText": "slammed", "type": "loaded_language", "explanation": "Emotive verb"},
                {"quote": "critics say", "type": "made_up", "explanation": "Vague attribution"},
                "junk",
            ],
        }
        gen = GenerationClient(llm)

        detailed = await gen.analyze_detailed(title="T", source="S", content="c")

        assert detailed.key_facts == ["Fact one", "Fact two"]
        assert detailed.missing_context == []
        assert [bi.original_text for bi in detailed.bias_indicators] == ["slammed", "critics say"]
        assert detailed.bias_indicators[0].type == BiasIndicatorType.LOADED_LANGUAGE
        assert detailed.bias_indicators[1].type == BiasIndicatorType.FRAMING

    async def test_full_defaults(self, llm):
        gen = GenerationClient(llm)

        full = await gen.analyze_full(title="T", source="S", content="c")

        assert full.bias_score.score == 5
        assert full.summary.text == ""
        assert full.bias_indicators == []
        assert full.political_lean == PoliticalLean.NONE

    async def test_evidence_defaults_and_caps(self, llm):
        llm.call_json.return_value = {
            "keyStudies": [
                {"title": f"Study {i}", "authors": ["A. One", "B. Two"], "year": "2019", "doi": "10.1/x"}
                for i in range(5)
            ],
            "expertConsensus": {"level": "strong_consensus", "direction": "sideways"},
        }
        gen = GenerationClient(llm)
        bundle = {"academic": [SearchHit(title="t", url="https://a.edu/p", snippet="s")], "expert": []}

        dossier = await gen.synthesize_evidence(topic="Rent control", argument="It reduces supply", search_bundle=bundle)

        assert dossier.topic == "Rent control"
        assert dossier.core_question == "Rent control"
        assert len(dossier.key_studies) == 3
        assert dossier.key_studies[0].authors == "A. One, B. Two"
        assert dossier.key_studies[0].year == 2019
        assert dossier.key_studies[0].doi_verified is False
        assert dossier.expert_consensus.level == ConsensusLevel.STRONG_CONSENSUS
        assert dossier.expert_consensus.direction == ConsensusDirection.INCONCLUSIVE
        assert dossier.bottom_line.confidence == "low"
        assert "https://a.edu/p" in llm.call_json.call_args.kwargs["input"]

    async def test_complete_returns_text(self, llm):
        gen = GenerationClient(llm)
        assert await gen.complete("Say hi") == "plain text"
        assert llm.call.call_args.kwargs["operation"] == "complete"
