# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from clearview_core.errors import NotConfiguredError, UpstreamUnavailableError
from clearview_core.schema.evidence import EvidenceDossier, EvidenceItem, ExpertVoice, KeyStudy
from clearview_core.schema.search import SearchCategory, SearchHit, SearchResponse
from clearview_core.tools.cache_utils import evidence_cache_key
from clearview_core.tools.crossref_client import CitationRegistry
from clearview_core.verification.evidence_synthesizer import (
    EvidenceSynthesizer,
    build_research_queries,
    merge_search_sets,
    resolve_argument,
)


def _hits(*urls: str) -> list[SearchHit]:
    return [SearchHit(title=u, url=u, snippet="s") for u in urls]


def _response(category: SearchCategory, *urls: str) -> SearchResponse:
    return SearchResponse(query="q", category=category, results=_hits(*urls))


def _dossier(**kwargs) -> EvidenceDossier:
    return EvidenceDossier(topic="model topic", **kwargs)


def test_research_queries():
    queries = build_research_queries("rent control")
    assert queries == [
        "rent control research study evidence",
        "rent control academic meta-analysis",
        "rent control benefits effectiveness study",
        "rent control problems risks criticism research",
        "rent control expert analysis policy",
    ]


class TestResolveArgument:
    def test_core_argument_first(self):
        assert resolve_argument("t", core_argument="arg", summary_text="sum", claims=["c"]) == "arg"

    def test_summary_then_claims_then_topic(self):
        assert resolve_argument("t", summary_text="sum", claims=["c"]) == "sum"
        assert resolve_argument("t", claims=["c1", " ", "c2"]) == "c1; c2"
        assert resolve_argument("t", core_argument="  ") == "t"


class TestMergeSearchSets:
    def test_dedupe_across_combined_pool_first_seen_wins(self):
        academic = [_hits("u1", "u2"), _hits("u2", "u3")]
        expert = [_hits("u3", "u4"), _hits("u1", "u5")]

        bundle = merge_search_sets(academic, expert)

        assert [h.url for h in bundle["academic"]] == ["u1", "u2", "u3"]
        assert [h.url for h in bundle["expert"]] == ["u4", "u5"]
        all_urls = [h.url for hs in bundle.values() for h in hs]
        assert len(all_urls) == len(set(all_urls))

    def test_caps(self):
        academic = [_hits(*[f"a{i}" for i in range(15)])]
        expert = [_hits(*[f"e{i}" for i in range(9)])]
        bundle = merge_search_sets(academic, expert)
        assert len(bundle["academic"]) == 10
        assert len(bundle["expert"]) == 6

    def test_over_cap_academic_url_still_blocks_expert_duplicate(self):
        academic = [_hits(*[f"a{i}" for i in range(12)])]
        expert = [_hits("a11", "e1")]
        bundle = merge_search_sets(academic, expert)
        assert [h.url for h in bundle["expert"]] == ["e1"]


@pytest.fixture
def synthesizer(mock_search, mock_generation, mock_citations, cache):
    mock_search.search_academic = AsyncMock(
        side_effect=lambda q, n: _response(SearchCategory.RESEARCH, f"https://a.edu/{q[:5]}", "https://shared.org/x")
    )
    mock_search.search_expert_commentary = AsyncMock(
        side_effect=lambda q, n: _response(SearchCategory.EXPERT, "https://shared.org/x", "https://www.heritage.org/r")
    )
    mock_generation.synthesize_evidence = AsyncMock(return_value=_dossier(
        evidence_for=[EvidenceItem(finding="f", url="https://www.brookings.edu/paper")],
        evidence_against=[EvidenceItem(finding="g", url="https://example.com/x")],
        key_studies=[
            KeyStudy(title="With DOI", doi="https://doi.org/10.1/good"),
            KeyStudy(title="Bad DOI", doi="10.1/bad"),
            KeyStudy(title="No DOI"),
        ],
        expert_voices=[ExpertVoice(name="Analyst", url="https://www.heritage.org/r")],
    ))
    mock_citations.verify_dois = AsyncMock(return_value={"10.1/good": True, "10.1/bad": False})
    return EvidenceSynthesizer(mock_search, mock_generation, mock_citations, cache)


@pytest.mark.asyncio
class TestEvidenceSynthesizer:
    async def test_full_flow(self, synthesizer, mock_search, mock_generation, mock_citations, cache):
        dossier = await synthesizer.get_evidence("rent control", core_argument="It reduces supply")

        assert mock_search.search_academic.await_count == 3
        assert all(c.args[1] == 5 for c in mock_search.search_academic.call_args_list)
        assert mock_search.search_expert_commentary.await_count == 2
        assert all(c.args[1] == 4 for c in mock_search.search_expert_commentary.call_args_list)

        kwargs = mock_generation.synthesize_evidence.call_args.kwargs
        assert kwargs["argument"] == "It reduces supply"
        bundle = kwargs["search_bundle"]
        urls = [h.url for hs in bundle.values() for h in hs]
        assert len(urls) == len(set(urls))
        assert "https://shared.org/x" in [h.url for h in bundle["academic"]]
        assert [h.url for h in bundle["expert"]] == ["https://www.heritage.org/r"]

        assert dossier.topic == "rent control"
        assert [s.doi_verified for s in dossier.key_studies] == [True, False, False]
        verified_arg = mock_citations.verify_dois.call_args.args[0]
        assert verified_arg == ["https://doi.org/10.1/good", "10.1/bad"]

        assert dossier.evidence_for[0].think_tank.name == "Brookings Institution"
        assert dossier.evidence_against[0].think_tank is None
        assert dossier.expert_voices[0].think_tank.lean == "right"

        assert dossier.warnings == []
        key, _, ttl = cache.sets[0]
        assert key == evidence_cache_key("rent control", "It reduces supply")
        assert ttl == 24 * 3600

    async def test_cache_hit_skips_search(self, synthesizer, mock_search, cache):
        await synthesizer.get_evidence("rent control", summary_text="Summary")
        second = await synthesizer.get_evidence("rent control", summary_text="Summary")

        assert second.cached is True
        assert mock_search.search_academic.await_count == 3

    async def test_search_failure_is_isolated_and_not_cached(self, synthesizer, mock_search, mock_generation, cache):
        async def flaky(q, n):
            if "meta-analysis" in q:
                raise UpstreamUnavailableError("Exa")
            return _response(SearchCategory.RESEARCH, f"https://a.edu/{len(q)}")

        mock_search.search_academic = AsyncMock(side_effect=flaky)

        dossier = await synthesizer.get_evidence("rent control")

        assert len(dossier.warnings) == 1
        assert "meta-analysis" in dossier.warnings[0]
        mock_generation.synthesize_evidence.assert_awaited_once()
        assert cache.sets == []

    async def test_no_dois_skips_registry(self, synthesizer, mock_generation, mock_citations):
        mock_generation.synthesize_evidence = AsyncMock(return_value=_dossier(key_studies=[KeyStudy(title="x")]))

        dossier = await synthesizer.get_evidence("rent control")

        assert dossier.key_studies[0].doi_verified is False
        mock_citations.verify_dois.assert_not_called()

    async def test_search_not_configured(self, synthesizer, mock_search):
        mock_search.is_configured.return_value = False
        with pytest.raises(NotConfiguredError):
            await synthesizer.get_evidence("rent control")

    async def test_unreadable_cache_entry_is_a_miss(self, synthesizer, mock_search, cache):
        cache.data[evidence_cache_key("rent control", "rent control")] = {"key_studies": "oops"}

        dossier = await synthesizer.get_evidence("rent control")

        assert dossier.cached is False
        assert mock_search.search_academic.await_count == 3
        assert cache.sets[0][0] == evidence_cache_key("rent control", "rent control")

    async def test_malformed_crossref_reply_does_not_block_dossier(
        self, mock_search, mock_generation, synthesizer, cache
    ):
        registry = CitationRegistry(cache=cache)
        synthesizer.citations = registry
        reply = MagicMock(spec=httpx.Response)
        reply.status_code = 200
        reply.json.return_value = {"status": "failed", "message": "Resource not found."}

        with patch.object(registry._client, "get", new_callable=AsyncMock, return_value=reply):
            dossier = await synthesizer.get_evidence("rent control", core_argument="It reduces supply")

        assert [s.doi_verified for s in dossier.key_studies] == [False, False, False]
        assert dossier.evidence_for[0].think_tank.name == "Brookings Institution"
        await registry.close()
