# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Prompt-templated generation operations for bias analysis and evidence synthesis.

Each operation builds a system/user prompt pair, runs a JSON-mode call
through LLMClient (budget gate, retry, cost accounting), and ingests the
output into a defaulted wire model.
"""

from __future__ import annotations

import logging
from typing import Any

from clearview_core.agents.llm_client import LLMClient
from clearview_core.agents.skills.analysis_parsing import parse_detailed, parse_full, parse_quick
from clearview_core.agents.skills.analysis_prompts import (
    DETAILED_EXPECTED_FIELDS,
    DETAILED_SYSTEM_PROMPT,
    FULL_EXPECTED_FIELDS,
    FULL_SYSTEM_PROMPT,
    QUICK_EXPECTED_FIELDS,
    QUICK_SYSTEM_PROMPT,
    build_detailed_prompt,
    build_full_prompt,
    build_quick_prompt,
)
from clearview_core.agents.skills.evidence_parsing import parse_evidence_dossier
from clearview_core.agents.skills.evidence_prompts import (
    EVIDENCE_EXPECTED_FIELDS,
    EVIDENCE_SYSTEM_PROMPT,
    build_evidence_synthesis_prompt,
)
from clearview_core.runtime_config import EngineLLMConfig
from clearview_core.schema.analysis import DetailedAnalysis, FullAnalysis, QuickAnalysis
from clearview_core.schema.evidence import EvidenceDossier
from clearview_core.schema.search import SearchHit
from clearview_core.utils.trace import Trace

logger = logging.getLogger(__name__)


def _bundle_to_prompt_payload(search_bundle: dict[str, list[SearchHit]]) -> dict[str, Any]:
    return {
        name: [hit.to_dict() if isinstance(hit, SearchHit) else hit for hit in hits]
        for name, hits in search_bundle.items()
    }


class GenerationClient:
    def __init__(self, llm_client: LLMClient, llm_config: EngineLLMConfig | None = None):
        self.llm = llm_client
        self.llm_config = llm_config or EngineLLMConfig()

    def is_configured(self) -> bool:
        return self.llm.is_configured()

    async def analyze_quick(self, *, title: str, source: str, content: str, grounding: str = "") -> QuickAnalysis:
        """Fast single pass: bias score, short summary, political classification."""
        logger.info('[Generation] Quick analysis: "%s"', title[:80])
        parsed = await self.llm.call_json(
            instructions=QUICK_SYSTEM_PROMPT,
            input=build_quick_prompt(
                title=title,
                source=source,
                content=content[: self.llm_config.quick_content_chars],
                grounding=grounding,
            ),
            operation="quick",
            expected_fields=QUICK_EXPECTED_FIELDS,
        )
        return parse_quick(parsed)

    async def analyze_detailed(
        self, *, title: str, source: str, content: str, grounding: str = ""
    ) -> DetailedAnalysis:
        """Key facts, missing context and quote-anchored bias indicators."""
        logger.info('[Generation] Detailed analysis: "%s"', title[:80])
        parsed = await self.llm.call_json(
            instructions=DETAILED_SYSTEM_PROMPT,
            input=build_detailed_prompt(
                title=title,
                source=source,
                content=content[: self.llm_config.detailed_content_chars],
                grounding=grounding,
            ),
            operation="detailed",
            expected_fields=DETAILED_EXPECTED_FIELDS,
        )
        return parse_detailed(parsed)

    async def analyze_full(self, *, title: str, source: str, content: str) -> FullAnalysis:
        """Single-call combination of quick and detailed, used by non-streaming analysis."""
        logger.info('[Generation] Full analysis: "%s" from %s', title[:80], source)
        parsed = await self.llm.call_json(
            instructions=FULL_SYSTEM_PROMPT,
            input=build_full_prompt(
                title=title,
                source=source,
                content=content[: self.llm_config.full_content_chars],
            ),
            operation="full",
            expected_fields=FULL_EXPECTED_FIELDS,
        )
        return parse_full(parsed)

    async def synthesize_evidence(
        self,
        *,
        topic: str,
        argument: str,
        search_bundle: dict[str, list[SearchHit]],
    ) -> EvidenceDossier:
        """
        Ask the model what research and experts say about `argument`.

        `search_bundle` maps "academic" / "expert" to deduplicated hits. Every
        dossier field is defaulted when the model omits it.
        """
        payload = _bundle_to_prompt_payload(search_bundle)
        Trace.event("generation.evidence.input", {
            "topic": topic,
            "sections": {k: len(v) for k, v in payload.items()},
        })
        parsed = await self.llm.call_json(
            instructions=EVIDENCE_SYSTEM_PROMPT,
            input=build_evidence_synthesis_prompt(topic=topic, argument=argument, search_bundle=payload),
            operation="evidence",
            expected_fields=EVIDENCE_EXPECTED_FIELDS,
        )
        return parse_evidence_dossier(parsed, topic=topic)

    async def complete(self, prompt: str, *, instructions: str | None = None) -> str:
        """Plain-text completion through the same budget and retry gate."""
        result = await self.llm.call(input=prompt, instructions=instructions, operation="complete")
        return result["content"]

    async def close(self) -> None:
        await self.llm.close()
