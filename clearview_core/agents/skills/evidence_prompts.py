# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Evidence synthesis prompt builder.

The model receives deduplicated academic and expert search hits and is asked
what experts and research say about the article's core argument, on both
sides. It is told to cite only what the search results contain.
"""

from __future__ import annotations

import json
from typing import Any

EVIDENCE_SYSTEM_PROMPT = (
    "You are a research analyst finding what EXPERTS and ACADEMIC RESEARCH say about a topic. "
    "Always respond with valid JSON."
)

EVIDENCE_EXPECTED_FIELDS = ("coreQuestion", "expertConsensus", "bottomLine")

_SOURCE_TYPES = '"peer_reviewed_study" | "meta_analysis" | "expert_opinion" | "government_report" | "think_tank"'


def _evidence_item_shape(label: str) -> str:
    return f"""[{{
     "finding": "{label}",
     "source": "Study/paper title or expert name",
     "sourceType": {_SOURCE_TYPES},
     "year": 2024,
     "url": "source URL",
     "strength": "strong" | "moderate" | "weak"
   }}]"""


def build_evidence_synthesis_prompt(*, topic: str, argument: str, search_bundle: dict[str, Any]) -> str:
    formatted_results = json.dumps(search_bundle, indent=2, ensure_ascii=False)
    return f"""You are a research analyst helping readers understand what EXPERTS and ACADEMIC RESEARCH say about a topic. Find evidence that SUPPORTS or REFUTES the core argument.

ARTICLE TOPIC: {topic}

CORE ARGUMENT/POSITION IN ARTICLE:
{argument}

SEARCH RESULTS (academic papers, studies, expert commentary):
{formatted_results}

Analyze the search results and provide a JSON response:

1. "coreQuestion": the core argument rephrased as a research question (e.g. "Does the death penalty deter crime?")

2. "expertConsensus": {{
   "level": "strong_consensus" | "moderate_consensus" | "divided" | "limited_research",
   "direction": "supports_article" | "refutes_article" | "mixed" | "inconclusive",
   "summary": "2-3 sentences on what the expert/research consensus is"
}}

3. "evidenceFor": evidence SUPPORTING the article's position (max 3):
   {_evidence_item_shape("What the research found (1-2 sentences)")}

4. "evidenceAgainst": evidence REFUTING the article's position (max 3):
   {_evidence_item_shape("What the research found")}

5. "keyStudies": the most influential studies on this topic (max 3):
   [{{
     "title": "Full study title",
     "authors": "Lead author et al.",
     "year": 2024,
     "journal": "Journal name",
     "doi": "DOI if available",
     "keyFinding": "Main conclusion in plain language",
     "citationCount": "high/medium/low influence",
     "url": "URL"
   }}]

6. "expertVoices": what named experts say (max 3):
   [{{
     "name": "Expert name",
     "credentials": "Title, institution",
     "position": "supports" | "opposes" | "nuanced",
     "quote": "Direct quote or key argument",
     "url": "Source"
   }}]

7. "bottomLine": {{
   "whatResearchShows": "1-2 sentence plain-language summary of what research actually shows",
   "confidence": "high" | "medium" | "low",
   "caveat": "Key limitation or nuance readers should know"
}}

CRITICAL RULES:
- Research quality over quantity: one meta-analysis beats ten opinion pieces
- Say so when research is limited or consensus is unclear
- Distinguish peer-reviewed research from opinion/commentary
- Do NOT fabricate citations; use only what is in the search results
- If the evidence is one-sided, note that
- Output valid JSON only"""
