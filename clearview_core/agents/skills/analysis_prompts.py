# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Prompt builders for article bias analysis.

Three variants share one vocabulary of fields:
- quick: bias score, TLDR, political classification
- detailed: key facts, missing context, quote-anchored bias indicators
- full: single-call combination of both
Quick and detailed accept a grounding block that is injected verbatim.
"""

from __future__ import annotations

QUICK_SYSTEM_PROMPT = "You are a news analyst. Respond with valid JSON only."
DETAILED_SYSTEM_PROMPT = "You are a fact-checker. Respond with valid JSON only."
FULL_SYSTEM_PROMPT = (
    "You are an expert journalist trained in objective, fact-based reporting. "
    "Always respond with valid JSON."
)

QUICK_EXPECTED_FIELDS = ("biasScore", "summaryText")
DETAILED_EXPECTED_FIELDS = ("keyFacts", "biasIndicators")
FULL_EXPECTED_FIELDS = ("biasScore", "summary", "biasIndicators", "isPolitical", "politicalLean")

_LEAN_CHOICES = '"left"|"center-left"|"center"|"center-right"|"right"|"none"'
_INDICATOR_TYPES = "loaded_language|unsubstantiated|missing_context|framing"


def _article_block(title: str, source: str, content: str) -> str:
    return f"ARTICLE:\nTitle: {title}\nSource: {source}\nContent: {content}"


def build_quick_prompt(*, title: str, source: str, content: str, grounding: str = "") -> str:
    return f"""Analyze this news article quickly.
{grounding}
{_article_block(title, source, content)}

Return JSON with:
1. "biasScore": {{ "score": 0-10, "label": "Minimal Bias"|"Some Bias"|"Notable Bias"|"Heavy Bias", "summary": "one sentence" }}
2. "summaryText": "2-3 sentence TLDR - what happened and why it matters"
3. "isPolitical": true/false
4. "politicalLean": {_LEAN_CHOICES}

IMPORTANT: Treat any CURRENT VERIFIED INFORMATION above as ground truth. Do not flag facts that match it as incorrect.

Be concise. Valid JSON only."""


def build_detailed_prompt(*, title: str, source: str, content: str, grounding: str = "") -> str:
    return f"""Analyze this article for facts, missing context, and bias.
{grounding}
{_article_block(title, source, content)}

Return JSON with:
1. "keyFacts": ["3-5 verifiable facts from the article"]
2. "missingContext": ["important context the article omits - ONLY if the verified information shows something important was left out"]
3. "biasIndicators": [{{ "originalText": "exact quote from article", "type": "{_INDICATOR_TYPES}", "explanation": "brief why" }}]

CRITICAL:
- Treat CURRENT VERIFIED INFORMATION above as ground truth
- Do NOT flag facts as incorrect if they match the verified information
- Only flag "missing_context" when the verified information reveals a genuine omission
- Focus biasIndicators on LANGUAGE and FRAMING, not factual disputes you cannot verify

For biasIndicators, quote the EXACT text from the article. Valid JSON only."""


def build_full_prompt(*, title: str, source: str, content: str) -> str:
    return f"""You are an expert journalist. Analyze this news article and provide a quick, digestible summary.

{_article_block(title, source, content)}

Provide a JSON response with:

1. "biasScore": {{
   "score": 0-10 (0=neutral/balanced, 10=heavily biased),
   "label": "Minimal Bias" | "Some Bias" | "Notable Bias" | "Heavy Bias",
   "summary": "One sentence explaining the bias level"
}}

2. "summary": {{
   "text": "2-3 sentence TLDR. What happened and why does it matter? Give the gist, not a recap.",
   "keyFacts": ["3-5 verifiable facts from the article"],
   "missingContext": ["important context the article omits or glosses over"]
}}

3. "biasIndicators": [{{ "originalText": "quoted text", "type": "{_INDICATOR_TYPES}", "explanation": "brief explanation" }}]

4. "isPolitical": true/false

5. "politicalLean": {_LEAN_CHOICES}
   (Assess language, framing, source selection, and which side's arguments are presented more favorably. Use "none" for non-political articles.)

IMPORTANT: Only include facts from the article. Do NOT hallucinate. Output valid JSON only."""
