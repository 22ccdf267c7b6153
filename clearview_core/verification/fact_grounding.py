# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Best-effort fact grounding for generation prompts.

Pattern heuristics surface up to five entities that are likely to have
changed recently (titled people, agency leadership). Each is checked with
a small fact-check search; the hits are rendered into a block the model is
told to treat as ground truth. Any failure yields an empty block.
"""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import date, datetime, timezone
from typing import Callable

from clearview_core.schema.search import SearchHit
from clearview_core.tools.exa_client import SearchGateway
from clearview_core.tools.search_result_normalizer import format_hits_for_prompt
from clearview_core.utils.trace import Trace

logger = logging.getLogger(__name__)

MAX_ENTITIES = 5
MAX_DEPARTMENT_MATCHES = 2
RESULTS_PER_ENTITY = 3
SNIPPET_CHARS = 200

_TITLES = (
    "President|Secretary|Director|Chairman|CEO|Governor|Senator|Representative"
    "|Mayor|Chief|Minister|Commissioner"
)

# "Secretary John Smith", "President Biden"
_TITLED_NAME_RE = re.compile(rf"(?:{_TITLES})\s+[A-Z][a-z]+(?:\s+[A-Z][a-z]+)?")
# "Jane Doe became the new Director"
_NAME_AS_TITLE_RE = re.compile(
    rf"[A-Z][a-z]+(?:\s+[A-Z][a-z]+)?\s+(?:is|was|as|became)\s+(?:the\s+)?(?:new\s+)?(?:{_TITLES})",
    re.IGNORECASE,
)
_DEPARTMENT_RE = re.compile(
    r"(?:DHS|Department of Homeland Security|FBI|CIA|DOJ|Department of Justice|State Department"
    r"|Treasury|Pentagon|Defense Department)(?:\s+(?:Secretary|Director|Chief))?",
    re.IGNORECASE,
)


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def extract_entities(title: str, content: str, *, year: int | None = None) -> list[str]:
    """Candidate entities in first-seen order, deduplicated, at most five."""
    text = f"{title} {content}"
    year = year or _utc_today().year
    entities: list[str] = []

    def _add(entity: str) -> None:
        if entity and entity not in entities:
            entities.append(entity)

    for pattern in (_TITLED_NAME_RE, _NAME_AS_TITLE_RE):
        for m in pattern.finditer(text):
            _add(m.group(0).strip())

    for m in list(_DEPARTMENT_RE.finditer(text))[:MAX_DEPARTMENT_MATCHES]:
        _add(f"current {m.group(0).strip()} leadership {year}")

    return entities[:MAX_ENTITIES]


def build_grounding_block(found: list[tuple[str, list[SearchHit]]], *, as_of: date) -> str:
    sections = "\n\n".join(
        f"### {entity}\n{format_hits_for_prompt(hits, snippet_chars=SNIPPET_CHARS)}" for entity, hits in found
    )
    return (
        f"\nCURRENT VERIFIED INFORMATION (from web search, {as_of.strftime('%B %Y')}):\n"
        f"{sections}\n\n"
        "Use this verified information when analyzing the article. Do NOT contradict these current facts.\n"
    )


class FactGroundingExtractor:
    def __init__(self, search: SearchGateway, *, clock: Callable[[], date] | None = None):
        self.search = search
        self._clock = clock or _utc_today

    async def _check_entity(self, entity: str) -> tuple[str, list[SearchHit]] | None:
        try:
            response = await self.search.search_fact_check(entity, RESULTS_PER_ENTITY)
        except Exception as e:
            # One entity failing only drops that entity.
            logger.info('[FactGrounding] Failed to verify "%s": %s', entity, e)
            return None
        if not response.results:
            return None
        return entity, response.results

    async def get_grounding(self, title: str, content: str) -> str:
        if not self.search.is_configured():
            logger.debug("[FactGrounding] Search not configured; skipping grounding")
            return ""

        today = self._clock()
        entities = extract_entities(title, content, year=today.year)
        if not entities:
            logger.info("[FactGrounding] No entities to verify")
            return ""

        logger.info("[FactGrounding] Verifying %d entities: %s", len(entities), entities)
        results = await asyncio.gather(*(self._check_entity(e) for e in entities))
        found = [r for r in results if r is not None]

        Trace.event("grounding.result", {"entities": entities, "grounded": [e for e, _ in found]})
        if not found:
            return ""

        logger.info("[FactGrounding] Found context for %d entities", len(found))
        return build_grounding_block(found, as_of=today)
