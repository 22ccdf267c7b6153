# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Ingestion of evidence-synthesis model output into an EvidenceDossier.

Absent or malformed fields get their documented defaults; list sections are
capped at three entries each.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from clearview_core.agents.skills.analysis_parsing import _as_dict, _as_str
from clearview_core.schema.evidence import (
    BottomLine,
    ConsensusDirection,
    ConsensusLevel,
    EvidenceDossier,
    EvidenceItem,
    ExpertConsensus,
    ExpertVoice,
    KeyStudy,
)

MAX_SECTION_ITEMS = 3

_LEVELS = {v.value for v in ConsensusLevel}
_DIRECTIONS = {v.value for v in ConsensusDirection}


def _as_year(value: Any) -> int:
    current = datetime.now(timezone.utc).year
    if isinstance(value, bool):
        return current
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip()[:4])
    except (TypeError, ValueError):
        return current


def _as_list(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, dict)][:MAX_SECTION_ITEMS]


def _parse_item(raw: dict[str, Any]) -> EvidenceItem:
    return EvidenceItem(
        finding=_as_str(raw.get("finding")),
        source=_as_str(raw.get("source")),
        source_type=_as_str(raw.get("sourceType"), "expert_opinion"),
        year=_as_year(raw.get("year")),
        url=_as_str(raw.get("url")),
        strength=_as_str(raw.get("strength"), "moderate"),
    )


def _parse_study(raw: dict[str, Any]) -> KeyStudy:
    authors = raw.get("authors")
    if isinstance(authors, list):
        authors = ", ".join(_as_str(a) for a in authors if a)
    return KeyStudy(
        title=_as_str(raw.get("title")),
        authors=_as_str(authors),
        year=_as_year(raw.get("year")),
        journal=_as_str(raw.get("journal")),
        doi=_as_str(raw.get("doi")) or None,
        key_finding=_as_str(raw.get("keyFinding")),
        citation_count=_as_str(raw.get("citationCount"), "unknown"),
        url=_as_str(raw.get("url")),
    )


def _parse_voice(raw: dict[str, Any]) -> ExpertVoice:
    return ExpertVoice(
        name=_as_str(raw.get("name")),
        credentials=_as_str(raw.get("credentials")),
        position=_as_str(raw.get("position"), "nuanced"),
        quote=_as_str(raw.get("quote")),
        url=_as_str(raw.get("url")),
    )


def _parse_consensus(value: Any) -> ExpertConsensus:
    raw = _as_dict(value)
    default = ExpertConsensus()
    level = _as_str(raw.get("level")).lower()
    direction = _as_str(raw.get("direction")).lower()
    return ExpertConsensus(
        level=ConsensusLevel(level) if level in _LEVELS else default.level,
        direction=ConsensusDirection(direction) if direction in _DIRECTIONS else default.direction,
        summary=_as_str(raw.get("summary"), default.summary),
    )


def _parse_bottom_line(value: Any) -> BottomLine:
    raw = _as_dict(value)
    default = BottomLine()
    return BottomLine(
        what_research_shows=_as_str(raw.get("whatResearchShows"), default.what_research_shows),
        confidence=_as_str(raw.get("confidence"), default.confidence),
        caveat=_as_str(raw.get("caveat"), default.caveat),
    )


def parse_evidence_dossier(parsed: dict[str, Any], *, topic: str) -> EvidenceDossier:
    return EvidenceDossier(
        topic=topic,
        core_question=_as_str(parsed.get("coreQuestion"), topic),
        expert_consensus=_parse_consensus(parsed.get("expertConsensus")),
        evidence_for=[_parse_item(r) for r in _as_list(parsed.get("evidenceFor"))],
        evidence_against=[_parse_item(r) for r in _as_list(parsed.get("evidenceAgainst"))],
        key_studies=[_parse_study(r) for r in _as_list(parsed.get("keyStudies"))],
        expert_voices=[_parse_voice(r) for r in _as_list(parsed.get("expertVoices"))],
        bottom_line=_parse_bottom_line(parsed.get("bottomLine")),
    )
