# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Evidence dossier wire models.

The dossier answers "what do experts and research say?" about the core
argument of an article. Every optional field the model may omit has a
default here; list caps are applied by the generation client at ingestion.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import Field

from clearview_core.schema.serialization import SchemaModel


def _current_year() -> int:
    return datetime.now(timezone.utc).year


class ConsensusLevel(str, Enum):
    STRONG_CONSENSUS = "strong_consensus"
    MODERATE_CONSENSUS = "moderate_consensus"
    DIVIDED = "divided"
    LIMITED_RESEARCH = "limited_research"


class ConsensusDirection(str, Enum):
    SUPPORTS_ARTICLE = "supports_article"
    REFUTES_ARTICLE = "refutes_article"
    MIXED = "mixed"
    INCONCLUSIVE = "inconclusive"


class ThinkTankInfo(SchemaModel):
    """Disclosure attached to evidence that comes from a known think tank."""

    name: str = ""
    lean: str = ""
    description: str = ""


class EvidenceItem(SchemaModel):
    finding: str = ""
    source: str = ""
    source_type: str = "expert_opinion"
    year: int = Field(default_factory=_current_year)
    url: str = ""
    strength: str = "moderate"
    think_tank: ThinkTankInfo | None = None


class KeyStudy(SchemaModel):
    title: str = ""
    authors: str = ""
    year: int = Field(default_factory=_current_year)
    journal: str = ""
    doi: str | None = None
    key_finding: str = ""
    citation_count: str = "unknown"
    url: str = ""
    doi_verified: bool = False


class ExpertVoice(SchemaModel):
    name: str = ""
    credentials: str = ""
    position: str = "nuanced"
    quote: str = ""
    url: str = ""
    think_tank: ThinkTankInfo | None = None


class ExpertConsensus(SchemaModel):
    level: ConsensusLevel = ConsensusLevel.LIMITED_RESEARCH
    direction: ConsensusDirection = ConsensusDirection.INCONCLUSIVE
    summary: str = "Limited research found on this topic."


class BottomLine(SchemaModel):
    what_research_shows: str = "Research on this topic is limited or mixed."
    confidence: str = "low"
    caveat: str = "More research may be needed."


class EvidenceDossier(SchemaModel):
    topic: str
    core_question: str = ""
    expert_consensus: ExpertConsensus = Field(default_factory=ExpertConsensus)
    evidence_for: list[EvidenceItem] = Field(default_factory=list, max_length=3)
    evidence_against: list[EvidenceItem] = Field(default_factory=list, max_length=3)
    key_studies: list[KeyStudy] = Field(default_factory=list, max_length=3)
    expert_voices: list[ExpertVoice] = Field(default_factory=list, max_length=3)
    bottom_line: BottomLine = Field(default_factory=BottomLine)
    # Non-empty when one or more research searches failed; such dossiers are not cached.
    warnings: list[str] = Field(default_factory=list)
    cached: bool = False
