# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Wire models for the orchestration core.

All models derive from SchemaModel (Pydantic v2) and serialize to JSON-safe
dicts for the cache and the streaming event channel.
"""

from clearview_core.schema.analysis import (
    AnalysisRequest,
    AnalysisResult,
    AnalysisSummary,
    BiasIndicator,
    BiasIndicatorType,
    BiasScore,
    DegradedResult,
    DetailedAnalysis,
    FullAnalysis,
    PoliticalLean,
    QuickAnalysis,
)
from clearview_core.schema.citation import DOIMetadata
from clearview_core.schema.evidence import (
    BottomLine,
    ConsensusDirection,
    ConsensusLevel,
    EvidenceDossier,
    EvidenceItem,
    ExpertConsensus,
    ExpertVoice,
    KeyStudy,
    ThinkTankInfo,
)
from clearview_core.schema.perspectives import PerspectiveSource, PerspectivesResult
from clearview_core.schema.search import SearchCategory, SearchHit, SearchResponse
from clearview_core.schema.serialization import SchemaModel, dump_schema

__all__ = [
    "AnalysisRequest",
    "AnalysisResult",
    "AnalysisSummary",
    "BiasIndicator",
    "BiasIndicatorType",
    "BiasScore",
    "BottomLine",
    "ConsensusDirection",
    "ConsensusLevel",
    "DOIMetadata",
    "DegradedResult",
    "DetailedAnalysis",
    "EvidenceDossier",
    "EvidenceItem",
    "ExpertConsensus",
    "ExpertVoice",
    "FullAnalysis",
    "KeyStudy",
    "PerspectiveSource",
    "PerspectivesResult",
    "PoliticalLean",
    "QuickAnalysis",
    "SchemaModel",
    "SearchCategory",
    "SearchHit",
    "SearchResponse",
    "ThinkTankInfo",
    "dump_schema",
]
