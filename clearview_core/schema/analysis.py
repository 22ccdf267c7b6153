# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Bias analysis wire models.

Field names are snake_case and match the event payloads emitted by the
streaming pipeline, so a cached AnalysisResult replays without renaming.
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from clearview_core.schema.serialization import SchemaModel


class PoliticalLean(str, Enum):
    LEFT = "left"
    CENTER_LEFT = "center-left"
    CENTER = "center"
    CENTER_RIGHT = "center-right"
    RIGHT = "right"
    NONE = "none"
    """Article is not political, or the model gave no usable classification."""


class BiasIndicatorType(str, Enum):
    LOADED_LANGUAGE = "loaded_language"
    UNSUBSTANTIATED = "unsubstantiated"
    MISSING_CONTEXT = "missing_context"
    FRAMING = "framing"


class AnalysisRequest(SchemaModel):
    url: str
    content: str
    title: str
    source: str


class BiasScore(SchemaModel):
    score: float = 5
    label: str = "Some Bias"
    summary: str = ""


class BiasIndicator(SchemaModel):
    # Verbatim quote from the article that the indicator is anchored on.
    original_text: str = ""
    type: BiasIndicatorType = BiasIndicatorType.FRAMING
    explanation: str = ""


class AnalysisSummary(SchemaModel):
    text: str = ""
    key_facts: list[str] = Field(default_factory=list)
    missing_context: list[str] = Field(default_factory=list)


class QuickAnalysis(SchemaModel):
    """Fast single-pass result: bias score, short summary, political classification."""

    bias_score: BiasScore = Field(default_factory=BiasScore)
    summary_text: str = ""
    is_political: bool = False
    political_lean: PoliticalLean = PoliticalLean.NONE


class DetailedAnalysis(SchemaModel):
    key_facts: list[str] = Field(default_factory=list)
    missing_context: list[str] = Field(default_factory=list)
    bias_indicators: list[BiasIndicator] = Field(default_factory=list)


class FullAnalysis(SchemaModel):
    """Single-call combination of the quick and detailed passes."""

    bias_score: BiasScore = Field(default_factory=BiasScore)
    summary: AnalysisSummary = Field(default_factory=AnalysisSummary)
    bias_indicators: list[BiasIndicator] = Field(default_factory=list)
    is_political: bool = False
    political_lean: PoliticalLean = PoliticalLean.NONE


class AnalysisResult(SchemaModel):
    id: str
    bias_score: BiasScore | None = None
    summary: AnalysisSummary = Field(default_factory=AnalysisSummary)
    bias_indicators: list[BiasIndicator] = Field(default_factory=list)
    is_political: bool = False
    political_lean: PoliticalLean = PoliticalLean.NONE
    cached: bool = False


class DegradedResult(AnalysisResult):
    """
    Produced by local extractive fallback after the generation call failed.

    Always carries at least one warning and is never written to the cache.
    """

    degraded: bool = True
    warnings: list[str] = Field(default_factory=list)
