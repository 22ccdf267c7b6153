# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Ingestion of bias-analysis model output.

Model JSON is loosely typed; every field is validated and defaulted exactly
once here, so downstream code only ever sees well-formed wire models.
"""

from __future__ import annotations

from typing import Any

from clearview_core.schema.analysis import (
    AnalysisSummary,
    BiasIndicator,
    BiasIndicatorType,
    BiasScore,
    DetailedAnalysis,
    FullAnalysis,
    PoliticalLean,
    QuickAnalysis,
)

_VALID_LEANS = {lean.value for lean in PoliticalLean}
_VALID_INDICATOR_TYPES = {t.value for t in BiasIndicatorType}


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any, default: str = "") -> str:
    if isinstance(value, str):
        return value.strip() or default
    if value is None:
        return default
    return str(value)


def _as_str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [s for s in (_as_str(v) for v in value if v is not None) if s]


def _as_bool(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    if value is None:
        return default
    return bool(value)


def parse_political_lean(value: Any) -> PoliticalLean:
    s = _as_str(value).lower()
    return PoliticalLean(s) if s in _VALID_LEANS else PoliticalLean.NONE


def parse_bias_score(value: Any) -> BiasScore:
    raw = _as_dict(value)
    try:
        score = float(raw.get("score")) if raw.get("score") is not None else 5.0
    except (TypeError, ValueError):
        score = 5.0
    return BiasScore(
        score=max(0.0, min(10.0, score)),
        label=_as_str(raw.get("label"), "Some Bias"),
        summary=_as_str(raw.get("summary")),
    )


def parse_bias_indicators(value: Any) -> list[BiasIndicator]:
    if not isinstance(value, list):
        return []
    out: list[BiasIndicator] = []
    for item in value:
        raw = _as_dict(item)
        if not raw:
            continue
        kind = _as_str(raw.get("type")).lower()
        out.append(BiasIndicator(
            original_text=_as_str(raw.get("originalText") or raw.get("original_text") or raw.get("quote")),
            type=BiasIndicatorType(kind) if kind in _VALID_INDICATOR_TYPES else BiasIndicatorType.FRAMING,
            explanation=_as_str(raw.get("explanation")),
        ))
    return out


def parse_quick(parsed: dict[str, Any]) -> QuickAnalysis:
    return QuickAnalysis(
        bias_score=parse_bias_score(parsed.get("biasScore")),
        summary_text=_as_str(parsed.get("summaryText")),
        is_political=_as_bool(parsed.get("isPolitical")),
        political_lean=parse_political_lean(parsed.get("politicalLean")),
    )


def parse_detailed(parsed: dict[str, Any]) -> DetailedAnalysis:
    return DetailedAnalysis(
        key_facts=_as_str_list(parsed.get("keyFacts")),
        missing_context=_as_str_list(parsed.get("missingContext")),
        bias_indicators=parse_bias_indicators(parsed.get("biasIndicators")),
    )


def parse_full(parsed: dict[str, Any]) -> FullAnalysis:
    summary = _as_dict(parsed.get("summary"))
    return FullAnalysis(
        bias_score=parse_bias_score(parsed.get("biasScore")),
        summary=AnalysisSummary(
            text=_as_str(summary.get("text")),
            key_facts=_as_str_list(summary.get("keyFacts")),
            missing_context=_as_str_list(summary.get("missingContext")),
        ),
        bias_indicators=parse_bias_indicators(parsed.get("biasIndicators")),
        is_political=_as_bool(parsed.get("isPolitical")),
        political_lean=parse_political_lean(parsed.get("politicalLean")),
    )
