# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from __future__ import annotations

import hashlib
import json
import re
from typing import Any

NAMESPACE_ANALYZE = "analyze"
NAMESPACE_PERSPECTIVES = "perspectives"
NAMESPACE_EVIDENCE = "evidence"
NAMESPACE_DOI = "doi"

CACHE_NAMESPACES = (NAMESPACE_ANALYZE, NAMESPACE_PERSPECTIVES, NAMESPACE_EVIDENCE, NAMESPACE_DOI)

_WS_RE = re.compile(r"\s+")


def _normalize_part(value: Any) -> Any:
    if isinstance(value, str):
        return _WS_RE.sub(" ", value).strip()
    if isinstance(value, (list, tuple)):
        return [_normalize_part(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _normalize_part(v) for k, v in value.items()}
    return value


def canonicalize(*parts: Any) -> str:
    """Deterministic JSON rendering of request fields (whitespace-normalized)."""
    normalized = [_normalize_part(p) for p in parts]
    return json.dumps(normalized, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def make_cache_key(namespace: str, *parts: Any) -> str:
    """
    Build `<namespace>:<md5-hex>` over the canonicalized request fields.

    The same logical request always maps to the same key; requests differing
    in any field map to different keys.
    """
    if namespace not in CACHE_NAMESPACES:
        raise ValueError(f"Unknown cache namespace: {namespace!r}")
    digest = hashlib.md5(canonicalize(*parts).encode("utf-8")).hexdigest()
    return f"{namespace}:{digest}"


def analyze_cache_key(url: str) -> str:
    return make_cache_key(NAMESPACE_ANALYZE, url)


def perspectives_cache_key(topic: str, keywords: list[str], article_lean: str | None) -> str:
    return make_cache_key(NAMESPACE_PERSPECTIVES, topic, list(keywords or []), article_lean or "unknown")


def evidence_cache_key(topic: str, argument: str) -> str:
    return make_cache_key(NAMESPACE_EVIDENCE, topic, argument)


def doi_cache_key(normalized_doi: str) -> str:
    # Normalized DOIs are case-insensitive by definition.
    return make_cache_key(NAMESPACE_DOI, normalized_doi.lower())
