# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from __future__ import annotations

import re
from typing import Any, Iterable

from clearview_core.schema.search import SearchHit

_WS_RE = re.compile(r"\s+")


def _clean(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return _WS_RE.sub(" ", value).strip()


def normalize_exa_results(results: list[dict] | None, *, keep_author: bool = True) -> list[SearchHit]:
    """
    Normalize raw neural-search hits to SearchHit.

    Snippet prefers the extracted text, then the first highlight. Hits
    without a URL are dropped since nothing downstream can cite them.
    """
    hits: list[SearchHit] = []
    for obj in results or []:
        if not isinstance(obj, dict):
            continue
        url = _clean(obj.get("url"))
        if not url:
            continue
        highlights = obj.get("highlights") or []
        snippet = _clean(obj.get("text")) or (_clean(highlights[0]) if highlights else "")
        hits.append(
            SearchHit(
                title=_clean(obj.get("title")),
                url=url,
                snippet=snippet,
                published_date=_clean(obj.get("publishedDate")) or None,
                author=(_clean(obj.get("author")) or None) if keep_author else None,
            )
        )
    return hits


def dedupe_by_url(hits: Iterable[SearchHit], seen: set[str]) -> list[SearchHit]:
    """
    Keep hits whose URL is not yet in `seen`, in order, updating `seen`.

    Sharing one `seen` set across several calls dedupes a combined pool where
    the first occurrence wins.
    """
    out: list[SearchHit] = []
    for hit in hits:
        if hit.url in seen:
            continue
        seen.add(hit.url)
        out.append(hit)
    return out


def format_hits_for_prompt(hits: Iterable[SearchHit], *, snippet_chars: int = 200) -> str:
    return "\n".join(f"- {hit.title}: {hit.snippet[:snippet_chars]}" for hit in hits)
