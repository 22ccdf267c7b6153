# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
DOI verification against the CrossRef works API.

Results are cached by normalized DOI for 24h. "Not found" is a definitive
answer and is cached too; server errors and network failures return
`valid=False` without caching so a later lookup can retry.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable
from urllib.parse import quote

import httpx

from clearview_core.schema.citation import DOIMetadata
from clearview_core.tools.cache_store import CacheStore
from clearview_core.tools.cache_utils import doi_cache_key
from clearview_core.utils.trace import Trace

logger = logging.getLogger(__name__)

CROSSREF_API_BASE = "https://api.crossref.org/works"
CROSSREF_USER_AGENT = "ClearViewNews/1.0 (https://github.com/clearview-news)"
DOI_CACHE_TTL_SEC = 24 * 60 * 60

_DOI_PREFIXES = (
    "https://doi.org/",
    "http://doi.org/",
    "https://dx.doi.org/",
    "http://dx.doi.org/",
    "doi:",
)


def normalize_doi(doi: str | None) -> str:
    """Strip resolver URL prefixes and the `doi:` scheme marker."""
    normalized = (doi or "").strip()
    lowered = normalized.lower()
    for prefix in _DOI_PREFIXES:
        if lowered.startswith(prefix):
            normalized = normalized[len(prefix):].strip()
            break
    return normalized


def build_user_agent(email: str | None) -> str:
    # Contact email puts lookups in the CrossRef polite pool.
    if email:
        return f"{CROSSREF_USER_AGENT}; mailto:{email}"
    return CROSSREF_USER_AGENT


def _first_str(value: Any) -> str | None:
    # CrossRef sends most text fields as lists of strings.
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _extract_year(work: dict[str, Any]) -> int | None:
    for key in ("published", "published-print", "published-online"):
        stamp = work.get(key)
        parts = stamp.get("date-parts") if isinstance(stamp, dict) else None
        if isinstance(parts, list) and parts and isinstance(parts[0], list) and parts[0] and parts[0][0]:
            try:
                return int(parts[0][0])
            except (TypeError, ValueError):
                return None
    return None


def _format_author(author: dict[str, Any]) -> str:
    if author.get("name"):
        return str(author["name"]).strip()
    return " ".join(str(author[k]).strip() for k in ("given", "family") if author.get(k))


def parse_work(work: dict[str, Any], *, doi: str) -> DOIMetadata:
    raw_authors = work.get("author")
    authors = [_format_author(a) for a in raw_authors if isinstance(a, dict)] if isinstance(raw_authors, list) else []
    work_doi = _first_str(work.get("DOI"))
    url = _first_str(work.get("URL")) or (f"https://doi.org/{work_doi}" if work_doi else None)
    return DOIMetadata(
        valid=True,
        doi=doi,
        title=_first_str(work.get("title")),
        authors=[a for a in authors if a],
        journal=_first_str(work.get("container-title")),
        year=_extract_year(work),
        url=url,
    )


class CitationRegistry:
    def __init__(
        self,
        *,
        cache: CacheStore,
        email: str | None = None,
        timeout_s: float = 10.0,
        cache_ttl_sec: int = DOI_CACHE_TTL_SEC,
    ):
        self.cache = cache
        self.cache_ttl_sec = cache_ttl_sec
        self._client = httpx.AsyncClient(
            timeout=float(timeout_s),
            follow_redirects=True,
            headers={
                "User-Agent": build_user_agent(email),
                "Accept": "application/json",
            },
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def lookup_doi(self, doi: str) -> DOIMetadata:
        normalized = normalize_doi(doi)
        if not normalized:
            return DOIMetadata(valid=False)

        key = doi_cache_key(normalized)
        cached = await self.cache.get(key)
        if cached is not None:
            logger.debug("[CrossRef] Cache hit for DOI: %s", normalized)
            try:
                return DOIMetadata.from_dict(cached)
            except (TypeError, ValueError) as e:
                logger.warning("[CrossRef] Ignoring unreadable cache entry %s: %s", key, e)

        logger.info("[CrossRef] Looking up DOI: %s", normalized)
        url = f"{CROSSREF_API_BASE}/{quote(normalized, safe='')}"
        try:
            r = await self._client.get(url)
        except httpx.HTTPError as e:
            logger.warning("[CrossRef] Lookup failed for DOI %s: %s", normalized, e)
            Trace.event("crossref.error", {"doi": normalized, "error": str(e)[:200]})
            return DOIMetadata(valid=False, doi=normalized)

        if r.status_code == 404:
            result = DOIMetadata(valid=False, doi=normalized)
            await self.cache.set(key, result.to_dict(), self.cache_ttl_sec)
            logger.info("[CrossRef] DOI not found: %s", normalized)
            return result

        if r.status_code >= 400:
            logger.warning("[CrossRef] API error for DOI %s: %s", normalized, r.status_code)
            Trace.event("crossref.error", {"doi": normalized, "status_code": r.status_code})
            return DOIMetadata(valid=False, doi=normalized)

        try:
            body = r.json()
        except ValueError as e:
            logger.warning("[CrossRef] Undecodable response for DOI %s: %s", normalized, e)
            return DOIMetadata(valid=False, doi=normalized)

        work = body.get("message") if isinstance(body, dict) else None
        if not isinstance(work, dict):
            logger.warning("[CrossRef] Unexpected response shape for DOI %s", normalized)
            Trace.event("crossref.error", {"doi": normalized, "error": "unexpected_shape"})
            return DOIMetadata(valid=False, doi=normalized)

        result = parse_work(work, doi=normalized)
        await self.cache.set(key, result.to_dict(), self.cache_ttl_sec)
        return result

    async def verify_doi(self, doi: str) -> bool:
        return (await self.lookup_doi(doi)).valid

    async def verify_dois(self, dois: Iterable[str]) -> dict[str, bool]:
        """Verify many DOIs concurrently; keys are normalized DOIs."""
        unique = list(dict.fromkeys(n for n in (normalize_doi(d) for d in dois) if n))
        results = await asyncio.gather(*(self.verify_doi(d) for d in unique), return_exceptions=True)
        verified: dict[str, bool] = {}
        for doi, outcome in zip(unique, results):
            if isinstance(outcome, BaseException):
                logger.warning("[CrossRef] Verification failed for DOI %s: %s", doi, outcome)
                verified[doi] = False
            else:
                verified[doi] = bool(outcome)
        return verified
