# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Outlet Political Lean Registry
==============================
Domain -> lean on the five-point spectrum, based on generally accepted
media bias ratings. Subdomains inherit the lean of the longest matching
registered domain (edition.cnn.com -> cnn.com).
"""

from __future__ import annotations

from clearview_core.utils.url_utils import extract_domain

LEAN_SPECTRUM: tuple[str, ...] = ("left", "center-left", "center", "center-right", "right")

SOURCE_LEANS_BY_LEAN: dict[str, list[str]] = {
    "left": [
        "motherjones.com", "thenation.com", "jacobinmag.com", "democracynow.org", "dailykos.com",
        "huffpost.com", "slate.com", "vox.com", "msnbc.com", "commondreams.org",
    ],
    "center-left": [
        "nytimes.com", "washingtonpost.com", "cnn.com", "npr.org", "theatlantic.com",
        "theguardian.com", "newyorker.com", "time.com", "newsweek.com", "latimes.com",
        "usatoday.com", "nbcnews.com", "cbsnews.com", "abcnews.go.com", "pbs.org",
        "businessinsider.com",
    ],
    "center": [
        "bbc.com", "bbc.co.uk", "reuters.com", "apnews.com", "economist.com",
        "politico.com", "axios.com", "csmonitor.com", "thehill.com", "bloomberg.com",
        "forbes.com", "marketwatch.com", "ft.com", "aljazeera.com", "france24.com",
        "dw.com", "c-span.org", "propublica.org", "realclearpolitics.com",
    ],
    "center-right": [
        "wsj.com", "theamericanconservative.com", "reason.com", "nationaljournal.com",
        "weeklystandard.com", "washingtonexaminer.com",
    ],
    "right": [
        "foxnews.com", "nationalreview.com", "nypost.com", "dailywire.com", "breitbart.com",
        "thefederalist.com", "townhall.com", "dailycaller.com", "theblaze.com", "newsmax.com",
        "oann.com", "washingtontimes.com", "freebeacon.com",
    ],
}

SOURCE_LEANS: dict[str, str] = {
    domain: lean for lean, domains in SOURCE_LEANS_BY_LEAN.items() for domain in domains
}


def normalize_host(url_or_domain: str) -> str | None:
    s = (url_or_domain or "").strip()
    if not s:
        return None
    if "://" not in s:
        s = "https://" + s
    return extract_domain(s)


def get_source_lean(url: str) -> str | None:
    """Lean for the URL's outlet, or None when the outlet is unknown."""
    host = normalize_host(url)
    if not host:
        return None
    if host in SOURCE_LEANS:
        return SOURCE_LEANS[host]

    best: str | None = None
    for domain in SOURCE_LEANS:
        if host.endswith("." + domain) and (best is None or len(domain) > len(best)):
            best = domain
    return SOURCE_LEANS[best] if best else None


def is_known_source(url: str) -> bool:
    return get_source_lean(url) is not None
