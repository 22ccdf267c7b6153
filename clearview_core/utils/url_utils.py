# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

import re
from urllib.parse import urlparse

_DISPLAY_TLD_RE = re.compile(r"\.(com|org|net|gov|edu|co\.uk)$")


def extract_domain(url: str) -> str | None:
    """Lower-cased host without `www.` and port, or None for unparseable input."""
    if not url or not isinstance(url, str):
        return None
    try:
        host = (urlparse(url.strip()).hostname or "").lower()
    except ValueError:
        return None
    if host.startswith("www."):
        host = host[4:]
    return host or None


def extract_source_name(url: str) -> str:
    """
    Human-readable outlet name derived from the URL host.

    "https://www.nytimes.com/x" -> "Nytimes", "https://news.bbc.co.uk/" -> "News Bbc".
    """
    host = extract_domain(url)
    if not host:
        return "Unknown Source"
    name = _DISPLAY_TLD_RE.sub("", host)
    return " ".join(part[:1].upper() + part[1:] for part in name.split("."))
