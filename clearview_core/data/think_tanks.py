# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Think Tank Disclosure Registry
==============================
Domain -> {name, lean, description} for policy organizations whose output
shows up as "research" in evidence searches. Used to attach a disclosure
to evidence items and expert voices sourced from them.
"""

from __future__ import annotations

from typing import Any

from clearview_core.data.source_leans import normalize_host

THINK_TANKS: list[dict[str, str]] = [
    # Left
    {"domain": "cbpp.org", "name": "Center on Budget and Policy Priorities", "lean": "left",
     "description": "Center on Budget and Policy Priorities - progressive economic policy"},
    {"domain": "epi.org", "name": "Economic Policy Institute", "lean": "left",
     "description": "Economic Policy Institute - labor-aligned economic research"},
    {"domain": "americanprogress.org", "name": "Center for American Progress", "lean": "left",
     "description": "Center for American Progress - progressive policy research"},
    {"domain": "demos.org", "name": "Demos", "lean": "left",
     "description": "Demos - progressive policy organization"},
    {"domain": "rooseveltinstitute.org", "name": "Roosevelt Institute", "lean": "left",
     "description": "Roosevelt Institute - progressive economic research"},
    # Center-left
    {"domain": "brookings.edu", "name": "Brookings Institution", "lean": "center-left",
     "description": "Brookings Institution - center-left policy research"},
    {"domain": "newamerica.org", "name": "New America", "lean": "center-left",
     "description": "New America - center-left policy research"},
    {"domain": "tcf.org", "name": "The Century Foundation", "lean": "center-left",
     "description": "The Century Foundation - center-left policy research"},
    # Center / nonpartisan
    {"domain": "urban.org", "name": "Urban Institute", "lean": "center",
     "description": "Urban Institute - center/nonpartisan economic and social policy research"},
    {"domain": "rand.org", "name": "RAND Corporation", "lean": "nonpartisan",
     "description": "RAND Corporation - nonpartisan research organization"},
    {"domain": "cfr.org", "name": "Council on Foreign Relations", "lean": "nonpartisan",
     "description": "Council on Foreign Relations - nonpartisan foreign policy think tank"},
    {"domain": "bipartisanpolicy.org", "name": "Bipartisan Policy Center", "lean": "nonpartisan",
     "description": "Bipartisan Policy Center - bipartisan policy research"},
    {"domain": "taxpolicycenter.org", "name": "Tax Policy Center", "lean": "nonpartisan",
     "description": "Tax Policy Center - nonpartisan tax policy research (joint Urban-Brookings)"},
    # Academic
    {"domain": "nber.org", "name": "National Bureau of Economic Research", "lean": "academic",
     "description": "National Bureau of Economic Research - academic economists research network"},
    {"domain": "piie.com", "name": "Peterson Institute for International Economics", "lean": "academic",
     "description": "Peterson Institute for International Economics - academic international economics"},
    # Center-right
    {"domain": "aei.org", "name": "American Enterprise Institute", "lean": "center-right",
     "description": "American Enterprise Institute - center-right policy research"},
    {"domain": "hoover.org", "name": "Hoover Institution", "lean": "center-right",
     "description": "Hoover Institution - center-right policy research at Stanford"},
    # Right
    {"domain": "heritage.org", "name": "Heritage Foundation", "lean": "right",
     "description": "Heritage Foundation - conservative policy research"},
    {"domain": "manhattan-institute.org", "name": "Manhattan Institute", "lean": "right",
     "description": "Manhattan Institute - conservative policy research"},
    {"domain": "hudson.org", "name": "Hudson Institute", "lean": "right",
     "description": "Hudson Institute - conservative policy research"},
    {"domain": "atr.org", "name": "Americans for Tax Reform", "lean": "right",
     "description": "Americans for Tax Reform - conservative anti-tax advocacy"},
    # Libertarian
    {"domain": "cato.org", "name": "Cato Institute", "lean": "libertarian",
     "description": "Cato Institute - libertarian policy research"},
    {"domain": "reason.org", "name": "Reason Foundation", "lean": "libertarian",
     "description": "Reason Foundation - libertarian policy research"},
    {"domain": "mercatus.org", "name": "Mercatus Center", "lean": "libertarian",
     "description": "Mercatus Center - libertarian-leaning economic research at George Mason"},
]

_BY_DOMAIN: dict[str, dict[str, str]] = {t["domain"]: t for t in THINK_TANKS}


def _find(url_or_domain: str) -> dict[str, str] | None:
    host = normalize_host(url_or_domain)
    if not host:
        return None
    parts = host.split(".")
    # research.rand.org -> rand.org
    for i in range(len(parts) - 1):
        entry = _BY_DOMAIN.get(".".join(parts[i:]))
        if entry:
            return entry
    return None


def get_think_tank_lean(url_or_domain: str) -> dict[str, Any] | None:
    """{lean, description} for a known think tank, else None."""
    entry = _find(url_or_domain)
    if entry is None:
        return None
    return {"lean": entry["lean"], "description": entry["description"]}


def get_think_tank(url_or_domain: str) -> dict[str, str] | None:
    entry = _find(url_or_domain)
    return dict(entry) if entry else None


def format_think_tank_disclosure(url_or_domain: str) -> str | None:
    entry = _find(url_or_domain)
    if entry is None:
        return None
    return f"Source: {entry['name']} ({entry['lean']} think tank)"
