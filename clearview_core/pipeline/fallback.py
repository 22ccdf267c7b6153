# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Local extractive summary used when the generation backend is unavailable."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_WS_RE = re.compile(r"\s+")
_DIGIT_RE = re.compile(r"\d+")
_QUOTED_RE = re.compile(r"\"[^\"]+\"|'[^']+'")

MIN_SUMMARY_SENTENCE_CHARS = 20
MAX_SUMMARY_SENTENCES = 3
MAX_KEY_FACTS = 3
KEY_FACTS_UNAVAILABLE = "Key facts unavailable"


@dataclass
class BasicSummary:
    text: str
    key_facts: list[str] = field(default_factory=list)


def extract_basic_summary(content: str, title: str) -> BasicSummary:
    normalized = _WS_RE.sub(" ", content or "").strip()
    sentences = [
        s.strip()
        for s in _SENTENCE_SPLIT_RE.split(normalized)
        if len(s.strip()) > MIN_SUMMARY_SENTENCE_CHARS
    ][:MAX_SUMMARY_SENTENCES]
    text = ". ".join(sentences) + "." if sentences else f"Article: {title}"

    # Facts are sentences carrying numbers or quotations.
    candidates = [
        s for s in _SENTENCE_SPLIT_RE.split(content or "")
        if _DIGIT_RE.search(s) or _QUOTED_RE.search(s)
    ][:MAX_KEY_FACTS]
    key_facts = [s.strip() for s in candidates if 10 < len(s.strip()) < 200]

    return BasicSummary(text=text, key_facts=key_facts or [KEY_FACTS_UNAVAILABLE])
