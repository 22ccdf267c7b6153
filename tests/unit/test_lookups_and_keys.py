# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

import pytest

from clearview_core.data.source_leans import get_source_lean, is_known_source, normalize_host
from clearview_core.data.think_tanks import format_think_tank_disclosure, get_think_tank_lean
from clearview_core.tools.cache_utils import (
    analyze_cache_key,
    canonicalize,
    evidence_cache_key,
    make_cache_key,
    perspectives_cache_key,
)
from clearview_core.utils.url_utils import extract_domain, extract_source_name


class TestUrlUtils:
    def test_extract_domain(self):
        assert extract_domain("https://WWW.NYTimes.com:443/2025/a.html") == "nytimes.com"
        assert extract_domain("not a url") is None
        assert extract_domain("") is None

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://www.nytimes.com/x", "Nytimes"),
            ("https://news.bbc.co.uk/story", "News Bbc"),
            ("https://www.npr.org/", "Npr"),
            ("", "Unknown Source"),
        ],
    )
    def test_extract_source_name(self, url, expected):
        assert extract_source_name(url) == expected


class TestSourceLeans:
    def test_exact_domain(self):
        assert get_source_lean("https://www.foxnews.com/politics/x") == "right"
        assert get_source_lean("https://www.reuters.com/world") == "center"

    def test_subdomain_suffix_match(self):
        assert get_source_lean("https://edition.cnn.com/2025/a") == "center-left"

    def test_unknown(self):
        assert get_source_lean("https://example.org/a") is None
        assert not is_known_source("https://example.org/a")

    def test_bare_domain(self):
        assert normalize_host("msnbc.com") == "msnbc.com"
        assert get_source_lean("msnbc.com") == "left"


class TestThinkTanks:
    def test_lookup_by_url(self):
        assert get_think_tank_lean("https://www.heritage.org/report") == {
            "lean": "right",
            "description": "Heritage Foundation - conservative policy research",
        }

    def test_subdomain(self):
        assert get_think_tank_lean("https://research.brookings.edu/x")["lean"] == "center-left"

    def test_unknown(self):
        assert get_think_tank_lean("https://example.com") is None
        assert format_think_tank_disclosure("https://example.com") is None

    def test_disclosure(self):
        assert format_think_tank_disclosure("heritage.org") == "Source: Heritage Foundation (right think tank)"


class TestCacheKeys:
    def test_format(self):
        key = analyze_cache_key("https://a.com/x")
        namespace, digest = key.split(":")
        assert namespace == "analyze"
        assert len(digest) == 32
        int(digest, 16)

    def test_same_request_same_key(self):
        assert analyze_cache_key("https://a.com/x") == analyze_cache_key("https://a.com/x")
        assert evidence_cache_key("topic  a", "arg") == evidence_cache_key("topic a", " arg ")

    def test_different_requests_differ(self):
        assert evidence_cache_key("t", "a") != evidence_cache_key("t", "b")
        assert perspectives_cache_key("t", ["k"], None) != perspectives_cache_key("t", ["k"], "left")
        assert perspectives_cache_key("t", ["k1", "k2"], None) != perspectives_cache_key("t", ["k2", "k1"], None)

    def test_namespaces_do_not_collide(self):
        assert make_cache_key("evidence", "x").split(":")[1] == make_cache_key("doi", "x").split(":")[1]
        assert make_cache_key("evidence", "x") != make_cache_key("doi", "x")

    def test_unknown_namespace(self):
        with pytest.raises(ValueError):
            make_cache_key("sessions", "x")

    def test_canonicalize_sorts_dict_keys(self):
        assert canonicalize({"b": 1, "a": 2}) == canonicalize({"a": 2, "b": 1})
