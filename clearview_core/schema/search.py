# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from __future__ import annotations

from enum import Enum

from pydantic import Field

from clearview_core.schema.serialization import SchemaModel


class SearchCategory(str, Enum):
    NEWS = "news"
    RESEARCH = "research"
    EXPERT = "expert"
    FACT_CHECK = "fact_check"


class SearchHit(SchemaModel):
    title: str = ""
    url: str
    snippet: str = ""
    published_date: str | None = None
    author: str | None = None


class SearchResponse(SchemaModel):
    query: str
    category: SearchCategory
    results: list[SearchHit] = Field(default_factory=list)
