# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from __future__ import annotations

from pydantic import Field

from clearview_core.schema.serialization import SchemaModel


class PerspectiveSource(SchemaModel):
    name: str
    url: str
    title: str
    lean: str
    snippet: str = ""


class PerspectivesResult(SchemaModel):
    topic: str
    article_lean: str = "unknown"
    sources: list[PerspectiveSource] = Field(default_factory=list, max_length=8)
    cached: bool = False
