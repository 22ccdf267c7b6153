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


class DOIMetadata(SchemaModel):
    """
    Result of a DOI lookup.

    `valid=False` covers both "not found" (cached) and transient failures
    (not cached); the registry decides which.
    """

    valid: bool
    doi: str | None = None
    title: str | None = None
    authors: list[str] = Field(default_factory=list)
    journal: str | None = None
    year: int | None = None
    url: str | None = None
