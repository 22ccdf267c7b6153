# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from __future__ import annotations

import dataclasses
import enum
from typing import Any, TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound="SchemaModel")


class SchemaModel(BaseModel):
    """
    Canonical base for wire models (Pydantic v2).

    - Ignores extra fields so payloads from older cache entries still load.
    - Provides `to_dict()` / `from_dict()` for cache and event serialization.
    """

    model_config = {"extra": "ignore"}

    def to_dict(self) -> dict[str, Any]:
        return dump_schema(self)

    @classmethod
    def from_dict(cls: type[T], data: dict[str, Any]) -> T:
        if not isinstance(data, dict):
            raise TypeError(f"Schema input must be a dict, got: {type(data)!r}")
        return cls.model_validate(data)


def dump_schema(model: Any) -> dict[str, Any]:
    """
    Dump a wire model (or dataclass) to a JSON-safe dict.

    Pydantic models drop None-valued optional fields, matching the wire format
    where absent optionals are omitted.
    """
    if isinstance(model, BaseModel):
        return model.model_dump(mode="json", exclude_none=True)
    if dataclasses.is_dataclass(model) and not isinstance(model, type):
        return _json_safe(dataclasses.asdict(model))
    raise TypeError(f"Unsupported schema type for dump: {type(model)!r}")


def _json_safe(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value
