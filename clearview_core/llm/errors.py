# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from clearview_core.errors import ClearviewError


class LLMFailureKind(str, Enum):
    INVALID_JSON = "invalid_json"
    EMPTY_RESPONSE = "empty_response"
    TIMEOUT = "timeout"
    CONNECTION_ERROR = "connection_error"
    PROVIDER_ERROR = "provider_error"
    UNKNOWN = "unknown"


@dataclass
class LLMCallError(ClearviewError):
    message: str
    kind: LLMFailureKind = LLMFailureKind.UNKNOWN
    status_code: int = 502
    error_code: str = "generation_failed"

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.message} (kind={self.kind.value})"
