# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Streaming event channel.

The streaming pipeline pushes named events into an EventSink; transports
decide how to deliver them. Wire framing is server-sent-events style:

    event: <name>
    data: <json>

"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

EVENT_CACHED = "cached"
EVENT_STATUS = "status"
EVENT_BIAS_SCORE = "biasScore"
EVENT_SUMMARY = "summary"
EVENT_KEY_FACTS = "keyFacts"
EVENT_MISSING_CONTEXT = "missingContext"
EVENT_BIAS_INDICATORS = "biasIndicators"
EVENT_COMPLETE = "complete"
EVENT_ERROR = "error"

TERMINAL_EVENTS = frozenset({EVENT_COMPLETE, EVENT_ERROR})


class StreamState(str, Enum):
    IDLE = "idle"
    AWAITING_GROUNDING = "awaiting_grounding"
    RACING = "racing"
    EMITTING = "emitting"
    COMPLETE = "complete"
    FAILED = "failed"


def format_sse_event(name: str, payload: Any) -> str:
    return f"event: {name}\ndata: {json.dumps(payload, ensure_ascii=False, default=str)}\n\n"


@runtime_checkable
class EventSink(Protocol):
    async def push(self, event: str, payload: dict[str, Any]) -> None:
        ...

    async def close(self) -> None:
        ...


@dataclass
class RecordingSink:
    """Keeps every pushed event in memory."""

    events: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    closed: bool = False

    async def push(self, event: str, payload: dict[str, Any]) -> None:
        if self.closed:
            logger.debug("[Stream] Dropping %s event after close", event)
            return
        self.events.append((event, payload))

    async def close(self) -> None:
        self.closed = True

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def payloads(self, name: str) -> list[dict[str, Any]]:
        return [payload for event, payload in self.events if event == name]

    def to_sse(self) -> str:
        return "".join(format_sse_event(name, payload) for name, payload in self.events)


_CLOSED = object()


class QueueSink:
    """
    Bridges the pipeline to an async consumer.

        sink = QueueSink()
        task = asyncio.create_task(pipeline.analyze_streaming(request, sink))
        async for frame in sink:
            response.write(frame)
    """

    def __init__(self, maxsize: int = 0):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def push(self, event: str, payload: dict[str, Any]) -> None:
        if self._closed:
            return
        await self._queue.put(format_sse_event(event, payload))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._queue.put(_CLOSED)

    def __aiter__(self) -> AsyncIterator[str]:
        return self._frames()

    async def _frames(self) -> AsyncIterator[str]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item
