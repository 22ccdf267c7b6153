# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

import asyncio
import json

import pytest

from clearview_core.pipeline.events import (
    TERMINAL_EVENTS,
    EventSink,
    QueueSink,
    RecordingSink,
    format_sse_event,
)


def test_format_sse_event_frames_json_payload():
    frame = format_sse_event("summary", {"text": "Café opens"})

    assert frame == 'event: summary\ndata: {"text": "Café opens"}\n\n'
    data_line = frame.splitlines()[1]
    assert json.loads(data_line[len("data: "):]) == {"text": "Café opens"}


def test_terminal_events():
    assert TERMINAL_EVENTS == {"complete", "error"}


def test_sinks_satisfy_protocol():
    assert isinstance(RecordingSink(), EventSink)
    assert isinstance(QueueSink(), EventSink)


@pytest.mark.asyncio
class TestRecordingSink:
    async def test_records_in_order_and_drops_after_close(self):
        sink = RecordingSink()
        await sink.push("status", {"message": "Analyzing..."})
        await sink.push("complete", {"id": "a"})
        await sink.close()
        await sink.push("error", {"message": "late"})

        assert sink.names == ["status", "complete"]
        assert sink.payloads("complete") == [{"id": "a"}]
        assert sink.to_sse().count("event: ") == 2


@pytest.mark.asyncio
class TestQueueSink:
    async def test_iterates_frames_until_closed(self):
        sink = QueueSink()

        async def produce():
            await sink.push("status", {"message": "Verifying facts..."})
            await sink.push("complete", {"cached": False})
            await sink.close()
            await sink.push("error", {"message": "ignored"})

        producer = asyncio.create_task(produce())
        frames = [frame async for frame in sink]
        await producer

        assert frames == [
            format_sse_event("status", {"message": "Verifying facts..."}),
            format_sse_event("complete", {"cached": False}),
        ]
        assert sink.closed

    async def test_close_is_idempotent(self):
        sink = QueueSink()
        await sink.close()
        await sink.close()

        frames = [frame async for frame in sink]

        assert frames == []
