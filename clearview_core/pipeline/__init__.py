# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Pipeline Module

Bias analysis pipelines and the streaming event channel.

This module provides:
- AnalysisPipeline: non-streaming and streaming article analysis
- EventSink: transport-neutral sink the streaming pipeline pushes into
- RecordingSink / QueueSink: in-memory and async-iterator sinks
- StreamState: streaming state machine states

Example:
    from clearview_core.pipeline import AnalysisPipeline, RecordingSink

    sink = RecordingSink()
    await pipeline.analyze_streaming(request, sink)
    print(sink.to_sse())
"""

from clearview_core.pipeline.analysis_pipeline import AnalysisPipeline, validate_stream_request
from clearview_core.pipeline.events import (
    EventSink,
    QueueSink,
    RecordingSink,
    StreamState,
    format_sse_event,
)
from clearview_core.pipeline.fallback import BasicSummary, extract_basic_summary

__all__ = [
    "AnalysisPipeline",
    "BasicSummary",
    "EventSink",
    "QueueSink",
    "RecordingSink",
    "StreamState",
    "extract_basic_summary",
    "format_sse_event",
    "validate_stream_request",
]
