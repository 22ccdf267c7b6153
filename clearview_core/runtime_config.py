from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any


def _parse_bool(raw: Any, *, default: bool) -> bool:
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    s = str(raw).strip().lower()
    if not s:
        return default
    if s in ("1", "true", "yes", "y", "on"):
        return True
    if s in ("0", "false", "no", "n", "off"):
        return False
    return default


def _parse_int(raw: Any, *, default: int, min_v: int, max_v: int) -> int:
    try:
        if raw is None:
            v = default
        elif isinstance(raw, int):
            v = raw
        else:
            v = int(str(raw).strip())
    except Exception:
        v = default
    return max(min_v, min(max_v, v))


def _parse_float(raw: Any, *, default: float, min_v: float, max_v: float) -> float:
    try:
        if raw is None:
            v = default
        elif isinstance(raw, (int, float)):
            v = float(raw)
        else:
            v = float(str(raw).strip())
    except Exception:
        v = default
    return max(min_v, min(max_v, v))


@dataclass(frozen=True)
class EngineFeatureFlags:
    # Trace is a local-only debug feature; it is enabled by default and can be disabled via env.
    trace_enabled: bool = True
    # Streaming status events ("Verifying facts...", "Analyzing...") before the first result.
    stream_status_events: bool = True


@dataclass(frozen=True)
class EngineLLMConfig:
    timeout_sec: float = 60.0
    concurrency: int = 6
    max_attempts: int = 3
    base_delay_sec: float = 1.0
    max_delay_sec: float = 10.0
    # Article text sent to the model is truncated to this many characters.
    quick_content_chars: int = 3000
    detailed_content_chars: int = 4000
    full_content_chars: int = 8000


@dataclass(frozen=True)
class EngineSearchConfig:
    timeout_sec: float = 15.0
    concurrency: int = 8
    max_attempts: int = 3
    base_delay_sec: float = 1.0
    news_snippet_chars: int = 500
    fact_check_snippet_chars: int = 300


@dataclass(frozen=True)
class EngineCacheConfig:
    analyze_ttl_sec: int = 3600
    perspectives_ttl_sec: int = 6 * 3600
    evidence_ttl_sec: int = 24 * 3600
    doi_ttl_sec: int = 24 * 3600
    # Reconnect schedule: min(base * 2**(n-1), cap), abandoned after max attempts.
    reconnect_max_attempts: int = 10
    reconnect_base_delay_sec: float = 0.1
    reconnect_max_delay_sec: float = 3.0


@dataclass(frozen=True)
class EngineTraceConfig:
    directory: str = "data/trace"
    # Oldest trace files beyond this count are removed when a new trace starts.
    keep_files: int = 50


@dataclass(frozen=True)
class EngineRuntimeConfig:
    llm: EngineLLMConfig
    features: EngineFeatureFlags
    search: EngineSearchConfig
    cache: EngineCacheConfig
    trace: EngineTraceConfig = field(default_factory=EngineTraceConfig)

    @staticmethod
    def defaults() -> "EngineRuntimeConfig":
        return EngineRuntimeConfig(
            llm=EngineLLMConfig(),
            features=EngineFeatureFlags(),
            search=EngineSearchConfig(),
            cache=EngineCacheConfig(),
        )

    @staticmethod
    def load_from_env() -> "EngineRuntimeConfig":
        llm = EngineLLMConfig(
            timeout_sec=_parse_float(os.getenv("OPENAI_TIMEOUT"), default=60.0, min_v=5.0, max_v=300.0),
            concurrency=_parse_int(os.getenv("OPENAI_CONCURRENCY"), default=6, min_v=1, max_v=16),
            max_attempts=_parse_int(os.getenv("CLEARVIEW_LLM_MAX_ATTEMPTS"), default=3, min_v=1, max_v=6),
            base_delay_sec=_parse_float(os.getenv("CLEARVIEW_LLM_BASE_DELAY"), default=1.0, min_v=0.0, max_v=10.0),
            max_delay_sec=_parse_float(os.getenv("CLEARVIEW_LLM_MAX_DELAY"), default=10.0, min_v=0.0, max_v=60.0),
            quick_content_chars=_parse_int(
                os.getenv("CLEARVIEW_QUICK_CONTENT_CHARS"), default=3000, min_v=500, max_v=20_000
            ),
            detailed_content_chars=_parse_int(
                os.getenv("CLEARVIEW_DETAILED_CONTENT_CHARS"), default=4000, min_v=500, max_v=20_000
            ),
            full_content_chars=_parse_int(
                os.getenv("CLEARVIEW_FULL_CONTENT_CHARS"), default=8000, min_v=500, max_v=40_000
            ),
        )

        features = EngineFeatureFlags(
            trace_enabled=not _parse_bool(os.getenv("CLEARVIEW_TRACE_DISABLE"), default=False),
            stream_status_events=_parse_bool(os.getenv("CLEARVIEW_STREAM_STATUS_EVENTS"), default=True),
        )

        search = EngineSearchConfig(
            timeout_sec=_parse_float(os.getenv("EXA_TIMEOUT"), default=15.0, min_v=2.0, max_v=120.0),
            concurrency=_parse_int(os.getenv("EXA_CONCURRENCY"), default=8, min_v=1, max_v=32),
            max_attempts=_parse_int(os.getenv("CLEARVIEW_SEARCH_MAX_ATTEMPTS"), default=3, min_v=1, max_v=6),
            base_delay_sec=_parse_float(os.getenv("CLEARVIEW_SEARCH_BASE_DELAY"), default=1.0, min_v=0.0, max_v=10.0),
            news_snippet_chars=_parse_int(
                os.getenv("CLEARVIEW_NEWS_SNIPPET_CHARS"), default=500, min_v=100, max_v=5000
            ),
            fact_check_snippet_chars=_parse_int(
                os.getenv("CLEARVIEW_FACT_CHECK_SNIPPET_CHARS"), default=300, min_v=100, max_v=5000
            ),
        )

        cache = EngineCacheConfig(
            analyze_ttl_sec=_parse_int(os.getenv("CLEARVIEW_ANALYZE_TTL"), default=3600, min_v=60, max_v=7 * 86400),
            perspectives_ttl_sec=_parse_int(
                os.getenv("CLEARVIEW_PERSPECTIVES_TTL"), default=6 * 3600, min_v=60, max_v=7 * 86400
            ),
            evidence_ttl_sec=_parse_int(
                os.getenv("CLEARVIEW_EVIDENCE_TTL"), default=24 * 3600, min_v=60, max_v=30 * 86400
            ),
            doi_ttl_sec=_parse_int(os.getenv("CLEARVIEW_DOI_TTL"), default=24 * 3600, min_v=60, max_v=30 * 86400),
            reconnect_max_attempts=_parse_int(
                os.getenv("REDIS_RECONNECT_MAX_ATTEMPTS"), default=10, min_v=1, max_v=100
            ),
            reconnect_base_delay_sec=_parse_float(
                os.getenv("REDIS_RECONNECT_BASE_DELAY"), default=0.1, min_v=0.01, max_v=10.0
            ),
            reconnect_max_delay_sec=_parse_float(
                os.getenv("REDIS_RECONNECT_MAX_DELAY"), default=3.0, min_v=0.1, max_v=60.0
            ),
        )

        trace = EngineTraceConfig(
            directory=(os.getenv("CLEARVIEW_TRACE_DIR") or "data/trace").strip(),
            keep_files=_parse_int(os.getenv("CLEARVIEW_TRACE_KEEP"), default=50, min_v=1, max_v=10_000),
        )

        return EngineRuntimeConfig(llm=llm, features=features, search=search, cache=cache, trace=trace)

    def to_safe_log_dict(self) -> dict[str, Any]:
        return {
            "features": {
                "trace_enabled": bool(self.features.trace_enabled),
                "stream_status_events": bool(self.features.stream_status_events),
            },
            "trace": {"directory": self.trace.directory, "keep_files": int(self.trace.keep_files)},
            "llm": {
                "timeout_sec": float(self.llm.timeout_sec),
                "concurrency": int(self.llm.concurrency),
                "max_attempts": int(self.llm.max_attempts),
                "base_delay_sec": float(self.llm.base_delay_sec),
                "max_delay_sec": float(self.llm.max_delay_sec),
            },
            "search": {
                "timeout_sec": float(self.search.timeout_sec),
                "concurrency": int(self.search.concurrency),
                "max_attempts": int(self.search.max_attempts),
                "base_delay_sec": float(self.search.base_delay_sec),
            },
            "cache": {
                "analyze_ttl_sec": int(self.cache.analyze_ttl_sec),
                "perspectives_ttl_sec": int(self.cache.perspectives_ttl_sec),
                "evidence_ttl_sec": int(self.cache.evidence_ttl_sec),
                "doi_ttl_sec": int(self.cache.doi_ttl_sec),
                "reconnect_max_attempts": int(self.cache.reconnect_max_attempts),
            },
        }
