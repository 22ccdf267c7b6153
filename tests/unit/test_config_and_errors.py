# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from clearview_core.config import ClearviewConfig
from clearview_core.errors import (
    BudgetExceededError,
    NotConfiguredError,
    RequestValidationError,
    UpstreamRequestError,
    UpstreamUnavailableError,
    describe_error,
)
from clearview_core.runtime_config import EngineRuntimeConfig


def test_llm_concurrency_is_clamped(monkeypatch):
    monkeypatch.setenv("OPENAI_CONCURRENCY", "999")
    cfg = EngineRuntimeConfig.load_from_env()
    assert cfg.llm.concurrency == 16

    monkeypatch.setenv("OPENAI_CONCURRENCY", "0")
    cfg2 = EngineRuntimeConfig.load_from_env()
    assert cfg2.llm.concurrency == 1


def test_invalid_values_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("CLEARVIEW_ANALYZE_TTL", "soon")
    monkeypatch.setenv("CLEARVIEW_STREAM_STATUS_EVENTS", "maybe")
    cfg = EngineRuntimeConfig.load_from_env()
    assert cfg.cache.analyze_ttl_sec == 3600
    assert cfg.features.stream_status_events is True


def test_status_events_can_be_disabled(monkeypatch):
    monkeypatch.setenv("CLEARVIEW_STREAM_STATUS_EVENTS", "off")
    assert EngineRuntimeConfig.load_from_env().features.stream_status_events is False


def test_cache_ttl_defaults(monkeypatch):
    for name in ("CLEARVIEW_ANALYZE_TTL", "CLEARVIEW_PERSPECTIVES_TTL", "CLEARVIEW_EVIDENCE_TTL", "CLEARVIEW_DOI_TTL"):
        monkeypatch.delenv(name, raising=False)
    cache = EngineRuntimeConfig.load_from_env().cache
    assert (cache.analyze_ttl_sec, cache.perspectives_ttl_sec, cache.evidence_ttl_sec, cache.doi_ttl_sec) == (
        3600,
        21600,
        86400,
        86400,
    )


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("EXA_API_KEY", "")
    monkeypatch.setenv("DAILY_COST_CAP", "12.5")
    monkeypatch.setenv("REDIS_URL", "redis://:secret@cache:6379/0")
    monkeypatch.delenv("OPENAI_MODEL", raising=False)

    cfg = ClearviewConfig.from_env()

    assert cfg.openai_api_key == "sk-test"
    assert cfg.exa_api_key is None
    assert cfg.openai_model == "gpt-5"
    assert cfg.daily_cost_cap == 12.5

    safe = cfg.to_safe_log_dict()
    assert safe["openai_configured"] is True
    assert safe["exa_configured"] is False
    assert "secret" not in str(safe)


def test_error_status_codes():
    assert NotConfiguredError("EXA_API_KEY").status_code == 503
    assert BudgetExceededError(spent=50.1, cap=50.0).status_code == 429
    assert UpstreamUnavailableError("Exa", upstream_status=502).status_code == 503
    assert UpstreamRequestError("OpenAI", upstream_status=401).status_code == 401
    assert RequestValidationError("url", "bad").status_code == 400


def test_describe_error():
    assert describe_error(NotConfiguredError("OPENAI_API_KEY")) == {
        "status_code": 503,
        "error": "not_configured",
        "message": "OPENAI_API_KEY is not configured",
    }
    assert describe_error(ValueError()) == {
        "status_code": 500,
        "error": "internal_error",
        "message": "ValueError",
    }
    assert "Exa is temporarily unavailable (status 502)" == str(UpstreamUnavailableError("Exa", upstream_status=502))
