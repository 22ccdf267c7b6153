# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Resilient Redis-backed TTL cache.

The cache is an optimization only: every operation swallows backend
failures and degrades to a miss / no-op, so cache unavailability never
fails a caller request.

Connection lifecycle:

    DISCONNECTED -> CONNECTING -> CONNECTED
    CONNECTED -(error)-> ERROR -> RECONNECTING -(ok)-> CONNECTED
                                  RECONNECTING -(attempts exhausted)-> DISCONNECTED

Reconnect delays follow min(base * 2**(n-1), cap).
"""

from __future__ import annotations

import asyncio
import json
import logging
from enum import Enum
from typing import Any, Callable

import redis.asyncio as aioredis

from clearview_core.utils.trace import Trace

logger = logging.getLogger(__name__)


class CacheState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"
    RECONNECTING = "reconnecting"


def _default_client_factory(url: str) -> aioredis.Redis:
    return aioredis.from_url(
        url,
        decode_responses=True,
        socket_connect_timeout=2.0,
        socket_timeout=2.0,
        health_check_interval=30,
    )


def reconnect_delay(attempt: int, *, base: float, cap: float) -> float:
    """Delay before reconnect attempt `attempt` (1-based)."""
    return min(base * (2 ** max(0, attempt - 1)), cap)


class CacheStore:
    def __init__(
        self,
        redis_url: str | None,
        *,
        max_reconnect_attempts: int = 10,
        reconnect_base_delay: float = 0.1,
        reconnect_max_delay: float = 3.0,
        client_factory: Callable[[str], Any] | None = None,
    ):
        self.redis_url = redis_url
        self.max_reconnect_attempts = max(1, int(max_reconnect_attempts))
        self.reconnect_base_delay = float(reconnect_base_delay)
        self.reconnect_max_delay = float(reconnect_max_delay)
        self._client_factory = client_factory or _default_client_factory
        self._client: Any = None
        self._state = CacheState.DISCONNECTED
        self._reconnect_task: asyncio.Task | None = None

    @property
    def state(self) -> CacheState:
        return self._state

    def is_connected(self) -> bool:
        return self._state == CacheState.CONNECTED

    def _set_state(self, state: CacheState) -> None:
        if state != self._state:
            Trace.event("cache.state", {"from": self._state.value, "to": state.value})
            self._state = state

    async def start(self) -> None:
        if not self.redis_url:
            logger.info("[Cache] REDIS_URL not set; running without cache")
            return
        if self._state in (CacheState.CONNECTED, CacheState.CONNECTING):
            return

        self._set_state(CacheState.CONNECTING)
        try:
            self._client = self._client_factory(self.redis_url)
            await self._client.ping()
        except Exception as e:
            logger.warning("[Cache] Failed to connect to Redis: %s", e)
            logger.warning("[Cache] Running without cache until reconnect succeeds")
            self._on_error(e)
            return

        self._set_state(CacheState.CONNECTED)
        logger.info("[Cache] Connected to Redis")

    async def stop(self) -> None:
        task = self._reconnect_task
        self._reconnect_task = None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        client = self._client
        self._client = None
        if client is not None:
            try:
                await client.aclose()
            except Exception as e:
                logger.debug("[Cache] Error closing Redis client: %s", e)
        self._set_state(CacheState.DISCONNECTED)

    def _on_error(self, exc: BaseException) -> None:
        if self._state in (CacheState.ERROR, CacheState.RECONNECTING):
            return
        self._set_state(CacheState.ERROR)
        if self._client is None:
            self._set_state(CacheState.DISCONNECTED)
            return
        self._reconnect_task = asyncio.create_task(self._reconnect_loop())

    async def _reconnect_loop(self) -> None:
        for attempt in range(1, self.max_reconnect_attempts + 1):
            self._set_state(CacheState.RECONNECTING)
            delay = reconnect_delay(attempt, base=self.reconnect_base_delay, cap=self.reconnect_max_delay)
            logger.info("[Cache] Reconnecting to Redis in %.2fs (attempt %d)", delay, attempt)
            await asyncio.sleep(delay)
            try:
                await self._client.ping()
            except Exception as e:
                logger.debug("[Cache] Reconnect attempt %d failed: %s", attempt, e)
                continue
            self._set_state(CacheState.CONNECTED)
            logger.info("[Cache] Reconnected to Redis")
            return

        logger.warning("[Cache] Max reconnection attempts reached. Redis unavailable.")
        self._set_state(CacheState.DISCONNECTED)

    async def get(self, key: str) -> Any | None:
        if not self.is_connected():
            return None
        try:
            raw = await self._client.get(key)
        except Exception as e:
            logger.warning("[Cache] Error getting key %s: %s", key, e)
            self._on_error(e)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("[Cache] Dropping undecodable value for %s: %s", key, e)
            return None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        if not self.is_connected():
            return False
        try:
            serialized = json.dumps(value, default=str, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.warning("[Cache] Value for %s is not serializable: %s", key, e)
            return False
        try:
            if ttl is not None and ttl > 0:
                await self._client.setex(key, int(ttl), serialized)
            else:
                await self._client.set(key, serialized)
        except Exception as e:
            logger.warning("[Cache] Error setting key %s: %s", key, e)
            self._on_error(e)
            return False
        return True

    async def delete(self, key: str) -> bool:
        if not self.is_connected():
            return False
        try:
            await self._client.delete(key)
        except Exception as e:
            logger.warning("[Cache] Error deleting key %s: %s", key, e)
            self._on_error(e)
            return False
        return True
