from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
import json
import logging
import time
from typing import AsyncContextManager, AsyncIterator, Callable, Protocol

import redis.asyncio as redis_async
from redis.exceptions import RedisError

from app.errors import StoreError
from core.config import REDIS_URL, SESSION_TTL_SEC, USE_REDIS_SESSION_STORE
from core.logger import log_event

logger = logging.getLogger("app.session.store")


class SessionStore(Protocol):
    async def create(self, session_id: str, data: dict) -> bool:
        ...

    async def get(self, session_id: str) -> dict | None:
        ...

    async def put(self, session_id: str, data: dict) -> None:
        ...

    async def delete(self, session_id: str) -> None:
        ...

    def lock(self, session_id: str) -> AsyncContextManager[None]:
        ...

    async def cleanup_expired(self) -> int:
        ...

    async def close(self) -> None:
        ...


class _KeyLock:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class LocalSessionStore:
    """In-process session table. Values are kept as JSON text so no caller shares
    mutable state with the store or with another caller."""

    mode = "local"

    def __init__(self, ttl_sec: float = SESSION_TTL_SEC, clock: Callable[[], float] = time.time):
        self._ttl_sec = float(ttl_sec)
        self._clock = clock
        self._lock = asyncio.Lock()
        self._entries: dict[str, tuple[float, str]] = {}
        self._key_locks: dict[str, _KeyLock] = {}

    def _expired(self, expires_at: float) -> bool:
        return expires_at <= self._clock()

    async def create(self, session_id: str, data: dict) -> bool:
        if not session_id:
            return False
        async with self._lock:
            entry = self._entries.get(session_id)
            if entry is not None and not self._expired(entry[0]):
                return False
            self._entries[session_id] = (self._clock() + self._ttl_sec, json.dumps(data))
            return True

    async def get(self, session_id: str) -> dict | None:
        if not session_id:
            return None
        async with self._lock:
            entry = self._entries.get(session_id)
            if entry is None:
                return None
            expires_at, raw = entry
            if self._expired(expires_at):
                self._entries.pop(session_id, None)
                return None
        return json.loads(raw)

    async def put(self, session_id: str, data: dict) -> None:
        if not session_id:
            return
        raw = json.dumps(data)
        async with self._lock:
            self._entries[session_id] = (self._clock() + self._ttl_sec, raw)

    async def delete(self, session_id: str) -> None:
        if not session_id:
            return
        async with self._lock:
            self._entries.pop(session_id, None)

    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        async with self._lock:
            key_lock = self._key_locks.get(session_id)
            if key_lock is None:
                key_lock = self._key_locks[session_id] = _KeyLock()
            key_lock.users += 1
        try:
            async with key_lock.lock:
                yield
        finally:
            # waiters count as users too
            async with self._lock:
                key_lock.users -= 1
                if key_lock.users == 0 and self._key_locks.get(session_id) is key_lock:
                    self._key_locks.pop(session_id, None)

    async def cleanup_expired(self) -> int:
        removed = 0
        async with self._lock:
            for session_id, (expires_at, _) in list(self._entries.items()):
                if not self._expired(expires_at):
                    continue
                self._entries.pop(session_id, None)
                removed += 1
        return removed

    async def close(self) -> None:
        return


def _store_failure(exc: Exception) -> StoreError:
    logger.error("Session store failure: %s", exc)
    return StoreError(str(exc) or exc.__class__.__name__)


class RedisSessionStore:
    """Redis-backed session state shared by stateless workers.

    Keys:
    - session:{session_id} (string, JSON, expires after ttl_sec)
    - session:{session_id}:lock (redis lock for read-modify-write)

    Redis failures surface as StoreError. The lock lease only has to cover
    store reads and writes; callers never hold it across a gateway call.
    """

    mode = "redis"

    def __init__(
        self,
        redis_url: str = "",
        ttl_sec: int = SESSION_TTL_SEC,
        client=None,
        lock_timeout_sec: float = 30.0,
        lock_wait_sec: float = 10.0,
    ):
        self._redis = client if client is not None else redis_async.from_url(redis_url, decode_responses=True)
        self._ttl_sec = int(ttl_sec)
        self._lock_timeout_sec = float(lock_timeout_sec)
        self._lock_wait_sec = float(lock_wait_sec)

    @staticmethod
    def _key(session_id: str) -> str:
        return f"session:{session_id}"

    async def create(self, session_id: str, data: dict) -> bool:
        if not session_id:
            return False
        try:
            created = await self._redis.set(self._key(session_id), json.dumps(data), ex=self._ttl_sec, nx=True)
        except RedisError as exc:
            raise _store_failure(exc) from exc
        return bool(created)

    async def get(self, session_id: str) -> dict | None:
        if not session_id:
            return None
        try:
            raw = await self._redis.get(self._key(session_id))
        except RedisError as exc:
            raise _store_failure(exc) from exc
        if not raw:
            return None
        return json.loads(raw)

    async def put(self, session_id: str, data: dict) -> None:
        if not session_id:
            return
        try:
            await self._redis.set(self._key(session_id), json.dumps(data), ex=self._ttl_sec)
        except RedisError as exc:
            raise _store_failure(exc) from exc

    async def delete(self, session_id: str) -> None:
        if not session_id:
            return
        try:
            await self._redis.delete(self._key(session_id))
        except RedisError as exc:
            raise _store_failure(exc) from exc

    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        session_lock = self._redis.lock(
            f"{self._key(session_id)}:lock",
            timeout=self._lock_timeout_sec,
            blocking_timeout=self._lock_wait_sec,
        )
        try:
            acquired = await session_lock.acquire()
        except RedisError as exc:
            raise _store_failure(exc) from exc
        if not acquired:
            raise StoreError(f"session lock busy after {self._lock_wait_sec:.0f}s")

        try:
            yield
        finally:
            try:
                await session_lock.release()
            except RedisError as exc:
                # the guarded writes already ran and the lease expires on its own
                log_event(
                    "session_store",
                    "lock_lease_lost",
                    session_id,
                    level=logging.WARNING,
                    lease_sec=self._lock_timeout_sec,
                    error=exc,
                )

    async def cleanup_expired(self) -> int:
        # redis expires keys on its own
        return 0

    async def close(self) -> None:
        await self._redis.aclose()


def build_session_store(
    use_redis: bool = USE_REDIS_SESSION_STORE,
    redis_url: str = REDIS_URL,
    ttl_sec: int = SESSION_TTL_SEC,
) -> SessionStore:
    if not use_redis:
        logger.info("Session store mode=local ttl_sec=%s", ttl_sec)
        return LocalSessionStore(ttl_sec=ttl_sec)

    redis_url = str(redis_url or "").strip()
    if not redis_url:
        raise RuntimeError("USE_REDIS_SESSION_STORE=true requires REDIS_URL")
    logger.info("Session store mode=redis ttl_sec=%s", ttl_sec)
    return RedisSessionStore(redis_url=redis_url, ttl_sec=ttl_sec)
