import asyncio
import os
import random
import sys
import time
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# read by core.config at import time
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("ELEVENLABS_API_KEY", "test-key")
os.environ["USE_REDIS_SESSION_STORE"] = "false"
os.environ.setdefault("CANDIDATE_NAME", "Tanya Singh")


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("QA_MODE", "true")
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")


class FakeCompletionGateway:
    """Records every forwarded call and answers with a completion-shaped dict."""

    def __init__(self, fail: bool = False):
        self.calls: list[dict] = []
        self.fail = fail

    async def __call__(self, messages, **kwargs):
        from app.errors import GatewayError

        self.calls.append({"messages": messages, "kwargs": kwargs})
        if self.fail:
            raise GatewayError("Chat API", "status 503")
        return {
            "id": f"chatcmpl-{len(self.calls)}",
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": f"Question {len(self.calls)}?"},
                    "finish_reason": "stop",
                }
            ],
        }


class FakeRedisLock:
    """Lease lock with the redis-py asyncio Lock contract: acquire() waits up to
    blocking_timeout and returns False, release() raises LockNotOwnedError once
    the lease has lapsed."""

    def __init__(self, owner: "FakeRedis", name: str, timeout: float, blocking_timeout: float):
        self.owner = owner
        self.name = name
        self.timeout = timeout
        self.blocking_timeout = blocking_timeout
        self.token = None

    async def acquire(self) -> bool:
        if self.owner.fail_with is not None:
            raise self.owner.fail_with
        deadline = time.monotonic() + float(self.blocking_timeout or 0.0)
        while True:
            now = time.monotonic()
            holder = self.owner.leases.get(self.name)
            if holder is None or holder[1] <= now:
                self.token = object()
                self.owner.leases[self.name] = (self.token, now + float(self.timeout))
                self.owner.lock_events.append(("acquire", self.name))
                return True
            if now >= deadline:
                return False
            await asyncio.sleep(0.01)

    async def release(self) -> None:
        from redis.exceptions import LockNotOwnedError

        holder = self.owner.leases.get(self.name)
        if holder is None or holder[0] is not self.token or holder[1] <= time.monotonic():
            raise LockNotOwnedError("Cannot release a lock that's no longer owned")
        del self.owner.leases[self.name]
        self.owner.lock_events.append(("release", self.name))


class FakeRedis:
    def __init__(self):
        self.values: dict[str, str] = {}
        self.expiry: dict[str, int] = {}
        self.leases: dict[str, tuple[object, float]] = {}
        self.lock_events: list[tuple[str, str]] = []
        self.fail_with: Exception | None = None
        self.closed = False

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def set(self, key, value, ex=None, nx=False):
        self._check()
        if nx and key in self.values:
            return None
        self.values[key] = value
        self.expiry[key] = ex
        return True

    async def get(self, key):
        self._check()
        return self.values.get(key)

    async def delete(self, key):
        self._check()
        self.values.pop(key, None)
        self.expiry.pop(key, None)
        return 1

    def lock(self, name, timeout=None, blocking_timeout=None):
        return FakeRedisLock(self, name, timeout, blocking_timeout)

    def hold_lock(self, name: str, seconds: float) -> None:
        """Simulate another worker holding a session lock."""
        self.leases[name] = (object(), time.monotonic() + seconds)

    async def aclose(self):
        self.closed = True


class FakeTextGateway:
    def __init__(self, reply: str = "", fail: bool = False, delay_sec: float = 0.0):
        self.reply = reply
        self.fail = fail
        self.delay_sec = delay_sec
        self.calls: list[dict] = []

    async def __call__(self, messages, **kwargs):
        from app.errors import GatewayError

        self.calls.append({"messages": messages, "kwargs": kwargs})
        if self.delay_sec:
            await asyncio.sleep(self.delay_sec)
        if self.fail:
            raise GatewayError("Chat API", "status 500")
        return self.reply


@pytest.fixture
def store():
    from app.session.session_store import LocalSessionStore

    return LocalSessionStore(ttl_sec=3600)


@pytest.fixture
def registry(store):
    from app.session.registry import SessionRegistry

    return SessionRegistry(store, rng=random.Random(7))


@pytest.fixture
def completion_gateway():
    return FakeCompletionGateway()


@pytest.fixture
def engine(registry, completion_gateway):
    from app.interview.engine import TurnPolicyEngine

    return TurnPolicyEngine(registry, completion_fn=completion_gateway, candidate_first_name="Tanya")
