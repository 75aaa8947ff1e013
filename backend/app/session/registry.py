from __future__ import annotations

import random
import time
import uuid
from typing import AsyncContextManager, Sequence

from app.errors import SessionNotFoundError
from app.interview.topics import PERSONAL_INTERESTS
from app.session.models import Session
from app.session.session_store import SessionStore
from app.system_metrics import increment_metric
from core.logger import log_event

INTERESTS_PER_SESSION = 2


class SessionRegistry:
    """Session lifecycle on top of a SessionStore. Holds no session state itself."""

    def __init__(
        self,
        store: SessionStore,
        interest_pool: Sequence[str] = PERSONAL_INTERESTS,
        rng: random.Random | None = None,
    ):
        self._store = store
        self._interest_pool = tuple(interest_pool)
        self._rng = rng or random.Random()

    @property
    def store(self) -> SessionStore:
        return self._store

    def lock(self, session_id: str) -> AsyncContextManager[None]:
        return self._store.lock(session_id)

    async def create(self) -> Session:
        interests = self._rng.sample(list(self._interest_pool), INTERESTS_PER_SESSION)
        now_ts = time.time()
        while True:
            session = Session(
                session_id=uuid.uuid4().hex,
                interests=interests,
                created_at=now_ts,
                updated_at=now_ts,
            )
            if await self._store.create(session.session_id, session.to_dict()):
                break
        increment_metric("sessions_created")
        log_event("session", "created", session.session_id, interests=interests)
        return session

    async def get(self, session_id: str | None) -> Session | None:
        data = await self._store.get(str(session_id or ""))
        if data is None:
            return None
        session = Session.from_dict(data)
        session.session_id = str(session_id)
        return session

    async def require(self, session_id: str | None) -> Session:
        session = await self.get(session_id)
        if session is None:
            raise SessionNotFoundError(str(session_id or ""))
        return session

    async def save(self, session: Session) -> None:
        session.updated_at = time.time()
        await self._store.put(session.session_id, session.to_dict())

    async def track(self, session_id: str | None, metrics: dict | None, interruption_detected: bool = False) -> Session:
        async with self.lock(str(session_id or "")):
            session = await self.require(session_id)
            session.metrics.responses.append(dict(metrics or {}))
            if interruption_detected:
                session.metrics.interruptions += 1
            await self.save(session)
        log_event(
            "session",
            "metrics_tracked",
            session.session_id,
            responses=len(session.metrics.responses),
            interruption=bool(interruption_detected),
        )
        return session

    async def delete(self, session_id: str) -> None:
        await self._store.delete(session_id)
        increment_metric("sessions_deleted")
        log_event("session", "deleted", session_id)
