"""Server-side conversation memory.

Each session id maps to an ordered list of turns. The store is bounded by an
LRU cap and an idle TTL, and hands out one lock per session id so a whole
exchange (read history, call the model, append the reply) runs without
interleaving with another request for the same session.

Key locks live apart from the sessions: evicting a session never releases or
replaces the lock an in-flight exchange is holding for that id.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterator, List, Literal, Optional

from pydantic import BaseModel, Field


class ChatTurn(BaseModel):
    role: Literal["user", "assistant", "system"] = Field(
        ..., description="'user', 'assistant' or 'system'"
    )
    content: str


@dataclass
class Session:
    session_id: str
    turns: List[ChatTurn] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    last_activity: datetime = field(default_factory=datetime.now)

    def touch(self) -> None:
        self.last_activity = datetime.now()


@dataclass
class _KeyLock:
    lock: threading.RLock = field(default_factory=threading.RLock)
    users: int = 0


class SessionStore:
    def __init__(self, max_sessions: int = 100, session_ttl_hours: int = 24):
        self.max_sessions = max_sessions
        self.session_ttl_seconds = session_ttl_hours * 3600
        self._sessions: "OrderedDict[str, Session]" = OrderedDict()
        self._key_locks: Dict[str, _KeyLock] = {}
        self._lock = threading.Lock()

    def _get_or_create_locked(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is not None:
            session.touch()
            self._sessions.move_to_end(session_id)
            return session

        session = Session(session_id=session_id)
        self._sessions[session_id] = session
        while len(self._sessions) > self.max_sessions:
            oldest_id = next(iter(self._sessions))
            del self._sessions[oldest_id]
        return session

    def get_or_create(self, session_id: str) -> Session:
        with self._lock:
            return self._get_or_create_locked(session_id)

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def history(self, session_id: str) -> List[ChatTurn]:
        with self._lock:
            session = self._sessions.get(session_id)
            return list(session.turns) if session is not None else []

    def append(self, session_id: str, *turns: ChatTurn) -> None:
        """Append turns in one step, creating the session if needed."""
        with self._lock:
            session = self._get_or_create_locked(session_id)
            session.turns.extend(turns)
            session.touch()

    @contextmanager
    def lock(self, session_id: str) -> Iterator[None]:
        """Serialize exchanges for one session id without creating the session."""
        with self._lock:
            key_lock = self._key_locks.get(session_id)
            if key_lock is None:
                key_lock = self._key_locks[session_id] = _KeyLock()
            key_lock.users += 1

        key_lock.lock.acquire()
        try:
            yield
        finally:
            key_lock.lock.release()
            with self._lock:
                key_lock.users -= 1
                if key_lock.users == 0:
                    del self._key_locks[session_id]

    def evict(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def cleanup_expired(self) -> int:
        now = datetime.now()
        with self._lock:
            expired = [
                sid
                for sid, session in self._sessions.items()
                if (now - session.last_activity).total_seconds() > self.session_ttl_seconds
            ]
            for sid in expired:
                del self._sessions[sid]
            return len(expired)

    @property
    def active_count(self) -> int:
        return len(self._sessions)
