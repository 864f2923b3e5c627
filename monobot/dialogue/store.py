from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from .state import ConversationId, ConversationState

logger = logging.getLogger(__name__)


class ConversationStore:
    """In-process conversation state keyed by chat, with one lock per chat.

    ``session()`` hands out a private copy of a chat's state while holding
    that chat's lock; ``save()`` commits it. Chats never wait on each other.
    States untouched for longer than ``ttl_seconds`` are forgotten, token
    included.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._states: dict[ConversationId, ConversationState] = {}
        self._locks: dict[ConversationId, asyncio.Lock] = {}
        self._in_flight: dict[ConversationId, int] = {}
        self._ttl = ttl_seconds if ttl_seconds and ttl_seconds > 0 else None
        self._clock = clock

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, identity: ConversationId) -> bool:
        return identity in self._states

    def _lock_for(self, identity: ConversationId) -> asyncio.Lock:
        lock = self._locks.get(identity)
        if lock is None:
            lock = self._locks[identity] = asyncio.Lock()
        return lock

    def _is_busy(self, identity: ConversationId) -> bool:
        # Counts sessions waiting for the lock as well as the one holding it.
        return self._in_flight.get(identity, 0) > 0

    def _is_expired(self, state: ConversationState, now: float) -> bool:
        return self._ttl is not None and now - state.touched_at > self._ttl

    def _load(self, identity: ConversationId) -> ConversationState:
        state = self._states.get(identity)
        if state is None:
            return ConversationState()
        if self._is_expired(state, self._clock()):
            logger.info("Conversation %s expired; starting over.", identity)
            del self._states[identity]
            return ConversationState()
        return state.copy()

    def get(self, identity: ConversationId) -> ConversationState:
        """Snapshot of a chat's state without taking its lock."""
        return self._load(identity)

    @asynccontextmanager
    async def session(self, identity: ConversationId) -> AsyncIterator[ConversationState]:
        self._in_flight[identity] = self._in_flight.get(identity, 0) + 1
        try:
            async with self._lock_for(identity):
                yield self._load(identity)
        finally:
            remaining = self._in_flight[identity] - 1
            if remaining:
                self._in_flight[identity] = remaining
            else:
                del self._in_flight[identity]

    def save(self, identity: ConversationId, state: ConversationState) -> None:
        lock = self._locks.get(identity)
        if lock is None or not lock.locked():
            raise RuntimeError(f"Conversation {identity!r} must be saved inside its session.")
        committed = state.copy()
        committed.touched_at = self._clock()
        self._states[identity] = committed

    def prune(self) -> int:
        """Drop expired states and idle locks; returns how many states were removed."""
        if self._ttl is None:
            return 0
        now = self._clock()
        expired = [
            identity
            for identity, state in self._states.items()
            if self._is_expired(state, now) and not self._is_busy(identity)
        ]
        for identity in expired:
            del self._states[identity]
        idle_locks = [
            identity
            for identity in self._locks
            if identity not in self._states and not self._is_busy(identity)
        ]
        for identity in idle_locks:
            del self._locks[identity]
        if expired:
            logger.info("Pruned %d expired conversation(s).", len(expired))
        return len(expired)
