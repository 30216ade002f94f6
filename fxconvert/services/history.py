from __future__ import annotations

"""Per-user conversion history.

HistoryStore is the seam for swapping in a persistent backend. The in-memory
implementation keeps newest-first lists capped at ``limit`` entries; the cap
is enforced inside append(), callers never truncate.
"""
import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

ANONYMOUS_USER = "anonymous"
DEFAULT_HISTORY_LIMIT = 20


def resolve_user_id(user_id: Optional[str]) -> str:
    if user_id is None or not user_id.strip():
        return ANONYMOUS_USER
    return user_id


@dataclass(frozen=True)
class ConversionRecord:
    from_currency: str
    to_currency: str
    amount: float
    result: float
    rate: float
    user_id: str = ANONYMOUS_USER
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class HistoryStore(ABC):
    @abstractmethod
    async def append(self, user_id: Optional[str], record: ConversionRecord) -> None:
        raise NotImplementedError

    @abstractmethod
    async def list(self, user_id: Optional[str]) -> List[ConversionRecord]:
        raise NotImplementedError

    @abstractmethod
    async def clear(self, user_id: Optional[str]) -> None:
        raise NotImplementedError


class InMemoryHistoryStore(HistoryStore):
    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT):
        if limit <= 0:
            raise ValueError("history limit must be positive")
        self._limit = limit
        self._entries: Dict[str, List[ConversionRecord]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    @property
    def limit(self) -> int:
        return self._limit

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        return lock

    async def append(self, user_id: Optional[str], record: ConversionRecord) -> None:
        uid = resolve_user_id(user_id)
        async with self._lock_for(uid):
            current = self._entries.get(uid, [])
            self._entries[uid] = [record, *current][: self._limit]

    async def list(self, user_id: Optional[str]) -> List[ConversionRecord]:
        uid = resolve_user_id(user_id)
        return list(self._entries.get(uid, ()))

    async def clear(self, user_id: Optional[str]) -> None:
        uid = resolve_user_id(user_id)
        # nothing awaits under a user's lock, so popping here cannot
        # interleave with an append; no lock is created for unknown users
        self._entries.pop(uid, None)
        lock = self._locks.get(uid)
        if lock is not None and not lock.locked():
            self._locks.pop(uid, None)
