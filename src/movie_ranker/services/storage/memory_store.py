"""Dict-backed store for sessions that do not need to outlive the process."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from datetime import UTC, datetime

from movie_ranker.core.config import SessionStatus
from movie_ranker.ranking import Battle, ComparableItem

from .base import RatingUpdate, SessionRecord


class MemoryStore:
    """In-memory implementation of the item, battle and session stores."""

    def __init__(self) -> None:
        self._sessions: dict[str, SessionRecord] = {}
        self._deleted: set[str] = set()
        self._items: dict[str, dict[str, ComparableItem]] = {}
        self._battles: dict[str, list[tuple[int, Battle]]] = {}
        self._global: dict[str, float] = {}

    async def add_items(self, session_id: str, items: Sequence[ComparableItem]) -> None:
        bucket = self._items.setdefault(session_id, {})
        for item in items:
            bucket[str(item.id)] = replace(item, id=str(item.id))

    async def list_items(self, session_id: str) -> list[ComparableItem]:
        return [replace(item) for item in self._items.get(session_id, {}).values()]

    async def save_ratings(self, session_id: str, updates: Sequence[RatingUpdate]) -> None:
        bucket = self._items.get(session_id, {})
        for update in updates:
            item = bucket.get(update.item_id)
            if item is not None:
                item.rating = update.rating

    async def load_global_ratings(self, item_ids: Sequence[str]) -> dict[str, float]:
        return {item_id: self._global[item_id] for item_id in item_ids if item_id in self._global}

    async def save_global_ratings(self, updates: Sequence[RatingUpdate]) -> None:
        for update in updates:
            self._global[update.item_id] = update.rating

    async def append_battle(self, session_id: str, battle: Battle, sequence: int) -> None:
        self._battles.setdefault(session_id, []).append((sequence, battle))

    async def record_outcome(
        self,
        session_id: str,
        battle: Battle,
        sequence: int,
        updates: Sequence[RatingUpdate],
        *,
        share_globally: bool = False,
        status: SessionStatus | None = None,
    ) -> None:
        # Validate first; nothing below can fail
        if status is not None and session_id not in self._sessions:
            msg = f"Ranking list not found: {session_id}"
            raise LookupError(msg)

        await self.append_battle(session_id, battle, sequence)
        await self.save_ratings(session_id, updates)
        if share_globally:
            await self.save_global_ratings(updates)
        if status is not None:
            await self.save_session_status(session_id, status)

    async def list_battles(self, session_id: str) -> list[Battle]:
        ordered = sorted(self._battles.get(session_id, []), key=lambda entry: entry[0])
        return [battle for _, battle in ordered]

    async def create_session(self, record: SessionRecord) -> None:
        self._sessions[record.session_id] = replace(record)

    async def load_session(self, session_id: str) -> SessionRecord | None:
        if session_id in self._deleted:
            return None
        record = self._sessions.get(session_id)
        return replace(record) if record else None

    async def save_session_status(self, session_id: str, status: SessionStatus) -> None:
        record = self._sessions[session_id]
        record.status = status
        record.updated_at = datetime.now(UTC)

    async def list_sessions(self) -> list[SessionRecord]:
        records = [
            replace(r) for sid, r in self._sessions.items() if sid not in self._deleted
        ]
        return sorted(records, key=lambda r: r.updated_at, reverse=True)

    async def soft_delete(self, session_id: str) -> None:
        self._deleted.add(session_id)

    async def close(self) -> None:
        return None
