"""Database storage for sessions, movies and battles using SQLModel."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path

import structlog
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel, create_engine

from movie_ranker.core.config import SessionStatus
from movie_ranker.ranking import Battle, ComparableItem

from .base import RatingUpdate, SessionRecord
from .battle_repository import BattleRepository
from .item_repository import ItemRepository
from .session_repository import SessionRepository

logger = structlog.get_logger()


def sqlite_url(path: str | Path) -> str:
    """Build a SQLAlchemy URL for a SQLite file."""
    return f"sqlite:///{Path(path)}"


class DBStore:
    """SQL-backed implementation of the item, battle and session stores.

    Tables are created on construction. Each repository call runs its own
    short-lived session on a worker thread.
    """

    def __init__(self, database_url: str) -> None:
        """Initialize database store.

        Args:
            database_url: SQLAlchemy URL, e.g. ``sqlite:///ranker.db``.
        """
        # NullPool: every worker thread opens and closes its own connection
        self._engine = create_engine(database_url, poolclass=NullPool)
        SQLModel.metadata.create_all(self._engine)
        self.items = ItemRepository(self._engine)
        self.battles = BattleRepository(self._engine)
        self.sessions = SessionRepository(self._engine)
        logger.info("store_init", url=database_url)

    @classmethod
    def from_path(cls, path: str | Path) -> DBStore:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        return cls(sqlite_url(path))

    async def add_items(self, session_id: str, items: Sequence[ComparableItem]) -> None:
        await self.items.add_items(session_id, items)

    async def list_items(self, session_id: str) -> list[ComparableItem]:
        return await self.items.list_items(session_id)

    async def save_ratings(self, session_id: str, updates: Sequence[RatingUpdate]) -> None:
        await self.items.save_ratings(session_id, updates)

    async def load_global_ratings(self, item_ids: Sequence[str]) -> dict[str, float]:
        return await self.items.load_global_ratings(item_ids)

    async def save_global_ratings(self, updates: Sequence[RatingUpdate]) -> None:
        await self.items.save_global_ratings(updates)

    async def append_battle(self, session_id: str, battle: Battle, sequence: int) -> None:
        await self.battles.append_battle(session_id, battle, sequence)

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
        await self.battles.record_outcome(
            session_id,
            battle,
            sequence,
            updates,
            share_globally=share_globally,
            status=status,
        )

    async def list_battles(self, session_id: str) -> list[Battle]:
        return await self.battles.list_battles(session_id)

    async def create_session(self, record: SessionRecord) -> None:
        await self.sessions.create_session(record)

    async def load_session(self, session_id: str) -> SessionRecord | None:
        return await self.sessions.load_session(session_id)

    async def save_session_status(self, session_id: str, status: SessionStatus) -> None:
        await self.sessions.save_session_status(session_id, status)

    async def list_sessions(self) -> list[SessionRecord]:
        return await self.sessions.list_sessions()

    async def soft_delete(self, session_id: str) -> None:
        await self.sessions.soft_delete(session_id)

    async def close(self) -> None:
        """Dispose the engine's connections."""
        await asyncio.to_thread(self._engine.dispose)
