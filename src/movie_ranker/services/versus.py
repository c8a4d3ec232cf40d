"""Versus service for running ranking sessions against a store."""

from __future__ import annotations

import asyncio
import random
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import replace

import structlog

from movie_ranker.core.config import RankingSettings, SessionConfig
from movie_ranker.core.errors import SessionNotFoundError
from movie_ranker.core.progress import SessionProgress
from movie_ranker.ranking import (
    Battle,
    BattleResult,
    ComparableItem,
    LeaderboardEntry,
    RankingSession,
)
from movie_ranker.services.storage import RankingStore, RatingUpdate, SessionRecord

logger = structlog.get_logger()


class VersusService:
    """Loads sessions from a store, applies battles and persists the results.

    The engine assumes one owner per session, so every call that loads or
    mutates a session takes a per-session lock. Under global Elo scope the
    two movies' ratings are read from the shared pool right before the
    battle and written back with it.

    Loaded sessions stay cached for the lifetime of the service;
    ``soft_delete`` is the only call that evicts one.
    """

    def __init__(
        self,
        store: RankingStore,
        settings: RankingSettings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize versus service.

        Args:
            store: Storage for sessions, movies and battles.
            settings: Elo settings applied to every session.
            rng: Random source shared by the sessions (for reproducible runs).
        """
        self.store = store
        self.settings = settings or RankingSettings()
        self._rng = rng
        self._sessions: dict[str, RankingSession] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def create_session(
        self, config: SessionConfig, items: Sequence[ComparableItem]
    ) -> RankingSession:
        """Start a session and persist it with its seeded movies."""
        normalized = [
            replace(item, id=str(item.id)) for item in items if item.has_identity
        ]
        session = RankingSession.start(
            normalized, config, settings=self.settings, rng=self._rng
        )
        if config.uses_global_elo:
            await self._refresh_from_pool(session, list(session.ratings))

        await self.store.create_session(SessionRecord(session.session_id, config))
        await self.store.add_items(session.session_id, session.items)
        self._sessions[session.session_id] = session
        return session

    async def open_session(self, session_id: str) -> RankingSession:
        """Return the live session, rebuilding it from the store if needed.

        Raises:
            SessionNotFoundError: If the store has no such session.
        """
        async with self._locks[session_id]:
            return await self._load(session_id)

    async def record_battle(
        self, session_id: str, winner_id: str, loser_id: str
    ) -> BattleResult:
        """Record a battle outcome and persist the new ratings."""
        async with self._locks[session_id]:
            session = await self._load(session_id)
            if session.config.uses_global_elo:
                await self._refresh_from_pool(session, [winner_id, loser_id])
            result = session.record_battle(winner_id, loser_id)
            await self._persist(session, result)
            return result

    async def skip_battle(self, session_id: str, item_a_id: str, item_b_id: str) -> BattleResult:
        """Mark a pair as decided without a rating change."""
        async with self._locks[session_id]:
            session = await self._load(session_id)
            result = session.skip_battle(item_a_id, item_b_id)
            await self._persist(session, result)
            return result

    async def pause(self, session_id: str) -> RankingSession:
        async with self._locks[session_id]:
            session = await self._load(session_id)
            session.pause()
            await self.store.save_session_status(session_id, session.status)
            return session

    async def resume(self, session_id: str) -> RankingSession:
        async with self._locks[session_id]:
            session = await self._load(session_id)
            session.resume()
            await self.store.save_session_status(session_id, session.status)
            return session

    async def finish(self, session_id: str) -> RankingSession:
        """End a session by user action."""
        async with self._locks[session_id]:
            session = await self._load(session_id)
            session.finish()
            await self.store.save_session_status(session_id, session.status)
            return session

    async def get_progress(self, session_id: str) -> SessionProgress:
        session = await self.open_session(session_id)
        return session.progress()

    async def get_leaderboard(self, session_id: str) -> list[LeaderboardEntry]:
        session = await self.open_session(session_id)
        return session.leaderboard()

    async def get_battles(self, session_id: str) -> list[Battle]:
        """Battle history, newest first."""
        session = await self.open_session(session_id)
        return list(reversed(session.battles))

    async def list_sessions(self) -> list[SessionRecord]:
        return await self.store.list_sessions()

    async def soft_delete(self, session_id: str) -> None:
        """Retire a session; later loads raise SessionNotFoundError."""
        async with self._locks[session_id]:
            await self.store.soft_delete(session_id)
            self._sessions.pop(session_id, None)
        self._locks.pop(session_id, None)
        logger.info("session_deleted", session_id=session_id)

    async def _load(self, session_id: str) -> RankingSession:
        """Cached session lookup; callers must hold the session's lock."""
        if session_id in self._sessions:
            return self._sessions[session_id]

        record = await self.store.load_session(session_id)
        if record is None:
            raise SessionNotFoundError(session_id)

        items = await self.store.list_items(session_id)
        battles = await self.store.list_battles(session_id)
        session = RankingSession.restore(
            session_id,
            record.config,
            items,
            battles,
            record.status,
            settings=self.settings,
            rng=self._rng,
        )
        logger.info(
            "session_loaded",
            session_id=session_id,
            status=record.status,
            battles=len(battles),
        )
        return self._sessions.setdefault(session_id, session)

    async def _refresh_from_pool(self, session: RankingSession, item_ids: list[str]) -> None:
        pooled = await self.store.load_global_ratings(item_ids)
        session.refresh_ratings(pooled)

    async def _persist(self, session: RankingSession, result: BattleResult) -> None:
        battle = result.battle
        updates = []
        if not battle.skipped:
            updates = [
                RatingUpdate(str(battle.winner_id), battle.winner_rating_after),
                RatingUpdate(str(battle.loser_id), battle.loser_rating_after),
            ]
        try:
            await self.store.record_outcome(
                session.session_id,
                battle,
                len(session.battles) - 1,
                updates,
                share_globally=session.config.uses_global_elo,
                status="completed" if result.completed else None,
            )
        except Exception:
            # The live copy already holds the battle; reload from the store next time
            self._sessions.pop(session.session_id, None)
            logger.exception("battle_not_saved", session_id=session.session_id)
            raise
