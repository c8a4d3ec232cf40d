"""Store protocols consumed by the versus service."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol, runtime_checkable

from movie_ranker.core.config import SessionConfig, SessionStatus
from movie_ranker.ranking import Battle, ComparableItem


@dataclass(frozen=True)
class RatingUpdate:
    item_id: str
    rating: float


@dataclass
class SessionRecord:
    """Stored state of a ranking session, without its movies and battles."""

    session_id: str
    config: SessionConfig
    status: SessionStatus = "active"
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@runtime_checkable
class ItemStore(Protocol):
    """Movies of a session and their ratings."""

    async def add_items(self, session_id: str, items: Sequence[ComparableItem]) -> None:
        """Seed the movies of a new session."""
        ...

    async def list_items(self, session_id: str) -> list[ComparableItem]:
        """List the movies of a session with their current ratings."""
        ...

    async def save_ratings(self, session_id: str, updates: Sequence[RatingUpdate]) -> None:
        """Persist new session-local ratings."""
        ...

    async def load_global_ratings(self, item_ids: Sequence[str]) -> dict[str, float]:
        """Read ratings from the shared pool; unknown ids are omitted."""
        ...

    async def save_global_ratings(self, updates: Sequence[RatingUpdate]) -> None:
        """Write ratings to the shared pool."""
        ...


@runtime_checkable
class BattleStore(Protocol):
    """Append-only battle history."""

    async def append_battle(self, session_id: str, battle: Battle, sequence: int) -> None:
        """Append a battle; ``sequence`` is its index in the session history."""
        ...

    async def list_battles(self, session_id: str) -> list[Battle]:
        """List battles in submission order."""
        ...


@runtime_checkable
class SessionStore(Protocol):
    """Session configuration and status."""

    async def create_session(self, record: SessionRecord) -> None:
        """Persist a new session."""
        ...

    async def load_session(self, session_id: str) -> SessionRecord | None:
        """Load a session, None when missing or soft-deleted."""
        ...

    async def save_session_status(self, session_id: str, status: SessionStatus) -> None:
        """Persist a status transition."""
        ...

    async def list_sessions(self) -> list[SessionRecord]:
        """List sessions that are not soft-deleted, most recently updated first."""
        ...

    async def soft_delete(self, session_id: str) -> None:
        """Retire a session without removing its history."""
        ...


class RankingStore(ItemStore, BattleStore, SessionStore, Protocol):
    """A store that covers movies, battles and sessions."""

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
        """Persist a battle and its effects all at once, or not at all.

        Writes the battle, the session ratings in ``updates`` (also into the
        shared pool when ``share_globally``) and, when given, a new status.

        Raises:
            LookupError: If ``status`` is given and the session does not exist.
        """
        ...

    async def close(self) -> None:
        """Release connections held by the store."""
        ...
