"""Database persistence for ranking sessions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlmodel import Session, col, select

from movie_ranker.core.config import SessionConfig, SessionStatus
from movie_ranker.models import RankingList

from .base import SessionRecord
from .repository import AsyncRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine


def _to_record(row: RankingList) -> SessionRecord:
    config = SessionConfig.model_validate(
        {
            "name": row.name,
            "battle_limit_type": row.battle_limit_type,
            "battle_limit": row.battle_limit,
            "elo_handling": row.elo_handling,
        }
    )
    return SessionRecord(
        session_id=row.id,
        config=config,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def apply_status(session: Session, session_id: str, status: SessionStatus) -> None:
    """Stage a status change.

    Raises:
        LookupError: If no ranking list has this id.
    """
    row = session.get(RankingList, session_id)
    if row is None:
        msg = f"Ranking list not found: {session_id}"
        raise LookupError(msg)
    row.status = status
    row.updated_at = datetime.now(UTC)
    session.add(row)


class SessionRepository(AsyncRepository):
    """Persist and query ranking sessions."""

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    async def create_session(self, record: SessionRecord) -> None:
        row = RankingList(
            id=record.session_id,
            name=record.config.name,
            status=record.status,
            battle_limit_type=record.config.battle_limit_type,
            battle_limit=record.config.battle_limit,
            elo_handling=record.config.elo_handling,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
        await self._write(lambda session: session.add(row))

    async def load_session(self, session_id: str) -> SessionRecord | None:
        def _get(session: Session) -> SessionRecord | None:
            row = session.get(RankingList, session_id)
            if row is None or row.deleted_at is not None:
                return None
            return _to_record(row)

        return await self._read(_get)

    async def save_session_status(self, session_id: str, status: SessionStatus) -> None:
        await self._write(lambda session: apply_status(session, session_id, status))

    async def list_sessions(self) -> list[SessionRecord]:
        def _get(session: Session) -> list[SessionRecord]:
            statement = (
                select(RankingList)
                .where(col(RankingList.deleted_at).is_(None))
                .order_by(col(RankingList.updated_at).desc())
            )
            return [_to_record(row) for row in session.exec(statement).all()]

        return await self._read(_get)

    async def soft_delete(self, session_id: str) -> None:
        def _delete(session: Session) -> None:
            row = session.get(RankingList, session_id)
            if row is not None:
                row.deleted_at = datetime.now(UTC)
                session.add(row)

        await self._write(_delete)
