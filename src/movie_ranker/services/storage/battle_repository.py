"""Database persistence for battle records."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from sqlmodel import Session, col, select

from movie_ranker.core.config import SessionStatus
from movie_ranker.models import VersusBattle
from movie_ranker.ranking import Battle

from .base import RatingUpdate
from .item_repository import apply_global_ratings, apply_ratings
from .repository import AsyncRepository
from .session_repository import apply_status

if TYPE_CHECKING:
    from sqlalchemy import Engine


def _to_row(session_id: str, battle: Battle, sequence: int) -> VersusBattle:
    return VersusBattle(
        ranking_list_id=session_id,
        sequence=sequence,
        winner_item_id=str(battle.winner_id),
        loser_item_id=str(battle.loser_id),
        winner_elo_before=battle.winner_rating_before,
        winner_elo_after=battle.winner_rating_after,
        loser_elo_before=battle.loser_rating_before,
        loser_elo_after=battle.loser_rating_after,
        skipped=battle.skipped,
        created_at=battle.created_at,
    )


def _to_battle(row: VersusBattle) -> Battle:
    return Battle(
        winner_id=row.winner_item_id,
        loser_id=row.loser_item_id,
        winner_rating_before=row.winner_elo_before,
        winner_rating_after=row.winner_elo_after,
        loser_rating_before=row.loser_elo_before,
        loser_rating_after=row.loser_elo_after,
        created_at=row.created_at,
        skipped=row.skipped,
    )


class BattleRepository(AsyncRepository):
    """Append and query versus battles."""

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    async def append_battle(self, session_id: str, battle: Battle, sequence: int) -> None:
        row = _to_row(session_id, battle, sequence)
        await self._write(lambda session: session.add(row))

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
        """Write a battle with its rating and status changes in one transaction."""

        def _record(session: Session) -> None:
            session.add(_to_row(session_id, battle, sequence))
            apply_ratings(session, session_id, updates)
            if share_globally:
                apply_global_ratings(session, updates)
            if status is not None:
                apply_status(session, session_id, status)

        await self._write(_record)

    async def list_battles(self, session_id: str) -> list[Battle]:
        def _get(session: Session) -> list[Battle]:
            statement = (
                select(VersusBattle)
                .where(VersusBattle.ranking_list_id == session_id)
                .order_by(col(VersusBattle.sequence))
            )
            return [_to_battle(row) for row in session.exec(statement).all()]

        return await self._read(_get)
