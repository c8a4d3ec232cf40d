"""Database persistence for session movies and the shared rating pool."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from sqlmodel import Session, col, select

from movie_ranker.models import GlobalRating, RankingListItem
from movie_ranker.ranking import ComparableItem

from .base import RatingUpdate
from .repository import AsyncRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine


def apply_ratings(session: Session, session_id: str, updates: Sequence[RatingUpdate]) -> None:
    """Stage new session ratings; ids not in the session are ignored."""
    new_ratings = {u.item_id: u.rating for u in updates}
    statement = select(RankingListItem).where(
        RankingListItem.ranking_list_id == session_id,
        col(RankingListItem.item_id).in_(list(new_ratings)),
    )
    for row in session.exec(statement).all():
        row.elo_score = new_ratings[row.item_id]
        session.add(row)


def apply_global_ratings(session: Session, updates: Sequence[RatingUpdate]) -> None:
    """Stage upserts into the shared rating pool."""
    for update in updates:
        existing = session.get(GlobalRating, update.item_id)
        if existing:
            existing.elo_score = update.rating
            session.add(existing)
        else:
            session.add(GlobalRating(item_id=update.item_id, elo_score=update.rating))


class ItemRepository(AsyncRepository):
    """Persist and query movie ratings."""

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    async def add_items(self, session_id: str, items: Sequence[ComparableItem]) -> None:
        rows = [
            RankingListItem(
                ranking_list_id=session_id,
                item_id=str(item.id),
                title=item.title,
                elo_score=item.rating,
            )
            for item in items
        ]
        await self._write(lambda session: session.add_all(rows))

    async def list_items(self, session_id: str) -> list[ComparableItem]:
        def _get(session: Session) -> list[ComparableItem]:
            statement = (
                select(RankingListItem)
                .where(RankingListItem.ranking_list_id == session_id)
                .order_by(col(RankingListItem.item_id))
            )
            return [
                ComparableItem(id=row.item_id, rating=row.elo_score, title=row.title)
                for row in session.exec(statement).all()
            ]

        return await self._read(_get)

    async def save_ratings(self, session_id: str, updates: Sequence[RatingUpdate]) -> None:
        await self._write(lambda session: apply_ratings(session, session_id, updates))

    async def load_global_ratings(self, item_ids: Sequence[str]) -> dict[str, float]:
        def _get(session: Session) -> dict[str, float]:
            statement = select(GlobalRating).where(col(GlobalRating.item_id).in_(list(item_ids)))
            return {row.item_id: row.elo_score for row in session.exec(statement).all()}

        return await self._read(_get)

    async def save_global_ratings(self, updates: Sequence[RatingUpdate]) -> None:
        await self._write(lambda session: apply_global_ratings(session, updates))
