import uuid

from sqlmodel import Field, SQLModel


class RankingListItem(SQLModel, table=True):
    """A movie's rating inside one ranking session."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    ranking_list_id: str = Field(index=True)
    item_id: str = Field(index=True)
    title: str | None = None
    elo_score: float


class GlobalRating(SQLModel, table=True):
    """A movie's rating in the pool shared by all global-scope sessions."""

    item_id: str = Field(primary_key=True)
    elo_score: float
