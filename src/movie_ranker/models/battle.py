import uuid
from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class VersusBattle(SQLModel, table=True):
    """A single versus outcome; skipped battles keep ratings unchanged."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    ranking_list_id: str = Field(index=True)
    sequence: int
    winner_item_id: str
    loser_item_id: str
    winner_elo_before: float
    winner_elo_after: float
    loser_elo_before: float
    loser_elo_after: float
    skipped: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
