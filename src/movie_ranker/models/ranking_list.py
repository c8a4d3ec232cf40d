import uuid
from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class RankingList(SQLModel, table=True):
    """A versus ranking session and its battle-limit configuration."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    name: str
    status: str = Field(default="active", index=True)
    battle_limit_type: str = "complete"
    battle_limit: int | None = None
    elo_handling: str = "local"
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    deleted_at: datetime | None = None
