from .base import (
    BattleStore,
    ItemStore,
    RankingStore,
    RatingUpdate,
    SessionRecord,
    SessionStore,
)
from .db_store import DBStore, sqlite_url
from .memory_store import MemoryStore

__all__ = [
    "BattleStore",
    "DBStore",
    "ItemStore",
    "MemoryStore",
    "RankingStore",
    "RatingUpdate",
    "SessionRecord",
    "SessionStore",
    "sqlite_url",
]
