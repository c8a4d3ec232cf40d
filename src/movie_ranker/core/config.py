"""Configuration schemas and loading for movie ranking sessions."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from movie_ranker.core.errors import InvalidConfigError

DEFAULT_ELO_RATING = 1200.0
DEFAULT_K_FACTOR = 32.0
DEFAULT_FIXED_LIMIT = 50
DEFAULT_PER_MOVIE_LIMIT = 10

BattleLimitType = Literal["complete", "fixed", "per-movie", "infinite"]
EloHandling = Literal["local", "global"]
SessionStatus = Literal["active", "paused", "completed"]

LIMITED_POLICIES: frozenset[str] = frozenset({"fixed", "per-movie"})


class SessionConfig(BaseModel):
    """Configuration for a single versus ranking session.

    Attributes:
        name: Display name of the session.
        battle_limit_type: When the session is done:
            - "complete": every unique pair compared once.
            - "fixed": stop after ``battle_limit`` battles.
            - "per-movie": stop after ``battle_limit`` battles per movie on average.
            - "infinite": random pairs until the user stops.
        battle_limit: Numeric limit for "fixed" and "per-movie".
        elo_handling: "local" keeps ratings inside the session, "global"
            reads and writes the shared rating pool.
    """

    name: str = Field(default="Untitled Session", min_length=3)
    battle_limit_type: BattleLimitType = "complete"
    battle_limit: int | None = None
    elo_handling: EloHandling = "local"

    @property
    def uses_global_elo(self) -> bool:
        return self.elo_handling == "global"


class RankingSettings(BaseModel):
    """Elo settings shared by every session."""

    initial_elo: float = DEFAULT_ELO_RATING
    k_factor: float = Field(default=DEFAULT_K_FACTOR, gt=0)
    dynamic_k_factor: bool = False
    seed: int | None = None


class ItemConfig(BaseModel):
    """A movie listed in a ranking plan file."""

    id: str
    title: str | None = None
    rating: float | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: object) -> str:
        """Accept numeric ids (e.g. TMDB ids) from YAML."""
        if v is None or not str(v).strip():
            msg = "Item ids cannot be empty"
            raise ValueError(msg)
        return str(v).strip()


class AppConfig(BaseModel):
    """Application-level configuration."""

    ranking: RankingSettings = Field(default_factory=RankingSettings)
    database_url: str | None = None


class RankingPlan(AppConfig):
    """A ranking plan: the session to start and the movies to rank."""

    session: SessionConfig = Field(default_factory=SessionConfig)
    items: list[ItemConfig] = Field(..., min_length=2)


def validate_session_config(config: SessionConfig) -> None:
    """Check a session config before a session starts.

    Raises:
        InvalidConfigError: If a "fixed" or "per-movie" policy has no positive limit.
    """
    if config.battle_limit_type not in LIMITED_POLICIES:
        return
    if config.battle_limit is None or config.battle_limit <= 0:
        raise InvalidConfigError(
            "battle_limit",
            f"A '{config.battle_limit_type}' session needs a positive battle_limit.",
        )


def load_config(path: str | Path) -> RankingPlan:
    """Load and validate a ranking plan from a YAML file.

    Args:
        path: Path to YAML plan file.

    Returns:
        Validated RankingPlan instance.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        pydantic.ValidationError: If the plan is invalid.
    """
    config_path = Path(path)
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with config_path.open() as f:
        data = yaml.safe_load(f)

    return RankingPlan.model_validate(data)
