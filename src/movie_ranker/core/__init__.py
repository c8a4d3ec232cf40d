"""Core configuration and utilities for movie ranking."""

from movie_ranker.core.config import (
    DEFAULT_ELO_RATING,
    DEFAULT_K_FACTOR,
    AppConfig,
    ItemConfig,
    RankingPlan,
    RankingSettings,
    SessionConfig,
    load_config,
    validate_session_config,
)
from movie_ranker.core.errors import (
    ConfigurationError,
    InvalidBattleError,
    InvalidConfigError,
    RankingError,
    SessionNotFoundError,
    SessionStateError,
)
from movie_ranker.core.progress import (
    SessionProgress,
    calculate_progress,
    calculate_target_battles,
)

__all__ = [
    "DEFAULT_ELO_RATING",
    "DEFAULT_K_FACTOR",
    "AppConfig",
    "ItemConfig",
    "RankingPlan",
    "RankingSettings",
    "SessionConfig",
    "SessionProgress",
    "calculate_progress",
    "calculate_target_battles",
    "load_config",
    "validate_session_config",
    "ConfigurationError",
    "InvalidBattleError",
    "InvalidConfigError",
    "RankingError",
    "SessionNotFoundError",
    "SessionStateError",
]
