"""Ranking engine for versus sessions.

Provides Elo updates, pair scheduling and the session state machine.
"""

from movie_ranker.ranking.elo import (
    EloUpdate,
    calculate_elo,
    calculate_elo_from_reorder,
    calculate_expected_win_chance,
    elo_to_rating,
    get_dynamic_k_factor,
    rating_to_elo,
    select_k_factor,
)
from movie_ranker.ranking.pairing import (
    ComparableItem,
    Pair,
    generate_pairs,
    pair_key,
    pick_random_pair,
)
from movie_ranker.ranking.session import (
    Battle,
    BattleResult,
    LeaderboardEntry,
    RankingSession,
)

__all__ = [
    "Battle",
    "BattleResult",
    "ComparableItem",
    "EloUpdate",
    "LeaderboardEntry",
    "Pair",
    "RankingSession",
    "calculate_elo",
    "calculate_elo_from_reorder",
    "calculate_expected_win_chance",
    "elo_to_rating",
    "generate_pairs",
    "get_dynamic_k_factor",
    "pair_key",
    "pick_random_pair",
    "rating_to_elo",
    "select_k_factor",
]
