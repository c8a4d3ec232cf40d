"""Elo rating calculations for versus battles."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass

from movie_ranker.core.config import DEFAULT_K_FACTOR

REORDER_DEFAULT_ELO = 1600.0


@dataclass(frozen=True)
class EloUpdate:
    """Result of a single Elo update.

    Attributes:
        winner_new: Winner rating after the battle, rounded to one decimal.
        loser_new: Loser rating after the battle, rounded to one decimal.
        winner_delta: Unrounded change applied to the winner.
        loser_delta: Unrounded change applied to the loser.
    """

    winner_new: float
    loser_new: float
    winner_delta: float
    loser_delta: float


def round_rating(value: float) -> float:
    """Round a rating to one decimal place, halves away from zero."""
    scaled = abs(value) * 10
    return math.copysign(math.floor(scaled + 0.5) / 10, value)


def calculate_expected_win_chance(rating_a: float, rating_b: float) -> float:
    """Calculate expected win probability for A against B.

    Uses the standard Elo formula:
    E_A = 1 / (1 + 10^((R_B - R_A) / 400))

    Args:
        rating_a: Rating of movie A.
        rating_b: Rating of movie B.

    Returns:
        Probability that A wins (0.0 to 1.0).
    """
    return 1.0 / (1.0 + 10 ** ((rating_b - rating_a) / 400))


def get_dynamic_k_factor(rating_diff: float) -> float:
    """Pick a K-factor from the rating gap between two movies.

    Wide gaps move ratings more so that frequently mismatched movies
    do not stagnate.

    Args:
        rating_diff: Difference between the two ratings (sign ignored).

    Returns:
        40 for a gap over 400, 32 over 200, otherwise 24.
    """
    abs_diff = abs(rating_diff)
    if abs_diff > 400:
        return 40.0
    if abs_diff > 200:
        return 32.0
    return 24.0


def select_k_factor(
    winner_rating: float,
    loser_rating: float,
    k_factor: float = DEFAULT_K_FACTOR,
    dynamic: bool = False,
) -> float:
    """Return the fixed K-factor, or the dynamic one when requested."""
    if dynamic:
        return get_dynamic_k_factor(winner_rating - loser_rating)
    return k_factor


def calculate_elo(
    winner_rating: float,
    loser_rating: float,
    k_factor: float = DEFAULT_K_FACTOR,
) -> EloUpdate:
    """Update Elo ratings after a battle.

    Args:
        winner_rating: Current rating of the winner.
        loser_rating: Current rating of the loser.
        k_factor: Maximum rating swing for this battle.

    Returns:
        EloUpdate with the new ratings and deltas.
    """
    expected_winner = calculate_expected_win_chance(winner_rating, loser_rating)
    expected_loser = 1.0 - expected_winner

    winner_delta = k_factor * (1.0 - expected_winner)
    loser_delta = k_factor * (0.0 - expected_loser)

    return EloUpdate(
        winner_new=round_rating(winner_rating + winner_delta),
        loser_new=round_rating(loser_rating + loser_delta),
        winner_delta=winner_delta,
        loser_delta=loser_delta,
    )


def rating_to_elo(rating: float) -> int:
    """Map a 1-10 user score onto the Elo scale (8.2 -> 1640)."""
    return round(rating * 200)


def elo_to_rating(elo_score: float) -> float:
    """Map an Elo score back onto the 1-10 user scale."""
    return max(1.0, min(10.0, elo_score / 200))


def calculate_elo_from_reorder(
    ratings: Mapping[str, float | None],
    old_positions: Mapping[str, int],
    new_positions: Mapping[str, int],
    k_factor: float = DEFAULT_K_FACTOR / 4,
) -> dict[str, float]:
    """Turn a drag-and-drop reorder into Elo updates.

    Each moved movie plays a simulated battle against every movie whose
    new position lies in the range it passed through. Moving up wins,
    moving down loses. A reduced K keeps reorders gentler than battles.

    Args:
        ratings: Current rating per movie id; None falls back to 1600.
        old_positions: Position per movie id before the reorder.
        new_positions: Position per movie id after the reorder.
        k_factor: K-factor for each simulated battle.

    Returns:
        New rating per movie id.
    """
    scores = {
        item_id: REORDER_DEFAULT_ELO if rating is None else rating
        for item_id, rating in ratings.items()
    }
    by_new_position = {pos: item_id for item_id, pos in new_positions.items()}

    for item_id in ratings:
        old_pos = old_positions[item_id]
        new_pos = new_positions[item_id]
        if old_pos == new_pos:
            continue

        for pos in range(min(old_pos, new_pos), max(old_pos, new_pos) + 1):
            other_id = by_new_position.get(pos)
            if pos == old_pos or other_id is None or other_id == item_id:
                continue

            if new_pos < pos:
                result = calculate_elo(scores[item_id], scores[other_id], k_factor)
                scores[item_id] = result.winner_new
                scores[other_id] = result.loser_new
            else:
                result = calculate_elo(scores[other_id], scores[item_id], k_factor)
                scores[other_id] = result.winner_new
                scores[item_id] = result.loser_new

    return scores
