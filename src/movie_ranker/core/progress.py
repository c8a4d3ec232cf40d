"""Progress tracking for versus ranking sessions."""

from __future__ import annotations

from dataclasses import dataclass

from movie_ranker.core.config import (
    DEFAULT_FIXED_LIMIT,
    DEFAULT_PER_MOVIE_LIMIT,
    BattleLimitType,
)


@dataclass(frozen=True)
class SessionProgress:
    """Snapshot of how far a session is towards its target.

    Attributes:
        total_items: Number of movies in the session.
        target_battles: Battles needed to finish, None for "infinite".
        completed_battles: Battles recorded so far, skips included.
        is_completed: Whether the target has been reached.
        completion_percent: Percent of the target reached, None when there is
            no positive target. Not clamped, so over-completion stays visible.
    """

    total_items: int
    target_battles: int | None
    completed_battles: int
    is_completed: bool
    completion_percent: float | None


def calculate_target_battles(
    total_items: int,
    battle_limit_type: BattleLimitType,
    limit: int | None = None,
) -> int | None:
    """Number of battles a policy asks for.

    Args:
        total_items: Number of movies in the session.
        battle_limit_type: Battle-limit policy.
        limit: Policy limit; "fixed" defaults to 50 and "per-movie" to 10.

    Returns:
        Target battle count, or None for "infinite".
    """
    if battle_limit_type == "infinite":
        return None
    if battle_limit_type == "fixed":
        return limit or DEFAULT_FIXED_LIMIT
    if battle_limit_type == "per-movie":
        return total_items * (limit or DEFAULT_PER_MOVIE_LIMIT)
    if total_items < 2:
        return 0
    return total_items * (total_items - 1) // 2


def calculate_progress(
    total_items: int,
    battle_limit_type: BattleLimitType,
    limit: int | None,
    completed_count: int,
) -> SessionProgress:
    """Compute completion state for a session.

    Args:
        total_items: Number of movies in the session.
        battle_limit_type: Battle-limit policy.
        limit: Policy limit (may be None).
        completed_count: Battles recorded so far.

    Returns:
        SessionProgress snapshot.
    """
    target = calculate_target_battles(total_items, battle_limit_type, limit)

    if target is None:
        return SessionProgress(
            total_items=total_items,
            target_battles=None,
            completed_battles=completed_count,
            is_completed=False,
            completion_percent=None,
        )

    percent = 100 * completed_count / target if target else None
    return SessionProgress(
        total_items=total_items,
        target_battles=target,
        completed_battles=completed_count,
        is_completed=completed_count >= target,
        completion_percent=percent,
    )
