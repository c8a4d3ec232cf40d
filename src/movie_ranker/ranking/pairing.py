"""Versus pair scheduling for ranking sessions."""

from __future__ import annotations

import random
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import structlog

from movie_ranker.core.config import BattleLimitType

logger = structlog.get_logger()

MIN_PAIR_SIZE = 2


@dataclass
class ComparableItem:
    """A movie taking part in a ranking session.

    Attributes:
        id: Identifier unique within the session (TMDB id, uuid, ...).
        rating: Current Elo rating, None until seeded.
        title: Display title.
    """

    id: str | int | None
    rating: float | None = None
    title: str | None = None

    @property
    def has_identity(self) -> bool:
        return self.id is not None and str(self.id) != ""

    @property
    def label(self) -> str:
        return self.title or str(self.id)


Pair = tuple[ComparableItem, ComparableItem]


def pair_key(id_a: str | int, id_b: str | int) -> str:
    """Canonical key for an unordered pair of ids."""
    return "-".join(sorted((str(id_a), str(id_b))))


def completed_pairs_from(pairs: Iterable[tuple[str | int, str | int]]) -> set[str]:
    """Build the completed-pairs set from (winner_id, loser_id) records."""
    return {pair_key(a, b) for a, b in pairs if a is not None and b is not None}


def eligible_items(items: Sequence[ComparableItem]) -> list[ComparableItem]:
    """Drop items that have no identity and so cannot be paired."""
    return [item for item in items if item.has_identity]


def pick_random_pair(
    items: Sequence[ComparableItem],
    rng: random.Random | None = None,
) -> Pair | None:
    """Pick two distinct items uniformly at random.

    Returns:
        The pair, or None when there are fewer than two items.
    """
    if len(items) < MIN_PAIR_SIZE:
        return None
    rng = rng or random.Random()  # noqa: S311
    i = rng.randrange(len(items))
    j = i
    while j == i:
        j = rng.randrange(len(items))
    return items[i], items[j]


def generate_pairs(
    items: Sequence[ComparableItem],
    completed_pairs: set[str],
    battle_limit_type: BattleLimitType = "complete",
    limit: int | None = None,
    rng: random.Random | None = None,
) -> list[Pair]:
    """Generate the next versus pairs for a session.

    Policies:

    - "complete": every unique pair not yet in ``completed_pairs``, shuffled
      so list order does not bias which movies meet first.
    - "fixed": the shuffled pairs cut to ``limit``.
    - "per-movie": the shuffled pairs cut to ``len(items) * limit``, so each
      movie appears in about ``limit`` battles.
    - "infinite": one random pair; ``completed_pairs`` is ignored.

    Args:
        items: Movies in the session. Items without an id are skipped.
        completed_pairs: Canonical keys of pairs already decided.
        battle_limit_type: Battle-limit policy.
        limit: Policy limit, defaults to 10 when unset.
        rng: Random source; a fresh unseeded one when None.

    Returns:
        Ordered list of pairs. Empty when fewer than two items are eligible.
    """
    rng = rng or random.Random()  # noqa: S311
    valid = eligible_items(items)
    limit = limit or 10

    if battle_limit_type == "infinite":
        pair = pick_random_pair(valid, rng)
        return [pair] if pair else []

    pairs: list[Pair] = []
    for i, item_a in enumerate(valid):
        for item_b in valid[i + 1 :]:
            if pair_key(item_a.id, item_b.id) not in completed_pairs:
                pairs.append((item_a, item_b))

    rng.shuffle(pairs)

    if battle_limit_type == "fixed":
        pairs = pairs[:limit]
    elif battle_limit_type == "per-movie":
        pairs = pairs[: len(valid) * limit]

    logger.debug(
        "pairs_generated",
        policy=battle_limit_type,
        eligible=len(valid),
        count=len(pairs),
    )
    return pairs
