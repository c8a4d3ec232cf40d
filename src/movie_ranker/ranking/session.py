"""Versus ranking session state machine.

A session owns its movies, the queue of pending pairs, the set of pairs
already decided and the append-only battle history. It never performs I/O:
callers load state before building a session and persist what the
returned results describe.

Status transitions::

    active -> paused -> active
    active -> completed

A session is single-owner. Callers that can receive battles for the same
session concurrently must serialize ``record_battle`` themselves.
"""

from __future__ import annotations

import random
import uuid
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime

import structlog

from movie_ranker.core.config import (
    LIMITED_POLICIES,
    RankingSettings,
    SessionConfig,
    SessionStatus,
    validate_session_config,
)
from movie_ranker.core.errors import InvalidBattleError, InvalidConfigError, SessionStateError
from movie_ranker.core.progress import SessionProgress, calculate_progress
from movie_ranker.ranking.elo import calculate_elo, select_k_factor
from movie_ranker.ranking.pairing import (
    ComparableItem,
    Pair,
    completed_pairs_from,
    eligible_items,
    generate_pairs,
    pair_key,
)

logger = structlog.get_logger()

ItemId = str | int


@dataclass(frozen=True)
class Battle:
    """One recorded versus outcome.

    A skipped battle keeps both ratings unchanged and only marks the pair
    as decided.
    """

    winner_id: ItemId
    loser_id: ItemId
    winner_rating_before: float
    winner_rating_after: float
    loser_rating_before: float
    loser_rating_after: float
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    skipped: bool = False

    @property
    def key(self) -> str:
        return pair_key(self.winner_id, self.loser_id)


@dataclass(frozen=True)
class BattleResult:
    """Everything a caller needs to persist after a battle.

    Attributes:
        battle: The appended battle record.
        progress: Progress after the battle.
        completed: True when this battle moved the session to completed.
        next_pair: Pair to present next, None when nothing is left.
    """

    battle: Battle
    progress: SessionProgress
    completed: bool
    next_pair: Pair | None


@dataclass(frozen=True)
class LeaderboardEntry:
    item_id: ItemId
    title: str | None
    rating: float
    wins: int
    losses: int

    @property
    def battles(self) -> int:
        return self.wins + self.losses


class RankingSession:
    """Orchestrates pairing, Elo updates and progress for one session.

    Attributes:
        session_id: Identifier of the session.
        config: Validated session configuration.
        settings: Elo settings (baseline rating, K-factor policy).
        status: "active", "paused" or "completed".
    """

    def __init__(
        self,
        session_id: str,
        config: SessionConfig,
        items: Sequence[ComparableItem],
        *,
        settings: RankingSettings | None = None,
        status: SessionStatus = "active",
        battles: Iterable[Battle] = (),
        rng: random.Random | None = None,
    ) -> None:
        """Build a session from already-validated state.

        Use ``start`` for a new session and ``restore`` to rebuild a stored one.
        """
        self.session_id = session_id
        self.config = config
        self.settings = settings or RankingSettings()
        self.status: SessionStatus = status
        self._rng = rng or random.Random(self.settings.seed)  # noqa: S311
        self._items: dict[ItemId, ComparableItem] = {}
        for item in eligible_items(items):
            rating = self.settings.initial_elo if item.rating is None else item.rating
            self._items[item.id] = replace(item, rating=rating)
        self._battles: list[Battle] = list(battles)
        self._completed_pairs: set[str] = completed_pairs_for(self._battles)
        self._queue: list[Pair] = []
        self._refill_queue()

    @classmethod
    def start(
        cls,
        items: Sequence[ComparableItem],
        config: SessionConfig,
        *,
        session_id: str | None = None,
        settings: RankingSettings | None = None,
        rng: random.Random | None = None,
    ) -> RankingSession:
        """Start a new active session.

        Unset ratings are seeded to the baseline rating. Items without an id
        are dropped.

        Raises:
            InvalidConfigError: If the policy needs a positive limit and has
                none, or when two items share an id.
        """
        validate_session_config(config)

        seen: set[ItemId] = set()
        for item in eligible_items(items):
            if item.id in seen:
                raise InvalidConfigError("items", f"Movie id '{item.id}' appears more than once.")
            seen.add(item.id)

        dropped = len(items) - len(seen)
        if dropped:
            logger.warning("items_without_id_dropped", count=dropped)

        session = cls(
            session_id or str(uuid.uuid4()),
            config,
            items,
            settings=settings,
            rng=rng,
        )
        logger.info(
            "session_started",
            session_id=session.session_id,
            policy=config.battle_limit_type,
            limit=config.battle_limit,
            items=len(session._items),
        )
        return session

    @classmethod
    def restore(
        cls,
        session_id: str,
        config: SessionConfig,
        items: Sequence[ComparableItem],
        battles: Iterable[Battle],
        status: SessionStatus,
        *,
        settings: RankingSettings | None = None,
        rng: random.Random | None = None,
    ) -> RankingSession:
        """Rebuild a stored session; completed pairs come from its battles."""
        return cls(
            session_id,
            config,
            items,
            settings=settings,
            status=status,
            battles=battles,
            rng=rng,
        )

    @property
    def items(self) -> list[ComparableItem]:
        """Copies of the session's movies with their current ratings."""
        return [replace(item) for item in self._items.values()]

    @property
    def ratings(self) -> dict[ItemId, float]:
        return {item_id: item.rating for item_id, item in self._items.items()}

    @property
    def battles(self) -> tuple[Battle, ...]:
        return tuple(self._battles)

    @property
    def completed_pairs(self) -> frozenset[str]:
        return frozenset(self._completed_pairs)

    @property
    def queue(self) -> tuple[Pair, ...]:
        return tuple(self._queue)

    @property
    def next_pair(self) -> Pair | None:
        """Pair to present next, or None when paused, completed or exhausted."""
        if self.status != "active":
            return None
        if not self._queue:
            self._refill_queue()
        return self._queue[0] if self._queue else None

    def progress(self) -> SessionProgress:
        return calculate_progress(
            len(self._items),
            self.config.battle_limit_type,
            self.config.battle_limit,
            len(self._battles),
        )

    def record_battle(self, winner_id: ItemId, loser_id: ItemId) -> BattleResult:
        """Record that ``winner_id`` beat ``loser_id``.

        Raises:
            InvalidBattleError: If the session is not active, the ids are equal,
                or either id is not part of the session.
        """
        winner, loser = self._battle_items("record a battle in", winner_id, loser_id)

        k_factor = select_k_factor(
            winner.rating,
            loser.rating,
            self.settings.k_factor,
            dynamic=self.settings.dynamic_k_factor,
        )
        update = calculate_elo(winner.rating, loser.rating, k_factor)

        battle = Battle(
            winner_id=winner.id,
            loser_id=loser.id,
            winner_rating_before=winner.rating,
            winner_rating_after=update.winner_new,
            loser_rating_before=loser.rating,
            loser_rating_after=update.loser_new,
        )
        winner.rating = update.winner_new
        loser.rating = update.loser_new

        logger.debug(
            "battle_recorded",
            session_id=self.session_id,
            winner=winner.id,
            loser=loser.id,
            k_factor=k_factor,
            winner_delta=round(update.winner_delta, 2),
        )
        return self._append(battle)

    def skip_battle(self, item_a_id: ItemId, item_b_id: ItemId) -> BattleResult:
        """Mark a pair as decided without changing either rating.

        Raises:
            InvalidBattleError: Same conditions as ``record_battle``.
        """
        item_a, item_b = self._battle_items("skip a battle in", item_a_id, item_b_id)
        battle = Battle(
            winner_id=item_a.id,
            loser_id=item_b.id,
            winner_rating_before=item_a.rating,
            winner_rating_after=item_a.rating,
            loser_rating_before=item_b.rating,
            loser_rating_after=item_b.rating,
            skipped=True,
        )
        logger.debug("battle_skipped", session_id=self.session_id, a=item_a.id, b=item_b.id)
        return self._append(battle)

    def pause(self) -> None:
        if self.status != "active":
            raise SessionStateError("pause", self.status)
        self.status = "paused"
        logger.info("session_paused", session_id=self.session_id)

    def resume(self) -> None:
        if self.status != "paused":
            raise SessionStateError("resume", self.status)
        self.status = "active"
        logger.info("session_resumed", session_id=self.session_id)

    def finish(self) -> None:
        """End an active session by user action (the only end for "infinite")."""
        if self.status != "active":
            raise SessionStateError("finish", self.status)
        self._complete()

    def refresh_ratings(self, ratings: Mapping[ItemId, float | None]) -> None:
        """Overwrite ratings with values read from a shared rating pool.

        Unknown ids and unset ratings are ignored.
        """
        for item_id, rating in ratings.items():
            item = self._items.get(item_id)
            if item is not None and rating is not None:
                item.rating = rating

    def leaderboard(self) -> list[LeaderboardEntry]:
        """Movies sorted by rating, with win/loss counts from non-skipped battles."""
        wins = dict.fromkeys(self._items, 0)
        losses = dict.fromkeys(self._items, 0)
        for battle in self._battles:
            if battle.skipped:
                continue
            if battle.winner_id in wins:
                wins[battle.winner_id] += 1
            if battle.loser_id in losses:
                losses[battle.loser_id] += 1

        entries = [
            LeaderboardEntry(
                item_id=item.id,
                title=item.title,
                rating=item.rating,
                wins=wins[item.id],
                losses=losses[item.id],
            )
            for item in self._items.values()
        ]
        return sorted(entries, key=lambda e: e.rating, reverse=True)

    def _battle_items(
        self, action: str, id_a: ItemId, id_b: ItemId
    ) -> tuple[ComparableItem, ComparableItem]:
        if self.status != "active":
            raise InvalidBattleError(
                f"Cannot {action} a session that is {self.status}",
                "Resume the session first." if self.status == "paused" else None,
            )
        if id_a == id_b:
            raise InvalidBattleError(f"A movie cannot battle itself (id '{id_a}')")
        missing = [item_id for item_id in (id_a, id_b) if item_id not in self._items]
        if missing:
            raise InvalidBattleError(
                f"Movie id '{missing[0]}' is not part of session '{self.session_id}'"
            )
        return self._items[id_a], self._items[id_b]

    def _append(self, battle: Battle) -> BattleResult:
        self._battles.append(battle)
        self._completed_pairs.add(battle.key)
        self._queue = [p for p in self._queue if pair_key(p[0].id, p[1].id) != battle.key]

        progress = self.progress()
        completed = progress.is_completed
        if completed:
            self._complete()
        elif not self._queue:
            self._refill_queue()

        return BattleResult(
            battle=battle,
            progress=progress,
            completed=completed,
            next_pair=self.next_pair,
        )

    def _complete(self) -> None:
        self.status = "completed"
        self._queue = []
        logger.info(
            "session_completed",
            session_id=self.session_id,
            battles=len(self._battles),
        )

    def _refill_queue(self) -> None:
        if self.status == "completed":
            return

        pairs = generate_pairs(
            list(self._items.values()),
            self._completed_pairs,
            self.config.battle_limit_type,
            self.config.battle_limit,
            self._rng,
        )
        if self.config.battle_limit_type in LIMITED_POLICIES:
            target = self.progress().target_battles or 0
            pairs = pairs[: max(target - len(self._battles), 0)]
        self._queue = pairs


def completed_pairs_for(battles: Iterable[Battle]) -> set[str]:
    """Completed-pairs set derived from a battle history."""
    return completed_pairs_from((b.winner_id, b.loser_id) for b in battles)
