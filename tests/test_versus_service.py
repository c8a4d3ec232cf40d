"""Tests for the versus service."""

import asyncio
import random

import pytest

from movie_ranker.core.config import SessionConfig
from movie_ranker.core.errors import InvalidBattleError, SessionNotFoundError
from movie_ranker.ranking import ComparableItem
from movie_ranker.services import VersusService
from movie_ranker.services.storage import DBStore, MemoryStore, battle_repository


def make_items(*ids):
    return [ComparableItem(id=item_id, title=f"Movie {item_id}") for item_id in ids]


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
async def db_store(tmp_path):
    store = DBStore.from_path(tmp_path / "ranker.db")
    yield store
    await store.close()


@pytest.fixture
def service(memory_store):
    return VersusService(memory_store, rng=random.Random(4))


class TestCreateSession:
    async def test_persists_session_and_seeded_items(self, service, memory_store):
        session = await service.create_session(SessionConfig(name="Heist films"), make_items(1, 2, 3))

        record = await memory_store.load_session(session.session_id)
        items = await memory_store.list_items(session.session_id)

        assert record.config.name == "Heist films"
        assert {i.id: i.rating for i in items} == {"1": 1200.0, "2": 1200.0, "3": 1200.0}
        assert session.ratings == {"1": 1200.0, "2": 1200.0, "3": 1200.0}


class TestRecordBattle:
    async def test_persists_battle_and_ratings(self, service, memory_store):
        session = await service.create_session(SessionConfig(), make_items("a", "b", "c"))

        result = await service.record_battle(session.session_id, "a", "b")

        assert result.battle.winner_rating_after == 1216.0
        stored = {i.id: i.rating for i in await memory_store.list_items(session.session_id)}
        assert stored == {"a": 1216.0, "b": 1184.0, "c": 1200.0}
        battles = await memory_store.list_battles(session.session_id)
        assert len(battles) == 1
        assert (await service.get_progress(session.session_id)).completed_battles == 1

    async def test_completion_is_persisted(self, service, memory_store):
        session = await service.create_session(SessionConfig(), make_items("a", "b"))

        result = await service.record_battle(session.session_id, "b", "a")

        assert result.completed is True
        record = await memory_store.load_session(session.session_id)
        assert record.status == "completed"

    async def test_skip_does_not_touch_ratings(self, service, memory_store):
        session = await service.create_session(SessionConfig(), make_items("a", "b", "c"))

        await service.skip_battle(session.session_id, "a", "c")

        stored = {i.id: i.rating for i in await memory_store.list_items(session.session_id)}
        assert set(stored.values()) == {1200.0}
        battles = await memory_store.list_battles(session.session_id)
        assert battles[0].skipped is True

    async def test_paused_session_rejects_battles(self, service, memory_store):
        session = await service.create_session(SessionConfig(), make_items("a", "b", "c"))

        await service.pause(session.session_id)

        assert (await memory_store.load_session(session.session_id)).status == "paused"
        with pytest.raises(InvalidBattleError):
            await service.record_battle(session.session_id, "a", "b")

        await service.resume(session.session_id)
        await service.record_battle(session.session_id, "a", "b")

    async def test_concurrent_battles_are_serialized(self, service):
        config = SessionConfig(battle_limit_type="infinite")
        session = await service.create_session(config, make_items("a", "b"))

        await asyncio.gather(
            *(service.record_battle(session.session_id, "a", "b") for _ in range(10))
        )

        battles = session.battles
        assert len(battles) == 10
        for previous, current in zip(battles, battles[1:], strict=False):
            assert current.winner_rating_before == previous.winner_rating_after
            assert current.loser_rating_before == previous.loser_rating_after

    async def test_finish_infinite_session(self, service, memory_store):
        config = SessionConfig(battle_limit_type="infinite")
        session = await service.create_session(config, make_items("a", "b", "c"))

        await service.finish(session.session_id)

        assert (await memory_store.load_session(session.session_id)).status == "completed"


class TestOpenSession:
    async def test_unknown_session(self, service):
        with pytest.raises(SessionNotFoundError):
            await service.open_session("missing")

    async def test_restores_from_store(self, db_store):
        first = VersusService(db_store, rng=random.Random(1))
        session = await first.create_session(SessionConfig(), make_items("a", "b", "c", "d"))
        await first.record_battle(session.session_id, "a", "b")
        await first.skip_battle(session.session_id, "c", "d")

        reopened = await VersusService(db_store).open_session(session.session_id)

        assert reopened.ratings == {"a": 1216.0, "b": 1184.0, "c": 1200.0, "d": 1200.0}
        assert reopened.completed_pairs == {"a-b", "c-d"}
        assert reopened.progress().completed_battles == 2
        offered = {frozenset((x.id, y.id)) for x, y in reopened.queue}
        assert frozenset(("a", "b")) not in offered
        assert len(offered) == 4

    async def test_soft_deleted_session_cannot_be_opened(self, service):
        session = await service.create_session(SessionConfig(), make_items("a", "b"))

        await service.soft_delete(session.session_id)

        with pytest.raises(SessionNotFoundError):
            await service.open_session(session.session_id)

    async def test_failed_write_keeps_store_consistent(self, db_store, monkeypatch):
        service = VersusService(db_store, rng=random.Random(2))
        session = await service.create_session(SessionConfig(), make_items("a", "b", "c"))

        def fail(*args, **kwargs):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(battle_repository, "apply_ratings", fail)
        with pytest.raises(RuntimeError, match="unavailable"):
            await service.record_battle(session.session_id, "a", "b")
        monkeypatch.undo()

        reloaded = await service.open_session(session.session_id)

        assert reloaded is not session
        assert reloaded.battles == ()
        assert reloaded.completed_pairs == frozenset()
        assert reloaded.ratings == {"a": 1200.0, "b": 1200.0, "c": 1200.0}
        assert await db_store.list_battles(session.session_id) == []

    async def test_failed_write_on_memory_store_drops_live_copy(self):
        class FailingStore(MemoryStore):
            async def record_outcome(self, *args, **kwargs):
                raise RuntimeError("database unavailable")

        service = VersusService(FailingStore())
        session = await service.create_session(SessionConfig(), make_items("a", "b", "c"))

        with pytest.raises(RuntimeError, match="unavailable"):
            await service.record_battle(session.session_id, "a", "b")

        reloaded = await service.open_session(session.session_id)
        assert reloaded is not session
        assert reloaded.progress().completed_battles == 0
        assert reloaded.ratings["a"] == 1200.0

    async def test_reads_while_loading_do_not_replace_live_session(self, db_store):
        """A query racing a battle on a cold cache must not bring back old ratings."""
        config = SessionConfig(battle_limit_type="infinite")
        created = await VersusService(db_store).create_session(config, make_items("a", "b"))

        for _ in range(10):
            service = VersusService(db_store)
            first, _ = await asyncio.gather(
                service.record_battle(created.session_id, "a", "b"),
                service.get_progress(created.session_id),
            )
            second = await service.record_battle(created.session_id, "a", "b")

            assert second.battle.winner_rating_before == first.battle.winner_rating_after
            assert second.battle.loser_rating_before == first.battle.loser_rating_after

        stored = await db_store.list_battles(created.session_id)
        assert len(stored) == 20
        for previous, current in zip(stored, stored[1:], strict=False):
            assert current.winner_rating_before == previous.winner_rating_after

    async def test_soft_delete_releases_lock(self, service):
        session = await service.create_session(SessionConfig(), make_items("a", "b"))
        await service.record_battle(session.session_id, "a", "b")

        await service.soft_delete(session.session_id)

        assert session.session_id not in service._locks
        assert session.session_id not in service._sessions


class TestGlobalScope:
    async def test_ratings_shared_across_sessions(self, service, memory_store):
        config = SessionConfig(elo_handling="global")
        first = await service.create_session(config, make_items("a", "b"))
        await service.record_battle(first.session_id, "a", "b")

        assert await memory_store.load_global_ratings(["a", "b"]) == {"a": 1216.0, "b": 1184.0}

        second = await service.create_session(config, make_items("a", "b", "c"))
        assert second.ratings == {"a": 1216.0, "b": 1184.0, "c": 1200.0}

    async def test_battle_reads_current_pool_value(self, service, memory_store):
        config = SessionConfig(elo_handling="global", battle_limit_type="infinite")
        first = await service.create_session(config, make_items("a", "b"))
        second = await service.create_session(config, make_items("a", "b"))

        await service.record_battle(first.session_id, "a", "b")
        result = await service.record_battle(second.session_id, "a", "b")

        assert result.battle.winner_rating_before == 1216.0
        assert result.battle.loser_rating_before == 1184.0

    async def test_local_scope_leaves_pool_alone(self, service, memory_store):
        session = await service.create_session(SessionConfig(), make_items("a", "b"))
        await service.record_battle(session.session_id, "a", "b")

        assert await memory_store.load_global_ratings(["a", "b"]) == {}


class TestQueries:
    async def test_battles_newest_first(self, service):
        session = await service.create_session(SessionConfig(), make_items("a", "b", "c"))
        await service.record_battle(session.session_id, "a", "b")
        await service.record_battle(session.session_id, "c", "a")

        battles = await service.get_battles(session.session_id)

        assert [(b.winner_id, b.loser_id) for b in battles] == [("c", "a"), ("a", "b")]

    async def test_leaderboard(self, service):
        session = await service.create_session(SessionConfig(), make_items("a", "b", "c"))
        await service.record_battle(session.session_id, "c", "a")

        board = await service.get_leaderboard(session.session_id)

        assert board[0].item_id == "c"
        assert board[-1].item_id == "a"

    async def test_list_sessions(self, service):
        await service.create_session(SessionConfig(name="One"), make_items("a", "b"))
        await service.create_session(SessionConfig(name="Two"), make_items("a", "b"))

        names = {r.config.name for r in await service.list_sessions()}

        assert names == {"One", "Two"}
