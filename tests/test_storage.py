"""Tests for the in-memory and SQLModel stores."""

import pytest

from movie_ranker.core.config import SessionConfig
from movie_ranker.ranking import Battle, ComparableItem
from movie_ranker.services.storage import DBStore, MemoryStore, RatingUpdate, SessionRecord


@pytest.fixture(params=["memory", "db"])
async def store(request, tmp_path):
    """Each test runs against both store implementations."""
    if request.param == "memory":
        store = MemoryStore()
    else:
        store = DBStore.from_path(tmp_path / "ranker.db")
    yield store
    await store.close()


def make_battle(winner, loser, before=1200.0, skipped=False):
    after_w, after_l = (before, before) if skipped else (before + 16, before - 16)
    return Battle(
        winner_id=winner,
        loser_id=loser,
        winner_rating_before=before,
        winner_rating_after=after_w,
        loser_rating_before=before,
        loser_rating_after=after_l,
        skipped=skipped,
    )


class TestSessions:
    async def test_create_and_load(self, store):
        config = SessionConfig(name="Weekend", battle_limit_type="fixed", battle_limit=4)
        await store.create_session(SessionRecord("s1", config))

        record = await store.load_session("s1")

        assert record is not None
        assert record.session_id == "s1"
        assert record.config == config
        assert record.status == "active"

    async def test_missing_session(self, store):
        assert await store.load_session("nope") is None

    async def test_save_status(self, store):
        await store.create_session(SessionRecord("s1", SessionConfig()))

        await store.save_session_status("s1", "paused")

        record = await store.load_session("s1")
        assert record.status == "paused"

    async def test_soft_delete_hides_session(self, store):
        await store.create_session(SessionRecord("s1", SessionConfig()))
        await store.create_session(SessionRecord("s2", SessionConfig()))

        await store.soft_delete("s1")

        assert await store.load_session("s1") is None
        assert [r.session_id for r in await store.list_sessions()] == ["s2"]


class TestItems:
    async def test_add_and_list(self, store):
        items = [
            ComparableItem(id="a", rating=1200.0, title="Alien"),
            ComparableItem(id="b", rating=1250.0, title="Blade Runner"),
        ]
        await store.add_items("s1", items)

        listed = {i.id: i for i in await store.list_items("s1")}

        assert listed["a"].rating == 1200.0
        assert listed["b"].title == "Blade Runner"
        assert await store.list_items("other") == []

    async def test_save_ratings(self, store):
        await store.add_items("s1", [ComparableItem(id="a", rating=1200.0)])
        await store.add_items("s2", [ComparableItem(id="a", rating=1200.0)])

        await store.save_ratings("s1", [RatingUpdate("a", 1216.0)])

        assert (await store.list_items("s1"))[0].rating == 1216.0
        assert (await store.list_items("s2"))[0].rating == 1200.0

    async def test_global_ratings(self, store):
        assert await store.load_global_ratings(["a"]) == {}

        await store.save_global_ratings([RatingUpdate("a", 1216.0), RatingUpdate("b", 1184.0)])
        await store.save_global_ratings([RatingUpdate("a", 1230.5)])

        assert await store.load_global_ratings(["a", "b", "c"]) == {"a": 1230.5, "b": 1184.0}


class TestBattles:
    async def test_append_keeps_submission_order(self, store):
        battles = [make_battle("a", "b"), make_battle("c", "a"), make_battle("b", "c", skipped=True)]
        for seq, battle in enumerate(battles):
            await store.append_battle("s1", battle, seq)

        listed = await store.list_battles("s1")

        assert [(b.winner_id, b.loser_id) for b in listed] == [("a", "b"), ("c", "a"), ("b", "c")]
        assert [b.skipped for b in listed] == [False, False, True]
        assert listed[0].winner_rating_after == 1216.0
        assert await store.list_battles("s2") == []


class TestRecordOutcome:
    """Battle, ratings and status are written together."""

    async def test_writes_everything(self, store):
        await store.create_session(SessionRecord("s1", SessionConfig()))
        await store.add_items(
            "s1", [ComparableItem(id="a", rating=1200.0), ComparableItem(id="b", rating=1200.0)]
        )
        updates = [RatingUpdate("a", 1216.0), RatingUpdate("b", 1184.0)]

        await store.record_outcome(
            "s1", make_battle("a", "b"), 0, updates, share_globally=True, status="completed"
        )

        assert len(await store.list_battles("s1")) == 1
        assert {i.id: i.rating for i in await store.list_items("s1")} == {"a": 1216.0, "b": 1184.0}
        assert await store.load_global_ratings(["a", "b"]) == {"a": 1216.0, "b": 1184.0}
        assert (await store.load_session("s1")).status == "completed"

    async def test_local_scope_leaves_pool_alone(self, store):
        await store.create_session(SessionRecord("s1", SessionConfig()))
        await store.add_items("s1", [ComparableItem(id="a", rating=1200.0)])

        await store.record_outcome("s1", make_battle("a", "b"), 0, [RatingUpdate("a", 1216.0)])

        assert await store.load_global_ratings(["a"]) == {}
        assert (await store.load_session("s1")).status == "active"

    async def test_failure_writes_nothing(self, store):
        # Movies exist but the session row does not, so the status write fails
        await store.add_items("ghost", [ComparableItem(id="a", rating=1200.0)])

        with pytest.raises(LookupError):
            await store.record_outcome(
                "ghost",
                make_battle("a", "b"),
                0,
                [RatingUpdate("a", 1216.0)],
                share_globally=True,
                status="completed",
            )

        assert await store.list_battles("ghost") == []
        assert (await store.list_items("ghost"))[0].rating == 1200.0
        assert await store.load_global_ratings(["a"]) == {}
