"""Tests for the in-memory store, goal tracker, sets, GC and sync."""

import math

import pytest

from conductor.local import (
    InMemoryDictionary,
    InMemoryFeedStore,
    InMemoryGarbageCollector,
    InMemoryGoalTracker,
    InMemoryMembershipSet,
    LoopbackSync,
    parse_goal,
)
from conductor.local.sets import DEFAULT_GHOST_SPAN
from conductor.local.store import ID_LENGTH
from conductor.replication.models import MembershipEventKind


class TestFeedStore:
    def test_ids_are_deterministic_across_stores(self):
        a, b = InMemoryFeedStore(), InMemoryFeedStore()
        assert a.create_account("alice") == b.create_account("alice")
        assert a.derive_feed_id("x", "post") == b.derive_feed_id("x", "post")
        assert a.derive_feed_id("x", "post") != a.derive_feed_id("x", "like")

    def test_id_length(self):
        store = InMemoryFeedStore()
        account_id = store.create_account("alice")
        assert len(account_id) == ID_LENGTH == store.id_length

    def test_account_message_targets_account(self):
        store = InMemoryFeedStore()
        account_id = store.create_account("alice")
        (message,) = store.messages()
        assert message.feed_id == account_id

    def test_add_and_delete(self):
        source, target = InMemoryFeedStore(), InMemoryFeedStore()
        message = source.publish("x", "post", {"text": "hi"})

        assert target.add(message)
        assert not target.add(message)
        assert target.get(message.msg_id) == message
        assert target.delete(message.msg_id)
        assert not target.delete(message.msg_id)
        assert len(target) == 0


class TestGoalTracker:
    @pytest.mark.parametrize(
        "goal,kind,count",
        [
            ("all", "all", math.inf),
            ("none", "none", 0),
            ("set", "set", math.inf),
            ("dict", "dict", math.inf),
            ("newest-100", "newest", 100),
            ("oldest-3", "oldest", 3),
        ],
    )
    def test_parse(self, goal, kind, count):
        spec = parse_goal(goal)
        assert spec.kind == kind
        assert spec.count == count

    @pytest.mark.parametrize("goal", ["", "newest", "newest-", "latest-5", "ALL"])
    def test_parse_rejects_unknown(self, goal):
        with pytest.raises(ValueError):
            parse_goal(goal)

    def test_set_rejects_unknown_goal(self):
        goals = InMemoryGoalTracker()
        with pytest.raises(ValueError):
            goals.set("feed", "forever")
        assert len(goals) == 0

    def test_overwrite_keeps_first_write_order(self):
        goals = InMemoryGoalTracker()
        goals.set("a", "all")
        goals.set("b", "set")
        goals.set("a", "none")

        assert goals.list() == [("a", "none"), ("b", "set")]
        assert not goals.wants("a")
        assert goals.wants("b")
        assert not goals.wants("c")


class TestMembershipSet:
    @pytest.fixture
    def membership(self):
        store = InMemoryFeedStore()
        membership = InMemoryMembershipSet(store)
        membership.load(store.create_account("me"))
        return membership

    def test_requires_load(self):
        membership = InMemoryMembershipSet(InMemoryFeedStore())
        with pytest.raises(RuntimeError, match="not loaded"):
            membership.add("follows", "x")

    def test_add_and_delete(self, membership):
        assert membership.add("follows", "x")
        assert not membership.add("follows", "x")
        assert membership.values("follows") == ["x"]
        assert membership.delete("follows", "x")
        assert not membership.delete("follows", "x")
        assert membership.values("follows") == []

    def test_watch_and_unsubscribe(self, membership):
        events = []
        unsubscribe = membership.watch(events.append)

        membership.add("follows", "x")
        membership.add("follows", "x")
        membership.delete("follows", "x")
        unsubscribe()
        membership.add("blocks", "y")

        assert [(e.kind, e.subdomain, e.value) for e in events] == [
            (MembershipEventKind.ADD, "follows", "x"),
            (MembershipEventKind.DEL, "follows", "x"),
        ]

    def test_changes_are_published_to_set_feed(self):
        store = InMemoryFeedStore()
        membership = InMemoryMembershipSet(store)
        me = store.create_account("me")
        membership.load(me)

        membership.add("follows", "x")

        feed_id = store.derive_feed_id(me, membership.get_domain("follows"))
        assert [m.data for m in store.feed_messages(feed_id)] == [{"add": ["x"]}]

    def test_ghost_span(self, membership):
        assert membership.get_ghost_span() == DEFAULT_GHOST_SPAN
        membership.set_ghost_span(7)
        assert membership.get_ghost_span() == 7

    def test_dictionary_domain(self):
        dictionary = InMemoryDictionary()
        assert dictionary.get_domain("profile") == "dict_v1__profile"
        dictionary.set_ghost_span(9)
        assert dictionary.get_ghost_span() == 9


class TestGarbageCollector:
    def _store_with_posts(self, count):
        store = InMemoryFeedStore()
        for i in range(count):
            store.publish("x", "post", {"text": str(i)})
        return store, store.derive_feed_id("x", "post")

    def test_start_records_budget(self):
        store, _ = self._store_with_posts(0)
        gc = InMemoryGarbageCollector(store, InMemoryGoalTracker())
        assert not gc.started
        gc.start(4096)
        assert gc.started
        assert gc.max_bytes == 4096

    def test_none_goal_removes_feed(self):
        store, feed_id = self._store_with_posts(3)
        goals = InMemoryGoalTracker()
        goals.set(feed_id, "none")

        assert InMemoryGarbageCollector(store, goals).collect() == 3
        assert len(store) == 0

    def test_newest_goal_trims_oldest(self):
        store, feed_id = self._store_with_posts(5)
        goals = InMemoryGoalTracker()
        goals.set(feed_id, "newest-2")

        InMemoryGarbageCollector(store, goals).collect()

        assert [m.data["text"] for m in store.messages()] == ["3", "4"]

    def test_oldest_goal_trims_newest(self):
        store, feed_id = self._store_with_posts(5)
        goals = InMemoryGoalTracker()
        goals.set(feed_id, "oldest-2")

        InMemoryGarbageCollector(store, goals).collect()

        assert [m.data["text"] for m in store.messages()] == ["0", "1"]

    def test_feeds_without_goal_are_kept(self):
        store, _ = self._store_with_posts(3)
        assert InMemoryGarbageCollector(store, InMemoryGoalTracker()).collect() == 0
        assert len(store) == 3


class TestLoopbackSync:
    def test_pull_only_wanted_feeds(self):
        remote_store = InMemoryFeedStore()
        wanted = remote_store.publish("x", "post", {"text": "yes"})
        remote_store.publish("x", "like", {"text": "no"})
        local_store, goals = InMemoryFeedStore(), InMemoryGoalTracker()
        goals.set(wanted.feed_id, "all")

        local = LoopbackSync(local_store, goals)
        remote = LoopbackSync(remote_store, InMemoryGoalTracker())

        assert local.pull(remote) == 1
        assert local.pull(remote) == 0
        assert local_store.messages() == [wanted]

    def test_oldest_window(self):
        remote_store = InMemoryFeedStore()
        for i in range(4):
            remote_store.publish("x", "post", {"text": str(i)})
        local_store, goals = InMemoryFeedStore(), InMemoryGoalTracker()
        goals.set(remote_store.derive_feed_id("x", "post"), "oldest-1")

        LoopbackSync(local_store, goals).pull(LoopbackSync(remote_store, InMemoryGoalTracker()))

        assert [m.data["text"] for m in local_store.messages()] == ["0"]

    def test_cannot_connect_to_itself(self):
        sync = LoopbackSync(InMemoryFeedStore(), InMemoryGoalTracker())
        with pytest.raises(ValueError):
            sync.connect(sync)

    def test_disconnect(self):
        goals = InMemoryGoalTracker()
        a = LoopbackSync(InMemoryFeedStore(), goals)
        b = LoopbackSync(InMemoryFeedStore(), goals)
        a.start()
        b.start()
        a.connect(b)
        a.disconnect(b)
        assert a.exchange() == 0
