"""Tests for SubscriberRegistry and CacheStore."""

import logging

from fetchx import CacheStore, Registration, SubscriberRegistry
from fetchx.registry import MISSING


async def _noop():
    pass


def _registration(sink=None):
    sink = sink if sink is not None else []
    return Registration(trigger=_noop, set_data=sink.append, peek=lambda: None)


class TestSubscriberRegistry:
    def test_subscribers_for_key(self):
        reg = SubscriberRegistry()
        reg.register("i1", "/a", _registration())
        reg.register("i2", "/a", _registration())
        reg.register("i2", "/b", _registration())
        assert [i for i, _ in reg.subscribers("/a")] == ["i1", "i2"]
        assert [i for i, _ in reg.subscribers("/b")] == ["i2"]
        assert reg.subscribers("/missing") == []

    def test_register_overwrites(self):
        reg = SubscriberRegistry()
        first, second = _registration(), _registration()
        reg.register("i1", "/a", first)
        reg.register("i1", "/a", second)
        assert reg.lookup("i1", "/a") is second
        assert len(reg) == 1

    def test_unregister(self):
        reg = SubscriberRegistry()
        reg.register("i1", "/a", _registration())
        reg.unregister("i1", "/a")
        reg.unregister("i1", "/a")  # already gone
        assert reg.lookup("i1", "/a") is None
        assert len(reg) == 0

    def test_each_isolates_failures(self, caplog):
        reg = SubscriberRegistry()
        received = []
        reg.register("bad", "/a", _registration())
        reg.register("good", "/a", _registration(received))

        def push(instance_id, registration):
            if instance_id == "bad":
                raise RuntimeError("boom")
            registration.set_data("v")

        with caplog.at_level(logging.ERROR, logger="fetchx.registry"):
            assert reg.each("/a", push) == 2

        assert received == ["v"]
        assert "bad" in caplog.text

    def test_each_on_empty_key_is_noop(self):
        reg = SubscriberRegistry()
        assert reg.each("/nobody", lambda i, r: 1 / 0) == 0


class TestCacheStore:
    def test_get_set(self):
        store = CacheStore()
        assert store.get("i1", "/a") is MISSING
        assert store.get("i1", "/a", None) is None
        store.set("i1", "/a", [1])
        assert store.get("i1", "/a") == [1]

    def test_none_is_a_value(self):
        store = CacheStore()
        store.set("i1", "/a", None)
        assert store.get("i1", "/a") is None

    def test_first(self):
        store = CacheStore()
        assert store.first("/a") is None
        store.set("i1", "/b", "other")
        store.set("i2", "/a", "x")
        assert store.first("/a") == "x"

    def test_set_everywhere(self):
        store = CacheStore()
        store.set("i1", "/a", 1)
        store.set("i2", "/b", 2)
        store.set_everywhere("/a", 9)
        assert store.get("i1", "/a") == 9
        assert store.get("i2", "/a") == 9
        assert store.get("i2", "/b") == 2

    def test_clear(self):
        store = CacheStore()
        store.set("i1", "/a", 1)
        store.clear()
        assert len(store) == 0
        assert list(store.instances()) == []
