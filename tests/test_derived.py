"""Tests for Derived values."""

from fetchx import Cell, Derived, reaction


class TestDerived:
    def test_lazy_eval(self):
        calls = 0
        c = Cell(5)

        def fn():
            nonlocal calls
            calls += 1
            return c.get() * 2

        d = Derived(fn)
        assert calls == 0
        assert d.get() == 10
        d.get()
        assert calls == 1

    def test_invalidation(self):
        c = Cell(5)
        d = Derived(lambda: c.get() * 2)
        assert d.get() == 10
        c.set(10)
        assert d.get() == 20

    def test_dynamic_dependencies(self):
        flag = Cell(True)
        a = Cell(1)
        b = Cell(2)
        d = Derived(lambda: a.get() if flag.get() else b.get())
        assert d.get() == 1
        flag.set(False)
        assert d.get() == 2

    def test_propagates_to_reactions(self):
        c = Cell(5)
        d = Derived(lambda: c.get() * 2)
        log = []
        reaction(d.get, log.append, fire_immediately=True)
        c.set(10)
        assert log == [10, 20]
