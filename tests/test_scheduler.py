from __future__ import annotations

from galvn.engine.scheduler import RealtimeScheduler, VirtualScheduler


def test_virtual_fires_in_due_order():
    s = VirtualScheduler()
    order = []
    s.call_later(30, order.append, "c")
    s.call_later(10, order.append, "a")
    s.call_later(10, order.append, "b")
    assert s.advance(9) == 0
    assert s.advance(21) == 3
    assert order == ["a", "b", "c"]
    assert s.now() == 30


def test_virtual_nested_scheduling_uses_callback_time():
    s = VirtualScheduler()
    seen = []

    def first():
        seen.append(("first", s.now()))
        s.call_later(5, lambda: seen.append(("second", s.now())))

    s.call_later(10, first)
    s.advance(100)
    assert seen == [("first", 10), ("second", 15)]
    assert s.now() == 100


def test_cancel_and_pending():
    s = VirtualScheduler()
    t = s.call_later(10, lambda: None)
    s.call_later(20, lambda: None)
    assert s.pending == 2
    t.cancel()
    assert s.pending == 1
    assert s.next_due() == 20


def test_run_until_idle():
    s = VirtualScheduler()
    hits = []

    def chain(n):
        hits.append(n)
        if n < 3:
            s.call_later(16, chain, n + 1)

    s.call_later(0, chain, 0)
    s.run_until_idle()
    assert hits == [0, 1, 2, 3]
    assert s.now() == 48
    assert s.pending == 0


def test_realtime_poll_with_fake_clock():
    now = [0.0]
    s = RealtimeScheduler(clock=lambda: now[0])
    hits = []
    s.call_later(100, hits.append, 1)
    assert s.poll() == 0
    now[0] = 0.1
    assert s.poll() == 1
    assert hits == [1]
