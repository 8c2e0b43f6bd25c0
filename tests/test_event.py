from jx3sim.event import EventQueue


def test_add_returns_active_tick_and_run_advances():
    q = EventQueue()
    fired = []
    assert q.add(5, fired.append, "a") == 5
    assert q.run() is True
    assert fired == ["a"]
    assert q.now() == 5
    assert q.add(3, fired.append, "b") == 8


def test_run_on_empty_queue():
    q = EventQueue()
    assert q.run() is False
    assert q.now() == 0


def test_order_by_tick_then_insertion():
    q = EventQueue()
    fired = []
    q.add(10, fired.append, "late")
    q.add(2, fired.append, "first")
    q.add(2, fired.append, "second")
    while q.run():
        pass
    assert fired == ["first", "second", "late"]
    assert q.now() == 10


def test_events_added_while_running():
    q = EventQueue()
    fired = []

    def chain(param):
        fired.append((param, q.now()))
        if param < 2:
            q.add(4, chain, param + 1)

    assert q.add(1, chain, 0) == 1
    runs = 0
    while q.run():
        runs += 1
    assert runs == 3
    assert q.now() == 9
    assert q.run() is False
    assert fired == [(0, 1), (1, 5), (2, 9)]


def test_cancel_removes_first_match_only():
    q = EventQueue()
    fired = []
    q.add(4, fired.append, "x")
    q.add(4, fired.append, "x")
    q.add(4, fired.append, "y")
    assert q.cancel(4, fired.append, "x") == 4
    while q.run():
        pass
    assert fired == ["x", "y"]


def test_cancel_without_match_keeps_events():
    q = EventQueue()
    fired = []
    q.add(3, fired.append, "keep")
    q.cancel(3, fired.append, "other")
    q.cancel(2, fired.append, "keep")
    q.run()
    assert fired == ["keep"]


def test_clear_resets():
    q = EventQueue()
    fired = []
    q.add(7, fired.append, 1)
    q.run()
    q.add(1, fired.append, 2)
    q.clear()
    assert q.now() == 0
    assert q.run() is False
    assert fired == [1]