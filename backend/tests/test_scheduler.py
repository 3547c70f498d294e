import threading
import time
import pytest

from whack import socketio
from whack.services.games import BackgroundTaskScheduler, ManualScheduler, TimerHandle


def test_handle_fires_once():
    calls = []
    handle = TimerHandle(10, calls.append, ('x',))
    assert handle.fire() is True
    assert handle.fire() is False
    assert calls == ['x']
    assert handle.cancel() is False


def test_cancelled_handle_never_fires():
    calls = []
    handle = TimerHandle(10, calls.append, ('x',))
    assert handle.cancel() is True
    assert handle.cancel() is False
    assert handle.fire() is False
    assert calls == []


def test_cancel_and_fire_race_has_one_winner():
    # For every handle exactly one side wins: either cancel() reports success
    # or the callback runs, never both and never neither.
    for _ in range(200):
        calls = []
        handle = TimerHandle(0, calls.append, ('x',))
        barrier = threading.Barrier(2)
        outcome = {}

        def worker():
            barrier.wait()
            outcome['fired'] = handle.fire()

        thread = threading.Thread(target=worker)
        thread.start()
        barrier.wait()
        outcome['cancelled'] = handle.cancel()
        thread.join(timeout=2)

        assert outcome['cancelled'] != outcome['fired']
        assert len(calls) == (0 if outcome['cancelled'] else 1)
        assert handle.cancelled != handle.fired


def test_manual_scheduler_fires_in_deadline_order():
    scheduler = ManualScheduler()
    order = []
    scheduler.schedule(300, order.append, 'c')
    scheduler.schedule(100, order.append, 'a')
    scheduler.schedule(200, order.append, 'b1')
    scheduler.schedule(200, order.append, 'b2')

    assert scheduler.advance(250) == 3
    assert order == ['a', 'b1', 'b2']
    assert scheduler.now_ms == 250
    assert scheduler.next_deadline() == 50

    scheduler.advance(50)
    assert order == ['a', 'b1', 'b2', 'c']
    assert scheduler.next_deadline() is None


def test_manual_scheduler_runs_timers_scheduled_by_callbacks():
    scheduler = ManualScheduler()
    seen = []

    def chain(n):
        seen.append((n, scheduler.now_ms))
        if n < 3:
            scheduler.schedule(100, chain, n + 1)

    scheduler.schedule(100, chain, 1)
    scheduler.advance(1000)
    assert seen == [(1, 100), (2, 200), (3, 300)]


def test_manual_scheduler_skips_cancelled():
    scheduler = ManualScheduler()
    calls = []
    handle = scheduler.schedule(100, calls.append, 1)
    scheduler.schedule(100, calls.append, 2)
    handle.cancel()
    assert scheduler.pending() == 1
    scheduler.advance(100)
    assert calls == [2]
    assert scheduler.pending() == 0


def test_manual_scheduler_rejects_negative_advance():
    with pytest.raises(ValueError):
        ManualScheduler().advance(-1)


def _wait_for(predicate, timeout=3.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_background_scheduler_fires(flask_app):
    scheduler = BackgroundTaskScheduler(socketio, logger=flask_app.logger)
    calls = []
    handle = scheduler.schedule(20, calls.append, 'fired', label='probe')
    assert _wait_for(lambda: calls == ['fired'])
    assert handle.fired


def test_background_scheduler_cancel(flask_app):
    scheduler = BackgroundTaskScheduler(socketio, logger=flask_app.logger, heartbeat_sec=0.05)
    calls = []
    handle = scheduler.schedule(200, calls.append, 'fired')
    handle.cancel()
    time.sleep(0.4)
    assert calls == []
    assert not handle.fired


def test_background_scheduler_survives_failing_callback(flask_app):
    scheduler = BackgroundTaskScheduler(socketio, logger=flask_app.logger)
    calls = []

    def boom():
        raise RuntimeError('callback failed')

    failing = scheduler.schedule(10, boom)
    scheduler.schedule(30, calls.append, 'after')
    assert _wait_for(lambda: calls == ['after'])
    assert failing.fired
