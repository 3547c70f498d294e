import heapq
import itertools
import logging
import threading
import time
from typing import Any, Callable, List, Optional, Tuple


_timer_ids = itertools.count(1)


class TimerHandle:
    """Cancellable reference to one deferred callback.

    A handle fires at most once. Once ``cancel()`` returns the callback is
    guaranteed not to run.
    """

    def __init__(self, delay_ms: int, callback: Callable[..., Any], args: Tuple = (), label: str = ''):
        self.id = next(_timer_ids)
        self.delay_ms = delay_ms
        self.label = label or getattr(callback, '__name__', 'callback')
        self.cancelled = False
        self.fired = False
        self._state_lock = threading.Lock()
        self._callback = callback
        self._args = args

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> bool:
        """Cancel the timer; returns False if it already fired or was cancelled."""
        with self._state_lock:
            if not self.active:
                return False
            self.cancelled = True
            return True

    def fire(self) -> bool:
        # Claim the handle under the lock; the callback itself runs outside it.
        with self._state_lock:
            if not self.active:
                return False
            self.fired = True
        self._callback(*self._args)
        return True

    def __repr__(self):
        state = 'cancelled' if self.cancelled else 'fired' if self.fired else 'pending'
        return f"<TimerHandle id={self.id} label={self.label} delay={self.delay_ms}ms {state}>"


class BackgroundTaskScheduler:
    """Runs each timer as a Flask-SocketIO background task.

    The task sleeps for the requested delay and then fires the callback
    unless the handle was cancelled in the meantime. With TIMER_HEARTBEAT_SEC
    set the sleep is chunked and every chunk is logged.
    """

    def __init__(self, socketio, logger: Optional[logging.Logger] = None, heartbeat_sec: float = 0):
        self.socketio = socketio
        self.logger = logger or logging.getLogger(__name__)
        self.heartbeat_sec = heartbeat_sec

    def schedule(self, delay_ms: int, callback: Callable[..., Any], *args, label: str = '') -> TimerHandle:
        handle = TimerHandle(max(0, int(delay_ms)), callback, args, label=label)
        self.logger.debug(f"[timer-set] id={handle.id} label={handle.label} delay={handle.delay_ms}ms")
        self.socketio.start_background_task(self._worker, handle)
        return handle

    def _worker(self, handle: TimerHandle) -> None:
        delay = handle.delay_ms / 1000.0
        hb = self.heartbeat_sec
        if hb and hb > 0:
            slept = 0.0
            while slept < delay and not handle.cancelled:
                step = min(hb, delay - slept)
                time.sleep(step)
                slept += step
                self.logger.info(
                    f"[timer-heartbeat] id={handle.id} label={handle.label} remaining={max(0.0, delay - slept):.3f}s"
                )
        else:
            time.sleep(delay)

        if handle.cancelled:
            self.logger.debug(f"[timer-abort] id={handle.id} label={handle.label} cancelled")
            return
        try:
            handle.fire()
        except Exception:
            self.logger.exception(f"[timer-error] id={handle.id} label={handle.label}")


class ManualScheduler:
    """Virtual clock pumped by the host through ``advance(ms)``.

    Due callbacks fire in deadline order, ties in scheduling order. Callbacks
    scheduled while advancing fire in the same call if they fall due inside
    the window.
    """

    def __init__(self):
        self.now_ms = 0
        self._queue: List[Tuple[int, int, TimerHandle]] = []

    def schedule(self, delay_ms: int, callback: Callable[..., Any], *args, label: str = '') -> TimerHandle:
        handle = TimerHandle(max(0, int(delay_ms)), callback, args, label=label)
        heapq.heappush(self._queue, (self.now_ms + handle.delay_ms, handle.id, handle))
        return handle

    def advance(self, ms: int) -> int:
        """Move the clock forward by ``ms``; returns the number of callbacks fired."""
        if ms < 0:
            raise ValueError('cannot move the clock backwards')
        target = self.now_ms + ms
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            deadline, _, handle = heapq.heappop(self._queue)
            self.now_ms = deadline
            if handle.fire():
                fired += 1
        self.now_ms = target
        return fired

    def next_deadline(self) -> Optional[int]:
        """Milliseconds until the next live timer, or None when idle."""
        live = [deadline for deadline, _, handle in self._queue if handle.active]
        if not live:
            return None
        return min(live) - self.now_ms

    def pending(self) -> int:
        return sum(1 for _, _, handle in self._queue if handle.active)
