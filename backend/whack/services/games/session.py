import logging
import random
import threading
from enum import Enum
from typing import Callable, List, Optional

from .profiles import DEFAULT_DIFFICULTY, DIFFICULTY_PROFILES, DifficultyProfile, get_profile
from .scheduler import TimerHandle
from .scoring import HighScoreStore, settle_session


BOARD_SIZE = 9
CLOCK_INTERVAL_MS = 1000


class Phase(str, Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    ENDED = 'ended'


class GameError(Exception):
    """Base class for programmer errors raised by the game session."""


class InvalidCellIndex(GameError, ValueError):
    def __init__(self, cell):
        self.cell = cell
        super().__init__(f"cell index must be an integer between 0 and {BOARD_SIZE - 1}, got {cell!r}")


class UnknownDifficulty(GameError, ValueError):
    def __init__(self, name):
        self.name = name
        choices = ', '.join(DIFFICULTY_PROFILES)
        super().__init__(f"unknown difficulty {name!r} (expected one of: {choices})")


def validate_cell(cell) -> int:
    if isinstance(cell, bool) or not isinstance(cell, int) or not 0 <= cell < BOARD_SIZE:
        raise InvalidCellIndex(cell)
    return cell


class GameSession:
    """Whack-a-mole session: phase machine, spawn/hide cycle and countdown.

    Timers are created through the injected ``scheduler`` (anything with a
    ``schedule(delay_ms, callback, *args, label=...)`` method returning a
    cancellable handle). Every deferred callback carries the ``session_id``
    of the start() that armed it, and hide timeouts also carry the spawn
    generation they belong to, so a late callback from an earlier play or
    an already-whacked target is ignored instead of corrupting the board.

    With ``drive_clock`` the session arms its own one-second countdown;
    otherwise the host is expected to call ``tick()`` once per second.

    Listeners registered with ``add_listener`` are called as
    ``listener(session, event)`` after every state change, timer-driven
    ones included.
    """

    def __init__(
        self,
        scheduler,
        difficulty=DEFAULT_DIFFICULTY,
        high_scores: Optional[HighScoreStore] = None,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
        drive_clock: bool = True,
    ):
        profile = get_profile(difficulty)
        if profile is None:
            raise UnknownDifficulty(difficulty)
        self.scheduler = scheduler
        self.drive_clock = drive_clock
        self.logger = logger or logging.getLogger(__name__)
        self.high_scores = high_scores if high_scores is not None else HighScoreStore()
        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        self._listeners: List[Callable] = []

        self._profile: DifficultyProfile = profile
        self._phase = Phase.IDLE
        self._score = 0
        self._remaining_sec = 0
        self._active_cell: Optional[int] = None

        self.session_id = 0
        self.spawn_generation = 0
        self.last_result: Optional[dict] = None
        self._timers: List[TimerHandle] = []
        self._hide_timer: Optional[TimerHandle] = None

    # ---- observers ----

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def score(self) -> int:
        return self._score

    @property
    def remaining_sec(self) -> int:
        return self._remaining_sec

    @property
    def active_cell(self) -> Optional[int]:
        return self._active_cell

    @property
    def high_score(self) -> int:
        return self.high_scores.best

    @property
    def difficulty(self) -> str:
        return self._profile.name

    @property
    def profile(self) -> DifficultyProfile:
        return self._profile

    @property
    def is_running(self) -> bool:
        return self._phase is Phase.RUNNING

    def pending_timers(self) -> int:
        with self._lock:
            return sum(1 for t in self._timers if t.active)

    def add_listener(self, listener: Callable) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ---- operations ----

    def start(self, difficulty=None) -> bool:
        """Begin a new play. Returns False (and changes nothing) when already running.

        A ``difficulty`` override only applies from Idle; a replay from Ended
        keeps the current profile.
        """
        with self._lock:
            if self._phase is Phase.RUNNING:
                self.logger.info(f"[session-skip] session={self.session_id} already running")
                return False
            if difficulty is not None and self._phase is Phase.IDLE:
                profile = get_profile(difficulty)
                if profile is None:
                    raise UnknownDifficulty(difficulty)
                self._profile = profile

            # Anything left from an earlier play must not fire into this one.
            self._cancel_timers()
            self.session_id += 1
            self._phase = Phase.RUNNING
            self._score = 0
            self._remaining_sec = self._profile.session_duration_sec
            self._active_cell = None
            self.logger.info(
                f"[session-start] session={self.session_id} difficulty={self._profile.name} "
                f"duration={self._remaining_sec}s"
            )
            if self._remaining_sec <= 0:
                self._finish('expired')
                return True

            self._arm_spawn()
            if self.drive_clock:
                self._arm_clock()
            self._notify('start')
            return True

    def set_difficulty(self, difficulty) -> bool:
        """Select the profile for the next start(); ignored while running."""
        with self._lock:
            if self._phase is Phase.RUNNING:
                self.logger.info(f"[difficulty-ignored] session={self.session_id} requested={difficulty!r}")
                return False
            profile = get_profile(difficulty)
            if profile is None:
                raise UnknownDifficulty(difficulty)
            self._profile = profile
            self._notify('difficulty')
            return True

    def register_hit(self, cell) -> bool:
        """Whack ``cell``. True on a hit; misses and out-of-phase calls are no-ops."""
        cell = validate_cell(cell)
        with self._lock:
            if self._phase is not Phase.RUNNING:
                return False
            if self._active_cell is None or cell != self._active_cell:
                self.logger.debug(f"[miss] session={self.session_id} cell={cell} active={self._active_cell}")
                return False

            self._score += 1
            self._active_cell = None
            if self._hide_timer is not None:
                self._hide_timer.cancel()
                self._hide_timer = None
            self.logger.info(
                f"[hit] session={self.session_id} cell={cell} generation={self.spawn_generation} score={self._score}"
            )
            self._arm_spawn()
            self._notify('hit')
            return True

    def tick(self) -> bool:
        """Count one second down; ends the session when the clock reaches zero."""
        with self._lock:
            if self._phase is not Phase.RUNNING:
                return False
            self._remaining_sec -= 1
            if self._remaining_sec <= 0:
                self._remaining_sec = 0
                self._finish('expired')
            else:
                self._notify('tick')
            return True

    def end_early(self) -> bool:
        with self._lock:
            if self._phase is not Phase.RUNNING:
                return False
            self._finish('ended_early')
            return True

    def reset(self) -> bool:
        """Return a finished session to Idle, keeping the high score."""
        with self._lock:
            if self._phase is not Phase.ENDED:
                return False
            self._phase = Phase.IDLE
            self._score = 0
            self._remaining_sec = 0
            self._active_cell = None
            self._notify('reset')
            return True

    def to_dict(self) -> dict:
        with self._lock:
            return {
                'phase': self._phase.value,
                'score': self._score,
                'remaining_sec': self._remaining_sec,
                'active_cell': self._active_cell,
                'board': [i == self._active_cell for i in range(BOARD_SIZE)],
                'high_score': self.high_scores.best,
                'difficulty': self._profile.name,
                'profile': self._profile.to_dict(),
                'session_id': self.session_id,
                'spawn_generation': self.spawn_generation,
                'last_result': self.last_result,
            }

    # ---- timer callbacks ----

    def _on_spawn(self, session_id: int) -> None:
        with self._lock:
            if not self._is_current(session_id):
                self.logger.debug(f"[spawn-stale] session={session_id} current={self.session_id} phase={self._phase.value}")
                return
            if self._active_cell is not None:
                return
            cell = self._rng.randrange(BOARD_SIZE)
            self.spawn_generation += 1
            self._active_cell = cell
            self._hide_timer = self._schedule(
                self._profile.show_duration_ms, self._on_hide, session_id, self.spawn_generation, label='hide'
            )
            self.logger.debug(f"[spawn] session={session_id} generation={self.spawn_generation} cell={cell}")
            self._notify('spawn')

    def _on_hide(self, session_id: int, generation: int) -> None:
        with self._lock:
            if not self._is_current(session_id) or generation != self.spawn_generation or self._active_cell is None:
                self.logger.debug(
                    f"[hide-stale] session={session_id} generation={generation} "
                    f"current_generation={self.spawn_generation} active={self._active_cell}"
                )
                return
            self.logger.debug(f"[hide] session={session_id} generation={generation} cell={self._active_cell}")
            self._active_cell = None
            self._hide_timer = None
            self._arm_spawn()
            self._notify('hide')

    def _on_clock(self, session_id: int) -> None:
        with self._lock:
            if not self._is_current(session_id):
                return
            self.tick()
            if self._phase is Phase.RUNNING:
                self._arm_clock()

    # ---- internals ----

    def _is_current(self, session_id: int) -> bool:
        return self._phase is Phase.RUNNING and session_id == self.session_id

    def _schedule(self, delay_ms: int, callback, *args, label: str = '') -> TimerHandle:
        self._timers = [t for t in self._timers if t.active]
        handle = self.scheduler.schedule(delay_ms, callback, *args, label=label)
        self._timers.append(handle)
        return handle

    def _arm_spawn(self) -> None:
        self._schedule(self._profile.hide_interval_ms, self._on_spawn, self.session_id, label='spawn')

    def _arm_clock(self) -> None:
        self._schedule(CLOCK_INTERVAL_MS, self._on_clock, self.session_id, label='clock')

    def _cancel_timers(self) -> None:
        cancelled = sum(1 for t in self._timers if t.cancel())
        if cancelled:
            self.logger.debug(f"[timer-cancel] session={self.session_id} cancelled={cancelled}")
        self._timers = []
        self._hide_timer = None

    def _finish(self, reason: str) -> None:
        self._cancel_timers()
        self._phase = Phase.ENDED
        self._active_cell = None
        self.last_result = settle_session(self.high_scores, self._score, self._profile.name, reason)
        self.logger.info(
            f"[session-end] session={self.session_id} reason={reason} score={self._score} "
            f"high_score={self.high_scores.best}"
        )
        self._notify('end')

    def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(self, event)
            except Exception:
                self.logger.exception(f"[listener-error] session={self.session_id} event={event}")
