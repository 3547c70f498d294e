"""Game domain services: difficulty profiles, timers, scoring and the
whack-a-mole session state machine.

This package contains pure(ish) domain logic that should be imported by
HTTP routes and socket handlers, keeping transport concerns separated
from core game mechanics.
"""

from .profiles import DifficultyProfile, DIFFICULTY_PROFILES, DEFAULT_DIFFICULTY, get_profile
from .scheduler import BackgroundTaskScheduler, ManualScheduler, TimerHandle
from .scoring import HighScoreStore
from .session import (
    BOARD_SIZE,
    GameError,
    GameSession,
    InvalidCellIndex,
    Phase,
    UnknownDifficulty,
)

__all__ = [
    'BOARD_SIZE',
    'BackgroundTaskScheduler',
    'DEFAULT_DIFFICULTY',
    'DIFFICULTY_PROFILES',
    'DifficultyProfile',
    'GameError',
    'GameSession',
    'HighScoreStore',
    'InvalidCellIndex',
    'ManualScheduler',
    'Phase',
    'TimerHandle',
    'UnknownDifficulty',
    'get_profile',
]
