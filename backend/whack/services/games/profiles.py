from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class DifficultyProfile:
    """Timing bundle selected before a session starts."""
    name: str
    show_duration_ms: int
    hide_interval_ms: int
    session_duration_sec: int

    def to_dict(self):
        return {
            'name': self.name,
            'show_duration_ms': self.show_duration_ms,
            'hide_interval_ms': self.hide_interval_ms,
            'session_duration_sec': self.session_duration_sec,
        }


DIFFICULTY_PROFILES: Dict[str, DifficultyProfile] = {
    'easy': DifficultyProfile('easy', show_duration_ms=1500, hide_interval_ms=1000, session_duration_sec=60),
    'medium': DifficultyProfile('medium', show_duration_ms=1200, hide_interval_ms=800, session_duration_sec=45),
    'hard': DifficultyProfile('hard', show_duration_ms=800, hide_interval_ms=600, session_duration_sec=30),
}

DEFAULT_DIFFICULTY = 'medium'


def get_profile(name) -> Optional[DifficultyProfile]:
    """Look up a built-in profile by name (case-insensitive).

    Accepts a DifficultyProfile as well and returns it unchanged.
    """
    if isinstance(name, DifficultyProfile):
        return name
    if not isinstance(name, str):
        return None
    return DIFFICULTY_PROFILES.get(name.strip().lower())
