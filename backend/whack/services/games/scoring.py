from typing import Optional


class HighScoreStore:
    """Best score seen during the lifetime of the process.

    Held in memory only. Share one instance between sessions to give them a
    common leaderboard, or hand each session its own.
    """

    def __init__(self, initial: int = 0):
        self.best = max(0, int(initial))
        self.best_difficulty: Optional[str] = None

    def record(self, score: int, difficulty: Optional[str] = None) -> bool:
        """Keep ``score`` if it beats the current best; True when it did."""
        if score > self.best:
            self.best = score
            self.best_difficulty = difficulty
            return True
        return False


def settle_session(store: HighScoreStore, score: int, difficulty: str, reason: str) -> dict:
    """Apply a finished session to the high score and summarise it.

    ``reason`` is 'expired' when the countdown ran out and 'ended_early'
    when the player stopped the session.
    """
    previous = store.best
    new_high = store.record(score, difficulty)
    return {
        'score': score,
        'difficulty': difficulty,
        'reason': reason,
        'high_score': store.best,
        'previous_high_score': previous,
        'new_high_score': new_high,
    }
