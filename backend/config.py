import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Difficulty selected when the server starts: easy, medium or hard
    GAME_DEFAULT_DIFFICULTY = os.environ.get('GAME_DEFAULT_DIFFICULTY', 'medium')
    # Who drives the one-second countdown: 'server' (session timer) or 'host' (POST /api/game/tick)
    GAME_CLOCK = os.environ.get('GAME_CLOCK', 'server')
    # Timer backend: 'background' (Socket.IO background tasks) or 'manual' (virtual clock)
    GAME_SCHEDULER = os.environ.get('GAME_SCHEDULER', 'background')
    # Optional: fixed seed for mole placement. Empty means random.
    GAME_RANDOM_SEED = os.environ.get('GAME_RANDOM_SEED') or None
    # Optional: heartbeat interval for timer worker logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = float(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:8080,http://127.0.0.1:8080',
        ).split(',') if o.strip()
    ]
