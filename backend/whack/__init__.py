import random

from flask import Flask, current_app
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)


def get_game_session():
    """The process-wide GameSession owned by the current app."""
    return current_app.extensions['game_session']


def _build_scheduler(flask_app):
    from whack.services.games import BackgroundTaskScheduler, ManualScheduler

    kind = (flask_app.config.get('GAME_SCHEDULER') or 'background').lower()
    if kind == 'manual':
        return ManualScheduler()
    if kind != 'background':
        raise ValueError(f"GAME_SCHEDULER must be 'background' or 'manual', got {kind!r}")
    return BackgroundTaskScheduler(
        socketio,
        logger=flask_app.logger,
        heartbeat_sec=float(flask_app.config.get('TIMER_HEARTBEAT_SEC', 0) or 0),
    )


def _build_game_session(flask_app):
    from whack.services.games import GameSession, HighScoreStore

    seed = flask_app.config.get('GAME_RANDOM_SEED')
    clock = (flask_app.config.get('GAME_CLOCK') or 'server').lower()
    if clock not in ('server', 'host'):
        raise ValueError(f"GAME_CLOCK must be 'server' or 'host', got {clock!r}")
    session = GameSession(
        _build_scheduler(flask_app),
        difficulty=flask_app.config.get('GAME_DEFAULT_DIFFICULTY', 'medium'),
        high_scores=HighScoreStore(),
        rng=random.Random(int(seed)) if seed is not None else None,
        logger=flask_app.logger,
        drive_clock=(clock == 'server'),
    )

    def _broadcast(game_session, event):
        socketio.emit('state_update', {'event': event, 'state': game_session.to_dict()}, namespace='/ws')

    session.add_listener(_broadcast)
    return session


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('CORS_ORIGINS', [])
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One game session per app, reused across plays
    flask_app.extensions['game_session'] = _build_game_session(flask_app)

    from whack.main import main
    flask_app.register_blueprint(main)

    from whack.api.game import game
    flask_app.register_blueprint(game, url_prefix='/api/game')

    from whack.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('difficulties')
    def difficulties_command():
        """Prints the built-in difficulty profiles."""
        from whack.services.games import DIFFICULTY_PROFILES
        for profile in DIFFICULTY_PROFILES.values():
            click.echo(
                f"{profile.name:<8} show={profile.show_duration_ms}ms "
                f"hide={profile.hide_interval_ms}ms duration={profile.session_duration_sec}s"
            )

    flask_app.cli.add_command(difficulties_command)

    return flask_app
