from flask_socketio import emit
from whack import socketio, get_game_session
from whack.services.games import InvalidCellIndex, UnknownDifficulty


def _payload(data):
    """Event payload as a dict; emits an error and returns None otherwise."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        emit('error', {'message': 'payload must be an object'})
        return None
    return data


def handle_connect():
    emit('connected', {'message': 'Connected to /ws', 'state': get_game_session().to_dict()})


def handle_start_game(data=None):
    data = _payload(data)
    if data is None:
        return
    try:
        get_game_session().start(data.get('difficulty'))
    except UnknownDifficulty as exc:
        emit('error', {'message': str(exc)})


def handle_set_difficulty(data=None):
    data = _payload(data)
    if data is None:
        return
    name = data.get('difficulty')
    if not name:
        emit('error', {'message': 'difficulty is required'})
        return
    try:
        get_game_session().set_difficulty(name)
    except UnknownDifficulty as exc:
        emit('error', {'message': str(exc)})


def handle_whack(data=None):
    data = _payload(data)
    if data is None:
        return
    if 'cell' not in data:
        emit('error', {'message': 'cell is required'})
        return
    try:
        hit = get_game_session().register_hit(data['cell'])
    except InvalidCellIndex as exc:
        emit('error', {'message': str(exc)})
        return
    emit('whack_result', {'cell': data['cell'], 'hit': hit})


def handle_end_game(data=None):
    get_game_session().end_early()


def handle_reset_game(data=None):
    get_game_session().reset()


def handle_ping(data):
    emit('pong', data or {})


_HANDLERS = {
    'connect': handle_connect,
    'start_game': handle_start_game,
    'set_difficulty': handle_set_difficulty,
    'whack': handle_whack,
    'end_game': handle_end_game,
    'reset_game': handle_reset_game,
    'ping': handle_ping,
}


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    for event, handler in _HANDLERS.items():
        socketio.on_event(event, handler, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        for event, handler in _HANDLERS.items():
            socketio.on_event(event, handler, namespace='/')
