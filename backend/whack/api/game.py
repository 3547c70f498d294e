from flask import Blueprint, jsonify, request, current_app
from whack import get_game_session
from whack.services.games import DIFFICULTY_PROFILES, InvalidCellIndex, UnknownDifficulty


game = Blueprint('game', __name__)


def _json_object():
    """Request body as a dict; None when it is JSON but not an object."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


@game.route('/state', methods=['GET'])
def get_state():
    return jsonify(get_game_session().to_dict())


@game.route('/difficulties', methods=['GET'])
def list_difficulties():
    session = get_game_session()
    return jsonify({
        'selected': session.difficulty,
        'profiles': [p.to_dict() for p in DIFFICULTY_PROFILES.values()],
    })


@game.route('/start', methods=['POST'])
def start_game():
    data = _json_object()
    if data is None:
        return jsonify({'error': 'request body must be a JSON object'}), 400
    session = get_game_session()
    try:
        started = session.start(data.get('difficulty'))
    except UnknownDifficulty as exc:
        return jsonify({'error': str(exc)}), 400
    if not started:
        # Idempotent start: already running
        return jsonify(session.to_dict())
    return jsonify(session.to_dict()), 201


@game.route('/difficulty', methods=['POST'])
def set_difficulty():
    data = _json_object()
    if data is None:
        return jsonify({'error': 'request body must be a JSON object'}), 400
    name = data.get('difficulty')
    if not name:
        return jsonify({'error': 'difficulty is required'}), 400
    session = get_game_session()
    try:
        session.set_difficulty(name)
    except UnknownDifficulty as exc:
        return jsonify({'error': str(exc)}), 400
    return jsonify(session.to_dict())


@game.route('/hit', methods=['POST'])
def register_hit():
    data = _json_object()
    if data is None:
        return jsonify({'error': 'request body must be a JSON object'}), 400
    if 'cell' not in data:
        return jsonify({'error': 'cell is required'}), 400
    session = get_game_session()
    try:
        hit = session.register_hit(data.get('cell'))
    except InvalidCellIndex as exc:
        return jsonify({'error': str(exc)}), 400
    return jsonify({'hit': hit, 'state': session.to_dict()})


@game.route('/end', methods=['POST'])
def end_game():
    session = get_game_session()
    session.end_early()
    return jsonify(session.to_dict())


@game.route('/reset', methods=['POST'])
def reset_game():
    session = get_game_session()
    session.reset()
    return jsonify(session.to_dict())


@game.route('/tick', methods=['POST'])
def tick():
    if (current_app.config.get('GAME_CLOCK') or 'server').lower() != 'host':
        return jsonify({'error': 'The countdown is driven by the server'}), 409
    session = get_game_session()
    session.tick()
    return jsonify(session.to_dict())
