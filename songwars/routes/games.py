from flask import Blueprint, current_app, jsonify, request

from rooms.errors import NotFoundError, RoomError, StateError, ValidationError
from rooms.events import SubmitSong
from rooms.state_machine import RoomPhase
from songwars.code_generator import HTTP_PLAYER_PREFIX, create_room_with_code, generate_player_id

bp = Blueprint('games', __name__, url_prefix='/api/games')


@bp.errorhandler(RoomError)
def handle_room_error(e: RoomError):
    return jsonify({'error': e.message}), e.status_code


def get_room(game_code):
    room = current_app.rooms.get(game_code)
    if not room:
        raise NotFoundError('Game not found')
    return room


def read_time_limit(data):
    time_limit = data.get('timeLimit')
    if time_limit is None:
        return None
    if isinstance(time_limit, bool) or not isinstance(time_limit, (int, float)):
        raise ValidationError('Time limit must be a number')
    return int(time_limit)


# --- Routes ---

@bp.route('', methods=['POST'])
def create_game():
    """Host a new game under a freshly generated code."""
    data = request.get_json(silent=True) or {}
    time_limit = read_time_limit(data)
    
    registry = current_app.rooms
    registry.remove_stale(current_app.config['EMPTY_ROOM_TTL'], detached_prefix=HTTP_PLAYER_PREFIX)
    room = create_room_with_code(
        registry,
        time_limit=time_limit,
        attempts=current_app.config['GAME_CODE_ATTEMPTS']
    )
    return jsonify({'gameCode': room.code})


@bp.route('/<game_code>')
def get_game(game_code):
    room = get_room(game_code)
    with room.lock:
        return jsonify(room.to_dict())


@bp.route('/<game_code>/join', methods=['POST'])
def join_game(game_code):
    room = get_room(game_code)
    data = request.get_json(silent=True) or {}
    
    player_name = data.get('playerName')
    if not player_name:
        raise ValidationError('Player name is required')
    
    with room.lock:
        if room.phase != RoomPhase.WAITING:
            raise StateError('Game has already started')
        player_id = generate_player_id()
        room.join(player_id, player_name)
        player_count = len(room.participants)
    
    return jsonify({
        'success': True,
        'playerId': player_id,
        'playerCount': player_count
    })


@bp.route('/<game_code>/start', methods=['POST'])
def start_game(game_code):
    room = get_room(game_code)
    data = request.get_json(silent=True) or {}
    
    time_limit = room.start_submission(
        time_limit=read_time_limit(data),
        min_players=current_app.config['MIN_PLAYERS']
    )
    return jsonify({'success': True, 'timeLimit': time_limit})


@bp.route('/<game_code>/songs', methods=['POST'])
def submit_song(game_code):
    room = get_room(game_code)
    data = request.get_json(silent=True) or {}
    
    player_id = data.get('playerId')
    if not player_id:
        raise ValidationError('Invalid song data')
    event = SubmitSong.from_payload({
        'gameCode': game_code,
        'song': data.get('song') or data.get('songData')
    })
    
    submission = room.submit_track(
        player_id,
        event.name,
        event.url,
        length=event.length,
        category=event.category
    )
    return jsonify({'success': True, 'songId': submission.submission_id})


@bp.route('/<game_code>/leave', methods=['POST'])
def leave_game(game_code):
    """Remove a player who joined over HTTP."""
    room = get_room(game_code)
    data = request.get_json(silent=True) or {}
    
    player_id = data.get('playerId')
    if not player_id:
        raise ValidationError('Player id is required')
    with room.lock:
        if player_id not in room.participants:
            raise NotFoundError('Player is not in this game')
    
    removed = current_app.rooms.leave(game_code, player_id)
    with room.lock:
        player_count = len(room.participants)
    return jsonify({
        'success': True,
        'playerCount': player_count,
        'gameRemoved': removed
    })
