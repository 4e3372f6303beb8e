from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required

from rooms.errors import RoomError, ValidationError
from songwars.models import GENRES

bp = Blueprint('ranked', __name__, url_prefix='/ranked')


@bp.errorhandler(RoomError)
def handle_room_error(e: RoomError):
    return jsonify({'error': e.message}), e.status_code


def read_id(data, key):
    value = data.get(key)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{key} is required')


# --- Routes ---

@bp.route('/get-comparison')
@login_required
def get_comparison():
    """Two random songs of the same genre."""
    return jsonify(current_app.ranked.get_random_comparison())


@bp.route('/vote', methods=['POST'])
@login_required
def vote():
    data = request.get_json(silent=True) or {}
    winner_id = read_id(data, 'winnerId')
    loser_id = read_id(data, 'loserId')
    
    result = current_app.ranked.apply_vote_result(winner_id, loser_id)
    return jsonify({'success': True, **result})


@bp.route('/leaderboard')
def leaderboard():
    limit = request.args.get('limit', current_app.config['LEADERBOARD_SIZE'], type=int)
    limit = max(1, min(limit, current_app.config['LEADERBOARD_SIZE']))
    return jsonify(current_app.ranked.get_top_users(limit))


@bp.route('/leaderboard/songs')
def song_leaderboard():
    genre = request.args.get('genre')
    if genre and genre not in GENRES:
        raise ValidationError(f'Unknown genre: {genre}')
    
    limit = request.args.get('limit', 10, type=int)
    limit = max(1, min(limit, current_app.config['LEADERBOARD_SIZE']))
    return jsonify(current_app.ranked.get_top_songs(limit, genre=genre))


@bp.route('/history/<entity_type>/<int:entity_id>')
@login_required
def rating_history(entity_type, entity_id):
    if entity_type not in ('user', 'song'):
        raise ValidationError(f'Unknown entity type: {entity_type}')
    return jsonify(current_app.ranked.get_rating_history(entity_type, entity_id))
