from flask import Blueprint, jsonify, request

from scoreboard.services.scoring.awards import award_points, award_team_points
from scoreboard.services.scoring.standings import recent_entries
from scoreboard.services.scoring.undo import undo_score
from scoreboard.services.scoring.validation import parse_int
from scoreboard.socketio_events import notify_leaderboard
from . import request_actor


scores = Blueprint('scores', __name__)


def _round_selector(data: dict):
    """Accept either ``round_selector: {game_id, day}`` or flat ``game_id``/``day`` fields."""
    selector = data.get('round_selector') or {}
    return selector.get('game_id', data.get('game_id')), selector.get('day', data.get('day'))


@scores.route('', methods=['POST'])
def add_points():
    data = request.get_json(silent=True) or {}
    game_id, day = _round_selector(data)
    result = award_points(
        game_id=game_id,
        team_id=data.get('team_id'),
        points=data.get('points'),
        day=day,
        player_id=data.get('player_id'),
        reason=data.get('reason'),
        created_by=request_actor(data),
        mvp_player_id=data.get('mvp_player_id'),
        mvp_points=data.get('mvp_points'),
    )
    notify_leaderboard(result.team_id, result.new_total)
    return jsonify(result.to_dict()), 201


@scores.route('/team', methods=['POST'])
def add_team_points():
    data = request.get_json(silent=True) or {}
    game_id, day = _round_selector(data)
    result = award_team_points(
        game_id=game_id,
        team_id=data.get('team_id'),
        total_points=data.get('total_points'),
        per_player_distribution=data.get('per_player_distribution'),
        day=day,
        reason=data.get('reason'),
        created_by=request_actor(data),
    )
    notify_leaderboard(result.team_id, result.new_total)
    return jsonify(result.to_dict()), 201


@scores.route('/<int:entry_id>/undo', methods=['POST'])
def undo(entry_id):
    data = request.get_json(silent=True) or {}
    result = undo_score(entry_id, created_by=request_actor(data))
    notify_leaderboard(result.team_id, result.new_total)
    return jsonify(result.to_dict()), 201


@scores.route('/recent', methods=['GET'])
def recent():
    limit = request.args.get('limit')
    limit = parse_int(limit, 'limit') if limit is not None else None
    if limit is not None:
        limit = max(1, min(limit, 100))
    return jsonify(recent_entries(limit))
