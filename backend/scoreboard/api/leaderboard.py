from flask import Blueprint, jsonify

from scoreboard.services.scoring.standings import game_standings, live_leaderboard, team_player_totals


leaderboard = Blueprint('leaderboard', __name__)


@leaderboard.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    return jsonify(live_leaderboard())


@leaderboard.route('/games/<int:game_id>/standings', methods=['GET'])
def get_game_standings(game_id):
    return jsonify(game_standings(game_id))


@leaderboard.route('/teams/<int:team_id>/players', methods=['GET'])
def get_team_players(team_id):
    return jsonify(team_player_totals(team_id))
