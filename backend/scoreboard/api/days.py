from flask import Blueprint, jsonify, request

from scoreboard.services.scoring.ledger import is_day_locked
from scoreboard.services.scoring.snapshots import get_snapshot, list_snapshots, reveal_day
from scoreboard.socketio_events import notify_snapshot_created
from . import request_actor


days = Blueprint('days', __name__)


@days.route('', methods=['GET'])
def index():
    return jsonify([
        {'day': s.day.isoformat(), 'locked_by': s.locked_by, 'created_at': s.to_dict()['created_at']}
        for s in list_snapshots()
    ])


@days.route('/<string:day>/reveal', methods=['POST'])
def reveal(day):
    data = request.get_json(silent=True) or {}
    snapshot = reveal_day(day, locked_by=data.get('locked_by') or request_actor(data))
    payload = snapshot.payload
    notify_snapshot_created(payload)
    return jsonify(payload), 201


@days.route('/<string:day>/snapshot', methods=['GET'])
def snapshot(day):
    return jsonify(get_snapshot(day).to_dict())


@days.route('/<string:day>/status', methods=['GET'])
def status(day):
    return jsonify({'day': day, 'locked': is_day_locked(day)})
