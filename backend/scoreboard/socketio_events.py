from flask_socketio import join_room, leave_room, emit
from scoreboard import socketio

NAMESPACE = '/ws'
LEADERBOARD_ROOM = 'leaderboard'
DAY_REVEAL_ROOM = 'day-reveal'
ROOMS = (LEADERBOARD_ROOM, DAY_REVEAL_ROOM)


def handle_connect():
    emit('connected', {'message': f'Connected to {NAMESPACE}'})


def handle_join(data):
    room = (data or {}).get('room')
    if room not in ROOMS:
        emit('error', {'message': f"room must be one of {', '.join(ROOMS)}"})
        return
    join_room(room)
    emit('joined', {'room': room})


def handle_leave(data):
    room = (data or {}).get('room')
    if room not in ROOMS:
        emit('error', {'message': f"room must be one of {', '.join(ROOMS)}"})
        return
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def notify_leaderboard(team_id: int, new_total: int) -> None:
    """Tell leaderboard subscribers a team total changed; clients refetch."""
    socketio.emit(
        'leaderboard_update',
        {'team_id': team_id, 'total_points': new_total},
        to=LEADERBOARD_ROOM,
        namespace=NAMESPACE,
    )


def notify_snapshot_created(payload: dict) -> None:
    socketio.emit(
        'snapshot_created',
        {'day': payload['day'], 'snapshot': payload},
        to=DAY_REVEAL_ROOM,
        namespace=NAMESPACE,
    )


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = [NAMESPACE, '/'] if testing else [NAMESPACE]
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('join_room', handle_join, namespace=namespace)
        socketio.on_event('leave_room', handle_leave, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
