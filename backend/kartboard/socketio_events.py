from flask_socketio import join_room, leave_room, emit
from kartboard import socketio


NAMESPACE = '/ws'


def round_room(round_id) -> str:
    return f"round:{round_id}"


def notify_round_update(round_id, status=None) -> None:
    """Tell everyone watching the round to refresh its scoreboard."""
    socketio.emit('round_update', {'round_id': round_id, 'status': status}, to=round_room(round_id), namespace=NAMESPACE)


def handle_connect():
    emit('connected', {'message': f'Connected to {NAMESPACE}'})


def _round_id(data):
    round_id = (data or {}).get('round_id')
    try:
        return int(round_id)
    except (TypeError, ValueError):
        return None


def handle_join_round(data):
    round_id = _round_id(data)
    if round_id is None:
        emit('error', {'message': 'round_id is required'})
        return
    room = round_room(round_id)
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_round(data):
    round_id = _round_id(data)
    if round_id is None:
        emit('error', {'message': 'round_id is required'})
        return
    room = round_room(round_id)
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = [NAMESPACE, '/'] if testing else [NAMESPACE]
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('join_round', handle_join_round, namespace=namespace)
        socketio.on_event('leave_round', handle_leave_round, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
