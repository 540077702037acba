from flask_socketio import join_room, leave_room, emit

from promptparty.models import Room
from promptparty.services.games.notify import room_channel


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def _room_id_from(data):
    try:
        return int((data or {}).get('room_id'))
    except (TypeError, ValueError):
        return None


def handle_join_room_channel(data):
    """Subscribe this socket to state_update pushes for one room."""
    room_id = _room_id_from(data)
    if room_id is None:
        emit('error', {'message': 'room_id is required'})
        return
    if not Room.query.filter_by(id=room_id).first():
        emit('error', {'message': 'Room not found'})
        return
    channel = room_channel(room_id)
    join_room(channel)
    emit('joined', {'room': channel})


def handle_leave_room_channel(data):
    room_id = _room_id_from(data)
    if room_id is None:
        emit('error', {'message': 'room_id is required'})
        return
    channel = room_channel(room_id)
    leave_room(channel)
    emit('left', {'room': channel})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    from promptparty import socketio

    # Primary namespace
    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('join_room_channel', handle_join_room_channel, namespace='/ws')
    socketio.on_event('leave_room_channel', handle_leave_room_channel, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('join_room_channel', handle_join_room_channel, namespace='/')
        socketio.on_event('leave_room_channel', handle_leave_room_channel, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
