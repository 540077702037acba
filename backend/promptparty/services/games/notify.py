from promptparty import socketio


def room_channel(room_id: int) -> str:
    return f"room:{room_id}"


def broadcast_state(room_id: int) -> None:
    """Tell subscribed clients to re-read the room's projections."""
    # socketio.emit works outside a request, so background judging can use it
    socketio.emit('state_update', {'room_id': room_id}, to=room_channel(room_id), namespace='/ws')
